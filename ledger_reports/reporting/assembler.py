#!/usr/bin/env python3
"""
Report Assembler
Filters, orders and totals aggregated rows into the response shape shared by every report
"""

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .hierarchy import AccountBalance
from .periods import AccountRange, ReportPeriod

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def to_decimal(value) -> Decimal:
    """Amount column value as Decimal; NULL counts as zero, unparseable values are logged and count as zero"""
    if value is None:
        return ZERO
    if isinstance(value, Decimal) and value.is_finite():
        return value
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        amount = None
    if amount is None or not amount.is_finite():
        logger.warning(f"Unparseable amount {value!r} counted as zero")
        return ZERO
    return amount


def balance_side(net: Decimal, debit_label: str = 'Dr', credit_label: str = 'Cr'):
    """Split a net amount into (absolute amount, Dr/Cr label)"""
    if net >= 0:
        return net, debit_label
    return -net, credit_label


def column_totals(rows: Iterable[Dict[str, Any]], columns: Sequence[str]) -> Dict[str, Decimal]:
    """Sum the named amount columns over already-built rows"""
    totals = {column: ZERO for column in columns}
    for row in rows:
        for column in columns:
            totals[column] += to_decimal(row.get(column))
    return totals


class ReportTimer:
    """Elapsed processing time for the response metadata"""

    def __init__(self):
        self.started = time.perf_counter()

    @property
    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)


@dataclass
class AssembledReport:
    rows: List[Dict[str, Any]]
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO
    period: Optional[ReportPeriod] = None
    account_range: Optional[AccountRange] = None
    skipped_rows: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self, message: str, processing_time_ms: int) -> Dict[str, Any]:
        payload = {
            'success': True,
            'message': message,
            'data': self.rows,
            'fromDate': None,
            'toDate': None,
            'totalDebit': float(self.total_debit),
            'totalCredit': float(self.total_credit),
            'processingTimeMs': processing_time_ms,
            'skippedRows': self.skipped_rows,
        }
        if self.period is not None:
            payload.update(self.period.to_dict())
        if self.account_range is not None:
            payload.update(self.account_range.to_dict())
        payload.update(self.extra)
        return payload


def assemble_balances(balances: Iterable[AccountBalance],
                      account_range: Optional[AccountRange] = None,
                      include_zero: bool = False,
                      period: Optional[ReportPeriod] = None,
                      skipped_rows: int = 0) -> AssembledReport:
    """
    Build trial-balance rows from rolled-up balances

    Keeps accounts inside ``account_range`` (inclusive), drops zero balances unless
    ``include_zero`` is set, orders by numeric key and totals what was emitted.
    Debit and credit totals are reported as found, not forced to agree.
    """
    selected = [
        balance for balance in balances
        if (account_range is None or account_range.contains(balance.key))
        and (include_zero or not balance.is_zero())
    ]
    selected.sort(key=lambda balance: balance.key)

    total_debit = sum((balance.debit for balance in selected), ZERO)
    total_credit = sum((balance.credit for balance in selected), ZERO)

    return AssembledReport(
        rows=[balance.to_dict() for balance in selected],
        total_debit=total_debit,
        total_credit=total_credit,
        period=period,
        account_range=account_range,
        skipped_rows=skipped_rows,
    )
