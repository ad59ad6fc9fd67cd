#!/usr/bin/env python3
"""
Receivable and Payable Aging
Outstanding invoice amounts as on a date, bucketed by age

An invoice is settled by journal postings on the party's account whose voucher
number is the invoice number behind a two-letter prefix (``SV000123`` pays sale
invoice ``123``; ``PV`` does the same for purchases). Opening-balance vouchers
(``OB...``) both settle invoices carrying the same number and, where they leave
a balance of their own, show up as bills in their own right.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..exceptions import InvalidReportParameter
from .assembler import AssembledReport, ZERO, to_decimal
from .financial_statements import LedgerReportBase, OPENING_VOUCHER_PREFIX
from .periods import ReportPeriod, coerce_date, resolve_account_range

logger = logging.getLogger(__name__)

REPORT_SUMMARY = 'summary'
REPORT_DETAILED = 'detailed'

# (upper bound in days, output field); None is open-ended
AGING_BUCKETS = (
    (30, 'days1To30'),
    (60, 'days31To60'),
    (90, 'days61To90'),
    (120, 'days91To120'),
    (None, 'above120'),
)


@dataclass(frozen=True)
class AgingSide:
    """Which invoices and which side of the party's account settle them"""
    party: str
    invoice_table: str
    voucher_prefix: str
    settled_by: str
    label: str


CUSTOMER_AGING = AgingSide('customer', 'sale_inv', 'SV', 'cr_amount', 'Customer')
SUPPLIER_AGING = AgingSide('supplier', 'pur_inv', 'PV', 'dr_amount', 'Supplier')


def bucket_for(days: int) -> str:
    for limit, name in AGING_BUCKETS:
        if limit is None or days <= limit:
            return name
    return AGING_BUCKETS[-1][1]


def invoice_number(value) -> str:
    """Invoice or voucher number with leading zeros removed"""
    return str(value or '').strip().lstrip('0')


class AgingReportGenerator(LedgerReportBase):
    """Customer (receivable) and supplier (payable) aging for one tenant"""

    def _invoices_sql(self, side: AgingSide) -> str:
        # Table name comes from the fixed AgingSide constants, never from the request
        return f"""
            SELECT ac_code, ac_name, inv_no, inv_date, grand_tot
            FROM {side.invoice_table}
            WHERE inv_date < :until
            ORDER BY ac_code, inv_date
        """

    SETTLEMENTS_SQL = """
        SELECT acc_code, vouch_no, vouch_date, dr_amount, cr_amount
        FROM view_gjournal
        WHERE vouch_date < :until
          AND SUBSTR(vouch_no, 1, 2) IN (:voucher_prefix, :opening_prefix)
    """

    NAMES_SQL = "SELECT acc_code, acc_name FROM customer"

    def generate(self, side: AgingSide, as_on_date: Optional[date] = None,
                 from_account: Optional[str] = None, upto_account: Optional[str] = None,
                 report_type: Optional[str] = None) -> AssembledReport:
        report_type = (report_type or REPORT_DETAILED).strip().lower()
        if report_type not in (REPORT_SUMMARY, REPORT_DETAILED):
            raise InvalidReportParameter("reportType must be 'summary' or 'detailed'")

        account_range = resolve_account_range(from_account, upto_account, self.scheme)
        as_on_date = as_on_date or date.today()
        until = ReportPeriod(as_on_date, as_on_date).until
        logger.info(f"Generating {side.party} aging ({report_type}) for tenant {self.profile.tenant_id} as on {as_on_date}")

        with self.executor.session(self.profile) as session:
            invoices = session.query(self._invoices_sql(side), {'until': until})
            settlements = session.query(self.SETTLEMENTS_SQL, {
                'until': until,
                'voucher_prefix': side.voucher_prefix,
                'opening_prefix': OPENING_VOUCHER_PREFIX,
            })
            names = {row['acc_code']: row['acc_name'] or '' for row in session.query(self.NAMES_SQL)}

        bills = self._outstanding_bills(side, invoices, settlements, names, account_range, as_on_date)

        if report_type == REPORT_SUMMARY:
            report = self._summary(bills)
        else:
            report = self._detailed(side, bills)

        report.account_range = account_range
        report.skipped_rows = self.skipped_rows
        report.extra.update({'reportType': report_type, 'asOnDate': as_on_date.isoformat(), 'party': side.party})
        return report

    def _outstanding_bills(self, side: AgingSide, invoices, settlements, names: Dict[str, str],
                           account_range, as_on_date: date) -> List[Dict[str, Any]]:
        # Settlement amounts keyed by (account key, invoice number)
        paid = defaultdict(lambda: ZERO)
        openings: Dict[tuple, Dict[str, Any]] = {}

        for posting in settlements:
            key = self._key_or_skip(posting['acc_code'], 'settlement posting')
            if key is None:
                continue
            voucher = str(posting['vouch_no'] or '').strip()
            amount = to_decimal(posting[side.settled_by])

            if voucher[:2] == side.voucher_prefix:
                paid[(key, invoice_number(voucher[2:]))] += amount
                continue

            # OB voucher: settles an invoice of the same number, and is a bill of its own
            paid[(key, voucher)] += amount
            debit, credit = to_decimal(posting['dr_amount']), to_decimal(posting['cr_amount'])
            balance = debit - credit if side is CUSTOMER_AGING else credit - debit
            opening = openings.setdefault((key, voucher), {
                'key': key,
                'accCode': posting['acc_code'],
                'billNo': voucher,
                'billDate': coerce_date(posting['vouch_date']),
                'billAmount': ZERO,
                'opening': True,
            })
            opening['billAmount'] += balance
            posted = coerce_date(posting['vouch_date'])
            if posted is not None and (opening['billDate'] is None or posted < opening['billDate']):
                opening['billDate'] = posted

        bills = []
        invoiced_accounts = set()
        for invoice in invoices:
            key = self._key_or_skip(invoice['ac_code'], 'invoice')
            if key is None or not account_range.contains(key):
                continue
            invoiced_accounts.add(key)

            raw_number = str(invoice['inv_no'] or '').strip()
            if raw_number.startswith(OPENING_VOUCHER_PREFIX):
                settled = paid.get((key, raw_number), ZERO)
                bill_no = raw_number
            else:
                settled = paid.get((key, invoice_number(raw_number)), ZERO)
                bill_no = f"{side.voucher_prefix}{raw_number.zfill(6)}"

            amount = to_decimal(invoice['grand_tot'])
            bills.append({
                'key': key,
                'accCode': invoice['ac_code'],
                'accName': invoice['ac_name'] or names.get(invoice['ac_code'], ''),
                'billNo': bill_no,
                'billDate': coerce_date(invoice['inv_date']),
                'billAmount': amount,
                'paidAmount': settled,
                'pending': amount - settled,
            })

        for opening in openings.values():
            if opening['key'] not in invoiced_accounts or opening['billAmount'] <= 0:
                continue
            bills.append({
                **opening,
                'accName': names.get(opening['accCode'], ''),
                'paidAmount': ZERO,
                'pending': opening['billAmount'],
            })

        outstanding = []
        for bill in bills:
            if bill['pending'] <= 0:
                continue
            bill_date = bill['billDate'] or as_on_date
            bill['days'] = (as_on_date - bill_date).days
            bill['bucket'] = bucket_for(bill['days'])
            outstanding.append(bill)

        outstanding.sort(key=lambda bill: (bill['key'], bill['billDate'] or as_on_date, bill['billNo']))
        return outstanding

    def _summary(self, bills: List[Dict[str, Any]]) -> AssembledReport:
        accounts: Dict[int, Dict[str, Any]] = {}
        totals = {name: ZERO for _, name in AGING_BUCKETS}
        total_balance = ZERO

        for bill in bills:
            account = accounts.get(bill['key'])
            if account is None:
                account = {'accCode': bill['accCode'], 'accName': bill['accName'], 'balance': ZERO}
                account.update({name: ZERO for _, name in AGING_BUCKETS})
                accounts[bill['key']] = account
            account['balance'] += bill['pending']
            account[bill['bucket']] += bill['pending']
            totals[bill['bucket']] += bill['pending']
            total_balance += bill['pending']

        data = []
        for key in sorted(accounts):
            data.append({name: float(value) if isinstance(value, Decimal) else value
                         for name, value in accounts[key].items()})

        extra = {'totalBalance': float(total_balance)}
        extra.update({f"total{name[0].upper()}{name[1:]}": float(value) for name, value in totals.items()})
        return AssembledReport(rows=data, total_debit=total_balance, total_credit=ZERO, extra=extra)

    def _detailed(self, side: AgingSide, bills: List[Dict[str, Any]]) -> AssembledReport:
        data = []
        total_pending = ZERO

        by_account: Dict[int, List[Dict[str, Any]]] = defaultdict(list)
        for bill in bills:
            by_account[bill['key']].append(bill)

        for key in sorted(by_account):
            account_bills = by_account[key]
            first = account_bills[0]
            balance = sum((bill['pending'] for bill in account_bills), ZERO)
            total_pending += balance

            data.append({
                'rowType': 'header',
                'accCode': first['accCode'],
                'accName': first['accName'],
                'balance': float(balance),
            })
            for bill in account_bills:
                data.append({
                    'rowType': 'bill',
                    'accCode': bill['accCode'],
                    'accName': bill['accName'],
                    'billNo': bill['billNo'],
                    'billDate': bill['billDate'].isoformat() if bill['billDate'] else None,
                    'days': bill['days'],
                    'bucket': bill['bucket'],
                    'billAmount': float(bill['billAmount']),
                    'paidAmount': float(bill['paidAmount']),
                    'pending': float(bill['pending']),
                })
            data.append({
                'rowType': 'total',
                'accCode': first['accCode'],
                'accName': f"{side.label} Total",
                'balance': float(balance),
            })

        return AssembledReport(
            rows=data,
            total_debit=total_pending,
            total_credit=ZERO,
            extra={'totalPending': float(total_pending)},
        )

    def customer_aging(self, **kwargs) -> AssembledReport:
        return self.generate(CUSTOMER_AGING, **kwargs)

    def supplier_aging(self, **kwargs) -> AssembledReport:
        report = self.generate(SUPPLIER_AGING, **kwargs)
        # Payables are credit balances
        report.total_debit, report.total_credit = report.total_credit, report.total_debit
        return report
