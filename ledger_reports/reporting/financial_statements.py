#!/usr/bin/env python3
"""
Financial Statements Generator
Builds ledger reports from a tenant's chart of accounts and journal postings

Supported Statements:
- Hierarchical Trial Balance
- Three-Column Trial Balance (opening, period movement, closing)
- Monthly Account Balance
- Account Ledger with running balance
- Account Position
- Cash Book
- Journal Book and Transaction Journal
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from ..exceptions import InvalidReportParameter, MalformedAccountCode
from ..web_ui.tenant_database import TenantQueryExecutor, TenantSession
from ..web_ui.tenant_registry import ConnectionProfile
from .account_codes import AccountCodeScheme, configured_scheme
from .assembler import AssembledReport, ZERO, assemble_balances, balance_side, column_totals, to_decimal
from .hierarchy import AccountBalance, cascade_balances
from .periods import (
    AccountRange, ReportPeriod, coerce_date, month_labels, resolve_account_range, resolve_period,
)

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
OPENING_VOUCHER_PREFIX = 'OB'

POSTING_BOUNDS_SQL = """
    SELECT acc_code, MIN(vouch_date) AS first_date, MAX(vouch_date) AS last_date
    FROM view_gjournal
    GROUP BY acc_code
"""

TRIAL_BALANCE_SQL = """
    SELECT a.acc_code AS acc_code, a.acc_name AS acc_name, a.acc_type AS acc_type,
           COALESCE(SUM(v.dr_amount), 0) AS debit,
           COALESCE(SUM(v.cr_amount), 0) AS credit
    FROM customer a
    LEFT JOIN view_gjournal v ON v.acc_code = a.acc_code
        AND v.vouch_date >= :from_date AND v.vouch_date < :until
    GROUP BY a.acc_code, a.acc_name, a.acc_type
"""

THREE_COLUMN_SQL = """
    SELECT c.acc_code AS acc_code, c.acc_name AS acc_name, c.acc_type AS acc_type,
           COALESCE(SUM(CASE WHEN v.vouch_date < :from_date
                             THEN COALESCE(v.dr_amount, 0) - COALESCE(v.cr_amount, 0) ELSE 0 END), 0) AS opening,
           COALESCE(SUM(CASE WHEN v.vouch_date >= :from_date THEN COALESCE(v.dr_amount, 0) ELSE 0 END), 0) AS period_debit,
           COALESCE(SUM(CASE WHEN v.vouch_date >= :from_date THEN COALESCE(v.cr_amount, 0) ELSE 0 END), 0) AS period_credit
    FROM customer c
    LEFT JOIN view_gjournal v ON v.acc_code = c.acc_code AND v.vouch_date < :until
    GROUP BY c.acc_code, c.acc_name, c.acc_type
"""

MONTHLY_MOVEMENT_SQL = """
    SELECT a.acc_code AS acc_code, a.acc_name AS acc_name, v.vouch_date AS vouch_date,
           COALESCE(v.dr_amount, 0) - COALESCE(v.cr_amount, 0) AS amount
    FROM customer a
    LEFT JOIN view_gjournal v ON v.acc_code = a.acc_code
        AND v.vouch_date >= :from_date AND v.vouch_date < :until
    WHERE a.acc_type = 'D'
"""

ACCOUNT_NAME_SQL = """
    SELECT acc_code, acc_name FROM customer
    WHERE acc_code = :acc_code OR acc_code = :raw_code
"""

ACCOUNT_TOTALS_SQL = """
    SELECT COALESCE(SUM(dr_amount), 0) AS debit, COALESCE(SUM(cr_amount), 0) AS credit
    FROM view_gjournal
    WHERE (acc_code = :acc_code OR acc_code = :raw_code)
      AND vouch_date < :until
"""

ACCOUNT_POSTINGS_SQL = """
    SELECT vouch_no, vouch_date, descript, dr_amount, cr_amount
    FROM view_gjournal
    WHERE (acc_code = :acc_code OR acc_code = :raw_code)
      AND vouch_date >= :from_date AND vouch_date < :until
    ORDER BY vouch_date, vouch_no
"""

CASH_ACCOUNT_SQL = "SELECT cash_ac FROM acc_desc"

CASH_COUNTER_ENTRIES_SQL = """
    SELECT g.vouch_no AS vouch_no, g.vouch_date AS vouch_date, g.acc_code AS acc_code,
           c.acc_name AS acc_name, g.descript AS descript,
           g.dr_amount AS dr_amount, g.cr_amount AS cr_amount
    FROM view_gjournal g
    LEFT JOIN customer c ON c.acc_code = g.acc_code
    WHERE g.vouch_date >= :from_date AND g.vouch_date < :until
      AND g.acc_code <> :cash_ac
      AND SUBSTR(g.vouch_no, 1, 2) <> :opening_prefix
      AND g.vouch_no IN (
          SELECT vouch_no FROM view_gjournal
          WHERE acc_code = :cash_ac AND vouch_date >= :from_date AND vouch_date < :until
      )
    ORDER BY g.vouch_date, g.vouch_no
"""

# {prefixes} is filled with generated :prefix_N placeholders only
VOUCHER_ENTRIES_SQL = """
    SELECT v.vouch_date AS vouch_date, v.vouch_no AS vouch_no, v.acc_code AS acc_code,
           c.acc_name AS acc_name, v.descript AS descript,
           COALESCE(v.dr_amount, 0) AS dr_amount, COALESCE(v.cr_amount, 0) AS cr_amount
    FROM view_gjournal v
    LEFT JOIN customer c ON c.acc_code = v.acc_code
    WHERE v.vouch_date >= :from_date AND v.vouch_date < :until
      AND SUBSTR(v.vouch_no, 1, 2) IN ({prefixes})
    ORDER BY v.vouch_date, v.vouch_no
"""

JOURNAL_VOUCHER_PREFIX = 'JV'

# Voucher prefix -> journal heading
DOCUMENT_TYPES = {
    'SV': 'Sales',
    'ES': 'Purchase',
    'SR': 'Sales Return',
    'JV': 'Journal Voucher',
    'CP': 'Cash Payment',
    'CR': 'Cash Receipts',
    'BP': 'Bank Payment',
    'BR': 'Bank Receipts',
    'IB': 'Inter Bank',
}


def cents(value) -> Decimal:
    return to_decimal(value).quantize(CENTS)


def parse_document_types(value) -> List[str]:
    """
    Voucher prefixes from a comma-separated string or a list

    Upper-cased, de-duplicated and kept in the order given, since the
    transaction journal prints one section per prefix in that order.
    """
    if value is None:
        parts = []
    elif isinstance(value, str):
        parts = value.split(',')
    else:
        parts = list(value)

    selected = []
    for part in parts:
        prefix = str(part).strip().upper()
        if not prefix:
            continue
        if len(prefix) != 2 or not prefix.isalnum():
            raise InvalidReportParameter(f"documentTypes entry {prefix!r} is not a two-character voucher prefix")
        if prefix not in selected:
            selected.append(prefix)

    if not selected:
        raise InvalidReportParameter("Please select at least one document type (documentTypes)")
    return selected


def group_vouchers(entries) -> List[Tuple[str, Optional[date], List[Any]]]:
    """
    (voucher no, voucher date, entries) per voucher, ordered by date then number

    Within a voucher, debit lines come first, largest first, then credit lines.
    """
    vouchers: Dict[str, List[Any]] = {}
    for entry in entries:
        voucher = str(entry['vouch_no'] or '').strip()
        if voucher:
            vouchers.setdefault(voucher, []).append(entry)

    grouped = []
    for voucher, lines in vouchers.items():
        lines.sort(key=lambda line: (-to_decimal(line['dr_amount']), -to_decimal(line['cr_amount'])))
        dates = [posted for posted in (coerce_date(line['vouch_date']) for line in lines) if posted]
        grouped.append((voucher, min(dates) if dates else None, lines))
    grouped.sort(key=lambda item: (item[1] or date.min, item[0]))
    return grouped


class LedgerReportBase:
    """Shared plumbing: one tenant session per report, code parsing, period defaults"""

    def __init__(self, profile: ConnectionProfile,
                 executor: Optional[TenantQueryExecutor] = None,
                 scheme: Optional[AccountCodeScheme] = None):
        self.profile = profile
        self.executor = executor or TenantQueryExecutor()
        self.scheme = scheme or configured_scheme()
        self.skipped_rows = 0

    def _key_or_skip(self, code, context: str = 'row') -> Optional[int]:
        """Numeric key for a stored account code; malformed codes are skipped and counted"""
        try:
            return self.scheme.parse(code)
        except MalformedAccountCode as e:
            self.skipped_rows += 1
            logger.warning(f"Skipping {context} with malformed account code for tenant {self.profile.tenant_id}: {e}")
            return None

    def _posting_bounds(self, session: TenantSession,
                        account_range: Optional[AccountRange] = None,
                        account_key: Optional[int] = None) -> Callable[[], Tuple[Optional[date], Optional[date]]]:
        """Earliest and latest posting date among the selected accounts, fetched on demand"""
        def bounds():
            earliest = latest = None
            for row in session.query(POSTING_BOUNDS_SQL):
                try:
                    key = self.scheme.parse(row['acc_code'])
                except MalformedAccountCode:
                    continue
                if account_key is not None and key != account_key:
                    continue
                if account_range is not None and not account_range.contains(key):
                    continue
                first, last = coerce_date(row['first_date']), coerce_date(row['last_date'])
                if first is not None and (earliest is None or first < earliest):
                    earliest = first
                if last is not None and (latest is None or last > latest):
                    latest = last
            return earliest, latest
        return bounds

    def _account_params(self, account_code: Optional[str]) -> Tuple[int, Dict[str, Any]]:
        if account_code is None or not str(account_code).strip():
            raise InvalidReportParameter("accountCode is required")
        key = self.scheme.parse(account_code)
        return key, {'acc_code': self.scheme.format(key), 'raw_code': str(account_code).strip()}

    def _account_name(self, session: TenantSession, params: Dict[str, Any]) -> str:
        row = session.query_one(ACCOUNT_NAME_SQL, params)
        return (row['acc_name'] or '') if row else ''

    def _voucher_entries(self, session: TenantSession, period: ReportPeriod, prefixes: List[str]):
        names = [f"prefix_{index}" for index in range(len(prefixes))]
        sql = VOUCHER_ENTRIES_SQL.format(prefixes=', '.join(f":{name}" for name in names))
        params = {'from_date': period.from_date, 'until': period.until, **dict(zip(names, prefixes))}
        return session.query(sql, params)


class FinancialStatementsGenerator(LedgerReportBase):
    """Generates trial balances and account statements for one tenant"""

    def generate_trial_balance(self, from_date: Optional[date] = None, to_date: Optional[date] = None,
                               from_account: Optional[str] = None, upto_account: Optional[str] = None,
                               include_zero: bool = False) -> AssembledReport:
        """
        Hierarchical trial balance

        Sums postings per account for the period, rolls detail balances up through
        every group tier and keeps the accounts inside the requested code range.
        """
        account_range = resolve_account_range(from_account, upto_account, self.scheme)

        with self.executor.session(self.profile) as session:
            period = resolve_period(from_date, to_date, self._posting_bounds(session, account_range))
            logger.info(f"Generating trial balance for tenant {self.profile.tenant_id}: "
                        f"{period.from_date} to {period.to_date}, accounts {account_range.from_code}..{account_range.upto_code}")

            rows = session.query(TRIAL_BALANCE_SQL, {'from_date': period.from_date, 'until': period.until})

        balances = []
        for row in rows:
            key = self._key_or_skip(row['acc_code'], 'chart row')
            if key is None:
                continue
            balances.append(AccountBalance(
                code=self.scheme.format(key),
                key=key,
                debit=to_decimal(row['debit']),
                credit=to_decimal(row['credit']),
                name=row['acc_name'] or '',
                account_type=row['acc_type'] or '',
            ))

        # Roll up over the whole chart so groups straddling the range bounds stay complete
        rolled = cascade_balances(balances, self.scheme)
        return assemble_balances(rolled, account_range, include_zero, period, self.skipped_rows)

    def generate_three_column_trial_balance(self, from_date: Optional[date] = None, to_date: Optional[date] = None,
                                            from_account: Optional[str] = None, upto_account: Optional[str] = None,
                                            include_zero: bool = False) -> AssembledReport:
        """Opening balance, period debit/credit and closing balance per account"""
        account_range = resolve_account_range(from_account, upto_account, self.scheme)

        with self.executor.session(self.profile) as session:
            period = resolve_period(from_date, to_date, self._posting_bounds(session, account_range))
            rows = session.query(THREE_COLUMN_SQL, {'from_date': period.from_date, 'until': period.until})

        selected = []
        for row in rows:
            key = self._key_or_skip(row['acc_code'], 'chart row')
            if key is None or not account_range.contains(key):
                continue

            opening = to_decimal(row['opening'])
            period_debit = to_decimal(row['period_debit'])
            period_credit = to_decimal(row['period_credit'])
            closing = opening + period_debit - period_credit
            if not include_zero and not (opening or period_debit or period_credit):
                continue

            opening_amount, opening_type = balance_side(opening)
            closing_amount, closing_type = balance_side(closing)
            selected.append((key, {
                'accCode': self.scheme.format(key),
                'accName': row['acc_name'] or '',
                'accType': row['acc_type'] or '',
                'openingBalance': float(opening_amount),
                'openingType': opening_type,
                'periodDebit': float(period_debit),
                'periodCredit': float(period_credit),
                'closingBalance': float(closing_amount),
                'closingType': closing_type,
                '_opening': opening,
                '_closing': closing,
            }))

        selected.sort(key=lambda item: item[0])
        data = [item for _, item in selected]

        totals = column_totals(data, ('periodDebit', 'periodCredit'))
        extra = {
            'totalOpeningDebit': float(sum((item['_opening'] for item in data if item['_opening'] > 0), ZERO)),
            'totalOpeningCredit': float(-sum((item['_opening'] for item in data if item['_opening'] < 0), ZERO)),
            'totalClosingDebit': float(sum((item['_closing'] for item in data if item['_closing'] > 0), ZERO)),
            'totalClosingCredit': float(-sum((item['_closing'] for item in data if item['_closing'] < 0), ZERO)),
        }
        for item in data:
            del item['_opening'], item['_closing']

        return AssembledReport(
            rows=data,
            total_debit=totals['periodDebit'],
            total_credit=totals['periodCredit'],
            period=period,
            account_range=account_range,
            skipped_rows=self.skipped_rows,
            extra=extra,
        )

    def generate_monthly_account_balance(self, from_date: Optional[date] = None, to_date: Optional[date] = None,
                                         from_account: Optional[str] = None, upto_account: Optional[str] = None,
                                         include_zero: bool = False) -> AssembledReport:
        """
        Net movement of every detail account per calendar month

        Months with no postings are reported as zero. Each row carries the
        months in period order plus the row total.
        """
        account_range = resolve_account_range(from_account, upto_account, self.scheme)

        with self.executor.session(self.profile) as session:
            period = resolve_period(from_date, to_date, self._posting_bounds(session, account_range))
            rows = session.query(MONTHLY_MOVEMENT_SQL, {'from_date': period.from_date, 'until': period.until})

        labels = month_labels(period)
        accounts: Dict[int, Tuple[str, str]] = {}
        records = []
        for row in rows:
            key = self._key_or_skip(row['acc_code'], 'chart row')
            if key is None or not account_range.contains(key):
                continue
            accounts.setdefault(key, (self.scheme.format(key), row['acc_name'] or ''))

            posted = coerce_date(row['vouch_date'])
            if posted is None:
                continue
            records.append({'key': key, 'month': posted.strftime('%b %Y'), 'amount': float(to_decimal(row['amount']))})

        frame = pd.DataFrame(records, columns=['key', 'month', 'amount'])
        if frame.empty:
            pivot = pd.DataFrame(0.0, index=sorted(accounts), columns=labels)
        else:
            pivot = frame.pivot_table(index='key', columns='month', values='amount', aggfunc='sum', fill_value=0.0)
            pivot = pivot.reindex(index=sorted(accounts), columns=labels).fillna(0.0)

        data = []
        month_totals = {label: ZERO for label in labels}
        total_debit = total_credit = ZERO
        for key, values in pivot.iterrows():
            monthly = {label: cents(values[label]) for label in labels}
            row_total = sum(monthly.values(), ZERO)
            if not include_zero and not any(monthly.values()):
                continue

            code, name = accounts[key]
            for label, amount in monthly.items():
                month_totals[label] += amount
            if row_total > 0:
                total_debit += row_total
            else:
                total_credit -= row_total

            data.append({
                'accCode': code,
                'accName': name,
                'monthlyBalances': {label: float(amount) for label, amount in monthly.items()},
                'total': float(row_total),
            })

        return AssembledReport(
            rows=data,
            total_debit=total_debit,
            total_credit=total_credit,
            period=period,
            account_range=account_range,
            skipped_rows=self.skipped_rows,
            extra={
                'months': labels,
                'monthTotals': {label: float(amount) for label, amount in month_totals.items()},
            },
        )

    def generate_account_ledger(self, account_code: Optional[str],
                                from_date: Optional[date] = None,
                                to_date: Optional[date] = None) -> AssembledReport:
        """Previous balance followed by every posting in the period with a running balance"""
        key, params = self._account_params(account_code)

        with self.executor.session(self.profile) as session:
            period = resolve_period(from_date, to_date, self._posting_bounds(session, account_key=key))
            account_name = self._account_name(session, params)
            opening_row = session.query_one(ACCOUNT_TOTALS_SQL, {**params, 'until': period.from_date})
            postings = session.query(ACCOUNT_POSTINGS_SQL, {**params, 'from_date': period.from_date, 'until': period.until})

        opening = ZERO
        if opening_row is not None:
            opening = to_decimal(opening_row['debit']) - to_decimal(opening_row['credit'])

        running = opening
        amount, balance_type = balance_side(running)
        data = [{
            'vouchNo': '',
            'vouchDate': None,
            'description': 'Previous Balance',
            'debit': float(max(opening, ZERO)),
            'credit': float(max(-opening, ZERO)),
            'balance': float(amount),
            'balanceType': balance_type,
        }]

        for posting in postings:
            debit = to_decimal(posting['dr_amount'])
            credit = to_decimal(posting['cr_amount'])
            running += debit - credit
            amount, balance_type = balance_side(running)
            posted = coerce_date(posting['vouch_date'])
            data.append({
                'vouchNo': posting['vouch_no'] or '',
                'vouchDate': posted.isoformat() if posted else None,
                'description': posting['descript'] or '',
                'debit': float(debit),
                'credit': float(credit),
                'balance': float(amount),
                'balanceType': balance_type,
            })

        totals = column_totals(data, ('debit', 'credit'))
        closing_amount, closing_type = balance_side(running)
        return AssembledReport(
            rows=data,
            total_debit=totals['debit'],
            total_credit=totals['credit'],
            period=period,
            extra={
                'accountCode': params['acc_code'],
                'accountName': account_name,
                'closingBalance': float(closing_amount),
                'closingBalanceType': closing_type,
            },
        )

    def generate_account_position(self, account_code: Optional[str],
                                  upto_date: Optional[date] = None) -> AssembledReport:
        """Total debit, credit and net balance of one account up to a date"""
        key, params = self._account_params(account_code)
        upto_date = upto_date or date.today()
        until = ReportPeriod(upto_date, upto_date).until

        with self.executor.session(self.profile) as session:
            account_name = self._account_name(session, params)
            row = session.query_one(ACCOUNT_TOTALS_SQL, {**params, 'until': until})

        total_debit = to_decimal(row['debit']) if row else ZERO
        total_credit = to_decimal(row['credit']) if row else ZERO
        balance, balance_type = balance_side(total_debit - total_credit)

        position = {
            'accountCode': params['acc_code'],
            'accountName': account_name,
            'totalDebit': float(total_debit),
            'totalCredit': float(total_credit),
            'balance': float(balance),
            'balanceType': balance_type,
            'uptoDate': upto_date.isoformat(),
        }
        return AssembledReport(
            rows=[position],
            total_debit=total_debit,
            total_credit=total_credit,
            extra={key: value for key, value in position.items() if key not in ('totalDebit', 'totalCredit')},
        )

    def generate_cash_book(self, from_date: Optional[date] = None,
                           to_date: Optional[date] = None) -> AssembledReport:
        """
        Cash receipts and payments for the period

        Lists the counter-entries of every voucher that touches the cash account
        named in acc_desc. A counter-entry credited is cash received; one debited
        is cash paid out. Opening-balance vouchers are left out.
        """
        with self.executor.session(self.profile) as session:
            cash_row = session.query_one(CASH_ACCOUNT_SQL)
            cash_account = (cash_row['cash_ac'] or '').strip() if cash_row else ''
            if not cash_account:
                raise InvalidReportParameter("No cash account is configured for this tenant")

            cash_key = self._key_or_skip(cash_account, 'cash account')
            if cash_key is None:
                raise InvalidReportParameter(f"Configured cash account {cash_account!r} is not a valid account code")

            params = {'acc_code': cash_account, 'raw_code': self.scheme.format(cash_key)}
            period = resolve_period(from_date, to_date, self._posting_bounds(session, account_key=cash_key))
            opening_row = session.query_one(ACCOUNT_TOTALS_SQL, {**params, 'until': period.from_date})
            entries = session.query(CASH_COUNTER_ENTRIES_SQL, {
                'from_date': period.from_date,
                'until': period.until,
                'cash_ac': cash_account,
                'opening_prefix': OPENING_VOUCHER_PREFIX,
            })

        opening = ZERO
        if opening_row is not None:
            opening = to_decimal(opening_row['debit']) - to_decimal(opening_row['credit'])

        data = [{
            'srNo': 0,
            'transDate': None,
            'accCode': '',
            'accName': '',
            'description': 'Previous Balance',
            'voucherNo': '',
            'receipts': float(max(opening, ZERO)),
            'payments': float(max(-opening, ZERO)),
        }]

        movements = []
        for entry in entries:
            posted = coerce_date(entry['vouch_date'])
            received = to_decimal(entry['cr_amount'])
            paid = to_decimal(entry['dr_amount'])
            base = {
                'transDate': posted.isoformat() if posted else None,
                'accCode': entry['acc_code'] or '',
                'accName': entry['acc_name'] or '',
                'description': entry['descript'] or '',
                'voucherNo': entry['vouch_no'] or '',
            }
            if received > 0:
                movements.append({'srNo': 1, **base, 'receipts': float(received), 'payments': 0.0})
            if paid > 0:
                movements.append({'srNo': 2, **base, 'receipts': 0.0, 'payments': float(paid)})

        movements.sort(key=lambda item: (item['transDate'] or '', item['srNo'], item['voucherNo']))
        data.extend(movements)

        totals = column_totals(data, ('receipts', 'payments'))
        return AssembledReport(
            rows=data,
            total_debit=totals['receipts'],
            total_credit=totals['payments'],
            period=period,
            extra={
                'cashAccount': cash_account,
                'totalReceipts': float(totals['receipts']),
                'totalPayments': float(totals['payments']),
                'cashBalance': float(totals['receipts'] - totals['payments']),
            },
        )

    def generate_journal_book(self, from_date: Optional[date] = None,
                              to_date: Optional[date] = None) -> AssembledReport:
        """
        Journal vouchers (JV...) for the period, one block per voucher

        Each block lists the voucher's lines, dated on the first line only,
        followed by a total row. Debits are reported as receipts and credits
        as payments.
        """
        with self.executor.session(self.profile) as session:
            period = resolve_period(from_date, to_date, self._posting_bounds(session))
            entries = self._voucher_entries(session, period, [JOURNAL_VOUCHER_PREFIX])

        data = []
        total_receipts = total_payments = ZERO
        for voucher, voucher_date, lines in group_vouchers(entries):
            voucher_receipts = voucher_payments = ZERO
            for position, line in enumerate(lines):
                receipts = to_decimal(line['dr_amount'])
                payments = to_decimal(line['cr_amount'])
                voucher_receipts += receipts
                voucher_payments += payments

                acc_name = (line['acc_name'] or '').strip()
                description = (line['descript'] or '').strip()
                data.append({
                    'rowType': 'entry',
                    'date': voucher_date.isoformat() if position == 0 and voucher_date else None,
                    'particulars': ', '.join(part for part in (acc_name, description) if part),
                    'voucherNo': voucher,
                    'accCode': line['acc_code'] or '',
                    'accName': acc_name,
                    'description': description,
                    'receipts': float(receipts),
                    'payments': float(payments),
                })

            data.append({
                'rowType': 'total',
                'date': None,
                'particulars': 'Total:',
                'voucherNo': voucher,
                'accCode': '',
                'accName': '',
                'description': '',
                'receipts': float(voucher_receipts),
                'payments': float(voucher_payments),
            })
            total_receipts += voucher_receipts
            total_payments += voucher_payments

        return AssembledReport(
            rows=data,
            total_debit=total_receipts,
            total_credit=total_payments,
            period=period,
            extra={'totalReceipts': float(total_receipts), 'totalPayments': float(total_payments)},
        )

    def generate_transaction_journal(self, document_types, from_date: Optional[date] = None,
                                     to_date: Optional[date] = None) -> AssembledReport:
        """
        Vouchers of the selected document types, one section per type

        A section opens with a header row naming the type. Each voucher shows
        its debits consolidated into one line, then every credit line, then a
        total row. Types without vouchers in the period get no section.
        """
        selected = parse_document_types(document_types)

        with self.executor.session(self.profile) as session:
            period = resolve_period(from_date, to_date, self._posting_bounds(session))
            entries = self._voucher_entries(session, period, selected)

        by_type: Dict[str, list] = {}
        for voucher in group_vouchers(entries):
            by_type.setdefault(voucher[0][:2].upper(), []).append(voucher)

        data = []
        total_debit = total_credit = ZERO
        for prefix in selected:
            if prefix not in by_type:
                continue
            type_name = DOCUMENT_TYPES.get(prefix, prefix)
            data.append({'rowType': 'header', 'documentType': prefix, 'documentTypeName': type_name})

            for voucher, voucher_date, lines in by_type[prefix]:
                voucher_debit = sum((to_decimal(line['dr_amount']) for line in lines), ZERO)
                voucher_credit = sum((to_decimal(line['cr_amount']) for line in lines), ZERO)
                debit_lines = [line for line in lines if to_decimal(line['dr_amount']) > 0]
                credit_lines = [line for line in lines
                                if to_decimal(line['dr_amount']) <= 0 and to_decimal(line['cr_amount']) > 0]
                dated = voucher_date.isoformat() if voucher_date else None

                if debit_lines:
                    data.append({
                        'rowType': 'entry',
                        'date': dated,
                        'particulars': type_name,
                        'voucherNo': voucher,
                        'accCode': '',
                        'accName': (debit_lines[0]['acc_name'] or '').strip(),
                        'description': '',
                        'debit': float(voucher_debit),
                        'credit': 0.0,
                    })
                    dated = None

                for line in credit_lines:
                    data.append({
                        'rowType': 'entry',
                        'date': dated,
                        'particulars': '',
                        'voucherNo': voucher,
                        'accCode': line['acc_code'] or '',
                        'accName': (line['acc_name'] or '').strip(),
                        'description': (line['descript'] or '').strip(),
                        'debit': 0.0,
                        'credit': float(to_decimal(line['cr_amount'])),
                    })
                    dated = None

                data.append({
                    'rowType': 'total',
                    'voucherNo': voucher,
                    'particulars': 'Total:',
                    'debit': float(voucher_debit),
                    'credit': float(voucher_credit),
                })
                total_debit += voucher_debit
                total_credit += voucher_credit

        return AssembledReport(
            rows=data,
            total_debit=total_debit,
            total_credit=total_credit,
            period=period,
            extra={'selectedDocumentTypes': selected},
        )
