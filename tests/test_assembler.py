import unittest
from datetime import date
from decimal import Decimal

from ledger_reports.reporting.account_codes import DEFAULT_SCHEME
from ledger_reports.reporting.assembler import (
    AssembledReport, assemble_balances, balance_side, column_totals, to_decimal,
)
from ledger_reports.reporting.hierarchy import AccountBalance, cascade_balances
from ledger_reports.reporting.periods import ReportPeriod, resolve_account_range


def rolled(*entries):
    return cascade_balances([
        AccountBalance(code=code, key=DEFAULT_SCHEME.parse(code), debit=Decimal(dr), credit=Decimal(cr))
        for code, dr, cr in entries
    ])


class TestAssembleBalances(unittest.TestCase):
    def setUp(self):
        self.balances = rolled(
            ('1-00-00-0000', 0, 0),
            ('1-01-00-0000', 0, 0),
            ('1-01-01-0000', 0, 0),
            ('1-01-01-0001', 100, 40),
            ('1-01-01-0002', 0, 0),
            ('2-00-00-0000', 0, 0),
            ('2-01-00-0000', 0, 0),
            ('2-01-01-0000', 0, 0),
            ('2-01-01-0001', 0, 60),
        )

    def test_zero_rows_dropped_and_totals_cover_emitted_rows(self):
        report = assemble_balances(self.balances)
        codes = [row['accCode'] for row in report.rows]
        self.assertNotIn('1-01-01-0002', codes)
        self.assertEqual(len(codes), 8)
        self.assertEqual(report.total_debit, Decimal('240'))
        self.assertEqual(report.total_credit, Decimal('240'))

    def test_include_zero(self):
        report = assemble_balances(self.balances, include_zero=True)
        self.assertEqual(len(report.rows), 9)

    def test_range_filter_is_inclusive_on_numeric_key(self):
        account_range = resolve_account_range('1-01-01-0000', '1-01-01-9999')
        report = assemble_balances(self.balances, account_range)
        self.assertEqual([row['accCode'] for row in report.rows], ['1-01-01-0000', '1-01-01-0001'])
        self.assertEqual(report.total_debit, Decimal('120'))
        self.assertEqual(report.total_credit, Decimal('0'))

    def test_ascending_key_order(self):
        report = assemble_balances(list(reversed(self.balances)))
        codes = [row['accCode'] for row in report.rows]
        self.assertEqual(codes, sorted(codes, key=DEFAULT_SCHEME.parse))

    def test_envelope(self):
        period = ReportPeriod(date(2024, 1, 1), date(2024, 1, 31))
        report = assemble_balances(self.balances, resolve_account_range(), period=period, skipped_rows=2)
        payload = report.to_dict("Trial Balance retrieved successfully", 12)
        self.assertTrue(payload['success'])
        self.assertEqual(payload['fromDate'], '2024-01-01')
        self.assertEqual(payload['toDate'], '2024-01-31')
        self.assertEqual(payload['fromAccount'], '0-00-00-0000')
        self.assertEqual(payload['processingTimeMs'], 12)
        self.assertEqual(payload['skippedRows'], 2)
        self.assertEqual(payload['totalDebit'], 240.0)

    def test_empty_report(self):
        payload = assemble_balances([]).to_dict("ok", 0)
        self.assertEqual(payload['data'], [])
        self.assertEqual(payload['totalDebit'], 0.0)
        self.assertEqual(payload['totalCredit'], 0.0)
        self.assertIsNone(payload['fromDate'])


class TestHelpers(unittest.TestCase):
    def test_to_decimal(self):
        self.assertEqual(to_decimal(None), Decimal('0'))
        self.assertEqual(to_decimal(12.5), Decimal('12.5'))
        self.assertEqual(to_decimal('7.25'), Decimal('7.25'))

    def test_unparseable_amount_is_logged(self):
        for value in ('n/a', 'NaN', float('inf')):
            with self.subTest(value=value):
                with self.assertLogs('ledger_reports.reporting.assembler', level='WARNING') as logs:
                    self.assertEqual(to_decimal(value), Decimal('0'))
                self.assertIn(repr(value), logs.output[0])

    def test_balance_side(self):
        self.assertEqual(balance_side(Decimal('5')), (Decimal('5'), 'Dr'))
        self.assertEqual(balance_side(Decimal('-5')), (Decimal('5'), 'Cr'))
        self.assertEqual(balance_side(Decimal('0'))[1], 'Dr')

    def test_column_totals(self):
        rows = [{'receipts': 10.5, 'payments': 0}, {'receipts': 0, 'payments': 4}, {'receipts': None}]
        totals = column_totals(rows, ('receipts', 'payments'))
        self.assertEqual(totals, {'receipts': Decimal('10.5'), 'payments': Decimal('4')})

    def test_extra_fields_are_merged(self):
        report = AssembledReport(rows=[], extra={'cashBalance': 3.0})
        self.assertEqual(report.to_dict("ok", 1)['cashBalance'], 3.0)


if __name__ == '__main__':
    unittest.main()
