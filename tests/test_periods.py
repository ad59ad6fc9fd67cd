import unittest
from datetime import date, datetime

from ledger_reports.exceptions import InvalidReportParameter, MalformedAccountCode
from ledger_reports.reporting.periods import (
    ReportPeriod, coerce_date, month_labels, parse_report_date, resolve_account_range, resolve_period,
)


class TestParseReportDate(unittest.TestCase):
    def test_supported_formats(self):
        self.assertEqual(parse_report_date('2024-03-15'), date(2024, 3, 15))
        self.assertEqual(parse_report_date('2024/03/15'), date(2024, 3, 15))
        self.assertEqual(parse_report_date('03/15/2024'), date(2024, 3, 15))

    def test_blank_means_not_supplied(self):
        self.assertIsNone(parse_report_date(None))
        self.assertIsNone(parse_report_date(''))
        self.assertIsNone(parse_report_date('  '))

    def test_invalid_date_names_the_field(self):
        with self.assertRaises(InvalidReportParameter) as ctx:
            parse_report_date('15.03.2024', 'fromDate')
        self.assertIn('fromDate', ctx.exception.public_message)
        self.assertEqual(ctx.exception.status_code, 400)

    def test_last_representable_date_is_rejected(self):
        for value in ('9999-12-31', '12/31/9999'):
            with self.subTest(value=value):
                with self.assertRaises(InvalidReportParameter) as ctx:
                    parse_report_date(value, 'toDate')
                self.assertIn('toDate', ctx.exception.public_message)
        self.assertEqual(parse_report_date('9999-12-30'), date(9999, 12, 30))


class TestCoerceDate(unittest.TestCase):
    def test_engine_values(self):
        self.assertEqual(coerce_date(date(2024, 1, 2)), date(2024, 1, 2))
        self.assertEqual(coerce_date(datetime(2024, 1, 2, 13, 30)), date(2024, 1, 2))
        self.assertEqual(coerce_date('2024-01-02'), date(2024, 1, 2))
        self.assertEqual(coerce_date('2024-01-02 13:30:00'), date(2024, 1, 2))
        self.assertIsNone(coerce_date(None))
        self.assertIsNone(coerce_date('not a date'))


class TestResolveAccountRange(unittest.TestCase):
    def test_defaults_to_full_range(self):
        account_range = resolve_account_range()
        self.assertEqual(account_range.from_code, '0-00-00-0000')
        self.assertEqual(account_range.upto_code, '9-99-99-9999')
        self.assertTrue(account_range.contains(0))
        self.assertTrue(account_range.contains(999999999))

    def test_inclusive_bounds(self):
        account_range = resolve_account_range('1-01-01-0000', '1-01-01-9999')
        self.assertTrue(account_range.contains(101010000))
        self.assertTrue(account_range.contains(101019999))
        self.assertFalse(account_range.contains(101020000))
        self.assertEqual(account_range.to_dict(), {'fromAccount': '1-01-01-0000', 'uptoAccount': '1-01-01-9999'})

    def test_reversed_range(self):
        with self.assertRaises(InvalidReportParameter):
            resolve_account_range('2-00-00-0000', '1-00-00-0000')

    def test_malformed_bound(self):
        with self.assertRaises(MalformedAccountCode):
            resolve_account_range('1-0X-00-0000', None)


class TestResolvePeriod(unittest.TestCase):
    def test_explicit_bounds_skip_the_lookup(self):
        def bounds():
            raise AssertionError("posting bounds should not be queried")
        period = resolve_period(date(2024, 1, 1), date(2024, 1, 31), bounds)
        self.assertEqual(period.to_dict(), {'fromDate': '2024-01-01', 'toDate': '2024-01-31'})

    def test_missing_bounds_come_from_postings(self):
        period = resolve_period(None, None, lambda: (date(2023, 4, 2), date(2024, 2, 10)))
        self.assertEqual(period.from_date, date(2023, 4, 2))
        self.assertEqual(period.to_date, date(2024, 2, 10))

    def test_only_to_date_given(self):
        period = resolve_period(None, date(2024, 1, 31), lambda: (date(2023, 4, 2), date(2024, 2, 10)))
        self.assertEqual(period.from_date, date(2023, 4, 2))
        self.assertEqual(period.to_date, date(2024, 1, 31))

    def test_no_postings_falls_back_to_current_month(self):
        period = resolve_period(None, None, lambda: (None, None), today=date(2024, 5, 17))
        self.assertEqual(period.from_date, date(2024, 5, 1))
        self.assertEqual(period.to_date, date(2024, 5, 17))

    def test_from_after_to(self):
        with self.assertRaises(InvalidReportParameter):
            resolve_period(date(2024, 2, 1), date(2024, 1, 1), lambda: (None, None))

    def test_until_is_exclusive_next_day(self):
        self.assertEqual(ReportPeriod(date(2024, 1, 1), date(2024, 12, 31)).until, date(2025, 1, 1))


class TestMonthLabels(unittest.TestCase):
    def test_spans_year_end(self):
        labels = month_labels(ReportPeriod(date(2023, 11, 15), date(2024, 2, 3)))
        self.assertEqual(labels, ['Nov 2023', 'Dec 2023', 'Jan 2024', 'Feb 2024'])

    def test_single_month(self):
        self.assertEqual(month_labels(ReportPeriod(date(2024, 6, 1), date(2024, 6, 30))), ['Jun 2024'])


if __name__ == '__main__':
    unittest.main()
