import unittest

from ledger_reports.exceptions import InvalidReportParameter, MalformedAccountCode
from ledger_reports.reporting.account_codes import (
    AccountCodeScheme, DEFAULT_SCHEME, Tier, classify, format_account_code, parse_account_code,
)


class TestParseAccountCode(unittest.TestCase):
    def test_grouped_and_bare_forms_give_same_key(self):
        self.assertEqual(parse_account_code('1-01-01-0001'), 101010001)
        self.assertEqual(parse_account_code('101010001'), 101010001)
        self.assertEqual(parse_account_code('  2-00-00-0000 '), 200000000)

    def test_rejects_malformed_codes(self):
        for code in ('', '   ', None, '1-01-0A-0001', '1-1-01-0001', '1-01-01', '12345678901', '1--01-0001'):
            with self.subTest(code=code):
                with self.assertRaises(MalformedAccountCode):
                    parse_account_code(code)

    def test_zero_key_only_allowed_for_range_bounds(self):
        with self.assertRaises(MalformedAccountCode):
            parse_account_code('0-00-00-0000')
        self.assertEqual(parse_account_code('0-00-00-0000', allow_zero=True), 0)

    def test_malformed_code_is_a_client_error(self):
        with self.assertRaises(InvalidReportParameter) as ctx:
            parse_account_code('abc')
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertIn('abc', ctx.exception.public_message)


class TestFormatAccountCode(unittest.TestCase):
    def test_reinserts_grouping(self):
        self.assertEqual(format_account_code(101010001), '1-01-01-0001')
        self.assertEqual(format_account_code(0), '0-00-00-0000')
        self.assertEqual(format_account_code(DEFAULT_SCHEME.max_key), '9-99-99-9999')

    def test_out_of_range_key(self):
        with self.assertRaises(ValueError):
            format_account_code(10 ** 9)
        with self.assertRaises(ValueError):
            format_account_code(-1)


class TestClassify(unittest.TestCase):
    def test_tiers_by_trailing_zero_groups(self):
        self.assertIs(classify(100000000), Tier.TOP_LEVEL)
        self.assertIs(classify(101000000), Tier.MAJOR_GROUP)
        self.assertIs(classify(101010000), Tier.SUB_GROUP)
        self.assertIs(classify(101010001), Tier.DETAIL)
        self.assertIs(classify(101010010), Tier.DETAIL)

    def test_every_key_has_exactly_one_tier(self):
        for key in range(0, 300000000, 9999991):
            tier = classify(key)
            self.assertIn(tier, list(Tier))

    def test_descendant_relation(self):
        self.assertTrue(DEFAULT_SCHEME.is_descendant(101010001, 101010000))
        self.assertTrue(DEFAULT_SCHEME.is_descendant(101010001, 101000000))
        self.assertTrue(DEFAULT_SCHEME.is_descendant(101010001, 100000000))
        self.assertFalse(DEFAULT_SCHEME.is_descendant(101020001, 101010000))
        self.assertFalse(DEFAULT_SCHEME.is_descendant(101010001, 101010001))


class TestCustomScheme(unittest.TestCase):
    def test_scheme_from_setting(self):
        scheme = AccountCodeScheme.from_string('2-2-2-3')
        self.assertEqual(scheme.total_digits, 9)
        self.assertEqual(scheme.boundary(Tier.SUB_GROUP), 1000)
        self.assertEqual(scheme.parse('10-01-01-001'), 100101001)
        self.assertEqual(scheme.format(100101001), '10-01-01-001')
        self.assertIs(scheme.classify(100100000), Tier.MAJOR_GROUP)

    def test_invalid_setting(self):
        with self.assertRaises(ValueError):
            AccountCodeScheme.from_string('1-2-x-4')
        with self.assertRaises(ValueError):
            AccountCodeScheme.from_string('1-2-4')


if __name__ == '__main__':
    unittest.main()
