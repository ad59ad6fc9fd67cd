import random
import unittest
from decimal import Decimal

from ledger_reports.reporting.account_codes import DEFAULT_SCHEME, Tier
from ledger_reports.reporting.hierarchy import AccountBalance, cascade_balances, detail_descendants


def balance(code, debit=0, credit=0, name=''):
    return AccountBalance(
        code=code,
        key=DEFAULT_SCHEME.parse(code),
        debit=Decimal(str(debit)),
        credit=Decimal(str(credit)),
        name=name,
    )


def chart(*codes):
    return [balance(code) for code in codes]


class TestCascadeBalances(unittest.TestCase):
    def test_single_detail_rolls_up_to_every_level(self):
        balances = chart('1-00-00-0000', '1-01-00-0000', '1-01-01-0000') + [balance('1-01-01-0001', 100, 40)]
        rolled = {b.code: b for b in cascade_balances(balances)}

        for code in ('1-01-01-0001', '1-01-01-0000', '1-01-00-0000', '1-00-00-0000'):
            with self.subTest(code=code):
                self.assertEqual(rolled[code].debit, Decimal('60'))
                self.assertEqual(rolled[code].credit, Decimal('0'))

    def test_tiers_are_tagged(self):
        balances = chart('1-00-00-0000', '1-01-00-0000', '1-01-01-0000', '1-01-01-0001')
        tiers = {b.code: b.tier for b in cascade_balances(balances)}
        self.assertEqual(tiers, {
            '1-00-00-0000': Tier.TOP_LEVEL,
            '1-01-00-0000': Tier.MAJOR_GROUP,
            '1-01-01-0000': Tier.SUB_GROUP,
            '1-01-01-0001': Tier.DETAIL,
        })

    def test_credit_balances_net_against_debits(self):
        balances = chart('2-00-00-0000', '2-01-00-0000', '2-01-01-0000') + [
            balance('2-01-01-0001', 10, 250),
            balance('2-01-01-0002', 90, 0),
        ]
        rolled = {b.code: b for b in cascade_balances(balances)}
        self.assertEqual(rolled['2-01-01-0001'].credit, Decimal('240'))
        self.assertEqual(rolled['2-01-01-0001'].debit, Decimal('0'))
        self.assertEqual(rolled['2-01-01-0000'].credit, Decimal('150'))
        self.assertEqual(rolled['2-00-00-0000'].credit, Decimal('150'))
        self.assertEqual(rolled['2-00-00-0000'].debit, Decimal('0'))

    def test_sibling_groups_do_not_leak(self):
        balances = chart('1-00-00-0000', '1-01-00-0000', '1-01-01-0000', '1-01-02-0000') + [
            balance('1-01-01-0001', 70, 0),
            balance('1-01-02-0001', 0, 20),
        ]
        rolled = {b.code: b for b in cascade_balances(balances)}
        self.assertEqual(rolled['1-01-01-0000'].net, Decimal('70'))
        self.assertEqual(rolled['1-01-02-0000'].net, Decimal('-20'))
        self.assertEqual(rolled['1-01-00-0000'].net, Decimal('50'))

    def test_group_postings_are_replaced_by_children(self):
        # Amounts posted directly to a group account do not survive the roll-up
        balances = [balance('1-01-01-0000', 999, 0), balance('1-01-01-0001', 5, 0)]
        rolled = {b.code: b for b in cascade_balances(balances)}
        self.assertEqual(rolled['1-01-01-0000'].debit, Decimal('5'))

    def test_missing_intermediate_group_breaks_the_chain(self):
        # No sub-group 1-01-01-0000: the major group only sums sub-group accounts
        balances = chart('1-00-00-0000', '1-01-00-0000') + [balance('1-01-01-0001', 30, 0)]
        rolled = {b.code: b for b in cascade_balances(balances)}
        self.assertEqual(rolled['1-01-01-0001'].debit, Decimal('30'))
        self.assertTrue(rolled['1-01-00-0000'].is_zero())

    def test_duplicate_keys_are_merged(self):
        balances = [balance('1-01-01-0001', 10, 0), balance('101010001', 5, 0), balance('1-01-01-0000')]
        with self.assertLogs('ledger_reports.reporting.hierarchy', level='WARNING'):
            rolled = cascade_balances(balances)
        self.assertEqual(len(rolled), 2)
        self.assertEqual(rolled[1].debit, Decimal('15'))
        self.assertEqual(rolled[0].debit, Decimal('15'))

    def test_output_sorted_by_key(self):
        balances = chart('3-01-01-0001', '1-00-00-0000', '2-01-01-0000', '1-01-01-0001')
        keys = [b.key for b in cascade_balances(balances)]
        self.assertEqual(keys, sorted(keys))

    def test_empty_input(self):
        self.assertEqual(cascade_balances([]), [])


class TestRollUpProperties(unittest.TestCase):
    def _random_ledger(self, seed):
        rng = random.Random(seed)
        balances = []
        for top in range(1, 4):
            balances.append(balance(f"{top}-00-00-0000"))
            for major in range(1, 3):
                balances.append(balance(f"{top}-{major:02d}-00-0000"))
                for sub in range(1, 4):
                    balances.append(balance(f"{top}-{major:02d}-{sub:02d}-0000"))
                    for detail in range(1, rng.randint(1, 6)):
                        balances.append(balance(
                            f"{top}-{major:02d}-{sub:02d}-{detail:04d}",
                            Decimal(rng.randint(0, 100000)) / 100,
                            Decimal(rng.randint(0, 100000)) / 100,
                        ))
        return balances

    def test_group_net_equals_detail_descendants(self):
        for seed in range(5):
            rolled = cascade_balances(self._random_ledger(seed))
            for group in rolled:
                if group.tier is Tier.DETAIL:
                    continue
                expected = sum((d.net for d in detail_descendants(group.key, rolled)), Decimal('0'))
                self.assertEqual(group.net, expected, f"seed {seed}, group {group.code}")

    def test_never_both_sides_nonzero(self):
        for seed in range(5):
            for b in cascade_balances(self._random_ledger(seed)):
                self.assertFalse(b.debit != 0 and b.credit != 0, b.code)
                self.assertGreaterEqual(b.debit, 0)
                self.assertGreaterEqual(b.credit, 0)


class TestAccountBalance(unittest.TestCase):
    def test_set_net_zero_clears_both_sides(self):
        b = balance('1-01-01-0001', 10, 10)
        b.set_net(b.net)
        self.assertTrue(b.is_zero())
        self.assertEqual(str(b.credit), '0')

    def test_to_dict(self):
        b = balance('1-01-01-0001', 12.5, 0, name='Cash')
        cascade_balances([b])
        self.assertEqual(b.to_dict(), {
            'accCode': '1-01-01-0001',
            'accName': 'Cash',
            'accType': '',
            'tier': 'detail',
            'debit': 12.5,
            'credit': 0.0,
        })


if __name__ == '__main__':
    unittest.main()
