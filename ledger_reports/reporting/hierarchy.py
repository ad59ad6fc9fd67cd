#!/usr/bin/env python3
"""
Hierarchical Account Roll-up
Cascades detail account balances into their sub-group, major-group and top-level totals

The chart of accounts carries no parent column: an account's position in the tree
is encoded in its numeric key. Each pass below rolls one tier into the next
coarser tier, consuming the totals the previous pass produced:

    pass 1: sub-group   <- detail accounts       in [key, key + 10,000)
    pass 2: major-group <- updated sub-groups    in [key, key + 1,000,000)
    pass 3: top-level   <- updated major-groups  in [key, key + 100,000,000)

Balances are kept in a key -> balance map with a sorted key index, so each
group finds its children with two bisections instead of a full scan.
"""

import logging
from bisect import bisect_left
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .account_codes import AccountCodeScheme, DEFAULT_SCHEME, Tier

logger = logging.getLogger(__name__)

ZERO = Decimal('0')

# (group tier, tier of the accounts it sums), in cascade order
ROLL_UP_PASSES = (
    (Tier.SUB_GROUP, Tier.DETAIL),
    (Tier.MAJOR_GROUP, Tier.SUB_GROUP),
    (Tier.TOP_LEVEL, Tier.MAJOR_GROUP),
)


@dataclass
class AccountBalance:
    """Accumulated debit and credit of one account for one report request"""

    code: str
    key: int
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    name: str = ''
    account_type: str = ''
    tier: Optional[Tier] = field(default=None, compare=False)

    @property
    def net(self) -> Decimal:
        return self.debit - self.credit

    def set_net(self, net: Decimal):
        """Store a net amount as a one-sided debit or credit balance"""
        if net > 0:
            self.debit, self.credit = net, ZERO
        elif net < 0:
            self.debit, self.credit = ZERO, -net
        else:
            self.debit, self.credit = ZERO, ZERO

    def is_zero(self) -> bool:
        return self.debit == 0 and self.credit == 0

    def to_dict(self) -> Dict[str, object]:
        return {
            'accCode': self.code,
            'accName': self.name,
            'accType': self.account_type,
            'tier': self.tier.value if self.tier else None,
            'debit': float(self.debit),
            'credit': float(self.credit),
        }


def index_balances(balances: Iterable[AccountBalance],
                   scheme: AccountCodeScheme = DEFAULT_SCHEME) -> Dict[int, AccountBalance]:
    """
    Key the balances by numeric key, tagging each with its tier

    Two codes that collapse to the same key (``1-01-01-0001`` and ``101010001``)
    are merged into the first one seen.
    """
    by_key: Dict[int, AccountBalance] = {}
    for balance in balances:
        balance.tier = scheme.classify(balance.key)
        existing = by_key.get(balance.key)
        if existing is None:
            by_key[balance.key] = balance
            continue

        logger.warning(f"Duplicate account key {balance.key} ({existing.code!r}, {balance.code!r}); merging balances")
        existing.debit += balance.debit
        existing.credit += balance.credit
    return by_key


def cascade_balances(balances: Iterable[AccountBalance],
                     scheme: AccountCodeScheme = DEFAULT_SCHEME) -> List[AccountBalance]:
    """
    Roll detail balances up through every group tier

    Detail accounts keep their own sums (netted to one side); every group account
    is overwritten with the net total of the next finer tier beneath it. Returns
    the balances ordered by numeric key.
    """
    by_key = index_balances(balances, scheme)
    sorted_keys = sorted(by_key)

    for balance in by_key.values():
        if balance.tier is Tier.DETAIL:
            balance.set_net(balance.net)

    for group_tier, child_tier in ROLL_UP_PASSES:
        span = scheme.boundary(group_tier)
        for key in sorted_keys:
            group = by_key[key]
            if group.tier is not group_tier:
                continue

            total = ZERO
            start = bisect_left(sorted_keys, key)
            stop = bisect_left(sorted_keys, key + span)
            for child_key in sorted_keys[start:stop]:
                child = by_key[child_key]
                if child.tier is child_tier:
                    total += child.net
            group.set_net(total)

    return [by_key[key] for key in sorted_keys]


def detail_descendants(group_key: int, balances: Iterable[AccountBalance],
                       scheme: AccountCodeScheme = DEFAULT_SCHEME) -> List[AccountBalance]:
    """Detail accounts anywhere beneath ``group_key``"""
    return [
        balance for balance in balances
        if scheme.classify(balance.key) is Tier.DETAIL and scheme.is_descendant(balance.key, group_key)
    ]
