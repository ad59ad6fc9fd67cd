#!/usr/bin/env python3
"""
Account Codes
Parsing, formatting and tier classification of dash-grouped account codes

An account code such as ``1-01-01-0001`` is four numeric groups, coarsest first:
top-level class, major group, sub-group and detail account. Stripping the dashes
gives the numeric key used for all range and hierarchy arithmetic. The tier of an
account is read purely from the trailing zero groups of its key, so the chart of
accounts needs no explicit parent column.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..config.settings import REPORT_CONFIG
from ..exceptions import MalformedAccountCode


class Tier(Enum):
    """Hierarchy level of an account, finest first"""
    DETAIL = 'detail'
    SUB_GROUP = 'sub_group'
    MAJOR_GROUP = 'major_group'
    TOP_LEVEL = 'top_level'


@dataclass(frozen=True)
class AccountCodeScheme:
    """Digit widths of the code groups, coarsest group first"""

    groups: Tuple[int, ...] = (1, 2, 2, 4)

    def __post_init__(self):
        if len(self.groups) != 4 or any(width < 1 for width in self.groups):
            raise ValueError(f"Account code scheme needs four positive group widths, got {self.groups}")

    @classmethod
    def from_string(cls, value: str) -> 'AccountCodeScheme':
        """Build a scheme from a setting such as '1-2-2-4'"""
        try:
            groups = tuple(int(part) for part in value.split('-'))
        except ValueError:
            raise ValueError(f"Invalid account code group setting: {value!r}")
        return cls(groups)

    @property
    def total_digits(self) -> int:
        return sum(self.groups)

    @property
    def max_key(self) -> int:
        return 10 ** self.total_digits - 1

    def boundary(self, tier: Tier) -> int:
        """Key span covered by one account of ``tier`` (1 for detail accounts)"""
        if tier is Tier.DETAIL:
            return 1
        if tier is Tier.SUB_GROUP:
            return 10 ** self.groups[3]
        if tier is Tier.MAJOR_GROUP:
            return 10 ** (self.groups[3] + self.groups[2])
        return 10 ** (self.groups[3] + self.groups[2] + self.groups[1])

    def classify(self, key: int) -> Tier:
        # Coarsest first: a top-level key is also divisible by every finer boundary
        if key % self.boundary(Tier.TOP_LEVEL) == 0:
            return Tier.TOP_LEVEL
        if key % self.boundary(Tier.MAJOR_GROUP) == 0:
            return Tier.MAJOR_GROUP
        if key % self.boundary(Tier.SUB_GROUP) == 0:
            return Tier.SUB_GROUP
        return Tier.DETAIL

    def parse(self, code, allow_zero: bool = False) -> int:
        """
        Convert an account code to its numeric key

        Accepts the grouped form (``1-01-01-0001``) or the bare digits
        (``101010001``). Raises MalformedAccountCode for anything else.
        """
        if code is None:
            raise MalformedAccountCode(code, "empty account code")

        text = str(code).strip()
        if not text:
            raise MalformedAccountCode(code, "empty account code")

        parts = text.split('-')
        if not all(part.isdigit() for part in parts):
            raise MalformedAccountCode(code, "groups must be numeric")

        if len(parts) == len(self.groups):
            widths = tuple(len(part) for part in parts)
            if widths != self.groups:
                expected = '-'.join('9' * width for width in self.groups)
                raise MalformedAccountCode(code, f"expected the form {expected}")
        elif len(parts) != 1:
            raise MalformedAccountCode(code, f"expected {len(self.groups)} groups")
        elif len(text) > self.total_digits:
            raise MalformedAccountCode(code, f"more than {self.total_digits} digits")

        key = int(''.join(parts))
        if key == 0 and not allow_zero:
            raise MalformedAccountCode(code, "account key is zero")
        return key

    def format(self, key: int) -> str:
        """Render a numeric key in the canonical dash-grouped form"""
        if key < 0 or key > self.max_key:
            raise ValueError(f"Account key {key} is outside the code range")

        digits = str(key).zfill(self.total_digits)
        parts = []
        position = 0
        for width in self.groups:
            parts.append(digits[position:position + width])
            position += width
        return '-'.join(parts)

    def is_descendant(self, key: int, ancestor_key: int) -> bool:
        """True when ``ancestor_key`` is a group account above ``key``"""
        tier = self.classify(ancestor_key)
        if tier is Tier.DETAIL or key == ancestor_key:
            return False
        span = self.boundary(tier)
        return key - key % span == ancestor_key


DEFAULT_SCHEME = AccountCodeScheme()


def configured_scheme() -> AccountCodeScheme:
    """The scheme named by the ACCOUNT_CODE_GROUPS setting"""
    groups = REPORT_CONFIG['ACCOUNT_CODE_GROUPS']
    if groups == '-'.join(str(width) for width in DEFAULT_SCHEME.groups):
        return DEFAULT_SCHEME
    return AccountCodeScheme.from_string(groups)


def classify(key: int, scheme: AccountCodeScheme = DEFAULT_SCHEME) -> Tier:
    return scheme.classify(key)


def parse_account_code(code, scheme: AccountCodeScheme = DEFAULT_SCHEME, allow_zero: bool = False) -> int:
    return scheme.parse(code, allow_zero=allow_zero)


def format_account_code(key: int, scheme: AccountCodeScheme = DEFAULT_SCHEME) -> str:
    return scheme.format(key)
