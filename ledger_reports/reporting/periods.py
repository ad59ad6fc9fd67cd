#!/usr/bin/env python3
"""
Report Periods and Account Ranges
Turns optional request filters into concrete date and account-key bounds
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Tuple

from ..exceptions import InvalidReportParameter
from .account_codes import AccountCodeScheme, DEFAULT_SCHEME

DATE_FORMATS = ('%Y-%m-%d', '%Y/%m/%d', '%m/%d/%Y')


@dataclass(frozen=True)
class AccountRange:
    from_code: str
    upto_code: str
    from_key: int
    upto_key: int

    def contains(self, key: int) -> bool:
        return self.from_key <= key <= self.upto_key

    def to_dict(self):
        return {'fromAccount': self.from_code, 'uptoAccount': self.upto_code}


@dataclass(frozen=True)
class ReportPeriod:
    from_date: date
    to_date: date

    @property
    def until(self) -> date:
        """Exclusive upper bound, so datetime-valued postings on ``to_date`` still match"""
        return self.to_date + timedelta(days=1)

    def to_dict(self):
        return {'fromDate': self.from_date.isoformat(), 'toDate': self.to_date.isoformat()}


def parse_report_date(value: Optional[str], field_name: str = 'date') -> Optional[date]:
    """Parse YYYY-MM-DD, YYYY/MM/DD or MM/DD/YYYY; blank means not supplied"""
    if value is None or not str(value).strip():
        return None

    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt).date()
        except ValueError:
            continue
        # Queries bound the period with the following day, which date.max does not have
        if parsed >= date.max:
            raise InvalidReportParameter(f"{field_name} is out of range")
        return parsed
    raise InvalidReportParameter(f"Invalid {field_name} format. Use YYYY-MM-DD or MM/DD/YYYY")


def coerce_date(value) -> Optional[date]:
    """Read a date column value the way either engine returns it"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None
    # SQLite stores dates as text, sometimes with a time part
    for candidate in (text[:10], text):
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
    return None


def resolve_account_range(from_account: Optional[str] = None,
                          upto_account: Optional[str] = None,
                          scheme: AccountCodeScheme = DEFAULT_SCHEME) -> AccountRange:
    """Inclusive key bounds; missing ends default to the whole code space"""
    from_key = 0
    upto_key = scheme.max_key

    if from_account and from_account.strip():
        from_key = scheme.parse(from_account, allow_zero=True)
    if upto_account and upto_account.strip():
        upto_key = scheme.parse(upto_account, allow_zero=True)

    if from_key > upto_key:
        raise InvalidReportParameter("fromAccount must not be after uptoAccount")

    return AccountRange(
        from_code=scheme.format(from_key),
        upto_code=scheme.format(upto_key),
        from_key=from_key,
        upto_key=upto_key,
    )


def resolve_period(from_date: Optional[date],
                   to_date: Optional[date],
                   posting_bounds: Callable[[], Tuple[Optional[date], Optional[date]]],
                   today: Optional[date] = None) -> ReportPeriod:
    """
    Fill in missing period bounds

    Absent bounds come from the earliest/latest posting reported by
    ``posting_bounds``. With no postings at all the period falls back to the
    first of the current month through today.
    """
    if from_date is None or to_date is None:
        earliest, latest = posting_bounds()
        today = today or date.today()

        if earliest is None or latest is None:
            earliest, latest = today.replace(day=1), today

        if from_date is None:
            from_date = min(earliest, to_date) if to_date else earliest
        if to_date is None:
            to_date = max(latest, from_date)

    if from_date > to_date:
        raise InvalidReportParameter("fromDate must not be after toDate")

    return ReportPeriod(from_date=from_date, to_date=to_date)


def month_labels(period: ReportPeriod) -> List[str]:
    """Column labels ('Jan 2024') for every calendar month the period touches"""
    labels = []
    year, month = period.from_date.year, period.from_date.month
    while (year, month) <= (period.to_date.year, period.to_date.month):
        labels.append(date(year, month, 1).strftime('%b %Y'))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return labels
