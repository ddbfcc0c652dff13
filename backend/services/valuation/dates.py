"""
Month arithmetic for the valuation engine.

All time math is at calendar-month granularity: transaction dates are
"YYYY-MM" strings and a transaction is assumed to sit on the 15th of its
month. "now" is always injectable; it defaults to today.
"""

from datetime import date, datetime
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from constants import TRANSACTION_DAY_OF_MONTH
from utils.normalize import ValidationError, to_year_month


NowLike = Optional[Union[date, datetime]]


def resolve_now(now: NowLike = None) -> date:
    """Normalize an injectable 'now' to a date (default: today)."""
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now


def format_year_month(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def window_cutoff(months: int, now: NowLike = None) -> str:
    """
    First month included in a rolling window of `months` months.

    The window always includes the current (partial) month, so a
    3-month window in 2025-06 starts at 2025-04.

    Example:
        >>> window_cutoff(12, date(2025, 6, 20))
        '2024-07'
    """
    if months < 1:
        raise ValidationError(
            f"Window length must be at least 1 month, got {months}",
            field='months',
            received_value=months,
        )
    current = resolve_now(now).replace(day=1)
    return format_year_month(current - relativedelta(months=months - 1))


def transaction_anchor(transaction_date) -> date:
    """The assumed calendar day of a year-month transaction (the 15th)."""
    year, month = to_year_month(transaction_date, field='date')
    return date(year, month, TRANSACTION_DAY_OF_MONTH)


def months_elapsed(transaction_date, now: NowLike = None) -> int:
    """
    Whole calendar months between a transaction and now.

    Day-of-month is ignored; future-dated transactions clamp to 0.

    Example:
        >>> months_elapsed('2023-06', date(2025, 6, 1))
        24
    """
    anchor = transaction_anchor(transaction_date)
    current = resolve_now(now)
    delta = relativedelta(current.replace(day=1), anchor.replace(day=1))
    return max(0, delta.years * 12 + delta.months)
