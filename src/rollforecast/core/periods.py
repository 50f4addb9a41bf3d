"""
Period window construction for rollforecast.

Monthly windows span the first instant of a UTC calendar month up to (but not
including) the first instant of the next month. Each month is further
partitioned into contiguous weekly windows ending on Sundays, with the last
week clipped to the month boundary.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta, timezone

import numpy as np

from .errors import InvalidPeriodIdentifier
from .models import PeriodWindow

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_ONE_DAY = timedelta(days=1)


def parse_month(ym: str) -> tuple[int, int]:
    """
    Split a ``YYYY-MM`` identifier into its year and month.

    Raises:
        InvalidPeriodIdentifier: If ``ym`` is not ``YYYY-MM`` with a month in 1..12
    """
    if not isinstance(ym, str):
        raise InvalidPeriodIdentifier(str(ym), "expected a YYYY-MM string")
    match = _MONTH_RE.match(ym)
    if match is None:
        raise InvalidPeriodIdentifier(ym, "expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if year < 1 or not 1 <= month <= 12:
        raise InvalidPeriodIdentifier(ym, "month out of range")
    if (year, month) == (9999, 12):
        # The exclusive end, 10000-01-01, is not representable
        raise InvalidPeriodIdentifier(ym, "outside the supported calendar range")
    return year, month


def month_window(ym: str) -> PeriodWindow:
    """
    Build the half-open window of a calendar month.

    **Example:**
        ```python
        from rollforecast.core.periods import month_window

        window = month_window("2025-02")
        window.start  # 2025-02-01T00:00:00Z
        window.end    # 2025-03-01T00:00:00Z (exclusive)
        ```
    """
    year, month = parse_month(ym)
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    key = f"{year:04d}-{month:02d}"
    return PeriodWindow(start=start, end=end, key=key, month=key)


def month_end_date(ym: str) -> date:
    """Last calendar day of the month; the period-end date of a monthly row."""
    year, month = parse_month(ym)
    return date(year, month, calendar.monthrange(year, month)[1])


def _sunday_weekday(instant: datetime) -> int:
    """Weekday number with Sunday as 0 and Saturday as 6."""
    return instant.isoweekday() % 7


def weeks_in_month(ym: str) -> list[PeriodWindow]:
    """
    Partition a month into weekly windows.

    Starting from the month start, each week runs to the next Sunday
    (inclusive). A cursor that already sits on a Sunday runs a full 7 days to
    the following Sunday rather than collapsing to a single day. The final
    week is clipped to the month's exclusive end, so the first and last weeks
    may be shorter than 7 days.

    **Args:**
        ym: Month identifier (``YYYY-MM``)

    **Returns:**
        Contiguous, non-overlapping windows covering the month, keyed by their
        week-ending ISO date (the calendar day before the exclusive end)

    **Example:**
        ```python
        from rollforecast.core.periods import weeks_in_month

        [w.key for w in weeks_in_month("2025-01")]
        # ['2025-01-05', '2025-01-12', '2025-01-19', '2025-01-26', '2025-01-31']
        ```
    """
    month = month_window(ym)
    weeks: list[PeriodWindow] = []

    cursor = month.start
    while cursor < month.end:
        weekday = _sunday_weekday(cursor)
        days_ahead = 7 if weekday == 0 else 7 - weekday
        week_end = cursor + timedelta(days=days_ahead)
        exclusive_end = min(week_end + _ONE_DAY, month.end)
        key = (exclusive_end - _ONE_DAY).date().isoformat()
        weeks.append(
            PeriodWindow(start=cursor, end=exclusive_end, key=key, month=month.key)
        )
        cursor = exclusive_end

    return weeks


def month_range(start: str | date, months: int) -> list[str]:
    """
    Generate consecutive ``YYYY-MM`` identifiers starting from ``start``.

    **Args:**
        start: First month, as ``YYYY-MM`` or any date inside it
        months: Number of months to generate

    **Example:**
        ```python
        month_range("2025-11", 3)
        # ['2025-11', '2025-12', '2026-01']
        ```
    """
    if months < 0:
        raise ValueError("months must be >= 0")
    if isinstance(start, str):
        year, month = parse_month(start)
        s = np.datetime64(f"{year:04d}-{month:02d}", "M")
    else:
        s = np.datetime64(start, "M")
    return [str(m) for m in s + np.arange(months).astype("timedelta64[M]")]
