"""Business-day calculator.

Counts the days of an inclusive date range that are charged against a
vacation balance under a given weekend policy.  Pure functions, no I/O.
"""

from __future__ import annotations

from datetime import date, timedelta

from vacaytracker.settings.schemas import WeekendPolicy

_ONE_DAY = timedelta(days=1)


def weekday_index(day: date) -> int:
    """Sunday-based weekday index: 0 = Sunday .. 6 = Saturday."""
    return day.isoweekday() % 7


def is_chargeable(day: date, policy: WeekendPolicy) -> bool:
    if not policy.exclude_weekends:
        return True
    return weekday_index(day) not in policy.excluded_days


def chargeable_days(start: date, end: date, policy: WeekendPolicy) -> int:
    """Number of days in ``[start, end]`` the policy charges.

    Callers validate ``start <= end``; a reversed range counts nothing.
    """
    total = 0
    day = start
    while day <= end:
        if is_chargeable(day, policy):
            total += 1
        day += _ONE_DAY
    return total
