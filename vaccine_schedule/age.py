"""Age arithmetic on epoch-millisecond instants.

Ages use an average month of 30.44 days rather than calendar months. The same
constant projects a template's target age into a date and infers a record's
age from its own date; mixing conventions would silently widen or narrow the
matching tolerance used by reconcile.
"""

from __future__ import annotations

import math
from typing import Optional

from .timestamps import MAX_INSTANT, MIN_INSTANT

MONTH_DAYS = 30.44
DAY_MS = 86_400_000
WEEK_DAYS = 7

# Widest day offset that can still land inside the supported instant range
MAX_OFFSET_DAYS = (MAX_INSTANT - MIN_INSTANT) // DAY_MS


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(value + 0.5)


def age_in_months(birth: int, at: int) -> float:
    """Elapsed age in average months between two instants.

    Negative when ``at`` precedes ``birth``; callers that display the value
    should use display_age_months instead.
    """
    return (at - birth) / DAY_MS / MONTH_DAYS


def display_age_months(birth: int, at: int) -> int:
    """Completed whole months for display, clamped at 0."""
    return max(0, math.floor(age_in_months(birth, at)))


def months_between_rounded(birth: int, at: int) -> int:
    """Age in months rounded to the nearest whole month.

    For whole-month displays and filters only. Dose matching in reconcile
    compares unrounded ages so the tolerance window stays symmetric.
    """
    return round_half_up(age_in_months(birth, at))


def offset_in_range(months: Optional[float] = None, weeks: Optional[float] = None) -> bool:
    """Whether a target age is finite, non-negative and small enough to project.

    Exactly one of months or weeks is expected; with neither the age is
    treated as out of range.
    """
    if months is not None:
        value, limit = months, MAX_OFFSET_DAYS / MONTH_DAYS
    elif weeks is not None:
        value, limit = weeks, MAX_OFFSET_DAYS / WEEK_DAYS
    else:
        return False
    # Compared in the given unit; huge integers must not reach float()
    return 0 <= value <= limit


def offset_days(months: Optional[float] = None, weeks: Optional[float] = None) -> int:
    """Whole days between birth and a target age.

    Months project via ``round(months * 30.44)`` days and weeks via
    ``weeks * 7`` days. Exactly one of the two must be given.

    Raises
    ------
    ValueError
        If both or neither of months and weeks are provided.
    """
    if (months is None) == (weeks is None):
        raise ValueError("Exactly one of months or weeks must be provided")
    if months is not None:
        return round_half_up(months * MONTH_DAYS)
    return round_half_up(weeks * WEEK_DAYS)


def project_target_date(
    birth: int, months: Optional[float] = None, weeks: Optional[float] = None
) -> int:
    """Project a target age onto a concrete instant from the birth instant.

    Parameters
    ----------
    birth : int
        Birth instant (epoch ms).
    months : float, optional
        Target age in months.
    weeks : float, optional
        Target age in weeks.

    Returns
    -------
    int
        Target instant (epoch ms), a whole number of days after birth.

    Examples
    --------
    >>> project_target_date(0, months=2) // DAY_MS
    61
    >>> project_target_date(0, weeks=6) // DAY_MS
    42
    """
    return birth + offset_days(months=months, weeks=weeks) * DAY_MS
