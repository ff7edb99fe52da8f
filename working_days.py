"""
Working-day arithmetic.

Saturday and Sunday are never working days. A group may additionally drop
one designated weekday (``extra_weekday``, Monday=0) for production work.

Offsets are computed with ``numpy.busday_offset`` over a week mask. The walk
always starts at the given date, even when that date is itself a non-working
day: one working day after a Saturday is the following Monday and one
working day before it is the preceding Friday.
"""
from __future__ import annotations

from datetime import date, datetime

import numpy as np

DEFAULT_EXTRA_WEEKDAY = 4  # Friday


def week_mask(exclude_extra_weekday: bool = False, extra_weekday: int = DEFAULT_EXTRA_WEEKDAY) -> str:
    """Seven-character Monday..Sunday mask understood by numpy ("1" = working)."""
    if not 0 <= extra_weekday <= 6:
        raise ValueError(f"extra_weekday must be 0-6 (Monday=0); got {extra_weekday}")
    days = ["1", "1", "1", "1", "1", "0", "0"]
    if exclude_extra_weekday:
        days[extra_weekday] = "0"
    return "".join(days)


def _as_date(d: date) -> date:
    if isinstance(d, datetime):
        return d.date()
    if not isinstance(d, date):
        raise TypeError(f"expected a date, got {type(d).__name__}: {d!r}")
    return d


def is_working_day(d: date, exclude_extra_weekday: bool = False, extra_weekday: int = DEFAULT_EXTRA_WEEKDAY) -> bool:
    d = _as_date(d)
    return week_mask(exclude_extra_weekday, extra_weekday)[d.weekday()] == "1"


def add_working_days(
    d: date,
    days: int,
    exclude_extra_weekday: bool = False,
    extra_weekday: int = DEFAULT_EXTRA_WEEKDAY,
) -> date:
    """Move ``days`` working days away from ``d`` (negative walks backward).

    Zero returns ``d`` unchanged.

    Raises
    ------
    TypeError
        If ``d`` is not a date or ``days`` is not an integer.
    """
    d = _as_date(d)
    if isinstance(days, bool) or not isinstance(days, (int, np.integer)):
        raise TypeError(f"days must be an integer; got {days!r}")
    if days == 0:
        return d
    mask = week_mask(exclude_extra_weekday, extra_weekday)
    # Rolling against the walk direction makes a non-working start count
    # from the adjacent working day it would have stepped onto.
    roll = "backward" if days > 0 else "forward"
    out = np.busday_offset(np.datetime64(d, "D"), int(days), roll=roll, weekmask=mask)
    return out.astype(object)


def sub_working_days(
    d: date,
    days: int,
    exclude_extra_weekday: bool = False,
    extra_weekday: int = DEFAULT_EXTRA_WEEKDAY,
) -> date:
    return add_working_days(d, -days, exclude_extra_weekday, extra_weekday)
