# --------------------------- Utilities ---------------------------
from __future__ import annotations

import math
import random
import string
import time
from datetime import date, datetime, timezone
from typing import Any, Iterator, List, Optional, Sequence, TypeVar

T = TypeVar("T")

_BASE36 = string.digits + string.ascii_lowercase


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size <= 0:
        raise ValueError(f"batch size must be >= 1; got {size}")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


def iso_date(d: Optional[date]) -> Optional[str]:
    """Render a date as YYYY-MM-DD (None stays None)."""
    if d is None:
        return None
    if isinstance(d, datetime):
        d = d.date()
    return d.isoformat()


def parse_iso_date(value: Any) -> Optional[date]:
    """Coerce a stored date value to a calendar day.

    Accepts ``date``/``datetime`` objects and ISO strings, with or without a
    time part (``2025-06-30``, ``2025-06-30T00:00:00.000Z``). Empty values map
    to None; anything else raises ValueError.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError as exc:
            raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}") from exc
    raise ValueError(f"Invalid date value: {value!r}")


def hours_to_days(hours: float, hours_per_day: int) -> int:
    """Whole working days needed for ``hours`` of work."""
    # round() absorbs float noise such as 65 / 0.65 == 100.00000000000001
    return math.ceil(round(hours / hours_per_day, 9))


def make_generation_id(now_ms: Optional[int] = None) -> str:
    """Per-run marker: epoch milliseconds plus a short random suffix."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choice(_BASE36) for _ in range(6))
    return f"{now_ms}-{suffix}"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
