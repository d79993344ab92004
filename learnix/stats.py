"""Day-bucketed series for the admin growth charts.

Rows are grouped in Python, the queries use no dialect-specific date functions.
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from decimal import Decimal

GROWTH_WINDOW_DAYS = 30


def window_start(days: int = GROWTH_WINDOW_DAYS) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)


def daily_series(rows: Iterable[tuple[datetime, float | int | Decimal]]) -> list[dict]:
    """Sum ``(timestamp, value)`` pairs per UTC day, ascending, days without rows omitted."""
    buckets: dict[str, float] = defaultdict(float)
    for ts, value in rows:
        if ts.tzinfo is not None:
            ts = ts.astimezone(timezone.utc)
        buckets[ts.strftime("%Y-%m-%d")] += float(value or 0)
    return [
        {"date": day, "count": int(total) if total.is_integer() else round(total, 2)}
        for day, total in sorted(buckets.items())
    ]
