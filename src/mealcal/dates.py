"""Calendar-day helpers.

All comparisons happen at day granularity in the server's local timezone, so
"today" is simply ``date.today()``.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable

TodayProvider = Callable[[], date]


def server_today() -> date:
    """Return the current server-local calendar day."""

    return date.today()


def week_start_for(day: date) -> date:
    """Return the Monday of the ISO week containing ``day``."""

    return day - timedelta(days=day.weekday())


__all__ = ["TodayProvider", "server_today", "week_start_for"]
