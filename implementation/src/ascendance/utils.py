from __future__ import annotations

import datetime
import logging
import math
import time
from dataclasses import dataclass
from typing import Optional

from ascendance.config import DUE_SOON_WINDOW_MS
from ascendance.types import DueStatus

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def local_date(ts_ms: float) -> datetime.date:
    return datetime.datetime.fromtimestamp(ts_ms / 1000.0).date()


def is_same_day(ts1: float, ts2: float) -> bool:
    if not ts1 or not ts2:
        return False
    return local_date(ts1) == local_date(ts2)


def is_yesterday(now: float, ts: float) -> bool:
    """True when ts falls on the calendar day before now."""
    if not now or not ts:
        return False
    return local_date(now) - datetime.timedelta(days=1) == local_date(ts)


def normalize_due_date(value: object) -> Optional[str]:
    """Store due dates as ISO text: YYYY-MM-DD or YYYY-MM-DDTHH:MM."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.replace(second=0, microsecond=0, tzinfo=None).isoformat(timespec="minutes")
    if isinstance(value, datetime.date):
        return value.isoformat()
    return str(value).strip() or None


def due_calendar_date(due: Optional[str]) -> Optional[datetime.date]:
    if not isinstance(due, str) or not due:
        return None
    try:
        if "T" in due:
            return datetime.datetime.fromisoformat(due).date()
        return datetime.date.fromisoformat(due)
    except ValueError:
        logger.warning("Failed to parse due date %r", due)
        return None


def due_deadline(due: Optional[str]) -> Optional[datetime.datetime]:
    """Deadline instant; date-only due dates end at 23:59:59.999 local time."""
    if not isinstance(due, str) or not due:
        return None
    try:
        if "T" in due:
            return datetime.datetime.fromisoformat(due)
        day = datetime.date.fromisoformat(due)
    except ValueError:
        logger.warning("Failed to parse due date %r", due)
        return None
    return datetime.datetime.combine(day, datetime.time(23, 59, 59, 999000))


@dataclass(frozen=True)
class TimeRemaining:
    status: Optional[DueStatus]
    remaining_ms: float
    text: str = ""


def time_remaining(due: Optional[str], now: float) -> TimeRemaining:
    if not isinstance(due, str) or not due:
        return TimeRemaining(None, math.inf)
    deadline = due_deadline(due)
    if deadline is None:
        return TimeRemaining(None, math.nan)

    remaining = deadline.timestamp() * 1000.0 - now
    if remaining <= 0:
        return TimeRemaining(DueStatus.OVERDUE, remaining, "Overdue!")

    status = DueStatus.DUE_SOON if remaining < DUE_SOON_WINDOW_MS else DueStatus.OK
    return TimeRemaining(status, remaining, f"{format_duration(remaining)} left")


def format_duration(ms: float) -> str:
    total_seconds = int(ms // 1000)
    seconds = total_seconds % 60
    total_minutes = total_seconds // 60
    minutes = total_minutes % 60
    total_hours = total_minutes // 60
    hours = total_hours % 24
    days = total_hours // 24

    if days > 1:
        return f"{days}d {hours}h"
    if total_hours >= 1:
        return f"{total_hours}h {minutes:02d}m"
    if total_minutes >= 1:
        return f"{minutes}m {seconds:02d}s"
    return f"{seconds}s"


def format_number(num: object) -> str:
    try:
        value = float(num)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "0"
    if math.isnan(value):
        return "0"
    if abs(value) < 1000:
        return f"{value:.0f}"
    if abs(value) < 1_000_000:
        return f"{value / 1000:.1f}k"
    return f"{value / 1_000_000:.1f}M"
