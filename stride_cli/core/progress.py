"""Streak and weekly progress derived from session history."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set

from stride_cli.core.constants import WEEKDAY_NAMES
from stride_cli.core.models import SessionRecord


def _active_days(records: Iterable[SessionRecord]) -> Set[date]:
    # Records are stamped in UTC; days are counted on the local calendar.
    return {record.started_at.astimezone().date() for record in records if record.status == "completed"}


def current_streak(records: Iterable[SessionRecord], today: date) -> int:
    """Consecutive workout days ending today, or yesterday if today is still open."""
    days = _active_days(records)
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(records: Iterable[SessionRecord]) -> int:
    days = sorted(_active_days(records))
    best = 0
    run = 0
    previous: Optional[date] = None
    for day in days:
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day
    return best


def today_completed(records: Iterable[SessionRecord], today: date) -> bool:
    return today in _active_days(records)


def weekly_progress(records: Iterable[SessionRecord], today: date) -> Dict[str, bool]:
    """Map weekday name to whether a workout was done that day, Monday to Sunday."""
    days = _active_days(records)
    monday = today - timedelta(days=today.weekday())
    return {name: (monday + timedelta(days=offset)) in days for offset, name in enumerate(WEEKDAY_NAMES)}


def history_stats(records: List[SessionRecord], today: date) -> Dict[str, Any]:
    total_seconds = sum(record.total_elapsed for record in records)
    ratios = [record.completion_ratio for record in records]
    return {
        "sessions": len(records),
        "total_seconds": total_seconds,
        "average_completion": (sum(ratios) / len(ratios)) if ratios else 0.0,
        "successful_sessions": sum(1 for record in records if record.was_successful),
        "current_streak": current_streak(records, today),
        "longest_streak": longest_streak(records),
        "today_completed": today_completed(records, today),
        "weekly_progress": weekly_progress(records, today),
    }
