"""
Static opening-hours tags.

Schedules are stored in each establishment's local wall-clock time, so the
tags are derived from the schedule alone and never compared with the server
clock. A closing time at or before the opening time means the establishment
closes after midnight.
"""
from __future__ import annotations

from typing import Any

DAYS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

TAG_UNTIL_22 = "until_22"
TAG_UNTIL_MORNING = "until_morning"

_MINUTES_PER_DAY = 24 * 60
_UNTIL_22_CLOSE = 22 * 60
_UNTIL_MORNING_CLOSE = _MINUTES_PER_DAY + 2 * 60  # 02:00 next day


def _parse_time(value: Any) -> int | None:
    """``"HH:MM"`` to minutes after midnight; ``None`` if unparsable."""
    if not isinstance(value, str) or ":" not in value:
        return None
    hours, _, minutes = value.strip().partition(":")
    try:
        h, m = int(hours), int(minutes)
    except ValueError:
        return None
    if not (0 <= h <= 24 and 0 <= m < 60) or (h == 24 and m):
        return None
    return h * 60 + m


def _day_bounds(entry: Any) -> tuple[int, int] | None:
    if isinstance(entry, str) and "-" in entry:
        open_raw, _, close_raw = entry.partition("-")
        entry = {"open": open_raw, "close": close_raw}
    if not isinstance(entry, dict) or entry.get("closed"):
        return None
    opens = _parse_time(entry.get("open"))
    closes = _parse_time(entry.get("close"))
    if opens is None or closes is None:
        return None
    return opens, closes


def closing_minutes(entry: Any) -> int | None:
    """Closing time in minutes from the day's midnight, past 1440 when overnight."""
    bounds = _day_bounds(entry)
    if bounds is None:
        return None
    opens, closes = bounds
    if closes <= opens:
        closes += _MINUTES_PER_DAY
    return closes


def derive_hours_tags(working_hours: Any, is_24_hours: bool = False) -> list[str]:
    """Tags a schedule earns when every scheduled day stays open late enough."""
    if is_24_hours:
        return [TAG_UNTIL_22, TAG_UNTIL_MORNING]
    if not isinstance(working_hours, dict):
        return []

    closes = [closing_minutes(working_hours.get(day)) for day in DAYS]
    closes = [c for c in closes if c is not None]
    if not closes:
        return []

    earliest = min(closes)
    tags: list[str] = []
    if earliest >= _UNTIL_22_CLOSE:
        tags.append(TAG_UNTIL_22)
    if earliest >= _UNTIL_MORNING_CLOSE:
        tags.append(TAG_UNTIL_MORNING)
    return tags
