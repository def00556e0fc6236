"""
Provider free-slot calculation.

Slots come from the provider's weekly schedule for the requested weekday,
minus any time off covering that day and minus every non-cancelled booking
already on the calendar.
"""

from datetime import date, datetime
from typing import Any, Optional

from ...shared.validators import minutes_to_time, time_to_minutes

DEFAULT_SLOT_MINUTES = 30
WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _as_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()


def daily_windows(availability: Optional[dict[str, Any]], day: date) -> list[tuple[int, int]]:
    """Working windows for the weekday of `day` as (start, end) minute pairs, sorted"""
    schedule = (availability or {}).get("schedule") or {}
    windows = []
    for window in schedule.get(WEEKDAY_NAMES[day.weekday()]) or []:
        try:
            start = time_to_minutes(window["start"])
            end = time_to_minutes(window["end"])
        except (KeyError, ValueError, AttributeError):
            continue
        if start < end:
            windows.append((start, end))
    return sorted(windows)


def is_time_off(availability: Optional[dict[str, Any]], day: date) -> bool:
    for entry in (availability or {}).get("timeOff") or []:
        start = _as_date(entry.get("startDate"))
        end = _as_date(entry.get("endDate"))
        if start and end and start <= day <= end:
            return True
    return False


def free_slots(
    availability: Optional[dict[str, Any]],
    day: date,
    busy: list[tuple[str, int]],
    slot_minutes: Optional[int] = None,
) -> list[str]:
    """
    Start times (HH:MM) of every free slot on `day`.

    busy holds (startTime, duration) pairs of bookings that still occupy the
    calendar. Slots are slot_minutes long and step by the same amount.
    """
    if is_time_off(availability, day):
        return []

    length = slot_minutes or DEFAULT_SLOT_MINUTES
    taken = []
    for start, minutes in busy:
        begin = time_to_minutes(start)
        taken.append((begin, begin + int(minutes)))

    slots = []
    for window_start, window_end in daily_windows(availability, day):
        current = window_start
        while current + length <= window_end:
            slot_end = current + length
            if not any(current < b_end and b_start < slot_end for b_start, b_end in taken):
                slots.append(minutes_to_time(current))
            current += length
    return slots
