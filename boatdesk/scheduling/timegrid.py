"""
Time-of-day helpers and the day's slot grid.

The grid is a fixed universe of 96 labels ("00:00" … "23:45") at 15-minute
granularity. Views only show the sub-range that actually has bookings in it,
widened from a default 05:00–19:xx window.
"""
import math
from datetime import date, datetime

from boatdesk.scheduling.boat_rules import buffer_minutes

SLOT_MINUTES = 15
MINUTES_PER_DAY = 24 * 60

DEFAULT_MIN_HOUR = 5
DEFAULT_MAX_HOUR = 19     # inclusive: slots with hour < MAX_HOUR + 1 are shown


def to_minutes(t: str) -> int:
    """'08:30' → 510"""
    h, m = t.split(":")[:2]
    return int(h) * 60 + int(m)


def time_label(minutes: int) -> str:
    """510 → '08:30'"""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_slot(t: str) -> str:
    """Snap a time down onto the grid: '08:40' → '08:30'."""
    minutes = to_minutes(t)
    return time_label(minutes - minutes % SLOT_MINUTES)


def day_key(d) -> str:
    """date or 'YYYY-MM-DD' → 'YYYY-MM-DD'"""
    if isinstance(d, datetime):
        return d.date().isoformat()
    if isinstance(d, date):
        return d.isoformat()
    if isinstance(d, str):
        return date.fromisoformat(d[:10]).isoformat()
    raise TypeError(f"expected date or ISO date string, got {type(d).__name__}")


def generate_all_slots() -> list[str]:
    return [time_label(m) for m in range(0, MINUTES_PER_DAY, SLOT_MINUTES)]


ALL_SLOTS = generate_all_slots()


def visible_range(bookings: list, boats: list, d) -> list[str]:
    """
    Slots to render for day `d`.
    Starts from the default window and widens it so every booking on that
    day, including its cleanup buffer, fits. Bookings on other days are ignored.
    """
    day = day_key(d)
    boats_by_id = {b.id: b for b in boats}

    min_hour = DEFAULT_MIN_HOUR
    max_hour = DEFAULT_MAX_HOUR

    for booking in bookings:
        if booking.date_str != day:
            continue
        start = to_minutes(booking.start_time)
        end = start + booking.duration_min + buffer_minutes(boats_by_id.get(booking.boat_id))

        min_hour = min(min_hour, start // 60)
        max_hour = max(max_hour, math.ceil(end / 60))

    return [s for s in ALL_SLOTS if min_hour <= to_minutes(s) // 60 < max_hour + 1]
