"""
Write-time overlap check for a boat.

Two bookings on one boat conflict when they overlap, or when one starts
inside the other's cleanup buffer. Facilities have no buffer, so for them
only a true overlap counts.
"""
from dataclasses import dataclass
from typing import Optional

from boatdesk.scheduling.boat_rules import buffer_minutes
from boatdesk.scheduling.timegrid import time_label, to_minutes


class BookingConflictError(ValueError):
    def __init__(self, result: "ConflictResult"):
        super().__init__(result.reason)
        self.result = result


@dataclass(frozen=True)
class TimeSpan:
    start: int          # minutes from midnight
    end: int            # exclusive
    cleanup_end: int

    @classmethod
    def of(cls, start_time: str, duration_min: int, buffer: int) -> "TimeSpan":
        start = to_minutes(start_time)
        return cls(start, start + duration_min, start + duration_min + buffer)


@dataclass
class ConflictResult:
    has_conflict: bool
    reason: str = ""
    booking_id: Optional[int] = None


def spans_conflict(a: TimeSpan, b: TimeSpan) -> bool:
    if b.end <= a.start < b.cleanup_end:
        return True
    if a.end <= b.start < a.cleanup_end:
        return True
    return not (a.end <= b.start or a.start >= b.end)


def find_boat_conflict(
    existing: list,
    boat,
    start_at: str,
    duration_min: int,
    exclude_booking_id: Optional[int] = None,
) -> ConflictResult:
    """
    Check a proposed booking against the boat's existing bookings.
    `existing` may hold bookings of any boat/day; only same boat + same day count.
    """
    buffer = buffer_minutes(boat)
    day, start_time = start_at[:10], start_at[11:16]
    new = TimeSpan.of(start_time, duration_min, buffer)

    for other in existing:
        if other.boat_id != boat.id or other.date_str != day:
            continue
        if exclude_booking_id is not None and other.id == exclude_booking_id:
            continue

        span = TimeSpan.of(other.start_time, other.duration_min, buffer)
        if not spans_conflict(new, span):
            continue

        who = other.contact_name or f"booking {other.id}"
        if span.end <= new.start < span.cleanup_end:
            reason = (f"Conflicts with {who}: ends at {time_label(span.end)} and needs "
                      f"{buffer} min before the next start, {start_time} is too close")
        elif new.end <= span.start < new.cleanup_end:
            reason = (f"Conflicts with {who}: this booking ends at {time_label(new.end)} "
                      f"but {who} starts at {other.start_time}, {buffer} min buffer needed")
        else:
            reason = (f"Overlaps {who}: {start_time}-{time_label(new.end)} vs "
                      f"{other.start_time}-{time_label(span.end)}")
        return ConflictResult(True, reason, other.id)

    return ConflictResult(False)
