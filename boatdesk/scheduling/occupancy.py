"""
Per-boat slot occupancy for one day.

One pass over the day's bookings fills a (boat_id, slot) → cell map, after
which every lookup is O(1). Cells are either the occupying booking or a
cleanup marker (blocked, no booking).

Overlapping bookings on the same boat are tolerated, not corrected: the
booking processed last wins the contested slots, so the result depends on
input order. Every such collision is logged and kept in `collisions`;
rejecting overlaps is the job of conflicts.find_boat_conflict at write time.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from boatdesk.scheduling.boat_rules import buffer_minutes
from boatdesk.scheduling.timegrid import (
    SLOT_MINUTES, MINUTES_PER_DAY, day_key, time_label, to_minutes, to_slot
)

logger = logging.getLogger(__name__)

CLEANUP = "cleanup"


@dataclass
class Collision:
    boat_id: int
    slot: str
    overwritten_booking_id: int
    booking_id: int


@dataclass
class SlotOccupancy:
    day: str
    cells: dict = field(default_factory=dict)        # (boat_id, slot) → booking | CLEANUP
    collisions: list = field(default_factory=list)

    # ── Build ─────────────────────────────────────────────────────────────────

    @classmethod
    def build(cls, bookings: list, boats: list, d) -> "SlotOccupancy":
        occ = cls(day=day_key(d))
        boats_by_id = {b.id: b for b in boats}
        day_bookings = [b for b in bookings if b.date_str == occ.day]

        # occupied ticks first so a cleanup marker never hides a booking
        for booking in day_bookings:
            for slot in occupied_slots(booking):
                occ._occupy(booking, slot)

        for booking in day_bookings:
            buffer = buffer_minutes(boats_by_id.get(booking.boat_id))
            if buffer <= 0:
                continue
            for slot in cleanup_slots(booking, buffer):
                occ.cells.setdefault((booking.boat_id, slot), CLEANUP)

        return occ

    def _occupy(self, booking, slot: str):
        key = (booking.boat_id, slot)
        current = self.cells.get(key)
        if current is not None and current is not CLEANUP and current.id != booking.id:
            logger.warning(
                "Slot collision on boat %s at %s %s: booking %s overwrites %s",
                booking.boat_id, self.day, slot, booking.id, current.id,
            )
            self.collisions.append(Collision(booking.boat_id, slot, current.id, booking.id))
        self.cells[key] = booking

    # ── Queries ───────────────────────────────────────────────────────────────

    def occupant_of(self, boat_id: int, slot: str) -> Optional[object]:
        cell = self.cells.get((boat_id, slot))
        return None if cell is CLEANUP else cell

    def is_cleanup(self, boat_id: int, slot: str) -> bool:
        return self.cells.get((boat_id, slot)) is CLEANUP

    def is_slot_start(self, boat_id: int, slot: str) -> bool:
        """
        Anchor cell of a booking (where a merged cell would begin).
        Compares the start snapped to the grid, so an off-grid start like
        09:10 anchors at 09:00; for on-grid starts this is plain label equality.
        """
        booking = self.occupant_of(boat_id, slot)
        return booking is not None and to_slot(booking.start_time) == slot

    def cell(self, boat_id: int, slot: str) -> dict:
        """Serializable view of one cell."""
        booking = self.occupant_of(boat_id, slot)
        if booking is not None:
            return {
                "state": "booking",
                "booking_id": booking.id,
                "is_start": self.is_slot_start(boat_id, slot),
                "span": slot_span(booking),
            }
        if self.is_cleanup(boat_id, slot):
            return {"state": CLEANUP, "booking_id": None, "is_start": False, "span": 0}
        return {"state": "empty", "booking_id": None, "is_start": False, "span": 0}


# ── Tick helpers ──────────────────────────────────────────────────────────────

def slot_span(booking) -> int:
    """Number of grid slots a booking covers: ceil(duration / 15)."""
    return math.ceil(booking.duration_min / SLOT_MINUTES)


def occupied_slots(booking) -> list[str]:
    first = to_minutes(to_slot(booking.start_time))
    ticks = (first + i * SLOT_MINUTES for i in range(slot_span(booking)))
    return [time_label(m) for m in ticks if m < MINUTES_PER_DAY]


def cleanup_slots(booking, buffer: int) -> list[str]:
    """Ticks in [last occupied tick end, +buffer)."""
    occupied_end = to_minutes(to_slot(booking.start_time)) + slot_span(booking) * SLOT_MINUTES
    return [
        time_label(m)
        for m in range(occupied_end, occupied_end + buffer, SLOT_MINUTES)
        if m < MINUTES_PER_DAY
    ]
