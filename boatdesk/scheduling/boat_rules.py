"""
Business rules that depend on which boat a booking is on.
Keeps occupancy / reporting clean: the cleanup buffer and the facility
exemption are only expressed here.
"""
import os

CLEANUP_BUFFER_MINUTES = int(os.getenv("CLEANUP_BUFFER_MINUTES", "15"))

# stationary attractions: no driver, no dock-return time
FACILITY_BOATS = [
    name.strip() for name in os.getenv("FACILITY_BOATS", "彈簧床").split(",") if name.strip()
]

BOAT_DISPLAY_ORDER = ["G23", "G21", "黑豹", "粉紅", "200", "彈簧床"]

DESIGNATED_LESSONS = ("designated_paid", "designated_free")


def _name(boat) -> str:
    if boat is None:
        return ""
    if isinstance(boat, str):
        return boat
    return getattr(boat, "name", None) or ""


def is_facility(boat) -> bool:
    """
    True for stationary facilities. Accepts a boat object or a bare name.
    An explicit is_facility flag on the boat wins over the name list.
    """
    if boat is None:
        return False
    flag = getattr(boat, "is_facility", None)
    if flag is not None:
        return bool(flag)
    return _name(boat) in FACILITY_BOATS


def buffer_minutes(boat) -> int:
    """Blocked-but-empty minutes after a booking on this boat ends."""
    return 0 if is_facility(boat) else CLEANUP_BUFFER_MINUTES


def sort_boats_by_display_order(boats: list) -> list:
    """Fixed dock order; unknown boats go last, keeping their input order."""
    def rank(boat):
        name = _name(boat)
        return BOAT_DISPLAY_ORDER.index(name) if name in BOAT_DISPLAY_ORDER else len(BOAT_DISPLAY_ORDER)
    return sorted(boats, key=rank)


def is_teaching(lesson_type: str, boat=None) -> bool:
    """
    Whether a participant line counts as teaching time.
    Designated lessons always do; on a facility every lesson does.
    """
    lesson = getattr(lesson_type, "value", lesson_type)
    if lesson in DESIGNATED_LESSONS:
        return True
    return is_facility(boat)
