"""
Who has to report what for a booking.

Decision table, evaluated in order for one staff member:
  no coach on the booking, member drives   → BOTH (someone must account for the session)
  coach and (explicit or implicit) driver  → BOTH
  coach only                               → COACH
  explicit or implicit driver only         → DRIVER
  otherwise                                → NONE

A coach is an implicit driver only while the booking has no driver at all
and is not on a facility. Assigning a driver revokes it on the next call;
nothing is cached between calls.
"""
import enum
from typing import Iterable


class ReportRole(str, enum.Enum):
    COACH = "coach"
    DRIVER = "driver"
    BOTH = "both"
    NONE = "none"

    @property
    def needs_coach_report(self) -> bool:
        return self in (ReportRole.COACH, ReportRole.BOTH)

    @property
    def needs_driver_report(self) -> bool:
        return self in (ReportRole.DRIVER, ReportRole.BOTH)


def classify_report_role(
    coach_ids: Iterable[str],
    driver_ids: Iterable[str],
    staff_id: str,
    is_facility_booking: bool,
) -> ReportRole:
    if isinstance(staff_id, (list, tuple, set, dict)):
        raise TypeError("staff_id must be a single id")

    coaches = set(coach_ids)
    drivers = set(driver_ids)

    is_coach = staff_id in coaches
    is_explicit_driver = staff_id in drivers
    has_no_driver = not drivers
    has_no_coach = not coaches

    is_implicit_driver = is_coach and has_no_driver and not is_facility_booking
    drives = is_explicit_driver or is_implicit_driver

    if has_no_coach and is_explicit_driver:
        return ReportRole.BOTH

    if is_coach and drives:
        return ReportRole.BOTH
    if is_coach:
        return ReportRole.COACH
    if drives:
        return ReportRole.DRIVER
    return ReportRole.NONE


def role_for(view, staff_id: str) -> ReportRole:
    """classify_report_role for a snapshot BookingView."""
    return classify_report_role(view.coach_ids, view.driver_ids, staff_id, view.is_facility)
