"""
Booking writes that the schedule depends on: creation with overlap
rejection, and replacing a booking's coach / driver assignments.
"""
import logging

from sqlalchemy.orm import Session

from boatdesk.ingestion.sanitize import sanitize_bookings
from boatdesk.ingestion.schemas import BookingCreate
from boatdesk.ingestion.snapshot import to_dict
from boatdesk.models import Boat, Booking, BookingCoach, BookingDriver, Staff
from boatdesk.scheduling.conflicts import BookingConflictError, find_boat_conflict

logger = logging.getLogger(__name__)


class BookingNotFound(LookupError):
    pass


class UnknownReference(LookupError):
    pass


def create_booking(db: Session, payload: BookingCreate) -> Booking:
    boat = db.get(Boat, payload.boat_id)
    if boat is None:
        raise UnknownReference(f"boat {payload.boat_id} not found")
    _check_staff(db, payload.coach_ids + payload.driver_ids)

    same_day = (
        db.query(Booking)
        .filter(Booking.boat_id == boat.id)
        .filter(Booking.start_at.like(f"{payload.start_at[:10]}%"))
        .all()
    )
    result = find_boat_conflict(
        sanitize_bookings([to_dict(b) for b in same_day]),
        boat, payload.start_at, payload.duration_min,
    )
    if result.has_conflict:
        raise BookingConflictError(result)

    data = payload.model_dump(exclude={"coach_ids", "driver_ids"})
    booking = Booking(**data)
    booking.coach_links = [BookingCoach(coach_id=c) for c in dict.fromkeys(payload.coach_ids)]
    booking.driver_links = [BookingDriver(driver_id=d) for d in dict.fromkeys(payload.driver_ids)]
    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info("Created booking %s on boat %s at %s", booking.id, boat.id, booking.start_at)
    return booking


def set_assignments(db: Session, booking_id: int,
                    coach_ids: list[str], driver_ids: list[str]) -> Booking:
    """
    Replace coach and driver links. Report roles follow on the next
    evaluation; stale driver reports are removed by the next submission.
    """
    booking = db.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound(f"booking {booking_id} not found")
    _check_staff(db, coach_ids + driver_ids)

    # keep surviving link rows so their primary keys are not re-inserted
    coaches = {l.coach_id: l for l in booking.coach_links}
    drivers = {l.driver_id: l for l in booking.driver_links}
    booking.coach_links = [coaches.get(c) or BookingCoach(coach_id=c)
                           for c in dict.fromkeys(coach_ids)]
    booking.driver_links = [drivers.get(d) or BookingDriver(driver_id=d)
                            for d in dict.fromkeys(driver_ids)]
    db.commit()
    db.refresh(booking)
    logger.info("Booking %s assignments: coaches=%s drivers=%s",
                booking_id, list(coach_ids), list(driver_ids))
    return booking


def _check_staff(db: Session, staff_ids: list[str]):
    missing = [s for s in dict.fromkeys(staff_ids) if db.get(Staff, s) is None]
    if missing:
        raise UnknownReference(f"unknown staff: {', '.join(missing)}")
