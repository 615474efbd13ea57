"""
Booking creation and assignment changes.
  pytest boatdesk/scheduling/test_bookings.py
"""
import pytest
from pydantic import ValidationError

from boatdesk.ingestion.schemas import BookingCreate
from boatdesk.models import Booking, BookingCoach
from boatdesk.scheduling.bookings import (
    BookingNotFound, UnknownReference, create_booking, set_assignments
)
from boatdesk.scheduling.conflicts import BookingConflictError

DAY = "2025-07-07"


def payload(start="09:00", duration=60, boat_id=1, **extra):
    return BookingCreate(boat_id=boat_id, start_at=f"{DAY}T{start}:00",
                         duration_min=duration, contact_name="Mr Lee", **extra)


def test_create_booking_with_staff(db):
    booking = create_booking(db, payload(coach_ids=["C01", "C01"], driver_ids=["C02"]))
    assert booking.id is not None
    assert [l.coach_id for l in booking.coach_links] == ["C01"]
    assert [l.driver_id for l in booking.driver_links] == ["C02"]


def test_overlap_and_buffer_are_rejected(db):
    first = create_booking(db, payload("09:00", 60))

    with pytest.raises(BookingConflictError) as exc:
        create_booking(db, payload("10:00", 30))           # inside cleanup
    assert exc.value.result.booking_id == first.id
    assert "Mr Lee" in str(exc.value)

    with pytest.raises(BookingConflictError):
        create_booking(db, payload("08:30", 60))           # overlaps

    create_booking(db, payload("10:15", 30))               # at buffer end
    create_booking(db, payload("09:00", 60, boat_id=2))    # other boat
    assert db.query(Booking).count() == 3


def test_facility_back_to_back(db):
    create_booking(db, payload("09:00", 60, boat_id=6))
    create_booking(db, payload("10:00", 60, boat_id=6))
    assert db.query(Booking).filter_by(boat_id=6).count() == 2


def test_unknown_references(db):
    with pytest.raises(UnknownReference):
        create_booking(db, payload(boat_id=99))
    with pytest.raises(UnknownReference, match="C99"):
        create_booking(db, payload(coach_ids=["C99"]))
    assert db.query(Booking).count() == 0


def test_bad_payload():
    with pytest.raises(ValidationError):
        payload(duration=0)
    with pytest.raises(ValidationError):
        BookingCreate(boat_id=1, start_at="tomorrow", duration_min=30, contact_name="x")


def test_set_assignments_replaces_links(db):
    booking = create_booking(db, payload(coach_ids=["C01"]))
    updated = set_assignments(db, booking.id, coach_ids=["C01", "C03"], driver_ids=["C02"])
    assert sorted(l.coach_id for l in updated.coach_links) == ["C01", "C03"]
    assert [l.driver_id for l in updated.driver_links] == ["C02"]

    set_assignments(db, booking.id, coach_ids=["C03"], driver_ids=[])
    assert [l.coach_id for l in db.query(BookingCoach).all()] == ["C03"]


def test_set_assignments_errors(db):
    with pytest.raises(BookingNotFound):
        set_assignments(db, 404, [], [])
    booking = create_booking(db, payload())
    with pytest.raises(UnknownReference):
        set_assignments(db, booking.id, ["nobody"], [])
