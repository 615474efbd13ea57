"""
Day snapshot: everything one evaluation needs, built once and thrown away.

build_snapshot() joins sanitized bookings with their boat, coaches, drivers,
driver reports and participant rows into BookingView objects. Lookup maps are
local to the call; nothing is shared between evaluations.
"""
import enum
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from boatdesk.ingestion.sanitize import (
    sanitize_boats, sanitize_bookings, sanitize_coach_links, sanitize_driver_links,
    sanitize_coach_reports, sanitize_participants,
)
from boatdesk.ingestion.schemas import BoatSchema, BookingSchema
from boatdesk.models import (
    Boat, Booking, BookingCoach, BookingDriver, CoachReport, BookingParticipant
)
from boatdesk.scheduling.boat_rules import is_facility
from boatdesk.scheduling.timegrid import day_key


@dataclass(frozen=True)
class StaffRef:
    id: str
    name: Optional[str] = None


@dataclass
class BookingView:
    booking: BookingSchema
    boat: Optional[BoatSchema] = None
    coaches: list = field(default_factory=list)          # [StaffRef]
    drivers: list = field(default_factory=list)          # [StaffRef]
    coach_reports: list = field(default_factory=list)    # [CoachReportSchema]
    participants: list = field(default_factory=list)     # [ParticipantSchema]

    @property
    def id(self) -> int:
        return self.booking.id

    @property
    def duration_min(self) -> int:
        return self.booking.duration_min

    @property
    def boat_name(self) -> Optional[str]:
        return self.boat.name if self.boat else None

    @property
    def is_facility(self) -> bool:
        return is_facility(self.boat)

    @property
    def coach_ids(self) -> list[str]:
        return [c.id for c in self.coaches]

    @property
    def driver_ids(self) -> list[str]:
        return [d.id for d in self.drivers]

    def staff_name(self, staff_id: str) -> Optional[str]:
        for ref in self.coaches + self.drivers:
            if ref.id == staff_id and ref.name:
                return ref.name
        return None


@dataclass
class DaySnapshot:
    day: Optional[str]
    boats: list                 # [BoatSchema]
    bookings: list              # [BookingView]

    @property
    def raw_bookings(self) -> list[BookingSchema]:
        return [v.booking for v in self.bookings]

    def view(self, booking_id: int) -> Optional[BookingView]:
        return next((v for v in self.bookings if v.id == booking_id), None)


def build_snapshot(
    bookings,
    boats,
    coach_links=None,
    driver_links=None,
    coach_reports=None,
    participants=None,
    day=None,
) -> DaySnapshot:
    """
    Assemble a DaySnapshot from raw row dicts (DB rows or bucket records).
    `day` limits bookings to one date; None keeps all (period views).
    """
    key = day_key(day) if day is not None else None
    clean_boats = sanitize_boats(boats)
    boats_by_id = {b.id: b for b in clean_boats}

    views: dict[int, BookingView] = {}
    for b in sanitize_bookings(bookings):
        if key is not None and b.date_str != key:
            continue
        views[b.id] = BookingView(booking=b, boat=boats_by_id.get(b.boat_id))

    for link in sanitize_coach_links(coach_links):
        view = views.get(link.booking_id)
        if view and link.coach_id not in view.coach_ids:
            view.coaches.append(StaffRef(link.coach_id, link.coach_name))

    for link in sanitize_driver_links(driver_links):
        view = views.get(link.booking_id)
        if view and link.driver_id not in view.driver_ids:
            view.drivers.append(StaffRef(link.driver_id, link.driver_name))

    for report in sanitize_coach_reports(coach_reports):
        if report.booking_id in views:
            views[report.booking_id].coach_reports.append(report)

    for p in sanitize_participants(participants):
        if p.booking_id in views:
            views[p.booking_id].participants.append(p)

    return DaySnapshot(day=key, boats=clean_boats, bookings=list(views.values()))


# ── DB loading ────────────────────────────────────────────────────────────────

def to_dict(obj) -> dict:
    """Convert SQLAlchemy model to dict (enums flattened to their values)."""
    if obj is None:
        return {}
    row = {}
    for c in obj.__table__.columns:
        value = getattr(obj, c.name)
        row[c.name] = value.value if isinstance(value, enum.Enum) else value
    return row


def load_snapshot(db: Session, day=None, booking_ids: Optional[list[int]] = None) -> DaySnapshot:
    """Fetch one day's (or the given bookings') rows and build the snapshot."""
    query = db.query(Booking)
    if day is not None:
        query = query.filter(Booking.start_at.like(f"{day_key(day)}%"))
    if booking_ids is not None:
        query = query.filter(Booking.id.in_(booking_ids))
    bookings = query.order_by(Booking.start_at, Booking.id).all()
    ids = [b.id for b in bookings]

    coach_links = [
        {"booking_id": l.booking_id, "coach_id": l.coach_id,
         "coach_name": l.coach.name if l.coach else None}
        for l in db.query(BookingCoach).filter(BookingCoach.booking_id.in_(ids))
                     .order_by(BookingCoach.booking_id, BookingCoach.coach_id).all()
    ]
    driver_links = [
        {"booking_id": l.booking_id, "driver_id": l.driver_id,
         "driver_name": l.driver.name if l.driver else None}
        for l in db.query(BookingDriver).filter(BookingDriver.booking_id.in_(ids))
                     .order_by(BookingDriver.booking_id, BookingDriver.driver_id).all()
    ]
    reports = db.query(CoachReport).filter(CoachReport.booking_id.in_(ids)).all()
    participants = (
        db.query(BookingParticipant)
        .filter(BookingParticipant.booking_id.in_(ids))
        .filter(BookingParticipant.is_deleted.is_(False))
        .all()
    )

    return build_snapshot(
        bookings=[to_dict(b) for b in bookings],
        boats=[to_dict(b) for b in db.query(Boat).all()],
        coach_links=coach_links,
        driver_links=driver_links,
        coach_reports=[to_dict(r) for r in reports],
        participants=[to_dict(p) for p in participants],
        day=day,
    )
