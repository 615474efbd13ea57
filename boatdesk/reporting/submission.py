"""
Report submission for one staff member on one booking.

Flow:
  1. Re-classify the member from the booking's current assignments
  2. Validate everything the role requires (nothing is written on failure)
  3. Driver part:
       role needs it   → upsert the coach_reports row (driving minutes)
       role doesn't    → delete any coach_reports row left from an older
                         classification (e.g. implicit driver before a
                         driver was assigned)
  4. Coach part → reconcile participant rows as versions
  5. Commit, or roll back and re-raise
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from boatdesk.ingestion.sanitize import sanitize_members
from boatdesk.ingestion.schemas import ReportSubmission
from boatdesk.ingestion.snapshot import load_snapshot, to_dict
from boatdesk.models import (
    Booking, BookingParticipant, CoachReport, Member, ParticipantStatus,
)
from boatdesk.reporting.roles import ReportRole, role_for
from boatdesk.reporting.validation import (
    NoReportObligationError, ParticipantValidationError, PossibleMemberError,
    check_possible_members, participant_status, validate_participants,
)
from boatdesk.reporting.versions import soft_delete, supersede
from boatdesk.scheduling.boat_rules import is_teaching
from boatdesk.scheduling.bookings import BookingNotFound

logger = logging.getLogger(__name__)


def submit_report(db: Session, booking_id: int, staff_id: str,
                  submission: ReportSubmission) -> dict:
    booking = db.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound(f"booking {booking_id} not found")

    view = load_snapshot(db, booking_ids=[booking_id]).view(booking_id)
    if view is None:
        # stored row failed sanitizing (e.g. bad start_at); nothing to classify
        raise BookingNotFound(f"booking {booking_id} is not readable")
    role = role_for(view, staff_id)
    if role is ReportRole.NONE:
        raise NoReportObligationError(
            f"{staff_id} is neither coach nor driver on booking {booking_id}"
        )

    # ── Validate before any write ─────────────────────────────────────────────
    participants = []
    if role.needs_coach_report:
        participants = validate_participants(submission.participants)
        if not submission.confirm_non_members:
            members = sanitize_members([to_dict(m) for m in db.query(Member).all()])
            possible = check_possible_members(participants, members)
            if possible:
                raise PossibleMemberError(possible)

    driver_minutes = None
    if role.needs_driver_report:
        driver_minutes = submission.driver_duration_min
        if driver_minutes is None:
            driver_minutes = booking.duration_min
        if driver_minutes < 0:
            raise ParticipantValidationError("Driving minutes cannot be negative")

    result = {
        "booking_id": booking_id,
        "staff_id": staff_id,
        "required_role": role.value,
        "driver_report": None,
        "stale_driver_report_deleted": False,
        "participants": None,
    }

    try:
        if role.needs_driver_report:
            result["driver_report"] = _upsert_driver_report(db, booking_id, staff_id, driver_minutes)
        else:
            result["stale_driver_report_deleted"] = _delete_stale_driver_report(db, booking_id, staff_id)

        if role.needs_coach_report:
            result["participants"] = _reconcile_participants(
                db, booking_id, staff_id, participants,
                submission.reported_by, view.boat,
            )

        db.commit()

    except Exception:
        logger.exception("Report submission failed for booking %s / %s", booking_id, staff_id)
        db.rollback()
        raise

    return result


# ── Driver part ───────────────────────────────────────────────────────────────

def _upsert_driver_report(db: Session, booking_id: int, staff_id: str, minutes: int) -> dict:
    existing = (
        db.query(CoachReport)
        .filter(CoachReport.booking_id == booking_id, CoachReport.coach_id == staff_id)
        .first()
    )
    if existing:
        changed = existing.driver_duration_min != minutes
        if changed:
            existing.driver_duration_min = minutes
            existing.reported_at = datetime.now(timezone.utc)
        return {"driver_duration_min": minutes, "changed": changed}

    db.add(CoachReport(booking_id=booking_id, coach_id=staff_id,
                       driver_duration_min=minutes,
                       reported_at=datetime.now(timezone.utc)))
    return {"driver_duration_min": minutes, "changed": True}


def _delete_stale_driver_report(db: Session, booking_id: int, staff_id: str) -> bool:
    deleted = (
        db.query(CoachReport)
        .filter(CoachReport.booking_id == booking_id, CoachReport.coach_id == staff_id)
        .delete(synchronize_session=False)
    )
    if deleted:
        logger.info("Deleted stale driver report for booking %s / %s", booking_id, staff_id)
    return bool(deleted)


# ── Coach part ────────────────────────────────────────────────────────────────

def _reconcile_participants(db: Session, booking_id: int, staff_id: str,
                            participants: list, reported_by: str, boat) -> dict:
    existing = {
        p.id: p for p in
        db.query(BookingParticipant)
        .filter(BookingParticipant.booking_id == booking_id,
                BookingParticipant.coach_id == staff_id,
                BookingParticipant.is_deleted.is_(False))
        .all()
    }
    counts = {"inserted": 0, "superseded": 0, "unchanged": 0, "removed": 0}

    submitted_ids = {p.id for p in participants if p.id}
    for old_id, old in existing.items():
        if old_id not in submitted_ids:
            soft_delete(old, reported_by)
            counts["removed"] += 1

    for p in participants:
        values = _row_values(p, boat)
        old = existing.get(p.id) if p.id else None

        if old is None:
            db.add(BookingParticipant(
                booking_id=booking_id, coach_id=staff_id,
                created_by_email=reported_by, updated_by_email=reported_by,
                **values,
            ))
            counts["inserted"] += 1
        elif _changed(old, p):
            supersede(db, old, values, reported_by)
            counts["superseded"] += 1
        else:
            counts["unchanged"] += 1

    logger.info("Participants for booking %s / %s: %s", booking_id, staff_id, counts)
    return counts


def _row_values(p, boat) -> dict:
    return {
        "member_id": p.member_id,
        "participant_name": p.participant_name.strip(),
        "duration_min": p.duration_min,
        "payment_method": p.payment_method,
        "lesson_type": p.lesson_type,
        "status": ParticipantStatus(participant_status(p.member_id)),
        "is_teaching": is_teaching(p.lesson_type, boat),
        "notes": p.notes or None,
    }


def _changed(old: BookingParticipant, p) -> bool:
    def norm(v):
        return getattr(v, "value", v) or ""
    return (
        norm(old.participant_name).strip() != norm(p.participant_name).strip()
        or int(old.duration_min) != int(p.duration_min)
        or norm(old.payment_method) != norm(p.payment_method)
        or (norm(old.lesson_type) or "undesignated") != (norm(p.lesson_type) or "undesignated")
        or norm(old.member_id) != norm(p.member_id)
        or norm(old.notes) != norm(p.notes)
    )
