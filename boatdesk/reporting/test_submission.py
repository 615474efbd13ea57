"""
Submission workflow against an in-memory database.

  pytest boatdesk/reporting/test_submission.py
"""
import pytest

from boatdesk.ingestion.schemas import ParticipantInput, ReportSubmission
from boatdesk.ingestion.snapshot import load_snapshot
from boatdesk.models import (
    Boat, Booking, BookingCoach, BookingDriver, BookingParticipant, CoachReport,
    LessonType, ParticipantStatus, PaymentMethod,
)
from boatdesk.reporting.completion import build_report_board, report_status
from boatdesk.reporting.roles import ReportRole
from boatdesk.reporting.submission import submit_report
from boatdesk.reporting.validation import (
    NoReportObligationError, ParticipantValidationError, PossibleMemberError
)
from boatdesk.reporting.versions import latest_version, participant_history
from boatdesk.scheduling.bookings import BookingNotFound, set_assignments

DAY = "2025-07-07"


def add_booking(db, id, boat_id=1, coaches=(), drivers=(), start="09:00", duration=60):
    b = Booking(id=id, boat_id=boat_id, start_at=f"{DAY}T{start}:00",
                duration_min=duration, contact_name=f"guest{id}")
    b.coach_links = [BookingCoach(coach_id=c) for c in coaches]
    b.driver_links = [BookingDriver(driver_id=d) for d in drivers]
    db.add(b)
    db.commit()
    return b


def submission(*lines, driver_minutes=None, confirm=True):
    return ReportSubmission(
        participants=list(lines),
        driver_duration_min=driver_minutes,
        reported_by="desk@example.com",
        confirm_non_members=confirm,
    )


def guest(name="Guest Zed", duration=60, id=None):
    return ParticipantInput(id=id, participant_name=name, duration_min=duration)


def live_participants(db, booking_id, coach_id):
    return (db.query(BookingParticipant)
            .filter_by(booking_id=booking_id, coach_id=coach_id, is_deleted=False)
            .all())


def status_of(db, booking_id, staff_id):
    return report_status(load_snapshot(db, DAY).view(booking_id), staff_id)


def test_sole_coach_files_both_parts(db):
    add_booking(db, 1, coaches=["C01"])
    result = submit_report(db, 1, "C01", submission(guest(), driver_minutes=50))

    assert result["required_role"] == "both"
    assert result["driver_report"] == {"driver_duration_min": 50, "changed": True}
    assert result["participants"]["inserted"] == 1
    assert db.query(CoachReport).filter_by(booking_id=1, coach_id="C01").one().driver_duration_min == 50
    assert status_of(db, 1, "C01").fully_reported


def test_driver_minutes_default_to_booking_duration(db):
    add_booking(db, 1, coaches=["C01"], duration=90)
    submit_report(db, 1, "C01", submission(guest()))
    assert db.query(CoachReport).one().driver_duration_min == 90


def test_adding_driver_removes_stale_driver_report(db):
    add_booking(db, 1, coaches=["C01"])
    submit_report(db, 1, "C01", submission(guest(), driver_minutes=60))
    assert status_of(db, 1, "C01").required_role is ReportRole.BOTH

    set_assignments(db, 1, coach_ids=["C01"], driver_ids=["C02"])
    status = status_of(db, 1, "C01")
    assert status.required_role is ReportRole.COACH
    assert status_of(db, 1, "C02").required_role is ReportRole.DRIVER

    # the old row is still there until the next submission cleans it up
    assert db.query(CoachReport).filter_by(booking_id=1, coach_id="C01").count() == 1

    filed = live_participants(db, 1, "C01")[0]
    result = submit_report(db, 1, "C01", submission(guest(id=filed.id)))
    assert result["required_role"] == "coach"
    assert result["stale_driver_report_deleted"] is True
    assert result["participants"]["unchanged"] == 1
    assert db.query(CoachReport).filter_by(booking_id=1, coach_id="C01").count() == 0

    submit_report(db, 1, "C02", submission(driver_minutes=0))
    status = status_of(db, 1, "C02")
    assert status.has_driver_report
    assert status.fully_reported
    assert all(e.status.fully_reported for e in build_report_board(load_snapshot(db, DAY)))


def test_driver_only_booking_needs_participants(db):
    add_booking(db, 1, drivers=["C02"])
    with pytest.raises(ParticipantValidationError):
        submit_report(db, 1, "C02", submission(driver_minutes=60))
    # nothing written when validation fails
    assert db.query(CoachReport).count() == 0

    result = submit_report(db, 1, "C02", submission(guest(), driver_minutes=60))
    assert result["required_role"] == "both"
    assert status_of(db, 1, "C02").fully_reported


def test_pure_coach_submission_creates_no_driver_row(db):
    add_booking(db, 1, boat_id=6, coaches=["C01"])
    result = submit_report(db, 1, "C01", submission(guest(), driver_minutes=60))
    assert result["required_role"] == "coach"
    assert result["driver_report"] is None
    assert db.query(CoachReport).count() == 0

    row = live_participants(db, 1, "C01")[0]
    assert row.is_teaching is True               # facility time is teaching time
    assert row.status is ParticipantStatus.NOT_APPLICABLE


def test_unassigned_member_cannot_submit(db):
    add_booking(db, 1, coaches=["C01"])
    with pytest.raises(NoReportObligationError):
        submit_report(db, 1, "C03", submission(guest()))


def test_missing_booking(db):
    with pytest.raises(BookingNotFound):
        submit_report(db, 404, "C01", submission(guest()))


def test_possible_member_needs_confirmation(db):
    add_booking(db, 1, coaches=["C01"], drivers=["C02"])
    with pytest.raises(PossibleMemberError) as exc:
        submit_report(db, 1, "C01", submission(guest("mei"), confirm=False))
    assert exc.value.matches[0].matches == ["Mei"]
    assert live_participants(db, 1, "C01") == []

    submit_report(db, 1, "C01", submission(guest("mei"), confirm=True))
    assert len(live_participants(db, 1, "C01")) == 1


def test_member_row_gets_pending_status(db):
    add_booking(db, 1, coaches=["C01"], drivers=["C02"])
    line = ParticipantInput(participant_name="Mei", member_id="M001",
                            duration_min=60, payment_method="balance", status="pending")
    submit_report(db, 1, "C01", submission(line, confirm=False))
    row = live_participants(db, 1, "C01")[0]
    assert row.status is ParticipantStatus.PENDING
    assert row.member_id == "M001"


def test_edit_creates_new_version(db):
    add_booking(db, 1, coaches=["C01"], drivers=["C02"])
    submit_report(db, 1, "C01", submission(guest(duration=60), guest("Guest Two")))
    first, second = sorted(live_participants(db, 1, "C01"), key=lambda p: p.id)

    result = submit_report(db, 1, "C01", submission(guest(duration=45, id=first.id)))
    assert result["participants"] == {"inserted": 0, "superseded": 1, "unchanged": 0, "removed": 1}

    live = live_participants(db, 1, "C01")
    assert len(live) == 1
    assert live[0].duration_min == 45
    assert live[0].replaces_id == first.id

    chain = participant_history(db, first.id)
    assert [p.id for p in chain] == [first.id, live[0].id]
    assert chain[0].is_deleted and chain[0].replaced_by_id == live[0].id
    assert latest_version(db, first.id).id == live[0].id
    assert [p.id for p in participant_history(db, live[0].id)] == [first.id, live[0].id]

    removed = db.get(BookingParticipant, second.id)
    assert removed.is_deleted and removed.replaced_by_id is None


def test_resubmitting_same_report_is_stable(db):
    add_booking(db, 1, coaches=["C01"])
    submit_report(db, 1, "C01", submission(guest(), driver_minutes=60))
    filed = live_participants(db, 1, "C01")[0]

    result = submit_report(db, 1, "C01", submission(guest(id=filed.id), driver_minutes=60))
    assert result["driver_report"]["changed"] is False
    assert result["participants"]["unchanged"] == 1
    assert db.query(BookingParticipant).count() == 1


def test_flagged_facility_lessons_count_as_teaching(db):
    db.add(Boat(id=9, name="Float", is_facility=True))
    db.commit()
    add_booking(db, 1, boat_id=9, coaches=["C01"])

    line = ParticipantInput(participant_name="Guest Zed", duration_min=60,
                            payment_method=PaymentMethod.VOUCHER)
    result = submit_report(db, 1, "C01", submission(line))
    assert result["required_role"] == "coach"       # no implicit driving on a facility

    row = live_participants(db, 1, "C01")[0]
    assert row.is_teaching is True
    assert row.payment_method is PaymentMethod.VOUCHER
    assert row.lesson_type is LessonType.UNDESIGNATED
