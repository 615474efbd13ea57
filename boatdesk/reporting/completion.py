"""
Report completion. Has each required part of a report been filed?

  coach part  → at least one non-deleted participant row for (booking, staff)
  driver part → a coach_reports row for (booking, staff), whatever its value
"""
from dataclasses import dataclass

from boatdesk.reporting.roles import ReportRole, role_for


@dataclass(frozen=True)
class ReportStatus:
    required_role: ReportRole
    has_coach_report: bool
    has_driver_report: bool

    @property
    def fully_reported(self) -> bool:
        if self.required_role.needs_coach_report and not self.has_coach_report:
            return False
        if self.required_role.needs_driver_report and not self.has_driver_report:
            return False
        return True


def has_coach_report(participants: list, booking_id: int, staff_id: str) -> bool:
    return any(
        p.booking_id == booking_id and p.coach_id == staff_id and not p.is_deleted
        for p in participants
    )


def has_driver_report(coach_reports: list, booking_id: int, staff_id: str) -> bool:
    return any(r.booking_id == booking_id and r.coach_id == staff_id for r in coach_reports)


def report_status(view, staff_id: str) -> ReportStatus:
    """Required role plus filed flags for one staff member on one booking."""
    role = role_for(view, staff_id)
    if role is ReportRole.NONE:
        return ReportStatus(role, False, False)
    return ReportStatus(
        required_role=role,
        has_coach_report=has_coach_report(view.participants, view.id, staff_id),
        has_driver_report=has_driver_report(view.coach_reports, view.id, staff_id),
    )


# ── Board ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BoardEntry:
    booking_id: int
    staff_id: str
    staff_name: str
    status: ReportStatus

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "staff_id": self.staff_id,
            "staff_name": self.staff_name,
            "required_role": self.status.required_role.value,
            "has_coach_report": self.status.has_coach_report,
            "has_driver_report": self.status.has_driver_report,
            "fully_reported": self.status.fully_reported,
        }


def build_report_board(snapshot) -> list[BoardEntry]:
    """
    One entry per (booking, assigned staff member) who owes a report.
    Order: bookings as given, then coaches before drivers.
    """
    board = []
    for view in snapshot.bookings:
        seen = set()
        for ref in view.coaches + view.drivers:
            if ref.id in seen:
                continue
            seen.add(ref.id)
            status = report_status(view, ref.id)
            if status.required_role is ReportRole.NONE:
                continue
            board.append(BoardEntry(view.id, ref.id, ref.name or ref.id, status))
    return board


def pending_for(board: list[BoardEntry], staff_id: str) -> list[BoardEntry]:
    """A staff member's entries that still miss a part."""
    return [e for e in board if e.staff_id == staff_id and not e.status.fully_reported]
