from pydantic import BaseModel, field_validator
from typing import Optional
import re

from boatdesk.models import LessonType, PaymentMethod


START_AT_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})T(\d{2}):(\d{2})")


def _check_start_at(v: str) -> str:
    m = START_AT_PATTERN.match(v)
    assert m, f"Bad start_at: {v}"
    h, mi = int(m.group(2)), int(m.group(3))
    assert 0 <= h <= 23 and 0 <= mi <= 59, f"Bad time: {v}"
    return v


def _check_duration(v: int) -> int:
    assert v > 0, f"duration_min must be > 0, got {v}"
    return v


# ── Reference data ────────────────────────────────────────────────────────────

class BoatSchema(BaseModel):
    id: int
    name: str
    color: Optional[str] = None
    is_active: bool = True
    is_facility: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        assert v.strip(), "boat name is blank"
        return v


class StaffSchema(BaseModel):
    id: str
    name: str
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        assert v.strip(), "staff name is blank"
        return v


class MemberSchema(BaseModel):
    id: str
    name: str
    nickname: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        assert v.strip(), "member name is blank"
        return v

    @property
    def display_name(self) -> str:
        return (self.nickname or "").strip() or self.name.strip()


# ── Day data ──────────────────────────────────────────────────────────────────

class BookingSchema(BaseModel):
    id: int
    boat_id: int
    start_at: str                   # "YYYY-MM-DDTHH:MM[:SS...]"
    duration_min: int
    contact_name: str = ""
    notes: Optional[str] = None
    schedule_notes: Optional[str] = None
    is_coach_practice: bool = False
    requires_driver: bool = False

    @field_validator("start_at")
    @classmethod
    def valid_start_at(cls, v):
        return _check_start_at(v)

    @field_validator("duration_min")
    @classmethod
    def positive_duration(cls, v):
        return _check_duration(v)

    @property
    def date_str(self) -> str:
        """'2025-07-07T08:30:00' → '2025-07-07'"""
        return self.start_at[:10]

    @property
    def start_time(self) -> str:
        """'2025-07-07T08:30:00' → '08:30'"""
        return self.start_at[11:16]


class CoachLinkSchema(BaseModel):
    booking_id: int
    coach_id: str
    coach_name: Optional[str] = None

    @field_validator("coach_id")
    @classmethod
    def id_not_blank(cls, v):
        assert v.strip(), "coach_id is blank"
        return v


class DriverLinkSchema(BaseModel):
    booking_id: int
    driver_id: str
    driver_name: Optional[str] = None

    @field_validator("driver_id")
    @classmethod
    def id_not_blank(cls, v):
        assert v.strip(), "driver_id is blank"
        return v


class CoachReportSchema(BaseModel):
    booking_id: int
    coach_id: str
    driver_duration_min: Optional[int] = None


class ParticipantSchema(BaseModel):
    id: Optional[int] = None
    booking_id: int
    coach_id: str
    member_id: Optional[str] = None
    participant_name: str
    duration_min: int
    payment_method: PaymentMethod = PaymentMethod.CASH
    lesson_type: LessonType = LessonType.UNDESIGNATED
    is_deleted: Optional[bool] = False


# ── Submission inputs ─────────────────────────────────────────────────────────

class ParticipantInput(BaseModel):
    """One participant line typed into a coach report form."""
    id: Optional[int] = None        # set when editing an already-filed row
    member_id: Optional[str] = None
    participant_name: str = ""
    duration_min: int
    payment_method: PaymentMethod = PaymentMethod.CASH
    lesson_type: LessonType = LessonType.UNDESIGNATED
    status: Optional[str] = None    # "pending" marks a member row
    notes: Optional[str] = None


class ReportSubmission(BaseModel):
    participants: list[ParticipantInput] = []
    driver_duration_min: Optional[int] = None
    reported_by: str
    confirm_non_members: bool = False


class BookingCreate(BaseModel):
    boat_id: int
    start_at: str
    duration_min: int
    contact_name: str
    notes: Optional[str] = None
    schedule_notes: Optional[str] = None
    is_coach_practice: bool = False
    requires_driver: bool = False
    coach_ids: list[str] = []
    driver_ids: list[str] = []

    @field_validator("start_at")
    @classmethod
    def valid_start_at(cls, v):
        return _check_start_at(v)

    @field_validator("duration_min")
    @classmethod
    def positive_duration(cls, v):
        return _check_duration(v)


class AssignmentUpdate(BaseModel):
    coach_ids: list[str] = []
    driver_ids: list[str] = []
