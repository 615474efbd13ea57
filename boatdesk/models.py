from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime,
    JSON, ForeignKey, Text, UniqueConstraint, Enum as SAEnum
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
import enum

Base = declarative_base()


# ── Enums ────────────────────────────────────────────────────────────────────

class LessonType(str, enum.Enum):
    UNDESIGNATED = "undesignated"
    DESIGNATED_PAID = "designated_paid"
    DESIGNATED_FREE = "designated_free"

class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    BALANCE = "balance"
    VOUCHER = "voucher"

class ParticipantStatus(str, enum.Enum):
    PENDING = "pending"                   # member, charge not yet processed
    PROCESSED = "processed"
    NOT_APPLICABLE = "not_applicable"     # guest / non-member


# ── Reference data ────────────────────────────────────────────────────────────

class Boat(Base):
    __tablename__ = "boats"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)              # e.g. "G23", "彈簧床"
    color = Column(String, nullable=True)              # "#5a5a5a"
    is_active = Column(Boolean, default=True)
    is_facility = Column(Boolean, nullable=True)       # None → decided by name
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Staff(Base):
    __tablename__ = "staff"

    id = Column(String, primary_key=True)              # e.g. "C07"
    name = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Member(Base):
    __tablename__ = "members"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    nickname = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


# ── Bookings + assignments ────────────────────────────────────────────────────

class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    boat_id = Column(Integer, ForeignKey("boats.id"), nullable=False)
    start_at = Column(String, nullable=False)          # "2025-07-07T08:30:00"
    duration_min = Column(Integer, nullable=False)
    contact_name = Column(String, nullable=False)      # may hold "A, B" for groups
    notes = Column(Text, nullable=True)
    schedule_notes = Column(Text, nullable=True)
    is_coach_practice = Column(Boolean, default=False)
    requires_driver = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())

    boat = relationship("Boat")
    coach_links = relationship("BookingCoach", cascade="all, delete-orphan",
                               back_populates="booking")
    driver_links = relationship("BookingDriver", cascade="all, delete-orphan",
                                back_populates="booking")


class BookingCoach(Base):
    __tablename__ = "booking_coaches"

    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), primary_key=True)
    coach_id = Column(String, ForeignKey("staff.id"), primary_key=True)

    booking = relationship("Booking", back_populates="coach_links")
    coach = relationship("Staff")


class BookingDriver(Base):
    __tablename__ = "booking_drivers"

    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), primary_key=True)
    driver_id = Column(String, ForeignKey("staff.id"), primary_key=True)

    booking = relationship("Booking", back_populates="driver_links")
    driver = relationship("Staff")


# ── Reports ───────────────────────────────────────────────────────────────────

class CoachReport(Base):
    """Driver-duration report. Row presence means the driver part is filed."""
    __tablename__ = "coach_reports"
    __table_args__ = (UniqueConstraint("booking_id", "coach_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    coach_id = Column(String, ForeignKey("staff.id"), nullable=False)
    driver_duration_min = Column(Integer, nullable=True)
    reported_at = Column(DateTime, server_default=func.now())


class BookingParticipant(Base):
    __tablename__ = "booking_participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    coach_id = Column(String, ForeignKey("staff.id"), nullable=False)
    member_id = Column(String, ForeignKey("members.id"), nullable=True)
    participant_name = Column(String, nullable=False)
    duration_min = Column(Integer, nullable=False)
    payment_method = Column(SAEnum(PaymentMethod), default=PaymentMethod.CASH)
    lesson_type = Column(SAEnum(LessonType), default=LessonType.UNDESIGNATED)
    status = Column(SAEnum(ParticipantStatus), default=ParticipantStatus.NOT_APPLICABLE)
    is_teaching = Column(Boolean, default=False)
    notes = Column(Text, nullable=True)

    # version chain: an edit supersedes the row instead of mutating it
    is_deleted = Column(Boolean, default=False)
    deleted_at = Column(DateTime, nullable=True)
    replaces_id = Column(Integer, ForeignKey("booking_participants.id"), nullable=True)
    replaced_by_id = Column(Integer, ForeignKey("booking_participants.id"), nullable=True)

    reported_at = Column(DateTime, server_default=func.now())
    created_by_email = Column(String, nullable=True)
    updated_by_email = Column(String, nullable=True)


# ── Ingestion tracking ────────────────────────────────────────────────────────

class IngestionRun(Base):
    __tablename__ = "ingestion_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_at = Column(DateTime, server_default=func.now())
    source_hash = Column(String, nullable=False)       # hash of input files
    status = Column(String, default="success")
    diff_summary = Column(JSON, default=dict)          # what changed
