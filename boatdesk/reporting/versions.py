"""
Participant rows are versioned, never edited in place.

An edit writes a new row pointing back with replaces_id and retires the old
one (is_deleted + replaced_by_id). Removing a participant only soft-deletes
it. Every version stays in the table for audit.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from boatdesk.models import BookingParticipant


class ParticipantNotFound(LookupError):
    pass


def supersede(db: Session, old: BookingParticipant, values: dict,
              updated_by: str) -> BookingParticipant:
    new = BookingParticipant(
        booking_id=old.booking_id,
        coach_id=old.coach_id,
        replaces_id=old.id,
        created_by_email=old.created_by_email or updated_by,
        updated_by_email=updated_by,
        **values,
    )
    db.add(new)
    db.flush()      # need new.id for the back-pointer

    old.is_deleted = True
    old.deleted_at = datetime.now(timezone.utc)
    old.replaced_by_id = new.id
    old.updated_by_email = updated_by
    return new


def soft_delete(old: BookingParticipant, updated_by: str):
    old.is_deleted = True
    old.deleted_at = datetime.now(timezone.utc)
    old.updated_by_email = updated_by


def participant_history(db: Session, participant_id: int) -> list[BookingParticipant]:
    """Whole chain, oldest → newest, starting from any version in it."""
    row = db.get(BookingParticipant, participant_id)
    if row is None:
        raise ParticipantNotFound(f"participant {participant_id} not found")

    seen = {row.id}
    while row.replaces_id is not None and row.replaces_id not in seen:
        prev = db.get(BookingParticipant, row.replaces_id)
        if prev is None:
            break
        seen.add(prev.id)
        row = prev

    chain = [row]
    while row.replaced_by_id is not None:
        nxt = db.get(BookingParticipant, row.replaced_by_id)
        if nxt is None or nxt.id in {r.id for r in chain}:
            break
        chain.append(nxt)
        row = nxt
    return chain


def latest_version(db: Session, participant_id: int) -> Optional[BookingParticipant]:
    return participant_history(db, participant_id)[-1]
