"""
Single sanitize pass at the ingestion boundary.

Raw rows (dicts from the data layer, or None) are validated with the
pydantic schemas. Anything malformed is logged and dropped so downstream
code can assume well-formed records and the view stays renderable.
"""
import logging
from typing import Iterable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from boatdesk.ingestion.schemas import (
    BoatSchema, BookingSchema, CoachLinkSchema, DriverLinkSchema,
    CoachReportSchema, ParticipantSchema, MemberSchema,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def sanitize(rows: Optional[Iterable], schema: Type[T], kind: str) -> list[T]:
    if rows is None:
        return []
    clean = []
    for i, row in enumerate(rows):
        if row is None:
            logger.warning("Skipping %s #%d: empty entry", kind, i)
            continue
        if isinstance(row, schema):
            clean.append(row)
            continue
        if not isinstance(row, dict):
            logger.warning("Skipping %s #%d: expected a mapping, got %s",
                           kind, i, type(row).__name__)
            continue
        try:
            clean.append(schema(**row))
        except ValidationError as e:
            logger.warning("Skipping %s #%d (%s): %s",
                           kind, i, row.get("id", "?"), _summary(e))
    return clean


def _summary(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
    )


def sanitize_boats(rows) -> list[BoatSchema]:
    return sanitize(rows, BoatSchema, "boat")

def sanitize_bookings(rows) -> list[BookingSchema]:
    return sanitize(rows, BookingSchema, "booking")

def sanitize_coach_links(rows) -> list[CoachLinkSchema]:
    return sanitize(rows, CoachLinkSchema, "coach link")

def sanitize_driver_links(rows) -> list[DriverLinkSchema]:
    return sanitize(rows, DriverLinkSchema, "driver link")

def sanitize_coach_reports(rows) -> list[CoachReportSchema]:
    return sanitize(rows, CoachReportSchema, "coach report")

def sanitize_participants(rows) -> list[ParticipantSchema]:
    return sanitize(rows, ParticipantSchema, "participant")

def sanitize_members(rows) -> list[MemberSchema]:
    return sanitize(rows, MemberSchema, "member")
