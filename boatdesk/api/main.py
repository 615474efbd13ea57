"""
FastAPI app:
  POST /ingest/run
  POST /bookings
  PUT  /bookings/{booking_id}/assignments
  GET  /schedule/{day}
  GET  /reports/{day}
  POST /reports/{booking_id}/{staff_id}
  GET  /participants/{participant_id}/history
  GET  /overview/{day}
"""
import logging
from dataclasses import asdict

from fastapi import FastAPI, Depends, HTTPException
from sqlalchemy.orm import Session

from boatdesk.database import get_db, init_db
from boatdesk.ingestion.job import run_ingestion
from boatdesk.ingestion.schemas import AssignmentUpdate, BookingCreate, ReportSubmission
from boatdesk.ingestion.snapshot import load_snapshot, to_dict
from boatdesk.observability.metrics import completion_metrics, day_overview
from boatdesk.reporting.completion import build_report_board
from boatdesk.reporting.submission import submit_report
from boatdesk.reporting.validation import PossibleMemberError, SubmissionError
from boatdesk.reporting.versions import ParticipantNotFound, participant_history
from boatdesk.scheduling.boat_rules import sort_boats_by_display_order
from boatdesk.scheduling.bookings import (
    BookingNotFound, UnknownReference, create_booking, set_assignments
)
from boatdesk.scheduling.conflicts import BookingConflictError
from boatdesk.scheduling.occupancy import SlotOccupancy
from boatdesk.scheduling.timegrid import day_key, visible_range

logger = logging.getLogger(__name__)

app = FastAPI(title="Boatdesk API", version="1.0.0")


@app.on_event("startup")
def startup():
    init_db()
    logger.info("Database initialized")


def _day(day: str) -> str:
    try:
        return day_key(day)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Bad date: {day}")


# ── Ingestion ─────────────────────────────────────────────────────────────────

@app.post("/ingest/run")
def ingest_run(force: bool = False, db: Session = Depends(get_db)):
    """
    Load boats / staff / members from the bucket directory.
    Idempotent (skips if unchanged unless force=True).
    """
    try:
        return run_ingestion(db, force=force)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


# ── Bookings ──────────────────────────────────────────────────────────────────

@app.post("/bookings", status_code=201)
def bookings_create(payload: BookingCreate, db: Session = Depends(get_db)):
    """Create a booking; overlaps with the boat's existing bookings (buffer included) → 409."""
    try:
        booking = create_booking(db, payload)
    except BookingConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except UnknownReference as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_dict(booking)


@app.put("/bookings/{booking_id}/assignments")
def bookings_assign(booking_id: int, payload: AssignmentUpdate, db: Session = Depends(get_db)):
    try:
        booking = set_assignments(db, booking_id, payload.coach_ids, payload.driver_ids)
    except (BookingNotFound, UnknownReference) as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {
        "booking_id": booking.id,
        "coach_ids": [l.coach_id for l in booking.coach_links],
        "driver_ids": [l.driver_id for l in booking.driver_links],
    }


# ── Schedule grid ─────────────────────────────────────────────────────────────

@app.get("/schedule/{day}")
def schedule(day: str, db: Session = Depends(get_db)):
    """
    Visible slots for the day and one row of cells per boat.
    Cell state: "booking" | "cleanup" | "empty".
    """
    day = _day(day)
    snapshot = load_snapshot(db, day)
    bookings = snapshot.raw_bookings

    occupancy = SlotOccupancy.build(bookings, snapshot.boats, day)
    slots = visible_range(bookings, snapshot.boats, day)

    booked_boats = {b.boat_id for b in bookings}
    boats = [b for b in snapshot.boats if b.is_active or b.id in booked_boats]

    return {
        "date": day,
        "slots": slots,
        "boats": [
            {
                "id": boat.id,
                "name": boat.name,
                "color": boat.color,
                "cells": [occupancy.cell(boat.id, s) for s in slots],
            }
            for boat in sort_boats_by_display_order(boats)
        ],
        "collisions": [asdict(c) for c in occupancy.collisions],
    }


# ── Reports ───────────────────────────────────────────────────────────────────

@app.get("/reports/{day}")
def reports(day: str, db: Session = Depends(get_db)):
    """Who still owes which report for the day's bookings."""
    day = _day(day)
    board = build_report_board(load_snapshot(db, day))
    return {
        "date": day,
        "entries": [e.to_dict() for e in board],
        "metrics": completion_metrics(board),
    }


@app.post("/reports/{booking_id}/{staff_id}")
def reports_submit(booking_id: int, staff_id: str, payload: ReportSubmission,
                   db: Session = Depends(get_db)):
    try:
        return submit_report(db, booking_id, staff_id, payload)
    except BookingNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PossibleMemberError as e:
        raise HTTPException(status_code=422, detail={
            "message": str(e),
            "possible_members": [asdict(m) for m in e.matches],
        })
    except SubmissionError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/participants/{participant_id}/history")
def participants_history(participant_id: int, db: Session = Depends(get_db)):
    try:
        chain = participant_history(db, participant_id)
    except ParticipantNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"versions": [to_dict(p) for p in chain]}


# ── Overview ──────────────────────────────────────────────────────────────────

@app.get("/overview/{day}")
def overview(day: str, db: Session = Depends(get_db)):
    snapshot = load_snapshot(db, _day(day))
    return {"date": snapshot.day, **day_overview(snapshot.bookings)}


# ── Health check ──────────────────────────────────────────────────────────────

@app.get("/")
def root():
    return {
        "service": "Boatdesk API",
        "version": "1.0.0",
        "endpoints": [
            "/ingest/run", "/bookings", "/schedule/{day}",
            "/reports/{day}", "/overview/{day}",
        ]
    }
