"""
Usage summaries over booking views.
  pytest boatdesk/observability/test_metrics.py
"""
from boatdesk.ingestion.schemas import BookingSchema
from boatdesk.ingestion.snapshot import BookingView, StaffRef, build_snapshot
from boatdesk.observability.metrics import (
    Usage, boat_usage, coach_usage, day_overview, driver_usage, rank
)

DAY = "2025-07-07"
BOATS = [{"id": 1, "name": "G23"}, {"id": 2, "name": "G21"}, {"id": 6, "name": "彈簧床"}]


def raw_booking(id, boat_id=1, duration=60, start="09:00"):
    return {"id": id, "boat_id": boat_id, "start_at": f"{DAY}T{start}:00",
            "duration_min": duration, "contact_name": f"guest{id}"}


def views(bookings, coaches=(), drivers=()):
    return build_snapshot(
        bookings, BOATS,
        coach_links=[{"booking_id": b, "coach_id": c, "coach_name": n} for b, c, n in coaches],
        driver_links=[{"booking_id": b, "driver_id": d, "driver_name": n} for b, d, n in drivers],
        day=DAY,
    ).bookings


def test_coach_totals():
    vs = views([raw_booking(1, duration=60), raw_booking(2, duration=30, start="11:00")],
               coaches=[(1, "C01", "Alice"), (2, "C01", "Alice"), (2, "C02", "Bob")])
    overview = day_overview(vs)
    assert overview["total_bookings"] == 2
    assert overview["coaches"] == [
        {"name": "Alice", "count": 2, "total_minutes": 90},
        {"name": "Bob", "count": 1, "total_minutes": 30},
    ]
    assert overview["boats"] == [{"name": "G23", "count": 2, "total_minutes": 90}]


def test_facility_bookings_have_no_driving():
    vs = views([raw_booking(1, boat_id=6), raw_booking(2, start="11:00")],
               drivers=[(1, "C02", "Bob"), (2, "C02", "Bob")])
    assert driver_usage(vs)["Bob"] == Usage(count=1, total_minutes=60)
    # still counted for the facility itself
    assert boat_usage(vs)["彈簧床"].count == 1


def test_missing_entries_are_dropped():
    booking = BookingSchema(**raw_booking(1))
    vs = [
        None,
        BookingView(booking=booking, coaches=[None, StaffRef("C09", None), StaffRef("C01", "Alice")]),
    ]
    assert coach_usage(vs) == {"Alice": Usage(1, 60)}
    assert boat_usage(vs) == {}                 # no boat → no boat row
    assert day_overview(vs)["total_bookings"] == 1
    assert day_overview(None) == {"total_bookings": 0, "coaches": [], "drivers": [], "boats": []}


def test_rank_ties_keep_discovery_order():
    stats = {"Bob": Usage(1, 30), "Alice": Usage(2, 90), "Chen": Usage(1, 45)}
    assert [name for name, _ in rank(stats)] == ["Alice", "Bob", "Chen"]


def test_boats_ranked_by_count():
    vs = views([raw_booking(1, boat_id=2), raw_booking(2, boat_id=1, start="10:00"),
                raw_booking(3, boat_id=1, start="12:00")])
    assert [row["name"] for row in day_overview(vs)["boats"]] == ["G23", "G21"]
