"""
Usage summaries for overview displays.

Tracks:
- Total bookings
- Per-coach / per-driver / per-boat {count, total_minutes}, ranked by count
- Report completion across a report board
"""
from dataclasses import dataclass


@dataclass
class Usage:
    count: int = 0
    total_minutes: int = 0

    def add(self, minutes: int):
        self.count += 1
        self.total_minutes += minutes


def rank(usage: dict) -> list[tuple[str, Usage]]:
    """Descending by count; ties keep discovery order (sorted() is stable)."""
    return sorted(usage.items(), key=lambda item: item[1].count, reverse=True)


def coach_usage(views: list) -> dict[str, Usage]:
    stats: dict[str, Usage] = {}
    for view in views or []:
        if view is None:
            continue
        for coach in view.coaches:
            if coach is None or not coach.name:
                continue
            stats.setdefault(coach.name, Usage()).add(view.duration_min)
    return stats


def driver_usage(views: list) -> dict[str, Usage]:
    """Facility bookings are skipped: nobody drives a trampoline."""
    stats: dict[str, Usage] = {}
    for view in views or []:
        if view is None or view.is_facility:
            continue
        for driver in view.drivers:
            if driver is None or not driver.name:
                continue
            stats.setdefault(driver.name, Usage()).add(view.duration_min)
    return stats


def boat_usage(views: list) -> dict[str, Usage]:
    stats: dict[str, Usage] = {}
    for view in views or []:
        if view is None or not view.boat_name:
            continue
        stats.setdefault(view.boat_name, Usage()).add(view.duration_min)
    return stats


def day_overview(views: list) -> dict:
    """
    Fold a day's (or period's) booking views into ranked summaries.
    Entries without a name are dropped.
    """
    views = [v for v in (views or []) if v is not None]
    return {
        "total_bookings": len(views),
        "coaches": _as_rows(rank(coach_usage(views))),
        "drivers": _as_rows(rank(driver_usage(views))),
        "boats": _as_rows(rank(boat_usage(views))),
    }


def completion_metrics(board: list) -> dict:
    """
    Compute completion metrics for a report board.
    """
    total = len(board)
    fully = sum(1 for e in board if e.status.fully_reported)

    pending_coach = sum(
        1 for e in board
        if e.status.required_role.needs_coach_report and not e.status.has_coach_report
    )
    pending_driver = sum(
        1 for e in board
        if e.status.required_role.needs_driver_report and not e.status.has_driver_report
    )

    return {
        "total_entries": total,
        "fully_reported": fully,
        "pending_coach_reports": pending_coach,
        "pending_driver_reports": pending_driver,
        "completion_rate": (fully / total * 100) if total > 0 else 0.0,
    }


def _as_rows(ranked: list[tuple[str, Usage]]) -> list[dict]:
    return [
        {"name": name, "count": u.count, "total_minutes": u.total_minutes}
        for name, u in ranked
    ]
