"""Display models and plain-text tables for bookings, desks and attendance."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable

_ID_WIDTH = 10
_DATE_WIDTH = 25
_DESK_WIDTH = 25
_SITE_WIDTH = 10
_WEEK_WIDTH = 10


@dataclass
class Desk:
    id: str
    name: str
    zone_name: str


@dataclass
class Booking:
    id: int
    desk: Desk
    date: date


@dataclass
class AttendanceWeek:
    relative_week: int
    week_start_date: date
    week_end_date: date
    week: str
    working_days: int
    bookings: int
    visits: int
    visits_per_working_day: float


@dataclass
class AttendanceSummary:
    working_days: int
    visits: int
    avg_office_time_to_day: float
    avg_office_time_to_week: float


@dataclass
class Attendance:
    weeks: dict[int, AttendanceWeek]
    summary: AttendanceSummary


@dataclass
class AttendanceFreeDay:
    date: date
    reason: str


def _day(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def _fixed(value: float, width: int = 0) -> str:
    if math.isnan(value):
        text = "NaN"
    elif math.isinf(value):
        text = "+Inf" if value > 0 else "-Inf"
    else:
        text = f"{value:.2f}"
    return text.rjust(width)


def _table(title: str, rows: Iterable[str]) -> tuple[str, list[str]]:
    line = "-" * (len(title) + 5)
    return line, [title, line, *rows, line]


def format_bookings(bookings: Iterable[Booking]) -> str:
    """Return a table of bookings."""
    title = (
        f"{'ID':>{_ID_WIDTH}} | {'Date':<{_DATE_WIDTH}} | "
        f"{'Zone':<{_DESK_WIDTH}} | {'Desk':<{_SITE_WIDTH}} "
    )
    rows = (
        f"{b.id:>{_ID_WIDTH}d} | {_day(b.date):<{_DATE_WIDTH}} | "
        f"{b.desk.zone_name:<{_DESK_WIDTH}} | {b.desk.name:<{_SITE_WIDTH}} "
        for b in bookings
    )
    _, lines = _table(title, rows)
    return "\n".join(lines)


def format_desks(desks: Iterable[Desk]) -> str:
    """Return a table of desks."""
    title = f"{'ID':>{_ID_WIDTH}} | {'Zone':>{_DESK_WIDTH}} | {'Desk':>{_SITE_WIDTH}} "
    rows = (
        f"{d.id:>{_ID_WIDTH}} | {d.zone_name:>{_DESK_WIDTH}} | {d.name:>{_SITE_WIDTH}} "
        for d in desks
    )
    _, lines = _table(title, rows)
    return "\n".join(lines)


def format_attendance(attendance: Attendance) -> str:
    """Return the weekly attendance table followed by its summary."""
    headings = ["WrkDays", "Bookings", "Visits", "Visits/WkDay"]
    title = (
        f"{'':>{_ID_WIDTH}} | {'Week':<{_WEEK_WIDTH}} | {'Start':<{_DATE_WIDTH}} | "
        f"{'End':<{_DATE_WIDTH}} | "
        + " | ".join(f"{heading:<{_ID_WIDTH}}" for heading in headings)
        + " "
    )
    rows = []
    for key in sorted(attendance.weeks):
        w = attendance.weeks[key]
        rows.append(
            f"{w.relative_week:>{_ID_WIDTH}d} | {w.week:<{_WEEK_WIDTH}} | "
            f"{_day(w.week_start_date):<{_DATE_WIDTH}} | "
            f"{_day(w.week_end_date):<{_DATE_WIDTH}} | "
            f"{w.working_days:>{_ID_WIDTH}d} | {w.bookings:>{_ID_WIDTH}d} | "
            f"{w.visits:>{_ID_WIDTH}d} | {_fixed(w.visits_per_working_day, _ID_WIDTH)}%"
        )
    line, lines = _table(title, rows)
    summary = attendance.summary
    lines += [
        f"Total Working Days: {summary.working_days}",
        f"Total Visits: {summary.visits}",
        f"Avg Office Time (to day): {_fixed(summary.avg_office_time_to_day)}%",
        f"Avg Office Time (to week): {_fixed(summary.avg_office_time_to_week)}%",
        line,
    ]
    return "\n".join(lines)


def format_free_days(days: Iterable[AttendanceFreeDay]) -> str:
    """Return a table of attendance-free days with their reasons."""
    title = f"{'Date':>{_DATE_WIDTH}} | {'Reason':<{_ID_WIDTH}} "
    rows = (f"{_day(d.date):>{_DATE_WIDTH}} | {d.reason:<{_ID_WIDTH}} " for d in days)
    _, lines = _table(title, rows)
    return "\n".join(lines)