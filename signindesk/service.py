"""Desk booking and attendance operations built on the sign-in client."""

from __future__ import annotations

import contextlib
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from signindesk.api import BookSpaceRequest, ItemSpace, SigninClient
from signindesk.config import Config, ConfigError, instance
from signindesk.dates import InvalidDateError, date_from_string
from signindesk.request import RequestError

_INTEGER = re.compile(r"[+-]?\d+")


class ServiceError(Exception):
    """Raised when a service operation cannot be completed."""


@dataclass
class BookSpaceResult:
    """Outcome of booking a desk for one day; failures carry the error as zone."""

    id: int = 0
    desk_id: str = ""
    desk_name: str = ""
    zone_name: str = ""
    date: datetime | None = None


@dataclass
class BookingItem:
    """One of the user's bookings."""

    id: int
    date: datetime | None
    desk_id: str
    desk_name: str
    zone_name: str


@dataclass
class FreeSpace:
    """A desk that can still be booked."""

    id: str
    desk_name: str
    zone_name: str


@dataclass
class AttendanceItem:
    """Attendance figures for one week."""

    relative_week: int
    week_start_date: datetime
    week_end_date: datetime
    week: str
    working_days: int = 0
    bookings: int = 0
    visits: int = 0
    visits_per_working_day: float = 0.0


@dataclass
class AttendanceTotals:
    """Attendance figures over the whole reported period."""

    working_days: int = 0
    visits: int = 0
    bookings: int = 0
    avg_office_time_to_day: float = 0.0
    avg_office_time_to_week: float = 0.0


@dataclass
class AttendanceReport:
    """Weekly attendance keyed 0 (oldest week) down to -(weeks - 1)."""

    items: dict[int, AttendanceItem] = field(default_factory=dict)
    summary: AttendanceTotals = field(default_factory=AttendanceTotals)


def _atoi(value: str) -> int:
    if not _INTEGER.fullmatch(value):
        raise ValueError(f"invalid integer {value!r}")
    return int(value)


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _add_months(moment: datetime, months: int) -> datetime:
    """Add months, letting a day past the month's end roll into the next one."""
    total = moment.month - 1 + months
    first = moment.replace(year=moment.year + total // 12, month=total % 12 + 1, day=1)
    return first + timedelta(days=moment.day - 1)


def _stamp(moment: datetime) -> str:
    return f"{moment:%Y-%m-%dT%H:%M:%S}.{moment.microsecond // 1000:03d}Z"


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return math.nan if numerator == 0 else math.copysign(math.inf, numerator)
    return numerator / denominator


def _zone_name(space: ItemSpace) -> str:
    if not space.zones:
        raise ServiceError(f"space {space.name or space.id} has no zone")
    return space.zones[0].name


def _parse_date(value: str, prefix: str | None = None):
    try:
        return date_from_string(value)
    except InvalidDateError as exc:
        message = f"{prefix}: {exc}" if prefix else str(exc)
        raise ServiceError(message) from exc


class Service:
    """Operations of the command line tool, backed by a sign-in client."""

    def __init__(self, client: SigninClient, config: Config | None = None) -> None:
        self.client = client
        self.config = config if config is not None else instance()

    def book_space(
        self, desk_number: str, items: int, dates: list[datetime]
    ) -> list[BookSpaceResult]:
        """Book a desk on each date, plus ``items - 1`` days after the first."""
        try:
            desk = _atoi(desk_number)
        except ValueError as exc:
            raise ServiceError(f"invalid desk number : {desk_number}") from exc

        days = list(dates)
        if items > 1:
            if not days:
                raise ServiceError("no date to start booking from")
            first = days[0]
            days.extend(first + timedelta(days=offset) for offset in range(1, items))

        results = []
        for day in days:
            try:
                results.append(self._book_one(desk, day))
            except ServiceError as exc:
                results.append(
                    BookSpaceResult(date=day, desk_name=desk_number, zone_name=str(exc))
                )
        return results

    def _book_one(self, desk: int, day: datetime) -> BookSpaceResult:
        end = day + timedelta(hours=22, minutes=59, seconds=59)
        start = end - timedelta(hours=24) + timedelta(seconds=1)

        space_id = self.config.desks.get(desk)
        if space_id is None:
            try:
                self.get_space_ids()
            except ServiceError as exc:
                raise ServiceError(f"getting desk IDs: {exc}") from exc
            space_id = self.config.desks.get(desk)
            if space_id is None:
                raise ServiceError(f"desk number {desk} not in Desk Map")

        request = BookSpaceRequest(
            space_id=space_id, start_date=_stamp(start), end_date=_stamp(end)
        )
        try:
            booked = self.client.book_space(request)
        except RequestError as exc:
            raise ServiceError(f"calling signin client: {exc}") from exc

        return BookSpaceResult(
            id=booked.id,
            desk_id=booked.space.id,
            desk_name=booked.space.name,
            zone_name=_zone_name(booked.space),
            date=booked.end_date,
        )

    def cancel_booking(self, date: str) -> None:
        """Cancel every booking the user holds on the YYYYMMDD ``date``."""
        day = _parse_date(date, "invalid date")
        try:
            bookings = self._booking_items(day, day)
        except ServiceError as exc:
            raise ServiceError(f"getting date bookings: {exc}") from exc
        for booking in bookings:
            try:
                self.client.cancel_booking(booking.id)
            except RequestError as exc:
                raise ServiceError(f"calling signin client: {exc}") from exc

    def list_free_spaces(self, date: str) -> list[FreeSpace]:
        """Return the desks free on the YYYYMMDD ``date``."""
        day = _parse_date(date)
        end = day + timedelta(hours=21, minutes=59, seconds=59)
        start = day - timedelta(days=1) + timedelta(hours=22)
        try:
            spaces = self.client.list_free_spaces(start, end)
        except RequestError as exc:
            raise ServiceError(f"calling signin client: {exc}") from exc
        return [
            FreeSpace(id=space.id, desk_name=space.name, zone_name=_zone_name(space))
            for space in spaces
        ]

    def list_bookings(
        self, end_date: str, now: datetime | None = None
    ) -> list[BookingItem]:
        """Return the user's bookings from today up to the YYYYMMDD ``end_date``."""
        now = now if now is not None else datetime.now()
        limit = _parse_date(end_date, "invalid date")

        start = now.replace(hour=22, minute=0, second=0, microsecond=0)
        found: list[BookingItem] = []
        while True:
            end = _add_months(start, 1)
            last = end > limit
            if last:
                end = limit
            try:
                found.extend(self._booking_items(start, end))
            except ServiceError as exc:
                raise ServiceError(f"getting items from {start} to {end}") from exc
            if last:
                return found
            start = end + timedelta(days=1)

    def _booking_items(self, start: datetime, end: datetime) -> list[BookingItem]:
        try:
            entries = self.client.list_bookings(start, end)
        except RequestError as exc:
            raise ServiceError(f"calling signin client: {exc}") from exc
        return [
            BookingItem(
                id=entry.id,
                date=entry.date,
                desk_id=entry.space.id,
                desk_name=entry.space.name,
                zone_name=_zone_name(entry.space),
            )
            for entry in entries
        ]

    def get_space_ids(self) -> None:
        """Record the space id of every numbered desk not yet in the desk map."""
        start = datetime(2020, 1, 1, 23, 59, 59)
        end = datetime(2020, 1, 2)
        try:
            spaces = self.client.list_free_spaces(start, end)
        except RequestError as exc:
            raise ServiceError(f"calling signin client: {exc}") from exc

        for space in spaces:
            parts = space.name.split(" ")
            if len(parts) < 2:
                continue
            try:
                number = _atoi(parts[1])
            except ValueError:
                continue
            self.config.desks.setdefault(number, space.id)

        with contextlib.suppress(ConfigError):
            self.config.save()

    def attendance(
        self, number_of_weeks: int, now: datetime | None = None
    ) -> AttendanceReport:
        """Return visits, bookings and working days for the last weeks."""
        now = now if now is not None else datetime.now()
        today = _midnight(now)
        monday = today - timedelta(days=now.isoweekday() - 1)

        start = monday - timedelta(days=7 * number_of_weeks)
        end = today + timedelta(days=1) - timedelta(seconds=1)
        try:
            calendar = self.client.attendance(start, end)
        except RequestError as exc:
            raise ServiceError(f"calling signin client: {exc}") from exc

        report = AttendanceReport()
        totals = report.summary
        whole_weeks_working_days = 0

        for index in range(number_of_weeks):
            week_start = monday - timedelta(days=7 * (number_of_weeks - index - 1))
            iso_year, iso_week, _ = week_start.isocalendar()
            item = AttendanceItem(
                relative_week=index - number_of_weeks + 1,
                week_start_date=week_start,
                week_end_date=week_start + timedelta(days=6),
                week=f"{iso_year:04d}-{iso_week:02d}",
            )

            whole_week = 0
            for offset in range(7):
                day = week_start + timedelta(days=offset)
                if self.is_working_day(day):
                    if day <= today:
                        item.working_days += 1
                    whole_week += 1
                record = calendar.get(f"{day:%Y-%m-%d}")
                if record is not None:
                    item.bookings += len(record.bookings)
                    item.visits += len(record.visits)

            if item.working_days > 0:
                item.visits_per_working_day = item.visits / item.working_days
            report.items[-index] = item

            totals.visits += item.visits
            totals.bookings += item.bookings
            totals.working_days += item.working_days
            whole_weeks_working_days += whole_week

        if report.items:
            totals.avg_office_time_to_day = _ratio(totals.visits, totals.working_days)
            totals.avg_office_time_to_week = _ratio(
                totals.visits, whole_weeks_working_days
            )
        return report

    def is_working_day(self, day: datetime) -> bool:
        """Weekdays count as working days unless configured as free."""
        if day.weekday() >= 5:
            return False
        return f"{day:%Y-%m-%d}" not in self.config.attendance_free_days