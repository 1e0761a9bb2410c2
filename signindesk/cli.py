"""Command line interface: book desks, list bookings and report attendance."""

from __future__ import annotations

import argparse
import contextlib
import re
import sys
from datetime import date, datetime, timedelta
from typing import Callable, Sequence

from signindesk.api import SigninClient
from signindesk.config import Config, ConfigError, instance
from signindesk.dates import InvalidDateError, date_from_string
from signindesk.request import RequestError
from signindesk.service import Service, ServiceError
from signindesk.ui import (
    Attendance,
    AttendanceFreeDay,
    AttendanceSummary,
    AttendanceWeek,
    Booking,
    Desk,
    format_attendance,
    format_bookings,
    format_desks,
    format_free_days,
)

_INTEGER = re.compile(r"[+-]?\d+")
_ZERO_TIME = datetime(1, 1, 1)
_DEFAULT_WEEKS = 12
_FREE_DAYS_LOOKBACK = 100


class _CommandError(Exception):
    """A command failed; the message is shown to the user."""


_FAILURES = (_CommandError, ServiceError, ConfigError, RequestError, ValueError)


def _to_int(value: str) -> int:
    if not _INTEGER.fullmatch(value):
        raise ValueError(f'invalid syntax: "{value}"')
    return int(value)


def parse_book_args(args: Sequence[str]) -> tuple[int, list[datetime]]:
    """Return the number of consecutive days and the dates to book.

    Either ``<days> <start-date>`` or a list of YYYYMMDD dates. A date that
    cannot be parsed is reported and replaced by the zero date.
    """
    if not args:
        raise ValueError("invalid number of arguments")

    def parse(value: str) -> datetime:
        try:
            return date_from_string(value)
        except InvalidDateError as exc:
            print(f"Error! {exc}")
            return _ZERO_TIME

    try:
        items = _to_int(args[0])
    except ValueError:
        return 1, [parse(value) for value in args]

    if len(args) != 2:
        raise ValueError("invalid number of arguments")
    return items, [parse(args[1])]


def parse_attendance_args(args: Sequence[str]) -> int:
    """Return the number of weeks to report, twelve when none is given."""
    if not args:
        return _DEFAULT_WEEKS
    try:
        return _to_int(args[0])
    except ValueError as exc:
        raise ValueError(f"parsing weeks: {exc}") from exc


def free_days_listing(config: Config, today: date) -> list[AttendanceFreeDay]:
    """Return the configured free days among the last hundred days, oldest first."""
    day0 = today.date() if isinstance(today, datetime) else today
    found = []
    for offset in range(-_FREE_DAYS_LOOKBACK, 1):
        day = day0 + timedelta(days=offset)
        reason = config.attendance_free_days.get(f"{day:%Y-%m-%d}")
        if reason is not None:
            found.append(AttendanceFreeDay(date=day, reason=reason))
    return found


def add_free_days(config: Config, start: date, days: int, reason: str) -> None:
    """Mark ``days`` consecutive days from ``start`` as free for ``reason``."""
    if days < 1:
        raise ValueError("number of days should be greater than 0")
    if not reason:
        raise ValueError("reason should not be empty")
    for offset in range(days):
        day = start + timedelta(days=offset)
        config.attendance_free_days[f"{day:%Y-%m-%d}"] = reason


def _service(config: Config) -> Service:
    return Service(SigninClient(config.bearer), config)


def _reload(config: Config) -> None:
    with contextlib.suppress(ConfigError):
        config.load()


def _show_config(args: argparse.Namespace, config: Config) -> None:
    _reload(config)
    print(config.to_json())


def _set_bearer(args: argparse.Namespace, config: Config) -> None:
    _reload(config)
    config.bearer = args.value
    config.save()


def _set_free_days(args: argparse.Namespace, config: Config) -> None:
    _reload(config)
    try:
        start = date_from_string(args.start_date)
    except InvalidDateError as exc:
        raise _CommandError(f"invalid start date: {exc}") from exc
    try:
        days = _to_int(args.number_of_days)
    except ValueError as exc:
        raise _CommandError(f"invalid number of days: {exc}") from exc
    add_free_days(config, start, days, args.reason)
    config.save()


def _book(args: argparse.Namespace, config: Config) -> None:
    service = _service(config)
    items, dates = parse_book_args(args.rest)
    try:
        results = service.book_space(args.desk, items, dates)
    except ServiceError as exc:
        raise _CommandError(f"calling service BookSpace: {exc}") from exc
    bookings = [
        Booking(
            id=result.id,
            desk=Desk(id=result.desk_id, name=result.desk_name, zone_name=result.zone_name),
            date=result.date or _ZERO_TIME,
        )
        for result in results
    ]
    print(format_bookings(bookings))


def _cancel(args: argparse.Namespace, config: Config) -> None:
    try:
        _service(config).cancel_booking(args.date)
    except ServiceError as exc:
        raise _CommandError(f"calling service BookSpace: {exc}") from exc
    rule = "-" * 21
    print(rule)
    print("Booking cancelled")
    print(rule)


def _list_bookings(args: argparse.Namespace, config: Config) -> None:
    try:
        items = _service(config).list_bookings(args.date)
    except ServiceError as exc:
        raise _CommandError(f"calling service ListBookings: {exc}") from exc
    bookings = [
        Booking(
            id=item.id,
            desk=Desk(id=item.desk_id, name=item.desk_name, zone_name=item.zone_name),
            date=item.date or _ZERO_TIME,
        )
        for item in items
    ]
    print(format_bookings(bookings))


def _list_free(args: argparse.Namespace, config: Config) -> None:
    try:
        spaces = _service(config).list_free_spaces(args.date)
    except ServiceError as exc:
        raise _CommandError(f"calling service ListFreeSpaces: {exc}") from exc
    desks = [
        Desk(id=space.id, name=space.desk_name, zone_name=space.zone_name)
        for space in spaces
    ]
    print(format_desks(desks))


def _attendance(args: argparse.Namespace, config: Config) -> None:
    if args.listfree:
        print(format_free_days(free_days_listing(config, date.today())))
        return

    service = _service(config)
    weeks = parse_attendance_args(args.weeks)
    try:
        report = service.attendance(weeks)
    except ServiceError as exc:
        raise _CommandError(f"calling service BookSpace: {exc}") from exc

    count = len(report.items)
    rows = {
        item.relative_week + count - 1: AttendanceWeek(
            relative_week=item.relative_week,
            week_start_date=item.week_start_date,
            week_end_date=item.week_end_date,
            week=item.week,
            working_days=item.working_days,
            bookings=item.bookings,
            visits=item.visits,
            visits_per_working_day=100 * item.visits_per_working_day,
        )
        for item in report.items.values()
    }
    totals = report.summary
    summary = AttendanceSummary(
        working_days=totals.working_days,
        visits=totals.visits,
        avg_office_time_to_day=100 * totals.avg_office_time_to_day,
        avg_office_time_to_week=100 * totals.avg_office_time_to_week,
    )
    print(format_attendance(Attendance(weeks=rows, summary=summary)))


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser with every command of the tool."""
    parser = argparse.ArgumentParser(
        prog="signin",
        description="signin is a simple CLI to book places at the office using sign in API",
    )
    commands = parser.add_subparsers(dest="command", metavar="command")

    config = commands.add_parser("config", help="display config", description="display config")
    config.set_defaults(handler=_show_config)
    config_commands = config.add_subparsers(dest="config_command", metavar="command")

    bearer = config_commands.add_parser(
        "bearer", help="set the signin Bearer", epilog="signin config bearer <value>"
    )
    bearer.add_argument("value")
    bearer.set_defaults(handler=_set_bearer)

    free_days = config_commands.add_parser(
        "attendance-free-days",
        aliases=["afd"],
        help="set attendance free days",
        epilog="signin config afd <start-date> <number-of-days> <reason>",
    )
    free_days.add_argument("start_date")
    free_days.add_argument("number_of_days")
    free_days.add_argument("reason")
    free_days.set_defaults(handler=_set_free_days)

    book = commands.add_parser(
        "book",
        aliases=["b"],
        help="book a desk",
        epilog="signin book <DeskNumber> <number-of-consecutive-days> <start-date YYYYMMDD>",
    )
    book.add_argument("desk")
    book.add_argument("rest", nargs="*")
    book.set_defaults(handler=_book)

    cancel = commands.add_parser(
        "cancel", aliases=["c"], help="cancel desk reservations for a date",
        epilog="signin cancel 20231008",
    )
    cancel.add_argument("date")
    cancel.set_defaults(handler=_cancel)

    free = commands.add_parser(
        "list-free", aliases=["lf"], help="lists all the free spaces in a given date",
        epilog="signin list-free 20230901",
    )
    free.add_argument("date")
    free.set_defaults(handler=_list_free)

    listing = commands.add_parser(
        "list-bookings", aliases=["lb"],
        help="list the active user bookings until a given date",
        epilog="signin list-bookings 20230901",
    )
    listing.add_argument("date")
    listing.set_defaults(handler=_list_bookings)

    attendance = commands.add_parser(
        "attendance", aliases=["a"], help="attendance per week",
        epilog="signin attendance 6",
    )
    attendance.add_argument("weeks", nargs="*")
    attendance.add_argument(
        "-f", "--listfree", action="store_true", help="List free attendance days"
    )
    attendance.set_defaults(handler=_attendance)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line tool; return the process exit status."""
    args = build_parser().parse_args(argv)
    config = instance()
    _reload(config)

    handler: Callable[[argparse.Namespace, Config], None] | None = getattr(
        args, "handler", None
    )
    if handler is None:
        return 0
    try:
        handler(args, config)
    except _FAILURES as exc:
        print(f"Error processing command :  {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())