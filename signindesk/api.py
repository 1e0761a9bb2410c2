"""Client for the sign-in backend: desk bookings, free spaces and the calendar."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, TypeVar

import requests

from signindesk.request import Request, RequestError

BASE_URL = "https://backend.signinapp.com"
SITE_ID = 34098

_BOOKINGS_PATH = "/api/mobile/spaces/bookings"
_FREE_SPACES_PATH = f"/api/mobile/spaces/{SITE_ID}/search?occupancy=1"
_CALENDAR_PATH = "/api/mobile/calendar"

_TIMESTAMP = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)

T = TypeVar("T")


def _parse_time(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp; ``None`` for a missing value."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"invalid time value {value!r}")
    match = _TIMESTAMP.match(value)
    if not match:
        raise ValueError(f"invalid time value {value!r}")
    base, fraction, offset = match.groups()
    micro = (fraction or "").ljust(6, "0")[:6]
    offset = "+00:00" if offset == "Z" else offset
    return datetime.fromisoformat(f"{base}.{micro}{offset}")


def _unpadded(moment: datetime) -> str:
    return (
        f"{moment.year}-{moment.month}-{moment.day}"
        f"T{moment.hour}:{moment.minute}:{moment.second}"
    )


def _bookings_stamp(moment: datetime) -> str:
    # The backend is queried with minute, second and two-digit year in the time part.
    return (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.minute:02d}:{moment.second:02d}:{moment.year % 100:02d}Z"
    )


def _iso(moment: datetime) -> str:
    return moment.isoformat()


@dataclass
class ItemZone:
    """A zone of the office a space belongs to."""

    id: str = ""
    name: str = ""
    type: str = ""
    capacity: int = 0

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> ItemZone:
        data = data or {}
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            type=data.get("type") or "",
            capacity=data.get("capacity") or 0,
        )


@dataclass
class ItemSpace:
    """A bookable space such as a desk."""

    id: str = ""
    name: str = ""
    description: str = ""
    category: str = ""
    capacity: int = 0
    zones: list[ItemZone] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> ItemSpace:
        data = data or {}
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            description=data.get("description") or "",
            category=data.get("category") or "",
            capacity=data.get("capacity") or 0,
            zones=[ItemZone.from_json(zone) for zone in data.get("zones") or []],
        )


@dataclass
class BookSpaceRequest:
    """The body of a booking request."""

    space_id: str
    start_date: str
    end_date: str
    site_id: int = SITE_ID
    occupancy: int = 1
    note: str = ""
    send_mail: bool = True

    def to_json(self) -> dict[str, Any]:
        return {
            "site_id": self.site_id,
            "space_id": self.space_id,
            "occupancy": self.occupancy,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "note": self.note,
            "send_confirmation_email": self.send_mail,
        }


@dataclass
class BookedSpace:
    """A booking as returned when it is created."""

    id: int = 0
    site_id: int = 0
    space: ItemSpace = field(default_factory=ItemSpace)
    occupancy: int = 0
    start_date: datetime | None = None
    end_date: datetime | None = None
    note: str = ""

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> BookedSpace:
        data = data or {}
        return cls(
            id=data.get("id") or 0,
            site_id=data.get("site_id") or 0,
            space=ItemSpace.from_json(data.get("space")),
            occupancy=data.get("occupancy") or 0,
            start_date=_parse_time(data.get("start_date")),
            end_date=_parse_time(data.get("end_date")),
            note=data.get("note") or "",
        )


@dataclass
class BookingEntry:
    """One of the user's bookings, dated by its end."""

    id: int = 0
    site_id: int = 0
    space: ItemSpace = field(default_factory=ItemSpace)
    date: datetime | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> BookingEntry:
        data = data or {}
        return cls(
            id=data.get("id") or 0,
            site_id=data.get("site_id") or 0,
            space=ItemSpace.from_json(data.get("space")),
            date=_parse_time(data.get("end_date")),
        )


@dataclass
class AttendanceDay:
    """Visits and bookings recorded for one calendar day."""

    visits: list[dict[str, Any]] = field(default_factory=list)
    bookings: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> AttendanceDay:
        data = data or {}
        return cls(
            visits=list(data.get("visits") or []),
            bookings=list(data.get("bookings") or []),
        )


class SigninClient:
    """Calls the sign-in backend on behalf of the holder of ``bearer``."""

    def __init__(
        self,
        bearer: str,
        session: requests.Session | None = None,
        base_url: str = BASE_URL,
    ) -> None:
        self.bearer = bearer
        self.session = session
        self.base_url = base_url.rstrip("/")

    def _request(self, body: Any, url: str, method: str, status: int) -> Request:
        request = (
            Request(body)
            .with_url(url)
            .with_method(method)
            .with_signin_headers(self.bearer)
            .with_expected_status(status)
        )
        if self.session is not None:
            request.with_session(self.session)
        return request

    @staticmethod
    def _call(prefix: str, request: Request, parse: Callable[[Any], T]) -> T:
        try:
            return parse(request.send())
        except RequestError as exc:
            raise RequestError(f"{prefix}: {exc}") from exc
        except (ValueError, TypeError, AttributeError) as exc:
            raise RequestError(f"{prefix}: cannot read response body: {exc}") from exc

    def book_space(self, request: BookSpaceRequest) -> BookedSpace:
        """Create a booking; the backend answers 201 Created."""
        call = self._request(
            request.to_json(), self.base_url + _BOOKINGS_PATH, "POST", 201
        ).with_response_body()
        return self._call("calling book space", call, BookedSpace.from_json)

    def cancel_booking(self, booking_id: int) -> None:
        """Delete a booking; the backend answers 204 No Content."""
        url = f"{self.base_url}{_BOOKINGS_PATH}/{booking_id}"
        call = self._request({"BookingID": booking_id}, url, "DELETE", 204)
        self._call("calling cancel booking", call, lambda _: None)

    def list_bookings(self, start: datetime, end: datetime) -> list[BookingEntry]:
        """Return the user's bookings between ``start`` and ``end``."""
        url = (
            f"{self.base_url}{_BOOKINGS_PATH}"
            f"?start_date={_bookings_stamp(start)}&end_date={_bookings_stamp(end)}"
        )
        body = {"From": _iso(start), "To": _iso(end)}
        call = self._request(body, url, "GET", 200).with_response_body()
        return self._call(
            "calling cancel booking",
            call,
            lambda data: [BookingEntry.from_json(item) for item in data or []],
        )

    def list_free_spaces(self, start: datetime, end: datetime) -> list[ItemSpace]:
        """Return the spaces free between ``start`` and ``end``."""
        url = (
            f"{self.base_url}{_FREE_SPACES_PATH}"
            f"&start_date={_unpadded(start)}&end_date={_unpadded(end)}"
        )
        body = {"From": _iso(start), "To": _iso(end)}
        call = self._request(body, url, "GET", 200).with_response_body()
        return self._call(
            "calling list free spaces",
            call,
            lambda data: [ItemSpace.from_json(item) for item in data or []],
        )

    def attendance(self, start: datetime, end: datetime) -> dict[str, AttendanceDay]:
        """Return visits and bookings per day, keyed by YYYY-MM-DD."""
        url = (
            f"{self.base_url}{_CALENDAR_PATH}"
            f"?startDate={_unpadded(start)}&endDate={_unpadded(end)}"
        )
        body = {"From": _iso(start), "To": _iso(end)}
        call = self._request(body, url, "GET", 200).with_response_body()
        return self._call(
            "calling calendar",
            call,
            lambda data: {
                day: AttendanceDay.from_json(entry) for day, entry in (data or {}).items()
            },
        )