import json
import math
import re
from datetime import datetime, timedelta
from urllib.parse import parse_qs, urlsplit

import pytest
import responses

from signindesk.api import SigninClient
from signindesk.config import Config
from signindesk.service import ServiceError, Service

BASE = "https://signin.example.com"
BOOKINGS_URL = BASE + "/api/mobile/spaces/bookings"
BOOKINGS_QUERY = re.compile(re.escape(BOOKINGS_URL) + r"\?.*")
SEARCH = re.compile(re.escape(BASE + "/api/mobile/spaces/34098/search") + r"\?.*")
CALENDAR = re.compile(re.escape(BASE + "/api/mobile/calendar") + r"\?.*")


def _space(space_id, name, zone="Zone A"):
    return {"id": space_id, "name": name, "zones": [{"name": zone}]}


def _booking(booking_id, space_id="s-1", name="Desk 1"):
    return {
        "id": booking_id,
        "space": _space(space_id, name),
        "end_date": "2023-10-08T22:59:59Z",
    }


@pytest.fixture
def rsps():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as mock:
        yield mock


@pytest.fixture
def config(tmp_path):
    return Config(path=tmp_path / "signin.config")


@pytest.fixture
def service(config):
    return Service(SigninClient("token", base_url=BASE), config)


def _calls(rsps, method):
    return [call for call in rsps.calls if call.request.method == method]


def _query(call):
    return parse_qs(urlsplit(call.request.url).query)


def test_book_space_known_desk(rsps, service, config):
    config.desks[59] = "space-59"
    rsps.add(
        responses.POST,
        BOOKINGS_URL,
        json={
            "id": 7,
            "space": _space("space-59", "Desk 59"),
            "end_date": "2023-05-24T22:59:59.000Z",
        },
        status=201,
    )
    results = service.book_space("59", 1, [datetime(2023, 5, 24)])
    assert len(results) == 1
    assert results[0].id == 7
    assert results[0].desk_id == "space-59"
    assert results[0].desk_name == "Desk 59"
    assert results[0].zone_name == "Zone A"
    body = json.loads(_calls(rsps, "POST")[0].request.body)
    assert body["space_id"] == "space-59"
    assert body["end_date"] == "2023-05-24T22:59:59.000Z"
    assert body["site_id"] == 34098
    assert body["send_confirmation_email"] is True


def test_book_space_consecutive_days(rsps, service, config):
    config.desks[59] = "space-59"
    rsps.add(
        responses.POST,
        BOOKINGS_URL,
        json={"id": 1, "space": _space("space-59", "Desk 59")},
        status=201,
    )
    dates = [datetime(2023, 5, 24)]
    results = service.book_space("59", 3, dates)
    assert len(results) == 3
    assert len(dates) == 1
    posts = _calls(rsps, "POST")
    ends = [
        datetime.strptime(json.loads(c.request.body)["end_date"], "%Y-%m-%dT%H:%M:%S.000Z")
        for c in posts
    ]
    assert [b - a for a, b in zip(ends, ends[1:])] == [timedelta(days=1)] * 2
    starts = [
        datetime.strptime(json.loads(c.request.body)["start_date"], "%Y-%m-%dT%H:%M:%S.000Z")
        for c in posts
    ]
    assert all(start < end for start, end in zip(starts, ends))


def test_book_space_invalid_desk_number(service):
    with pytest.raises(ServiceError, match="invalid desk number : abc"):
        service.book_space("abc", 1, [datetime(2023, 5, 24)])


def test_book_space_fetches_unknown_desk_ids(rsps, service, config):
    rsps.add(
        responses.GET,
        SEARCH,
        json=[
            _space("s-12", "Desk 12"),
            _space("lobby", "Lobby"),
            _space("other", "Desk abc"),
        ],
    )
    rsps.add(
        responses.POST,
        BOOKINGS_URL,
        json={"id": 3, "space": _space("s-12", "Desk 12")},
        status=201,
    )
    results = service.book_space("12", 1, [datetime(2023, 5, 24)])
    assert config.desks == {12: "s-12"}
    assert json.loads(_calls(rsps, "POST")[0].request.body)["space_id"] == "s-12"
    assert results[0].id == 3
    reloaded = Config(path=config.path)
    reloaded.load()
    assert reloaded.desks == {12: "s-12"}


def test_book_space_desk_not_found_is_reported_in_result(rsps, service):
    rsps.add(responses.GET, SEARCH, json=[])
    day = datetime(2023, 5, 24)
    results = service.book_space("99", 1, [day])
    assert len(results) == 1
    assert "desk number 99 not in Desk Map" in results[0].zone_name
    assert results[0].desk_name == "99"
    assert results[0].date == day
    assert results[0].id == 0


def test_book_space_backend_failure_is_reported_in_result(rsps, service, config):
    config.desks[59] = "space-59"
    rsps.add(responses.POST, BOOKINGS_URL, body="boom", status=500)
    results = service.book_space("59", 1, [datetime(2023, 5, 24)])
    assert results[0].zone_name.startswith("calling signin client")
    assert results[0].desk_name == "59"


def test_get_space_ids_keeps_existing_entries(rsps, service, config):
    config.desks[12] = "old"
    rsps.add(
        responses.GET,
        SEARCH,
        json=[_space("new", "Desk 12"), _space("s-13", "Desk 13")],
    )
    service.get_space_ids()
    assert config.desks == {12: "old", 13: "s-13"}


def test_get_space_ids_failure(rsps, service):
    rsps.add(responses.GET, SEARCH, body="nope", status=401)
    with pytest.raises(ServiceError, match="calling signin client"):
        service.get_space_ids()


def test_cancel_booking_deletes_each_booking(rsps, service):
    rsps.add(responses.GET, BOOKINGS_QUERY, json=[_booking(5), _booking(6)])
    rsps.add(responses.DELETE, BOOKINGS_URL + "/5", status=204)
    rsps.add(responses.DELETE, BOOKINGS_URL + "/6", status=204)
    result = service.cancel_booking("20231008")
    assert result is None
    deleted = [c.request.url.rsplit("/", 1)[1] for c in _calls(rsps, "DELETE")]
    assert deleted == ["5", "6"]
    assert len(_calls(rsps, "GET")) == 1


def test_cancel_booking_invalid_date(service):
    with pytest.raises(ServiceError, match="invalid date"):
        service.cancel_booking("2023-10-08")


def test_cancel_booking_delete_failure(rsps, service):
    rsps.add(responses.GET, BOOKINGS_QUERY, json=[_booking(5)])
    rsps.add(responses.DELETE, BOOKINGS_URL + "/5", status=404)
    with pytest.raises(ServiceError, match="calling signin client"):
        service.cancel_booking("20231008")


def test_list_free_spaces(rsps, service):
    rsps.add(
        responses.GET,
        SEARCH,
        json=[_space("a", "Desk 1", "North"), _space("b", "Desk 2", "South")],
    )
    spaces = service.list_free_spaces("20230901")
    assert [(s.id, s.desk_name, s.zone_name) for s in spaces] == [
        ("a", "Desk 1", "North"),
        ("b", "Desk 2", "South"),
    ]
    query = _query(rsps.calls[0])
    assert query["end_date"] == ["2023-9-1T21:59:59"]
    assert query["start_date"] == ["2023-8-31T22:0:0"]


def test_list_free_spaces_invalid_date(service):
    with pytest.raises(ServiceError, match="YYYYMMDD"):
        service.list_free_spaces("tomorrow")


def test_list_bookings_queries_month_by_month(rsps, service):
    for booking_id in (1, 2, 3):
        rsps.add(responses.GET, BOOKINGS_QUERY, json=[_booking(booking_id)])
    items = service.list_bookings("20230320", now=datetime(2023, 1, 10, 9, 0))
    assert len(_calls(rsps, "GET")) == 3
    assert [item.id for item in items] == [1, 2, 3]
    assert all(item.zone_name == "Zone A" for item in items)


def test_list_bookings_single_window(rsps, service):
    rsps.add(responses.GET, BOOKINGS_QUERY, json=[_booking(4), _booking(5)])
    items = service.list_bookings("20230115", now=datetime(2023, 1, 10, 9, 0))
    assert len(_calls(rsps, "GET")) == 1
    assert [item.id for item in items] == [4, 5]
    assert items[0].desk_name == "Desk 1"


def test_list_bookings_failure(rsps, service):
    rsps.add(responses.GET, BOOKINGS_QUERY, body="down", status=503)
    with pytest.raises(ServiceError, match="getting items from"):
        service.list_bookings("20230115", now=datetime(2023, 1, 10, 9, 0))


def test_list_bookings_invalid_date(service):
    with pytest.raises(ServiceError, match="invalid date"):
        service.list_bookings("2023", now=datetime(2023, 1, 10))


def test_is_working_day(service, config):
    config.attendance_free_days["2023-06-06"] = "holiday"
    assert service.is_working_day(datetime(2023, 6, 6)) is False
    assert service.is_working_day(datetime(2023, 6, 10)) is False
    assert service.is_working_day(datetime(2023, 6, 11)) is False
    assert service.is_working_day(datetime(2023, 6, 5)) is True


def test_attendance_report(rsps, service, config):
    config.attendance_free_days["2023-06-06"] = "holiday"
    rsps.add(
        responses.GET,
        CALENDAR,
        json={
            "2023-06-12": {"visits": [{"id": 1}], "bookings": [{"id": 2}, {"id": 3}]},
            "2023-06-05": {"visits": [{"id": 4}]},
        },
    )
    report = service.attendance(2, now=datetime(2023, 6, 14, 12, 0))
    assert set(report.items) == {0, -1}
    older, current = report.items[0], report.items[-1]
    assert older.relative_week == -1
    assert current.relative_week == 0
    assert current.week_start_date == datetime(2023, 6, 12)
    assert older.week_end_date - older.week_start_date == timedelta(days=6)
    assert current.week_start_date - older.week_start_date == timedelta(days=7)
    assert re.fullmatch(r"\d{4}-\d{2}", older.week)
    assert older.visits == 1
    assert current.bookings == 2
    assert older.working_days == 4
    assert current.working_days == 3
    assert current.visits_per_working_day == pytest.approx(
        current.visits / current.working_days
    )
    summary = report.summary
    assert summary.visits == 2
    assert summary.bookings == 2
    assert summary.working_days == older.working_days + current.working_days
    assert summary.avg_office_time_to_day == pytest.approx(
        summary.visits / summary.working_days
    )
    assert summary.avg_office_time_to_week < summary.avg_office_time_to_day
    assert _query(rsps.calls[0])["endDate"] == ["2023-6-14T23:59:59"]


def test_attendance_zero_weeks(rsps, service):
    rsps.add(responses.GET, CALENDAR, json={})
    report = service.attendance(0, now=datetime(2023, 6, 14))
    assert report.items == {}
    assert report.summary.working_days == 0
    assert report.summary.avg_office_time_to_day == 0.0


def test_attendance_without_working_days_gives_nan(rsps, service, config):
    config.attendance_free_days["2023-06-12"] = "holiday"
    rsps.add(responses.GET, CALENDAR, json={})
    report = service.attendance(1, now=datetime(2023, 6, 12, 8, 0))
    assert report.items[0].working_days == 0
    assert report.items[0].visits_per_working_day == 0.0
    assert math.isnan(report.summary.avg_office_time_to_day)
    assert report.summary.avg_office_time_to_week == 0.0


def test_attendance_failure(rsps, service):
    rsps.add(responses.GET, CALENDAR, body="nope", status=500)
    with pytest.raises(ServiceError, match="calling signin client"):
        service.attendance(2, now=datetime(2023, 6, 14))