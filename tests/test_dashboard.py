from datetime import date, timedelta

import pytest

from conftest import MONDAY
from services.booking_lifecycle import set_status
from services.dashboard import dashboard_summary, todays_schedule, week_load
from utils.dates import business_today


@pytest.fixture
def monday_bookings(make_service, make_slots, book):
    service_id = make_service(duration_min=60)
    late = book(make_slots(start="09:00", count=2), service_id)
    early = book(make_slots(start="08:00", count=2), service_id, customer_name="Bea")
    pending = book(make_slots(start="10:00", count=2), service_id, customer_name="Cleo")
    later_in_week = book(make_slots(day=date(2030, 1, 9), count=2), service_id, customer_name="Dee")
    set_status(late, "confirmed")
    set_status(early, "confirmed")
    return early, late, pending, later_in_week


def test_schedule_lists_confirmed_bookings_by_start(app, monday_bookings):
    early, late, _, _ = monday_bookings

    assert [b.id for b in todays_schedule(MONDAY)] == [early, late]
    assert todays_schedule(date(2030, 1, 8)) == []


def test_week_load_is_zero_filled(app, monday_bookings, make_slots):
    make_slots(day=date(2030, 1, 10), count=3)

    load = week_load(MONDAY)

    assert len(load) == 7
    assert load[0] == (MONDAY, 6)
    assert load[1] == (date(2030, 1, 8), 0)
    assert load[2] == (date(2030, 1, 9), 2)
    assert load[3] == (date(2030, 1, 10), 0)
    assert load[-1] == (MONDAY + timedelta(days=6), 0)


def test_cancelled_booking_drops_out(app, monday_bookings):
    early, late, _, _ = monday_bookings
    set_status(late, "cancelled")

    summary = dashboard_summary(MONDAY)

    assert [b.id for b in summary["today"]] == [early]
    assert summary["week"][0] == (MONDAY, 4)
    assert summary["pending"] == 2


def test_dashboard_route(client, admin_headers, make_service, make_slots, book):
    today = business_today()
    booking_id = book(make_slots(day=today, start="13:00", count=2), make_service(duration_min=60))
    set_status(booking_id, "confirmed")

    assert client.get("/bookings/dashboard").status_code == 401

    r = client.get("/bookings/dashboard", headers=admin_headers)
    body = r.get_json()
    assert r.status_code == 200
    assert body["date"] == today.isoformat()
    assert [b["id"] for b in body["today"]] == [booking_id]
    assert [s["start_time"] for s in body["today"][0]["slots"]] == ["13:00", "13:30"]
    assert body["week"][0] == {"date": today.isoformat(), "booked_slots": 2}
    assert len(body["week"]) == 7
    assert body["pending"] == 0
