from datetime import date, time

import pytest

from conftest import MONDAY
from models import db
from models.availability_slot import AvailabilitySlot
from services.availability import (
    available_dates,
    available_slots,
    available_start_slots,
    block_slot,
    clear_date,
    clamp_weeks,
    create_manual_slots,
    delete_slot,
    unblock_slot,
)
from services.errors import Conflict, NotFound, ValidationFailed


@pytest.mark.parametrize("raw, expected", [(0, 1), (4, 4), (12, 12), (50, 12), ("abc", 4), (None, 4)])
def test_clamp_weeks(raw, expected):
    assert clamp_weeks(raw) == expected


def test_available_dates_are_distinct_and_bounded(app, make_slots):
    make_slots(day=MONDAY, count=3)
    make_slots(day=date(2030, 1, 9), count=1, status="blocked")
    make_slots(day=date(2030, 1, 14), count=2)
    make_slots(day=date(2030, 3, 1), count=1)

    assert available_dates(MONDAY, weeks=1) == [MONDAY, date(2030, 1, 14)]
    assert available_dates(MONDAY, weeks=0) == [MONDAY, date(2030, 1, 14)]
    assert date(2030, 3, 1) in available_dates(MONDAY, weeks=12)


def test_available_slots_are_ordered_and_open_only(app, make_slots):
    make_slots(start="10:00", count=1)
    make_slots(start="09:00", count=1)
    make_slots(start="09:30", count=1, status="blocked")

    assert [s.start_time for s in available_slots(MONDAY)] == [time(9, 0), time(10, 0)]


def test_start_slots_need_a_contiguous_run(app, make_service, make_slots):
    service_id = make_service(duration_min=60)
    a = make_slots(start="09:00", count=3)
    make_slots(start="10:30", count=1, status="blocked")
    b = make_slots(start="11:00", count=1)

    starts = available_start_slots(MONDAY, service_id)

    assert [s["slot"].id for s in starts] == [a[0], a[1]]
    assert starts[0]["slot_ids"] == [a[0], a[1]]
    assert starts[1]["end_time"] == time(10, 30)
    assert b[0] not in [s["slot"].id for s in starts]


def test_start_slots_unknown_service(app):
    with pytest.raises(NotFound):
        available_start_slots(MONDAY, 999)


def test_manual_slots_skip_existing_positions(app, make_slots):
    make_slots(day=MONDAY, start="14:00", count=1)

    created, skipped = create_manual_slots(["2030-01-07", "2030-01-08"], "14:00", "14:30")

    assert [s.date for s in created] == [date(2030, 1, 8)]
    assert skipped == [MONDAY]
    assert AvailabilitySlot.query.count() == 2


@pytest.mark.parametrize("dates, start, end", [
    ([], "09:00", "09:30"),
    (["07/01/2030"], "09:00", "09:30"),
    (["2030-01-07"], "09:30", "09:00"),
])
def test_manual_slots_validation(app, dates, start, end):
    with pytest.raises(ValidationFailed):
        create_manual_slots(dates, start, end)


def test_delete_only_while_available(app, make_service, make_slots, book):
    service_id = make_service(duration_min=30)
    free, taken = make_slots(count=2)
    book([taken], service_id)

    with pytest.raises(Conflict):
        delete_slot(taken)
    assert db.session.get(AvailabilitySlot, taken).status == "booked"

    delete_slot(free)
    assert db.session.get(AvailabilitySlot, free) is None

    with pytest.raises(NotFound):
        delete_slot(free)


def test_block_and_unblock(app, make_service, make_slots, book):
    service_id = make_service(duration_min=30)
    slot_id, taken = make_slots(count=2)
    book([taken], service_id)

    assert block_slot(slot_id).status == "blocked"
    with pytest.raises(Conflict):
        block_slot(slot_id)
    with pytest.raises(Conflict):
        delete_slot(slot_id)
    assert unblock_slot(slot_id).status == "available"

    with pytest.raises(Conflict):
        block_slot(taken)
    with pytest.raises(NotFound):
        unblock_slot(999)


def test_clear_date_removes_only_open_slots(app, make_service, make_slots, book):
    service_id = make_service(duration_min=30)
    open_ids = make_slots(count=3)
    blocked = make_slots(start="11:00", count=1, status="blocked")
    book([open_ids[0]], service_id)
    other_day = make_slots(day=date(2030, 1, 8), count=1)

    assert clear_date(MONDAY) == 2

    remaining = {s.id: s.status for s in AvailabilitySlot.query.all()}
    assert remaining == {open_ids[0]: "booked", blocked[0]: "blocked", other_day[0]: "available"}
    assert clear_date(MONDAY) == 0


def test_past_dates_cannot_be_opened_or_cleared(app):
    with pytest.raises(ValidationFailed) as exc:
        create_manual_slots(["2030-01-07", "2020-01-06"], "09:00", "09:30")
    assert exc.value.fields == ["dates"]
    assert AvailabilitySlot.query.count() == 0

    with pytest.raises(ValidationFailed):
        clear_date(date(2020, 1, 6))
