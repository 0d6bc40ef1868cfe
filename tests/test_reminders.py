from datetime import date

import pytest

from models import db
from models.booking_notification import BookingNotification
from services import reminders
from services.booking_lifecycle import set_status
from services.reminders import deliver_pending, scan_for_reminders

TARGET = date(2030, 1, 7)


@pytest.fixture
def bookings_on_target(make_service, make_slots, book):
    service_id = make_service(name="Gel Manicure", duration_min=60)
    s = make_slots(day=TARGET, start="09:00", count=6)
    confirmed = book(s[0:2], service_id, customer_email="ana@example.com")
    pending = book(s[2:4], service_id, customer_email="bea@example.com")
    cancelled = book(s[4:6], service_id, customer_email="cleo@example.com")
    set_status(confirmed, "confirmed")
    set_status(cancelled, "confirmed")
    set_status(cancelled, "cancelled")
    return confirmed, pending, cancelled


def test_scan_queues_one_reminder_per_confirmed_booking(app, bookings_on_target):
    confirmed, _, _ = bookings_on_target

    assert scan_for_reminders(TARGET) == 1

    note = BookingNotification.query.one()
    assert note.booking_id == confirmed
    assert (note.type, note.channel, note.recipient) == ("reminder", "email", "ana@example.com")
    assert note.target_date == TARGET
    assert note.sent_at is None


def test_rescan_does_not_duplicate(app, bookings_on_target):
    scan_for_reminders(TARGET)

    assert scan_for_reminders(TARGET) == 0
    assert BookingNotification.query.count() == 1


def test_booking_confirmed_later_is_picked_up_on_rescan(app, bookings_on_target):
    _, pending, _ = bookings_on_target
    scan_for_reminders(TARGET)

    set_status(pending, "confirmed")

    assert scan_for_reminders(TARGET) == 1
    assert BookingNotification.query.count() == 2


def test_scan_on_empty_day(app, bookings_on_target):
    assert scan_for_reminders(date(2030, 1, 8)) == 0


def test_deliver_pending_stamps_results(app, bookings_on_target, monkeypatch):
    _, pending, _ = bookings_on_target
    set_status(pending, "confirmed")
    scan_for_reminders(TARGET)
    outbox = []

    def fake_send(to_email, subject, body):
        outbox.append((to_email, subject, body))
        if to_email.startswith("bea"):
            return False, "mailbox unavailable"
        return True, None

    monkeypatch.setattr(reminders, "send_email", fake_send)

    assert deliver_pending() == (1, 1)

    notes = {n.recipient: n for n in BookingNotification.query.all()}
    assert notes["ana@example.com"].sent_at is not None
    assert notes["bea@example.com"].error == "mailbox unavailable"
    to_ana = [body for to, _, body in outbox if to == "ana@example.com"][0]
    assert "Gel Manicure" in to_ana
    assert "09:00 to 10:00" in to_ana

    # nothing left to send
    assert deliver_pending() == (0, 0)


def test_deliver_without_smtp_config_records_error(app, bookings_on_target):
    app.config["SMTP_HOST"] = None
    scan_for_reminders(TARGET)

    assert deliver_pending() == (0, 1)
    assert db.session.query(BookingNotification.error).scalar() == "Email not configured"


def test_booking_cancelled_after_scan_gets_no_email(app, bookings_on_target, monkeypatch):
    confirmed, _, _ = bookings_on_target
    scan_for_reminders(TARGET)
    set_status(confirmed, "cancelled")
    outbox = []
    monkeypatch.setattr(reminders, "send_email", lambda to, subject, body: outbox.append(to) or (True, None))

    assert deliver_pending() == (0, 0)

    assert outbox == []
    note = BookingNotification.query.one()
    assert note.sent_at is None
    assert note.error == "booking cancelled"
