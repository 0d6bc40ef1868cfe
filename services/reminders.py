import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError

from models import db
from models.availability_slot import AvailabilitySlot, SLOT_BOOKED
from models.booking import Booking, STATUS_CONFIRMED
from models.booking_notification import BookingNotification
from services.booking_lifecycle import slots_by_id
from services.errors import TransientStorageError
from utils.dates import business_today
from utils.emailer import send_email

logger = logging.getLogger(__name__)

REMINDER = "reminder"
EMAIL = "email"

_INSERT_ATTEMPTS = 3


def _confirmed_bookings_on(target_date):
    booking_ids = [
        r.booking_id for r in
        db.session.query(AvailabilitySlot.booking_id)
        .filter(
            AvailabilitySlot.date == target_date,
            AvailabilitySlot.status == SLOT_BOOKED,
            AvailabilitySlot.booking_id.isnot(None),
        )
        .distinct()
        .all()
    ]
    if not booking_ids:
        return []
    return (
        Booking.query
        .filter(Booking.id.in_(booking_ids), Booking.status == STATUS_CONFIRMED)
        .order_by(Booking.id.asc())
        .all()
    )


def default_reminder_date():
    return business_today() + timedelta(days=1)


def scan_for_reminders(target_date=None) -> int:
    """Queue one day-ahead email reminder per confirmed booking on ``target_date``.

    Defaults to tomorrow in the business zone. Bookings that already have a
    reminder queued for the date are skipped, so re-runs create nothing new.
    Returns the number of records created.
    """
    target = target_date or default_reminder_date()

    for attempt in range(1, _INSERT_ATTEMPTS + 1):
        bookings = _confirmed_bookings_on(target)
        if not bookings:
            logger.info("No confirmed bookings for %s", target)
            return 0

        queued = {
            n.booking_id for n in
            BookingNotification.query.filter(
                BookingNotification.booking_id.in_([b.id for b in bookings]),
                BookingNotification.target_date == target,
                BookingNotification.type == REMINDER,
                BookingNotification.channel == EMAIL,
            ).all()
        }
        rows = [
            BookingNotification(
                booking_id=b.id,
                type=REMINDER,
                channel=EMAIL,
                recipient=b.customer_email,
                target_date=target,
            )
            for b in bookings if b.id not in queued
        ]
        if not rows:
            return 0

        db.session.add_all(rows)
        try:
            db.session.commit()
        except IntegrityError:
            # another scan queued some of these first
            db.session.rollback()
            logger.warning("Reminder scan for %s raced another run (attempt %s)", target, attempt)
            continue

        logger.info("Queued %s reminders for %s", len(rows), target)
        return len(rows)

    raise TransientStorageError("Reminder scan kept colliding with a concurrent run, try again")


def _reminder_body(booking, slots):
    when = ""
    if slots:
        first, last = slots[0], slots[-1]
        when = (
            f" on {first.date.strftime('%A, %B %d')}"
            f" from {first.start_time.strftime('%H:%M')} to {last.end_time.strftime('%H:%M')}"
        )
    service_name = booking.service.name if booking.service else "appointment"
    return (
        f"Hi {booking.customer_name},\n\n"
        f"This is a friendly reminder of your {service_name}{when}.\n\n"
        "If you need to make changes, just reply to this email.\n\n"
        "See you soon!"
    )


def deliver_pending(limit: int = 100):
    """Send queued notifications that were neither sent nor failed. Returns (sent, failed).

    Notes whose booking is no longer confirmed are stamped with an error and
    count as neither.
    """
    pending = (
        BookingNotification.query
        .filter(BookingNotification.sent_at.is_(None), BookingNotification.error.is_(None))
        .order_by(BookingNotification.id.asc())
        .limit(limit)
        .all()
    )
    if not pending:
        return 0, 0

    bookings = {b.id: b for b in Booking.query.filter(Booking.id.in_([n.booking_id for n in pending])).all()}
    slot_map = slots_by_id(bookings.values())

    sent = failed = 0
    for note in pending:
        booking = bookings.get(note.booking_id)
        if booking is None or booking.status != STATUS_CONFIRMED:
            # cancelled or declined after the scan queued it
            note.error = f"booking {booking.status if booking else 'missing'}"
            db.session.commit()
            logger.info("Reminder %s dropped: %s", note.id, note.error)
            continue
        slots = [slot_map[sid] for sid in (booking.slot_ids or []) if sid in slot_map]

        ok, error = send_email(note.recipient, "Appointment reminder", _reminder_body(booking, slots))
        if ok:
            note.sent_at = datetime.utcnow()
            sent += 1
        else:
            note.error = (error or "unknown error")[:255]
            failed += 1
            logger.warning("Reminder %s to %s failed: %s", note.id, note.recipient, error)
        db.session.commit()

    return sent, failed
