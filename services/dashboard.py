"""Admin overview: today's confirmed appointments and booked load for the coming week."""
from datetime import timedelta

from sqlalchemy import func

from models import db
from models.availability_slot import AvailabilitySlot, SLOT_BOOKED
from models.booking import Booking, STATUS_CONFIRMED, STATUS_PENDING
from utils.dates import business_today

WEEK_DAYS = 7


def todays_schedule(day=None):
    """Confirmed bookings holding slots on ``day``, earliest first."""
    day = day or business_today()
    rows = (
        db.session.query(AvailabilitySlot.booking_id, func.min(AvailabilitySlot.start_time))
        .filter(
            AvailabilitySlot.date == day,
            AvailabilitySlot.status == SLOT_BOOKED,
            AvailabilitySlot.booking_id.isnot(None),
        )
        .group_by(AvailabilitySlot.booking_id)
        .all()
    )
    first_start = {booking_id: start for booking_id, start in rows}
    if not first_start:
        return []

    bookings = (
        Booking.query
        .filter(Booking.id.in_(list(first_start)), Booking.status == STATUS_CONFIRMED)
        .all()
    )
    return sorted(bookings, key=lambda b: (first_start[b.id], b.id))


def week_load(start=None, days=WEEK_DAYS):
    """[(date, booked slot count)] for ``days`` days from ``start``, zero-filled."""
    start = start or business_today()
    end = start + timedelta(days=days - 1)
    counts = {
        day: count for day, count in
        db.session.query(AvailabilitySlot.date, func.count(AvailabilitySlot.id))
        .filter(
            AvailabilitySlot.status == SLOT_BOOKED,
            AvailabilitySlot.date >= start,
            AvailabilitySlot.date <= end,
        )
        .group_by(AvailabilitySlot.date)
        .all()
    }
    return [(start + timedelta(days=i), counts.get(start + timedelta(days=i), 0)) for i in range(days)]


def dashboard_summary(today=None):
    today = today or business_today()
    return {
        "date": today,
        "today": todays_schedule(today),
        "week": week_load(today),
        "pending": Booking.query.filter_by(status=STATUS_PENDING).count(),
    }
