"""
Booking lifecycle: the status state machine and the only path that hands
booked slots back to the calendar.

    pending ──> confirmed ──> completed
       │            │
       ├──> declined└──> cancelled
       └──> cancelled

declined, cancelled and completed are terminal.
"""
import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.availability_slot import AvailabilitySlot, SLOT_AVAILABLE, SLOT_BOOKED
from models.booking import (
    Booking,
    BOOKING_STATUSES,
    TERMINAL_STATUSES,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_DECLINED,
    STATUS_PENDING,
)
from models.service import CATEGORIES
from services.errors import BookingError, InvalidTransition, NotFound, TransientStorageError, ValidationFailed

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_CONFIRMED, STATUS_DECLINED, STATUS_CANCELLED},
    STATUS_CONFIRMED: {STATUS_COMPLETED, STATUS_CANCELLED},
}

TIMESTAMP_FIELDS = {
    STATUS_CONFIRMED: "confirmed_at",
    STATUS_DECLINED: "declined_at",
    STATUS_CANCELLED: "cancelled_at",
    STATUS_COMPLETED: "completed_at",
}

RELEASING_STATUSES = {STATUS_DECLINED, STATUS_CANCELLED}


def can_transition(current: str, new: str) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    return new in ALLOWED_TRANSITIONS.get(current, ())


def _release_slots(booking) -> int:
    # only slots this booking actually owns go back
    return (
        AvailabilitySlot.query
        .filter(
            AvailabilitySlot.id.in_(list(booking.slot_ids or [])),
            AvailabilitySlot.booking_id == booking.id,
            AvailabilitySlot.status == SLOT_BOOKED,
        )
        .update({"status": SLOT_AVAILABLE, "booking_id": None}, synchronize_session=False)
    )


def set_status(booking_id: int, new_status: str, reason=None):
    """Apply one state-machine edge; returns (booking, released_slot_count).

    Status change and slot release commit together or not at all.
    """
    if new_status not in BOOKING_STATUSES:
        raise ValidationFailed(f"Unknown status: {new_status}", fields=["status"])
    if reason is not None and not isinstance(reason, str):
        raise ValidationFailed("decline_reason must be text", fields=["decline_reason"])

    try:
        booking = (
            Booking.query
            .filter_by(id=booking_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not booking:
            raise NotFound("Booking not found")

        if not can_transition(booking.status, new_status):
            raise InvalidTransition(booking.status, new_status)

        now = datetime.utcnow()
        previous = booking.status
        booking.status = new_status
        setattr(booking, TIMESTAMP_FIELDS[new_status], now)
        booking.updated_at = now
        if new_status == STATUS_DECLINED and reason:
            booking.decline_reason = reason.strip()[:255] or None

        released = 0
        if new_status in RELEASING_STATUSES:
            released = _release_slots(booking)

        db.session.commit()
    except BookingError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Status change of booking %s to %s failed", booking_id, new_status)
        raise TransientStorageError("Booking could not be updated, please try again") from exc

    logger.info("Booking %s: %s -> %s (released %s slots)", booking_id, previous, new_status, released)
    return booking, released


def set_admin_notes(booking_id: int, notes):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise NotFound("Booking not found")
    if notes is not None and not isinstance(notes, str):
        raise ValidationFailed("admin_notes must be text", fields=["admin_notes"])

    booking.admin_notes = (notes or "").strip() or None
    booking.updated_at = datetime.utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Saving notes on booking %s failed", booking_id)
        raise TransientStorageError("Booking could not be updated, please try again") from exc
    return booking


def slots_by_id(bookings):
    ids = {sid for b in bookings for sid in (b.slot_ids or [])}
    if not ids:
        return {}
    return {s.id: s for s in AvailabilitySlot.query.filter(AvailabilitySlot.id.in_(ids)).all()}


def get_booking(booking_id: int):
    """Returns (booking, slots in booking order)."""
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise NotFound("Booking not found")
    slots = slots_by_id([booking])
    return booking, [slots.get(sid) for sid in booking.slot_ids or []]


def list_bookings(status=None, category=None, limit=50, offset=0):
    """Newest first. Returns (bookings, total matching)."""
    if status and status not in BOOKING_STATUSES:
        raise ValidationFailed(f"Unknown status: {status}", fields=["status"])
    if category and category not in CATEGORIES:
        raise ValidationFailed(f"Unknown category: {category}", fields=["category"])

    limit = min(max(int(limit), 1), 200)
    offset = max(int(offset), 0)

    q = Booking.query
    if status:
        q = q.filter_by(status=status)
    if category:
        q = q.filter_by(category=category)

    total = q.count()
    rows = q.order_by(Booking.created_at.desc(), Booking.id.desc()).offset(offset).limit(limit).all()
    return rows, total
