"""
Slot claim transaction.

The only code path that moves a slot from ``available`` to ``booked``. One
claim is one database transaction:

1. lock the requested slot rows (``SELECT ... FOR UPDATE``),
2. check they still exist, sit on one date that is not past, chain
   end-to-start and are all ``available``,
3. insert the booking as ``pending``,
4. flip the slots with a guarded ``UPDATE ... WHERE status = 'available'``
   and require every row to have matched,
5. commit.

Step 4 is a compare-and-swap: even on an engine that ignores row locks
(SQLite) a concurrent claimer that committed first makes the row count come
up short, and the loser rolls back without touching anything.

Losing a race is a normal outcome and is reported as ``None``, not raised.
"""
import logging
import re

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from models import db
from models.availability_slot import AvailabilitySlot, SLOT_AVAILABLE, SLOT_BOOKED
from models.booking import Booking, STATUS_PENDING
from models.service import Service, CATEGORIES
from services.errors import BookingError, TransientStorageError, ValidationFailed
from utils.dates import business_today, minutes_between

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

REQUIRED_CUSTOMER_FIELDS = ("customer_name", "customer_phone", "customer_email")

# lock_not_available, serialization_failure, deadlock_detected
_CONTENTION_SQLSTATES = {"55P03", "40001", "40P01"}


def _clean_text(value, max_len=None):
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    if not value:
        return None
    return value[:max_len] if max_len else value


def _as_id(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip()) or None
    return None


def validate_claim_request(slot_ids, service_id, category, customer_fields) -> dict:
    """Shape checks done before any transactional work.

    Returns the normalised request; raises ValidationFailed naming every
    missing or invalid field.
    """
    customer_fields = customer_fields or {}
    missing = []
    invalid = []

    ids = []
    if not slot_ids:
        missing.append("slot_ids")
    elif not isinstance(slot_ids, list):
        invalid.append("slot_ids")
    else:
        ids = [_as_id(v) for v in slot_ids]
        max_slots = current_app.config.get("MAX_SLOTS_PER_BOOKING", 24)
        if any(v is None for v in ids) or len(set(ids)) != len(ids) or len(ids) > max_slots:
            invalid.append("slot_ids")

    svc_id = None
    if service_id in (None, ""):
        missing.append("service_id")
    else:
        svc_id = _as_id(service_id)
        if svc_id is None:
            invalid.append("service_id")

    if not category:
        missing.append("category")
    elif category not in CATEGORIES:
        invalid.append("category")

    customer = {}
    for name in REQUIRED_CUSTOMER_FIELDS:
        customer[name] = _clean_text(customer_fields.get(name), 255)
        if customer[name] is None:
            missing.append(name)
    if customer["customer_email"] and not _EMAIL_RE.match(customer["customer_email"]):
        invalid.append("customer_email")

    customer["customer_notes"] = _clean_text(customer_fields.get("customer_notes"))
    customer["children_ages"] = _clean_text(customer_fields.get("children_ages"), 120)
    customer["address"] = _clean_text(customer_fields.get("address"), 255)

    num_children = customer_fields.get("num_children")
    customer["num_children"] = None
    if num_children not in (None, ""):
        customer["num_children"] = _as_id(num_children)
        if customer["num_children"] is None:
            invalid.append("num_children")

    if category == "babysitting":
        if customer["address"] is None:
            missing.append("address")
        elif len(customer["address"]) < 5:
            invalid.append("address")

    if missing:
        raise ValidationFailed(f"Missing required fields: {', '.join(missing)}", fields=missing + invalid)
    if invalid:
        raise ValidationFailed(f"Invalid fields: {', '.join(invalid)}", fields=invalid)

    return {
        "slot_ids": ids,
        "service_id": svc_id,
        "category": category,
        "customer": customer,
    }


def check_contiguous(slots):
    """Slots (ordered by date, start) must share a date and chain end-to-start."""
    if not slots:
        raise ValidationFailed("No slots selected", fields=["slot_ids"])
    if len({s.date for s in slots}) != 1:
        raise ValidationFailed("Selected slots must be on the same day", fields=["slot_ids"])
    for prev, nxt in zip(slots, slots[1:]):
        if prev.end_time != nxt.start_time:
            raise ValidationFailed("Selected slots must be consecutive", fields=["slot_ids"])


def _is_contention(exc: OperationalError) -> bool:
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _CONTENTION_SQLSTATES:
        return True
    return "database is locked" in str(orig).lower()


def _set_lock_timeout():
    if db.engine.dialect.name == "postgresql":
        timeout_ms = int(current_app.config.get("CLAIM_LOCK_TIMEOUT_MS", 5000))
        db.session.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))


def _claim(req):
    ids = req["slot_ids"]

    service = db.session.get(Service, req["service_id"])
    if not service or not service.is_active:
        raise ValidationFailed("Service not found", fields=["service_id"])
    if service.category != req["category"]:
        raise ValidationFailed("Category does not match the service", fields=["category"])

    _set_lock_timeout()
    slots = (
        AvailabilitySlot.query
        .filter(AvailabilitySlot.id.in_(ids))
        .order_by(AvailabilitySlot.date.asc(), AvailabilitySlot.start_time.asc())
        .with_for_update()
        .populate_existing()
        .all()
    )
    if len(slots) != len(ids):
        # deleted by an admin since the customer looked
        db.session.rollback()
        return None

    check_contiguous(slots)
    if slots[0].date < business_today():
        raise ValidationFailed("Selected date is in the past", fields=["slot_ids"])
    if minutes_between(slots[0].start_time, slots[-1].end_time) < service.duration_min:
        raise ValidationFailed("Selected time is shorter than the service", fields=["slot_ids"])

    if any(s.status != SLOT_AVAILABLE for s in slots):
        db.session.rollback()
        return None

    customer = req["customer"]
    booking = Booking(
        slot_ids=[s.id for s in slots],
        service_id=service.id,
        category=req["category"],
        status=STATUS_PENDING,
        customer_name=customer["customer_name"],
        customer_phone=customer["customer_phone"],
        customer_email=customer["customer_email"],
        customer_notes=customer["customer_notes"],
        num_children=customer["num_children"],
        children_ages=customer["children_ages"],
        address=customer["address"],
    )
    db.session.add(booking)
    db.session.flush()
    booking_id = booking.id

    claimed = (
        AvailabilitySlot.query
        .filter(AvailabilitySlot.id.in_(ids), AvailabilitySlot.status == SLOT_AVAILABLE)
        .update({"status": SLOT_BOOKED, "booking_id": booking_id}, synchronize_session=False)
    )
    if claimed != len(ids):
        db.session.rollback()
        return None

    db.session.commit()
    return booking_id


def claim_slots(slot_ids, service_id, category, customer_fields):
    """Reserve ``slot_ids`` for one new pending booking, all or nothing.

    Returns the new booking id, or None when any slot was taken first (the
    caller should ask the customer to pick another time). Raises
    ValidationFailed for bad input and TransientStorageError when the
    database failed; in both cases nothing was written.
    """
    req = validate_claim_request(slot_ids, service_id, category, customer_fields)

    try:
        booking_id = _claim(req)
    except BookingError:
        db.session.rollback()
        raise
    except OperationalError as exc:
        db.session.rollback()
        if _is_contention(exc):
            logger.info("Claim of slots %s lost on lock contention", req["slot_ids"])
            return None
        logger.exception("Claim of slots %s failed", req["slot_ids"])
        raise TransientStorageError("Booking could not be saved, please try again") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Claim of slots %s failed", req["slot_ids"])
        raise TransientStorageError("Booking could not be saved, please try again") from exc

    if booking_id is None:
        logger.info("Slots %s no longer available", req["slot_ids"])
    else:
        logger.info("Booking %s claimed slots %s", booking_id, req["slot_ids"])
    return booking_id
