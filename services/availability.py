"""
Slot store access: the lock-free read path used by the booking wizard, and
the admin writes that are allowed to touch a slot outside the claim and
release paths (manual insert, block/unblock, delete). Every admin write is a
guarded statement on ``status = 'available'`` so it can never race a claim.
"""
import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from models import db
from models.availability_slot import AvailabilitySlot, SLOT_AVAILABLE, SLOT_BLOCKED
from models.service import Service
from services.errors import Conflict, NotFound, ValidationFailed
from utils.dates import business_today, minutes_between, parse_date, parse_time

logger = logging.getLogger(__name__)

MIN_WEEKS = 1
MAX_WEEKS = 12


def clamp_weeks(weeks, default=4) -> int:
    try:
        weeks = int(weeks)
    except (TypeError, ValueError):
        weeks = default
    return min(max(weeks, MIN_WEEKS), MAX_WEEKS)


def available_dates(from_date=None, weeks=4):
    """Distinct dates in [from_date, from_date + 7*weeks] with at least one open slot."""
    start = from_date or business_today()
    end = start + timedelta(days=clamp_weeks(weeks) * 7)

    rows = (
        db.session.query(AvailabilitySlot.date)
        .filter(
            AvailabilitySlot.status == SLOT_AVAILABLE,
            AvailabilitySlot.date >= start,
            AvailabilitySlot.date <= end,
        )
        .distinct()
        .order_by(AvailabilitySlot.date.asc())
        .all()
    )
    return [r.date for r in rows]


def available_slots(day):
    return (
        AvailabilitySlot.query
        .filter_by(date=day, status=SLOT_AVAILABLE)
        .order_by(AvailabilitySlot.start_time.asc())
        .all()
    )


def available_start_slots(day, service_id):
    """Start slots on ``day`` from which a contiguous open run covers the service.

    Returns a list of dicts: the start slot, the run's end time and its slot ids.
    """
    service = db.session.get(Service, service_id)
    if not service or not service.is_active:
        raise NotFound("Service not found")

    slots = available_slots(day)
    starts = []
    for i, first in enumerate(slots):
        run = [first]
        covered = minutes_between(first.start_time, first.end_time)
        j = i + 1
        while covered < service.duration_min and j < len(slots) and slots[j].start_time == run[-1].end_time:
            run.append(slots[j])
            covered += minutes_between(slots[j].start_time, slots[j].end_time)
            j += 1
        if covered >= service.duration_min:
            starts.append({
                "slot": first,
                "end_time": run[-1].end_time,
                "slot_ids": [s.id for s in run],
            })
    return starts


def create_manual_slots(dates, start_time, end_time):
    """Admin insert of one slot per date. Returns (created, skipped_dates)."""
    if not isinstance(dates, list) or not dates:
        raise ValidationFailed("Missing required field: date or dates", fields=["dates"])

    parsed = []
    bad = []
    for value in dates:
        d = parse_date(value)
        if d is None:
            bad.append(str(value))
        else:
            parsed.append(d)
    if bad:
        raise ValidationFailed(
            f"Invalid date format for: {', '.join(bad)}. Expected YYYY-MM-DD", fields=["dates"]
        )
    today = business_today()
    past = [d for d in parsed if d < today]
    if past:
        raise ValidationFailed(
            f"Cannot open past dates: {', '.join(d.isoformat() for d in sorted(past))}", fields=["dates"]
        )

    st = parse_time(start_time)
    et = parse_time(end_time)
    invalid = []
    if st is None:
        invalid.append("start_time")
    if et is None or (st is not None and et <= st):
        invalid.append("end_time")
    if invalid:
        raise ValidationFailed(f"Invalid fields: {', '.join(invalid)}", fields=invalid)

    parsed = sorted(set(parsed))
    taken = {
        r.date for r in
        db.session.query(AvailabilitySlot.date)
        .filter(AvailabilitySlot.date.in_(parsed), AvailabilitySlot.start_time == st)
        .all()
    }

    created = [
        AvailabilitySlot(date=d, start_time=st, end_time=et, status=SLOT_AVAILABLE)
        for d in parsed if d not in taken
    ]
    db.session.add_all(created)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("A slot already exists at that time")

    return created, sorted(taken)


def _guarded_update(slot_id: int, from_status: str, to_status: str):
    changed = (
        AvailabilitySlot.query
        .filter_by(id=slot_id, status=from_status)
        .update({"status": to_status}, synchronize_session=False)
    )
    if changed:
        db.session.commit()
        return db.session.get(AvailabilitySlot, slot_id)

    db.session.rollback()
    if db.session.get(AvailabilitySlot, slot_id) is None:
        raise NotFound("Slot not found")
    raise Conflict(f"Slot is not {from_status}")


def block_slot(slot_id: int):
    return _guarded_update(slot_id, SLOT_AVAILABLE, SLOT_BLOCKED)


def unblock_slot(slot_id: int):
    return _guarded_update(slot_id, SLOT_BLOCKED, SLOT_AVAILABLE)


def delete_slot(slot_id: int):
    """Delete a slot, but only while it is still available."""
    deleted = (
        AvailabilitySlot.query
        .filter_by(id=slot_id, status=SLOT_AVAILABLE)
        .delete(synchronize_session=False)
    )
    if deleted:
        db.session.commit()
        logger.info("Deleted slot %s", slot_id)
        return

    db.session.rollback()
    if db.session.get(AvailabilitySlot, slot_id) is None:
        raise NotFound("Slot not found")
    raise Conflict("Cannot delete a slot that is not available")


def clear_date(day) -> int:
    """Remove every open slot on ``day``; booked and blocked slots stay. Returns the count."""
    if day < business_today():
        raise ValidationFailed("Cannot change a past date", fields=["date"])
    deleted = (
        AvailabilitySlot.query
        .filter_by(date=day, status=SLOT_AVAILABLE)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    logger.info("Cleared %s open slots on %s", deleted, day)
    return deleted
