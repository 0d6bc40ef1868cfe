"""
Availability rule engine.

Turns the active weekly pattern into concrete ``availability_slots`` rows for
a rolling horizon. Generation only ever inserts: a (date, start_time) pair
that already exists is left alone whatever its status, so the job can be run
as often as the scheduler likes.
"""
import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.availability_rule import AvailabilityRule
from models.availability_slot import AvailabilitySlot, SLOT_AVAILABLE
from services.errors import TransientStorageError, ValidationFailed
from utils.dates import add_minutes, business_today, day_of_week, minutes_between, parse_date, parse_time

logger = logging.getLogger(__name__)

# Concurrent generators can race on the unique (date, start_time) key
_INSERT_ATTEMPTS = 3


def carve_window(start_time, end_time, step_minutes: int):
    """Yield consecutive (start, end) pairs of ``step_minutes`` inside [start_time, end_time).

    A trailing remainder shorter than one step is dropped.
    """
    total = minutes_between(start_time, end_time)
    offset = 0
    while offset + step_minutes <= total:
        yield add_minutes(start_time, offset), add_minutes(start_time, offset + step_minutes)
        offset += step_minutes


def _candidate_slots(rules, first_day, last_day):
    by_day = {}
    for rule in rules:
        by_day.setdefault(rule.day_of_week, []).append(rule)

    # (date, start_time) -> (end_time, rule_id); first rule to claim a start wins
    candidates = {}
    day = first_day
    while day <= last_day:
        for rule in by_day.get(day_of_week(day), []):
            if not rule.covers(day):
                continue
            for slot_start, slot_end in carve_window(rule.start_time, rule.end_time, rule.slot_duration):
                candidates.setdefault((day, slot_start), (slot_end, rule.id))
        day += timedelta(days=1)
    return candidates


def _existing_positions(first_day, last_day):
    rows = (
        db.session.query(AvailabilitySlot.date, AvailabilitySlot.start_time)
        .filter(AvailabilitySlot.date >= first_day, AvailabilitySlot.date <= last_day)
        .all()
    )
    return {(r.date, r.start_time) for r in rows}


def generate_slots(days_ahead, today=None) -> int:
    """Materialise slots for [today, today + days_ahead]; returns how many were created."""
    max_days = current_app.config.get("MAX_GENERATE_DAYS", 90)
    if isinstance(days_ahead, bool) or not isinstance(days_ahead, int) or not 1 <= days_ahead <= max_days:
        raise ValidationFailed(f"days_ahead must be between 1 and {max_days}", fields=["days_ahead"])

    first_day = today or business_today()
    last_day = first_day + timedelta(days=days_ahead)

    rules = (
        AvailabilityRule.query
        .filter_by(is_active=True)
        .order_by(AvailabilityRule.start_time.asc(), AvailabilityRule.id.asc())
        .all()
    )
    candidates = _candidate_slots(rules, first_day, last_day)
    if not candidates:
        logger.info("No active rules cover %s..%s", first_day, last_day)
        return 0

    for attempt in range(1, _INSERT_ATTEMPTS + 1):
        existing = _existing_positions(first_day, last_day)
        new_rows = [
            AvailabilitySlot(
                date=day,
                start_time=start,
                end_time=end,
                status=SLOT_AVAILABLE,
                rule_id=rule_id,
            )
            for (day, start), (end, rule_id) in sorted(candidates.items())
            if (day, start) not in existing
        ]
        if not new_rows:
            return 0

        db.session.add_all(new_rows)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.warning("Slot generation raced another writer (attempt %s), retrying", attempt)
            continue

        logger.info("Generated %s slots for %s..%s", len(new_rows), first_day, last_day)
        return len(new_rows)

    raise TransientStorageError("Slot generation kept colliding with concurrent writers, try again")


def list_active_rules():
    return (
        AvailabilityRule.query
        .filter_by(is_active=True)
        .order_by(AvailabilityRule.day_of_week.asc(), AvailabilityRule.start_time.asc())
        .all()
    )


def save_weekly_pattern(days, start_time, end_time, slot_duration=None,
                        effective_from=None, effective_until=None):
    """Replace the active weekly pattern. Old rules are deactivated, not deleted."""
    invalid = []

    if not isinstance(days, list) or any(
        isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6 for d in days
    ):
        invalid.append("days")
        days = []

    st = parse_time(start_time)
    et = parse_time(end_time)
    if st is None:
        invalid.append("start_time")
    if et is None:
        invalid.append("end_time")
    if st is not None and et is not None and et <= st:
        invalid.append("end_time")

    if slot_duration is None:
        slot_duration = current_app.config.get("SLOT_DURATION_MINUTES", 30)
    if isinstance(slot_duration, bool) or not isinstance(slot_duration, int) or slot_duration <= 0:
        invalid.append("slot_duration")
    elif st is not None and et is not None and et > st and minutes_between(st, et) < slot_duration:
        invalid.append("slot_duration")

    eff_from = parse_date(effective_from) if effective_from else None
    eff_until = parse_date(effective_until) if effective_until else None
    if effective_from and eff_from is None:
        invalid.append("effective_from")
    if effective_until and eff_until is None:
        invalid.append("effective_until")
    if eff_from and eff_until and eff_until < eff_from:
        invalid.append("effective_until")

    if invalid:
        fields = sorted(set(invalid))
        raise ValidationFailed(f"Invalid fields: {', '.join(fields)}", fields=fields)

    AvailabilityRule.query.filter_by(is_active=True).update({"is_active": False}, synchronize_session=False)

    rules = [
        AvailabilityRule(
            day_of_week=day,
            start_time=st,
            end_time=et,
            slot_duration=slot_duration,
            is_active=True,
            effective_from=eff_from,
            effective_until=eff_until,
        )
        for day in sorted(set(days))
    ]
    db.session.add_all(rules)
    db.session.commit()

    logger.info("Saved weekly pattern: days=%s %s-%s every %s min", sorted(set(days)), st, et, slot_duration)
    return rules
