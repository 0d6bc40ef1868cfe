from flask import Blueprint, request, jsonify

from security.rbac import require_roles, current_actor
from services import availability as slot_store
from services.slot_generation import list_active_rules, save_weekly_pattern
from utils.audit import log_event
from utils.dates import parse_date
from utils.payload import json_body

availability_bp = Blueprint("availability", __name__, url_prefix="/availability")


def _date_arg(name: str):
    value = request.args.get(name)
    if not value:
        return None, (jsonify(error=f"Missing required query parameter: {name} (YYYY-MM-DD)"), 400)
    day = parse_date(value)
    if day is None:
        return None, (jsonify(error="Invalid date format. Expected YYYY-MM-DD"), 400)
    return day, None


# ---------- PUBLIC: calendar read path ----------
@availability_bp.get("/dates")
def list_available_dates():
    # from defaults to today (business zone); a malformed value is ignored
    from_date = parse_date(request.args.get("from") or "")
    weeks = request.args.get("weeks", 4)

    dates = slot_store.available_dates(from_date, weeks)
    return jsonify(dates=[d.isoformat() for d in dates]), 200


@availability_bp.get("")
def list_available_slots():
    day, failure = _date_arg("date")
    if failure:
        return failure

    slots = slot_store.available_slots(day)
    return jsonify(slots=[s.to_public_dict() for s in slots]), 200


@availability_bp.get("/starts")
def list_start_slots():
    day, failure = _date_arg("date")
    if failure:
        return failure
    service_id = request.args.get("service_id", type=int)
    if not service_id:
        return jsonify(error="Missing required query parameter: service_id"), 400

    starts = slot_store.available_start_slots(day, service_id)
    return jsonify(starts=[
        {
            "id": s["slot"].id,
            "start_time": s["slot"].start_time.strftime("%H:%M"),
            "end_time": s["end_time"].strftime("%H:%M"),
            "slot_ids": s["slot_ids"],
        }
        for s in starts
    ]), 200


# ---------- ADMIN: manual slots ----------
@availability_bp.post("")
@require_roles("ADMIN")
def create_slots():
    data = json_body()
    dates = data.get("dates") or ([data["date"]] if data.get("date") else [])

    created, skipped = slot_store.create_manual_slots(dates, data.get("start_time"), data.get("end_time"))

    log_event("SLOTS_CREATE", actor=current_actor(), entity="slot",
              metadata={"created": [s.id for s in created], "skipped": [d.isoformat() for d in skipped]})
    return jsonify(
        slots=[s.to_dict() for s in created],
        skipped=[d.isoformat() for d in skipped],
    ), 201


@availability_bp.delete("")
@require_roles("ADMIN")
def clear_date():
    day, failure = _date_arg("date")
    if failure:
        return failure

    deleted = slot_store.clear_date(day)
    log_event("SLOTS_CLEAR_DATE", actor=current_actor(), entity="slot",
              metadata={"date": day.isoformat(), "deleted": deleted})
    return jsonify(success=True, deleted=deleted), 200


@availability_bp.delete("/<int:slot_id>")
@require_roles("ADMIN")
def delete_slot(slot_id: int):
    slot_store.delete_slot(slot_id)
    log_event("SLOT_DELETE", actor=current_actor(), entity="slot", entity_id=slot_id)
    return jsonify(success=True), 200


@availability_bp.post("/<int:slot_id>/block")
@require_roles("ADMIN")
def block_slot(slot_id: int):
    slot = slot_store.block_slot(slot_id)
    log_event("SLOT_BLOCK", actor=current_actor(), entity="slot", entity_id=slot_id)
    return jsonify(slot=slot.to_dict()), 200


@availability_bp.post("/<int:slot_id>/unblock")
@require_roles("ADMIN")
def unblock_slot(slot_id: int):
    slot = slot_store.unblock_slot(slot_id)
    log_event("SLOT_UNBLOCK", actor=current_actor(), entity="slot", entity_id=slot_id)
    return jsonify(slot=slot.to_dict()), 200


# ---------- ADMIN: weekly pattern ----------
@availability_bp.get("/rules")
@require_roles("ADMIN")
def get_rules():
    return jsonify(rules=[r.to_dict() for r in list_active_rules()]), 200


@availability_bp.put("/rules")
@require_roles("ADMIN")
def put_rules():
    data = json_body()
    rules = save_weekly_pattern(
        data.get("days"),
        data.get("start_time"),
        data.get("end_time"),
        slot_duration=data.get("slot_duration"),
        effective_from=data.get("effective_from"),
        effective_until=data.get("effective_until"),
    )

    log_event("RULES_SAVE", actor=current_actor(), entity="availability_rule",
              metadata={"days": [r.day_of_week for r in rules]})
    return jsonify(rules=[r.to_dict() for r in rules]), 200
