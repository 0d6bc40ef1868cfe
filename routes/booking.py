from flask import Blueprint, request, jsonify

from security.rbac import require_roles, current_actor
from services.booking_lifecycle import get_booking, list_bookings, set_admin_notes, set_status, slots_by_id
from services.dashboard import dashboard_summary
from services.slot_claim import claim_slots
from utils.audit import log_event
from utils.payload import json_body, optional_text

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


# ---------- PUBLIC: book slots (DOUBLE-BOOKING SAFE) ----------
@booking_bp.post("")
def create_booking():
    data = json_body()

    booking_id = claim_slots(
        data.get("slot_ids"),
        data.get("service_id"),
        data.get("category"),
        data,
    )

    if booking_id is None:
        log_event("BOOKING_FAIL_SLOT_TAKEN", entity="slot", metadata={"slot_ids": data.get("slot_ids")})
        return jsonify(error="This time slot is no longer available"), 409

    log_event("BOOKING_CREATE", entity="booking", entity_id=booking_id,
              metadata={"slot_ids": data.get("slot_ids"), "service_id": data.get("service_id")})
    return jsonify(success=True, bookingId=booking_id), 201


# ---------- ADMIN: list bookings ----------
@booking_bp.get("")
@require_roles("ADMIN")
def list_all_bookings():
    limit = min(max(request.args.get("limit", 50, type=int), 1), 200)
    offset = max(request.args.get("offset", 0, type=int), 0)

    rows, total = list_bookings(
        status=request.args.get("status"),
        category=request.args.get("category"),
        limit=limit,
        offset=offset,
    )
    slots = slots_by_id(rows)

    return jsonify(
        bookings=[b.to_dict(slots=[slots.get(sid) for sid in b.slot_ids or []]) for b in rows],
        total=total,
        limit=limit,
        offset=offset,
    ), 200


# ---------- ADMIN: dashboard ----------
@booking_bp.get("/dashboard")
@require_roles("ADMIN")
def dashboard():
    summary = dashboard_summary()
    slots = slots_by_id(summary["today"])

    return jsonify(
        date=summary["date"].isoformat(),
        today=[b.to_dict(slots=[slots.get(sid) for sid in b.slot_ids or []]) for b in summary["today"]],
        week=[{"date": d.isoformat(), "booked_slots": n} for d, n in summary["week"]],
        pending=summary["pending"],
    ), 200


@booking_bp.get("/<int:booking_id>")
@require_roles("ADMIN")
def get_one_booking(booking_id: int):
    booking, slots = get_booking(booking_id)
    return jsonify(booking=booking.to_dict(slots=slots)), 200


# ---------- ADMIN: status changes + notes ----------
@booking_bp.patch("/<int:booking_id>")
@require_roles("ADMIN")
def update_booking(booking_id: int):
    data = json_body()
    # types are checked before anything is written
    status = (optional_text(data, "status") or "").strip().lower() or None
    reason = optional_text(data, "decline_reason", "reason")
    has_notes = "admin_notes" in data
    notes = optional_text(data, "admin_notes") if has_notes else None

    if not status and not has_notes:
        return jsonify(error="Nothing to update: send status and/or admin_notes", fields=["status", "admin_notes"]), 400

    if status:
        booking, released = set_status(booking_id, status, reason=reason)
        log_event("BOOKING_STATUS", actor=current_actor(), entity="booking", entity_id=booking_id,
                  metadata={"status": status, "reason": reason, "released_slots": released})

    if has_notes:
        set_admin_notes(booking_id, notes)
        log_event("BOOKING_NOTES", actor=current_actor(), entity="booking", entity_id=booking_id)

    booking, slots = get_booking(booking_id)
    return jsonify(booking=booking.to_dict(slots=slots)), 200
