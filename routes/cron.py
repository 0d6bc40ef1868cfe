from flask import Blueprint, request, jsonify, current_app

from security.rbac import require_roles, current_actor
from services.reminders import default_reminder_date, scan_for_reminders
from services.slot_generation import generate_slots
from utils.audit import log_event
from utils.dates import parse_date
from utils.payload import json_body

cron_bp = Blueprint("cron", __name__, url_prefix="/cron")


@cron_bp.post("/generate-slots")
@require_roles("ADMIN", "CRON")
def run_generate_slots():
    data = json_body()
    days_ahead = data.get("days_ahead", request.args.get("days_ahead", type=int))
    if days_ahead is None:
        days_ahead = current_app.config.get("GENERATE_DAYS_AHEAD", 28)

    created = generate_slots(days_ahead)

    current_app.logger.info("[generate-slots] Generated %s slots", created)
    log_event("SLOTS_GENERATE", actor=current_actor(), entity="slot",
              metadata={"days_ahead": days_ahead, "created": created})
    return jsonify(success=True, slotsGenerated=created), 200


@cron_bp.post("/send-reminders")
@require_roles("CRON")
def run_send_reminders():
    data = json_body()
    raw_date = data.get("date") or request.args.get("date")
    target = None
    if raw_date:
        target = parse_date(raw_date)
        if target is None:
            return jsonify(error="Invalid date format. Expected YYYY-MM-DD", fields=["date"]), 400

    target = target or default_reminder_date()
    created = scan_for_reminders(target)

    log_event("REMINDERS_SCAN", actor=current_actor(), entity="booking_notification",
              metadata={"date": target.isoformat(), "created": created})
    return jsonify(success=True, remindersProcessed=created, date=target.isoformat()), 200
