from flask import Blueprint, request, jsonify

from security.rbac import require_roles, current_actor
from services.catalog import create_service, list_services, set_service_active, update_service
from utils.audit import log_event
from utils.payload import json_body

catalog_bp = Blueprint("catalog", __name__)


# ---------- PUBLIC: bookable services ----------
@catalog_bp.get("/services")
def public_services():
    services = list_services(category=request.args.get("category"))
    return jsonify(services=[s.to_dict() for s in services]), 200


# ---------- ADMIN: manage catalogue ----------
@catalog_bp.get("/admin/services")
@require_roles("ADMIN")
def admin_services():
    services = list_services(category=request.args.get("category"), include_inactive=True)
    return jsonify(services=[s.to_dict() for s in services]), 200


@catalog_bp.post("/services")
@require_roles("ADMIN")
def add_service():
    service = create_service(json_body())
    log_event("SERVICE_CREATE", actor=current_actor(), entity="service", entity_id=service.id)
    return jsonify(service=service.to_dict()), 201


@catalog_bp.patch("/services/<int:service_id>")
@require_roles("ADMIN")
def edit_service(service_id: int):
    data = json_body()
    service = update_service(service_id, data)
    log_event("SERVICE_UPDATE", actor=current_actor(), entity="service", entity_id=service.id,
              metadata={"fields": sorted(data.keys())})
    return jsonify(service=service.to_dict()), 200


@catalog_bp.post("/services/<int:service_id>/deactivate")
@require_roles("ADMIN")
def deactivate_service(service_id: int):
    service = set_service_active(service_id, False)
    log_event("SERVICE_DEACTIVATE", actor=current_actor(), entity="service", entity_id=service.id)
    return jsonify(service=service.to_dict()), 200


@catalog_bp.post("/services/<int:service_id>/activate")
@require_roles("ADMIN")
def activate_service(service_id: int):
    service = set_service_active(service_id, True)
    log_event("SERVICE_ACTIVATE", actor=current_actor(), entity="service", entity_id=service.id)
    return jsonify(service=service.to_dict()), 200
