from datetime import datetime

from models import db
from models.service import Service, CATEGORIES
from services.errors import NotFound, ValidationFailed

EDITABLE_FIELDS = ("category", "name", "description", "duration_min", "price_cents", "is_active", "sort_order")


def list_services(category=None, include_inactive=False):
    if category and category not in CATEGORIES:
        raise ValidationFailed(f"Unknown category: {category}", fields=["category"])
    q = Service.query
    if category:
        q = q.filter_by(category=category)
    if not include_inactive:
        q = q.filter_by(is_active=True)
    return q.order_by(Service.sort_order.asc(), Service.name.asc()).all()


def _int_field(value):
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _clean(data, partial=False):
    out = {}
    invalid = []
    missing = []

    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key == "category":
            if value not in CATEGORIES:
                invalid.append(key)
        elif key == "name":
            value = (value or "").strip() if isinstance(value, str) else ""
            if not value:
                invalid.append(key)
        elif key == "description":
            value = (value.strip() or None) if isinstance(value, str) else None
        elif key == "duration_min":
            value = _int_field(value)
            if value is None or value <= 0:
                invalid.append(key)
        elif key in ("price_cents", "sort_order"):
            value = _int_field(value)
            if value is None or value < 0:
                invalid.append(key)
        elif key == "is_active":
            if not isinstance(value, bool):
                invalid.append(key)
        out[key] = value

    if not partial:
        for key in ("category", "name", "duration_min", "price_cents"):
            if key not in data:
                missing.append(key)

    if missing:
        raise ValidationFailed(f"Missing required fields: {', '.join(missing)}", fields=missing + invalid)
    if invalid:
        raise ValidationFailed(f"Invalid fields: {', '.join(invalid)}", fields=invalid)
    return out


def create_service(data):
    service = Service(**_clean(data or {}))
    db.session.add(service)
    db.session.commit()
    return service


def update_service(service_id: int, data):
    service = db.session.get(Service, service_id)
    if not service:
        raise NotFound("Service not found")
    changes = _clean(data or {}, partial=True)
    if not changes:
        raise ValidationFailed("Nothing to update", fields=list(EDITABLE_FIELDS))
    for key, value in changes.items():
        setattr(service, key, value)
    db.session.commit()
    return service


def set_service_active(service_id: int, flag: bool):
    """Retire or restore a service. Existing bookings keep pointing at it."""
    if not isinstance(flag, bool):
        raise ValidationFailed("is_active must be true or false", fields=["is_active"])
    service = db.session.get(Service, service_id)
    if not service:
        raise NotFound("Service not found")
    service.is_active = flag
    service.updated_at = datetime.utcnow()
    db.session.commit()
    return service
