from datetime import date, time

import pytest

from app import create_app
from models import db
from models.availability_slot import AvailabilitySlot
from models.service import Service
from services.slot_claim import claim_slots
from utils.dates import add_minutes

ADMIN_TOKEN = "test-admin-token"
CRON_SECRET = "test-cron-secret"

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)


@pytest.fixture
def app(tmp_path):
    app = create_app(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI="sqlite:///" + str(tmp_path / "test.db"),
        ADMIN_API_TOKEN=ADMIN_TOKEN,
        CRON_SECRET=CRON_SECRET,
        BUSINESS_TIMEZONE="America/New_York",
        LOG_LEVEL="WARNING",
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def cron_headers():
    return {"Authorization": f"Bearer {CRON_SECRET}"}


@pytest.fixture
def make_service(app):
    def _make(category="nails", name=None, duration_min=90, price_cents=5000, is_active=True):
        service = Service(
            category=category,
            name=name or f"{category} {duration_min}min",
            duration_min=duration_min,
            price_cents=price_cents,
            is_active=is_active,
        )
        db.session.add(service)
        db.session.commit()
        return service.id
    return _make


@pytest.fixture
def make_slots(app):
    """Create ``count`` back-to-back slots on ``day`` starting at ``start``; returns their ids."""
    def _make(day=MONDAY, start="09:00", count=4, width=30, status="available"):
        current = time.fromisoformat(start)
        rows = []
        for _ in range(count):
            end = add_minutes(current, width)
            rows.append(AvailabilitySlot(date=day, start_time=current, end_time=end, status=status))
            current = end
        db.session.add_all(rows)
        db.session.commit()
        return [r.id for r in rows]
    return _make


def customer(**extra):
    fields = {
        "customer_name": "Ana Lopez",
        "customer_phone": "555-0100",
        "customer_email": "ana@example.com",
    }
    fields.update(extra)
    return fields


@pytest.fixture
def book(app):
    """Claim slots for a service and return the booking id (asserts the claim won)."""
    def _book(slot_ids, service_id, category="nails", **extra):
        booking_id = claim_slots(slot_ids, service_id, category, customer(**extra))
        assert booking_id is not None
        return booking_id
    return _book
