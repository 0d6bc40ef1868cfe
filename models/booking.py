from datetime import datetime
from models.db import db

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_DECLINED = "declined"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"

BOOKING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_DECLINED, STATUS_CANCELLED, STATUS_COMPLETED)
TERMINAL_STATUSES = (STATUS_DECLINED, STATUS_CANCELLED, STATUS_COMPLETED)

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    # Claimed slots, ordered by start time
    slot_ids = db.Column(db.JSON, nullable=False)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=False, index=True)
    category = db.Column(db.String(20), nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)
    # status values: pending, confirmed, declined, cancelled, completed

    customer_name = db.Column(db.String(120), nullable=False)
    customer_phone = db.Column(db.String(30), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_notes = db.Column(db.Text, nullable=True)

    # babysitting only
    num_children = db.Column(db.Integer, nullable=True)
    children_ages = db.Column(db.String(120), nullable=True)
    address = db.Column(db.String(255), nullable=True)

    admin_notes = db.Column(db.Text, nullable=True)
    decline_reason = db.Column(db.String(255), nullable=True)

    confirmed_at = db.Column(db.DateTime, nullable=True)
    declined_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    service = db.relationship("Service")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self, slots=None):
        def _ts(value):
            return value.isoformat() if value else None

        out = {
            "id": self.id,
            "slot_ids": list(self.slot_ids or []),
            "service_id": self.service_id,
            "service": self.service.to_dict() if self.service else None,
            "category": self.category,
            "status": self.status,
            "is_terminal": self.is_terminal,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "customer_notes": self.customer_notes,
            "num_children": self.num_children,
            "children_ages": self.children_ages,
            "address": self.address,
            "admin_notes": self.admin_notes,
            "decline_reason": self.decline_reason,
            "confirmed_at": _ts(self.confirmed_at),
            "declined_at": _ts(self.declined_at),
            "cancelled_at": _ts(self.cancelled_at),
            "completed_at": _ts(self.completed_at),
            "created_at": _ts(self.created_at),
            "updated_at": _ts(self.updated_at),
        }
        if slots is not None:
            out["slots"] = [s.to_dict() if s else None for s in slots]
        return out
