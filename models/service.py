from datetime import datetime
from models.db import db

CATEGORIES = ("nails", "babysitting")

class Service(db.Model):
    __tablename__ = "services"

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(20), nullable=False, index=True)  # nails, babysitting
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)

    duration_min = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    sort_order = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("duration_min > 0", name="ck_services_duration_positive"),
        db.CheckConstraint("price_cents >= 0", name="ck_services_price_non_negative"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "category": self.category,
            "name": self.name,
            "description": self.description,
            "duration_min": self.duration_min,
            "price_cents": self.price_cents,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
        }
