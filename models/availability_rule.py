from datetime import datetime
from models.db import db

class AvailabilityRule(db.Model):
    __tablename__ = "availability_rules"

    id = db.Column(db.Integer, primary_key=True)

    day_of_week = db.Column(db.Integer, nullable=False, index=True)  # 0 = Sunday ... 6 = Saturday
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    slot_duration = db.Column(db.Integer, nullable=False, default=30)  # minutes

    # Old patterns are deactivated, never deleted
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    effective_from = db.Column(db.Date, nullable=True)
    effective_until = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_rules_day_of_week"),
        db.CheckConstraint("slot_duration > 0", name="ck_rules_slot_duration_positive"),
    )

    def covers(self, day) -> bool:
        if self.effective_from and day < self.effective_from:
            return False
        if self.effective_until and day > self.effective_until:
            return False
        return True

    def to_dict(self):
        return {
            "id": self.id,
            "day_of_week": self.day_of_week,
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "slot_duration": self.slot_duration,
            "is_active": self.is_active,
            "effective_from": self.effective_from.isoformat() if self.effective_from else None,
            "effective_until": self.effective_until.isoformat() if self.effective_until else None,
        }
