from datetime import datetime
from models.db import db

SLOT_AVAILABLE = "available"
SLOT_BOOKED = "booked"
SLOT_BLOCKED = "blocked"

class AvailabilitySlot(db.Model):
    __tablename__ = "availability_slots"

    id = db.Column(db.Integer, primary_key=True)

    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=SLOT_AVAILABLE, index=True)
    # status values: available, booked, blocked

    rule_id = db.Column(db.Integer, db.ForeignKey("availability_rules.id"), nullable=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # One slot per calendar position
        db.UniqueConstraint("date", "start_time", name="uq_slot_date_start"),
        # booked <=> owned by a booking
        db.CheckConstraint(
            "(status = 'booked' AND booking_id IS NOT NULL) OR (status != 'booked' AND booking_id IS NULL)",
            name="ck_slot_booking_ref",
        ),
    )

    def to_public_dict(self):
        return {
            "id": self.id,
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
        }

    def to_dict(self):
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "status": self.status,
            "rule_id": self.rule_id,
            "booking_id": self.booking_id,
        }
