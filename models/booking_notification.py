from datetime import datetime
from models.db import db

class BookingNotification(db.Model):
    __tablename__ = "booking_notifications"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)

    type = db.Column(db.String(20), nullable=False)     # reminder
    channel = db.Column(db.String(20), nullable=False)  # email
    recipient = db.Column(db.String(255), nullable=False)
    target_date = db.Column(db.Date, nullable=False)

    sent_at = db.Column(db.DateTime, nullable=True)
    error = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # Re-running the reminder scan must not queue a second reminder
        db.UniqueConstraint("booking_id", "target_date", "type", "channel", name="uq_notification_once"),
    )
