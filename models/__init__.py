from .db import db
from .audit_log import AuditLog
from .service import Service
from .availability_rule import AvailabilityRule
from .availability_slot import AvailabilitySlot
from .booking import Booking
from .booking_notification import BookingNotification
