from .health import health_bp
from .availability import availability_bp
from .catalog import catalog_bp
from .booking import booking_bp
from .cron import cron_bp
