import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as bookings.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "bookings.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Privileged callers (identity itself lives with an external provider)
    ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN")
    CRON_SECRET = os.getenv("CRON_SECRET")

    # Calendar: slot dates are local calendar days in this zone
    BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/New_York")
    SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES", "30"))

    # Slot generation horizon
    GENERATE_DAYS_AHEAD = int(os.getenv("GENERATE_DAYS_AHEAD", "28"))
    MAX_GENERATE_DAYS = 90

    # Claim transaction
    MAX_SLOTS_PER_BOOKING = int(os.getenv("MAX_SLOTS_PER_BOOKING", "24"))
    CLAIM_LOCK_TIMEOUT_MS = int(os.getenv("CLAIM_LOCK_TIMEOUT_MS", "5000"))  # postgres only

    # Email (SMTP) for reminder delivery
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
    SMTP_USE_SSL = os.getenv("SMTP_USE_SSL", "false").lower() == "true"
    SMTP_TIMEOUT = int(os.getenv("SMTP_TIMEOUT", "10"))
    SMTP_FROM_NAME = os.getenv("SMTP_FROM_NAME")
    SMTP_REPLY_TO = os.getenv("SMTP_REPLY_TO")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Basic app settings
    DEBUG = False
