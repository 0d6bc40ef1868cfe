import re
from datetime import date, datetime, time, timedelta

from flask import current_app
from pytz import timezone

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")


def business_today() -> date:
    """Today's calendar day in the business zone (not the UTC day)."""
    tz = timezone(current_app.config.get("BUSINESS_TIMEZONE", "America/New_York"))
    return datetime.now(tz).date()


def parse_date(value):
    # Expect "YYYY-MM-DD"; returns None when malformed
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_time(value):
    # Expect "HH:MM" or "HH:MM:SS"; returns None when malformed
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not _TIME_RE.match(value):
        return None
    try:
        return time.fromisoformat(value)
    except ValueError:
        return None


def day_of_week(day: date) -> int:
    # 0 = Sunday ... 6 = Saturday
    return day.isoweekday() % 7


def add_minutes(t: time, minutes: int) -> time:
    return (datetime.combine(date.min, t) + timedelta(minutes=minutes)).time()


def minutes_between(start: time, end: time) -> int:
    delta = datetime.combine(date.min, end) - datetime.combine(date.min, start)
    return int(delta.total_seconds() // 60)
