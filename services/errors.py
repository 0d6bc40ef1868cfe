"""
Error taxonomy shared by the booking core.

Each error carries the HTTP status the API answers with; the app factory
registers a single handler for ``BookingError``. Claim contention is not an
error: ``claim_slots`` returns ``None`` for it.
"""


class BookingError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.message}


class ValidationFailed(BookingError):
    """Caller supplied malformed or incomplete input."""
    status_code = 400

    def __init__(self, message: str, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])

    def to_dict(self):
        out = super().to_dict()
        if self.fields:
            out["fields"] = self.fields
        return out


class InvalidTransition(ValidationFailed):
    """Requested booking status change is not an allowed edge."""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change booking from {current} to {requested}", fields=["status"])
        self.current = current
        self.requested = requested


class NotFound(BookingError):
    status_code = 404


class Conflict(BookingError):
    """Target row is not in a state that allows the change (e.g. slot not available)."""
    status_code = 409


class TransientStorageError(BookingError):
    """Storage failed mid-operation; nothing was applied and the caller may retry."""
    status_code = 503


class ConfigurationError(BookingError):
    status_code = 500
