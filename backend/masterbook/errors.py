# backend/masterbook/errors.py
"""
Error taxonomy of the booking core.

Every error carries a machine-readable ``kind`` and the HTTP status the API
layer answers with. The core never retries; the caller decides.
"""


class BookingError(Exception):
    kind = "booking_error"
    status_code = 400

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        payload = {"error": self.kind, "detail": self.message}
        if self.context:
            payload.update(self.context)
        return payload


class ValidationError(BookingError):
    kind = "validation_error"
    status_code = 400


class InvalidFormat(ValidationError):
    kind = "invalid_format"


class InvalidDate(ValidationError):
    kind = "invalid_date"


class NotFound(BookingError):
    kind = "not_found"
    status_code = 404


class Forbidden(BookingError):
    kind = "forbidden"
    status_code = 403


class ScheduleNotConfigured(BookingError):
    kind = "schedule_not_configured"
    status_code = 400


class OutsideWorkingHours(BookingError):
    kind = "outside_working_hours"
    status_code = 400


class SlotConflict(BookingError):
    """Slot already taken; the client may retry with another slot."""

    kind = "slot_conflict"
    status_code = 409


class IllegalTransition(BookingError):
    kind = "illegal_transition"
    status_code = 400


class BookingInProgress(BookingError):
    """Another booking for the same master holds the lock; safe to retry."""

    kind = "booking_in_progress"
    status_code = 503
