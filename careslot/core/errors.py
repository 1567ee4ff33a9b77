"""Domain errors for the scheduling core.

Every error carries the HTTP status and a stable ``code`` so that clients can
tell "slot gone, try another" apart from "your input was invalid" and from
"server trouble". Handlers in ``careslot.main`` render them as
``{"error": {"code", "message", "field"}}``.
"""


class SchedulingError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        return {"error": {"code": self.code, "message": self.message, "field": self.field}}


class ValidationError(SchedulingError):
    status_code = 422
    code = "validation_error"


class NotFoundError(SchedulingError):
    status_code = 404
    code = "not_found"


class OverlapError(SchedulingError):
    status_code = 409
    code = "overlap"


class NotAvailableError(SchedulingError):
    """The slot was claimed concurrently or is no longer offered; re-fetch slots."""
    status_code = 409
    code = "slot_unavailable"


class ExpiredHoldError(SchedulingError):
    status_code = 409
    code = "hold_expired"


class InvalidTransitionError(SchedulingError):
    status_code = 409
    code = "invalid_transition"


class PaymentFailedError(SchedulingError):
    status_code = 402
    code = "payment_failed"


class PolicyViolationError(SchedulingError):
    status_code = 403
    code = "policy_violation"


class ForbiddenError(SchedulingError):
    status_code = 403
    code = "forbidden"
