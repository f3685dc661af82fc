"""
Error taxonomy for the reversal engine.

Every failure terminates the request. Errors carry a machine code,
a human summary, and, for storage failures, the exact internal step
that failed so an operator can tell how far a cascade got.
"""

from typing import Any


class ReversalError(Exception):
    """Base class for every error surfaced by the reversal engine."""

    code: str = "ReversalError"
    status_code: int = 500

    def __init__(
        self,
        reason: str,
        details: Any = None,
        step: str | None = None,
    ):
        super().__init__(reason)
        self.reason = reason
        self.details = details
        self.step = step

    def to_payload(self, correlation_id: str | None) -> dict[str, Any]:
        return {
            "error": self.code,
            "reason": self.reason,
            "details": self.details,
            "step": self.step,
            "correlation_id": correlation_id,
        }


class Unauthorized(ReversalError):
    code = "Unauthorized"
    status_code = 401


class Forbidden(ReversalError):
    code = "Forbidden"
    status_code = 403


class ValidationFailed(ReversalError):
    code = "ValidationFailed"
    status_code = 422


class NotFound(ReversalError):
    code = "NotFound"
    status_code = 404


class CannotReverse(ReversalError):
    code = "CannotReverse"
    status_code = 409


class UnknownEntityType(ReversalError):
    code = "UnknownEntityType"
    status_code = 400


class DbError(ReversalError):
    """A storage read or write failed at a named step."""

    code = "DbError"
    status_code = 500

    def __init__(self, step: str, reason: str, details: Any = None):
        super().__init__(reason, details=details, step=step)


class AuditError(ReversalError):
    """Writing the compensating ledger entry failed."""

    code = "AuditError"
    status_code = 500


class UnknownStrategy(ReversalError):
    code = "UnknownStrategy"
    status_code = 500
