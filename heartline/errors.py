"""
heartline.errors — Typed Decision Errors
=========================================

Every denial carries a machine-readable ``code`` so callers can render a
precise message.  The HTTP layer maps each class to a status code; only
:class:`DependencyUnavailable` is safe to retry.
"""

from __future__ import annotations

__all__ = [
    "DependencyUnavailable",
    "HeartlineError",
    "NotFound",
    "PolicyDenied",
    "StateConflict",
    "Unauthorized",
    "ValidationError",
]


class HeartlineError(Exception):
    """Base class for all engine errors."""

    status_code: int = 400
    retryable: bool = False

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
        }


class ValidationError(HeartlineError):
    """Malformed input such as a non-positive amount or an unknown role."""

    status_code = 422


class NotFound(ValidationError):
    """A referenced member or request does not exist."""

    status_code = 404


class PolicyDenied(HeartlineError):
    """An eligibility or privacy rule rejected the intent."""

    status_code = 403


class StateConflict(HeartlineError):
    """Duplicate pending request, non-pending transition, or lost race."""

    status_code = 409


class Unauthorized(HeartlineError):
    """The actor may not perform this operation on the subject."""

    status_code = 403


class DependencyUnavailable(HeartlineError):
    """The store or a collaborator failed; the caller may retry."""

    status_code = 503
    retryable = True

    def __init__(self, dependency: str, message: str | None = None) -> None:
        super().__init__("dependency-unavailable", message or f"{dependency} unavailable")
        self.dependency = dependency
