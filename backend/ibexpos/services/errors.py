# Overview: Service-layer error hierarchy; every message is user-facing.

from __future__ import annotations

from .. import messages


class ServiceError(Exception):
    """A business-rule failure. The message is shown to the user as-is."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}


class NotFoundError(ServiceError):
    status_code = 404


class AuthError(ServiceError):
    """Bad credentials or missing session."""
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class TenantAccessError(ForbiddenError):
    """
    Raised when a principal reaches for a store outside its tenant.

    Answers 404 with the generic "store not found" text so probing cannot tell
    a foreign store from a missing one.
    """
    status_code = 404

    def __init__(self, message: str = messages.STORE_NOT_FOUND):
        super().__init__(message)


class ConflictError(ServiceError):
    status_code = 409
