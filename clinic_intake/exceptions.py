"""
exceptions.py
=============
Domain exceptions raised by the service layer. The FastAPI app renders any
``ClinicError`` as a JSON body with its HTTP status code.
"""

from typing import Any, Dict, Optional


class ClinicError(Exception):
    """Base exception for all clinic intake errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "CLINIC_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "detail": self.message,
            "error": self.code,
            "details": self.details,
        }


class InvalidRequestError(ClinicError):
    """Required fields missing or malformed."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="INVALID_REQUEST", details=details)


class NotFoundError(ClinicError):
    """A referenced record does not exist."""

    status_code = 404

    def __init__(self, message: str, resource: str = "unknown", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            code="NOT_FOUND",
            details={"resource": resource, **(details or {})},
        )
        self.resource = resource


class ConflictError(ClinicError):
    """The operation conflicts with existing data."""

    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFLICT", details=details)


class AuthError(ClinicError):
    """Authentication failed (bad credentials)."""

    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, code="AUTH_ERROR")


class PersistenceError(ClinicError):
    """The database write failed; nothing was stored."""

    status_code = 500

    def __init__(self, message: str = "Internal server error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="PERSISTENCE_ERROR", details=details)
