"""
Domain exceptions raised by services and translated into the standard
ErrorResponse envelope by the handlers registered in qms.api.main.
"""

from __future__ import annotations

from typing import Any, Optional


class QmsError(Exception):
    """Base class for domain errors; carries an HTTP status and error type code."""

    status_code: int = 400
    error_type: str = "domain_error"

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(QmsError):
    status_code = 404
    error_type = "not_found"


class PermissionDeniedError(QmsError):
    status_code = 403
    error_type = "permission_denied"


class ConflictError(QmsError):
    status_code = 409
    error_type = "conflict"


class InvalidUploadError(QmsError):
    status_code = 422
    error_type = "invalid_upload"
