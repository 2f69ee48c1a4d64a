"""
Error taxonomy for the JobHunter API.

Services raise these; the handler registered in ``jobhunter.main`` turns them
into ``{"error": message}`` JSON bodies with the matching HTTP status.
"""
import json
from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that map to a client-visible response."""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Bad or missing input."""
    status_code = 400


class Unauthenticated(AppError):
    """No session, or the session no longer maps to a user."""
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404


class PayloadTooLarge(AppError):
    status_code = 413


class UnsupportedTypeError(AppError):
    """Uploaded file MIME type is not in the resume capability table."""
    status_code = 415

    def __init__(self, mime_type: Optional[str]):
        super().__init__(f"Unsupported file type: {mime_type or 'unknown'}")
        self.mime_type = mime_type


class GatewayError(AppError):
    """
    Non-2xx response from an external API.

    The upstream status and body are preserved; clients always see 502.
    """
    status_code = 502

    def __init__(self, service: str, status: int, body: Any):
        rendered = json.dumps(body) if isinstance(body, (dict, list)) else str(body)
        super().__init__(f"{service} API error: {status} - {rendered}")
        self.service = service
        self.status = status
        self.body = body


class InternalError(AppError):
    status_code = 500
