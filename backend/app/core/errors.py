"""
Centralized error handling for service and store failures.
Services raise these; a single handler in main maps them to HTTP responses so routes stay thin.
"""
from __future__ import annotations

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Constants: status codes for known error categories
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_UNAUTHORIZED = 401
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_INTERNAL_ERROR = 500
STATUS_BAD_GATEWAY = 502  # Radar down or rejected the request


class StudyRoomError(Exception):
    """Base for per-request failures. None of these is fatal to the process."""

    status_code = STATUS_INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(StudyRoomError):
    """Malformed or missing input."""

    status_code = STATUS_BAD_REQUEST


class NotFoundError(StudyRoomError):
    """Referenced building, study space, status or user does not exist."""

    status_code = STATUS_NOT_FOUND


class ConflictError(StudyRoomError):
    """Create would duplicate an existing key (building name, username, email)."""

    status_code = STATUS_CONFLICT


class RateLimitedError(StudyRoomError):
    """Reporter already filed a report for this study space within the window."""

    status_code = STATUS_CONFLICT

    def __init__(self, retry_after_minutes: int) -> None:
        super().__init__(
            "You have already added an availability report. "
            f"Please wait {retry_after_minutes} minutes to add another report to this study space"
        )
        self.retry_after_minutes = retry_after_minutes


class AuthError(StudyRoomError):
    """Missing/invalid session or insufficient privileges."""

    status_code = STATUS_UNAUTHORIZED


class StoreError(StudyRoomError):
    """Database operation failed. Never retried here; the caller may retry."""

    status_code = STATUS_INTERNAL_ERROR


class ExternalSyncError(StudyRoomError):
    """Radar request failed. Logged only on the report path."""

    status_code = STATUS_BAD_GATEWAY


def service_error_to_http(exc: StudyRoomError) -> HTTPException:
    """
    Map a service exception into an HTTPException.
    RateLimitedError also carries Retry-After (seconds) so clients can back off without parsing the text.
    """
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after_minutes * 60)}
    return HTTPException(status_code=exc.status_code, detail=exc.message, headers=headers)


def format_validation_errors(errors: list[dict]) -> str:
    """'field: message; field: message' from FastAPI/Pydantic error dicts."""
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)
