"""
Typed HTTP errors shared by the service layer.

Services raise these instead of bare HTTPException when a caller (route or
the auth flow coordinator) needs to tell failure kinds apart.
"""

from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)

# PostgREST / Postgres error codes
PG_INSUFFICIENT_PRIVILEGE = "42501"
PGRST_NO_ROWS = "PGRST116"
PG_UNIQUE_VIOLATION = "23505"


class NotAuthenticatedError(HTTPException):
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class PermissionDeniedError(HTTPException):
    def __init__(self, detail: str = "Permission denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ProfileNotFoundError(NotFoundError):
    def __init__(self, detail: str = "User profile not found"):
        super().__init__(detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidDataError(HTTPException):
    def __init__(self, detail: str = "Invalid data"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


def _error_code(exc: Exception):
    code = getattr(exc, "code", None)
    if code is None and exc.args and isinstance(exc.args[0], dict):
        code = exc.args[0].get("code")
    return str(code) if code is not None else None


def classify_backend_error(exc: Exception, not_found_detail: str = "Not found") -> HTTPException:
    """Map a Supabase/PostgREST error onto the matching HTTPException type."""
    if isinstance(exc, HTTPException):
        return exc
    code = _error_code(exc)
    message = getattr(exc, "message", None) or str(exc)
    if code == PG_INSUFFICIENT_PRIVILEGE:
        return PermissionDeniedError(message)
    if code == PGRST_NO_ROWS:
        return NotFoundError(not_found_detail)
    if code == PG_UNIQUE_VIOLATION:
        return ConflictError(message)
    logger.error(f"Backend error ({code}): {message}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)
