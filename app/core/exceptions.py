"""
Custom Exceptions

The error taxonomy shared by services and routes. Services raise these;
run_action turns them into failed envelopes and to_response maps the
error_type back to an HTTP status code.
"""
from fastapi import status


class AppError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)


class Unauthorized(AppError):
    """No session, invalid session, or a session without a company."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ValidationError(AppError):
    """Schema or uniqueness violation."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "validation_error"

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message)


class InvalidStateTransition(ValidationError):
    """A checkout/checkin/archive that the current state does not allow."""

    error_type = "invalid_state"


class NotFound(AppError):
    """The id does not exist in the caller's company."""

    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"

    def __init__(self, entity: str = "Record", entity_id: str = ""):
        message = f"{entity} not found: {entity_id}" if entity_id else f"{entity} not found"
        super().__init__(message)


class Conflict(AppError):
    """Referential-integrity violation, e.g. deleting a row still in use."""

    status_code = status.HTTP_409_CONFLICT
    error_type = "conflict"

    def __init__(self, message: str = "Record is still referenced"):
        super().__init__(message)


class InternalError(AppError):
    """Unexpected or ORM-level failure."""


ERROR_STATUS = {
    cls.error_type: cls.status_code
    for cls in (Unauthorized, ValidationError, InvalidStateTransition, NotFound, Conflict, InternalError)
}
