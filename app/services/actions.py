"""
Action Envelope

Every service call made from a route goes through run_action. It turns
the outcome into an ActionResult, so no exception escapes to the HTTP
layer, and to_response maps the result onto the {success, data, error}
envelope with a status code taken from the error kind.
"""
from dataclasses import dataclass
from typing import Any, Callable, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    ERROR_STATUS,
    AppError,
    Conflict,
    InternalError,
    ValidationError,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ActionResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def failure(cls, exc: AppError) -> "ActionResult":
        return cls(success=False, error=exc.message, error_type=exc.error_type)


def format_validation_error(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into one readable line."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid input"


def integrity_error(exc: IntegrityError) -> AppError:
    """Translate a database constraint failure into the error taxonomy."""
    text = str(exc.orig).lower()
    if "foreign key" in text:
        return Conflict("Record is still referenced by other records")
    if "unique" in text or "duplicate" in text:
        return ValidationError("A record with the same unique value already exists")
    return ValidationError("Record violates a database constraint")


def run_action(db: Session, action: Callable[[], Any]) -> ActionResult:
    """
    Execute a service action and capture its outcome.

    Any failure rolls the session back. Expected errors are logged at
    INFO, unexpected ones with the traceback.
    """
    try:
        return ActionResult(success=True, data=action())
    except AppError as exc:
        db.rollback()
        logger.info(f"Action failed ({exc.error_type}): {exc.message}")
        return ActionResult.failure(exc)
    except PydanticValidationError as exc:
        db.rollback()
        return ActionResult.failure(ValidationError(format_validation_error(exc)))
    except IntegrityError as exc:
        db.rollback()
        error = integrity_error(exc)
        logger.warning(f"Integrity error mapped to {error.error_type}: {exc.orig}")
        return ActionResult.failure(error)
    except DataError as exc:
        db.rollback()
        logger.warning(f"Value rejected by the database: {exc.orig}")
        return ActionResult.failure(ValidationError("Value does not fit its column"))
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Database error: {exc}", exc_info=True)
        return ActionResult.failure(InternalError("Database error"))
    except Exception as exc:
        db.rollback()
        logger.error(f"Unhandled error in action: {type(exc).__name__}: {exc}", exc_info=True)
        return ActionResult.failure(InternalError())


def to_response(result: ActionResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Render an ActionResult as the response envelope."""
    if result.success:
        return JSONResponse(
            status_code=success_status,
            content={"success": True, "data": jsonable_encoder(result.data, by_alias=True)}
        )
    return JSONResponse(
        status_code=ERROR_STATUS.get(result.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content={"success": False, "error": result.error}
    )
