"""
API Dependencies

Reusable FastAPI dependencies that turn the principal stored by
AuthContextMiddleware into a validated RequestContext.

Every service call takes the context, so the company filter is never
optional.
"""
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.company import Company
from app.core.exceptions import Unauthorized
from app.utils.logging import log_security_event
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Who is calling and on behalf of which company."""

    user_id: str
    company_id: str
    ip_address: Optional[str] = None


def get_request_context(
    request: Request,
    db: Session = Depends(get_db)
) -> RequestContext:
    """
    Build the context for the current request.

    Fails with Unauthorized when the middleware did not attach a principal,
    the company is unknown, or the company is inactive.
    """
    user_id = getattr(request.state, "user_id", None)
    company_id = getattr(request.state, "company_id", None)
    if not user_id or not company_id:
        raise Unauthorized("User is not associated with a company")

    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        log_security_event("unknown_company", {"company_id": company_id, "user_id": user_id}, logger)
        raise Unauthorized("User is not associated with a company")

    if not company.is_active:
        log_security_event("inactive_company", {"company_id": company_id, "user_id": user_id}, logger)
        raise Unauthorized("Company account is inactive")

    return RequestContext(
        user_id=user_id,
        company_id=company.id,
        ip_address=request.client.host if request.client else None
    )
