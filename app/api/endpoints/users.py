"""
User Management Endpoints

CRUD/import/export for the people of a company, plus /me for the
caller's own record.

TENANT_ISOLATION: all operations are scoped to the caller's company.
Users that still hold assets, seats or accessories cannot be deleted (409).
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import RequestContext, get_request_context
from app.api.endpoints.crud import add_crud_routes
from app.database import get_db
from app.services.actions import run_action, to_response
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me")
async def get_current_user_info(
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """The user row linked to the caller's identity-provider subject."""
    service = UserService(db, context)
    return to_response(run_action(db, service.current))


add_crud_routes(router, UserService)
