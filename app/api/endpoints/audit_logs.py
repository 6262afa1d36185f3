"""
Audit Log Endpoints

Read-only. Entries are written by the services; there is no route that
creates, changes or deletes them.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import RequestContext, get_request_context
from app.database import get_db
from app.services.actions import run_action, to_response
from app.services.audit import AuditService

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


@router.get("")
async def list_audit_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200, alias="pageSize"),
    action: Optional[str] = None,
    entity: Optional[str] = None,
    entity_id: Optional[str] = Query(None, alias="entityId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """
    Audit entries of the caller's company, newest first.

    action and entity match exactly (ASSET_CREATED, ASSET); the date range
    is inclusive.
    """
    service = AuditService(db, context)
    return to_response(run_action(db, lambda: service.list(
        page=page,
        page_size=page_size,
        action=action,
        entity=entity,
        entity_id=entity_id,
        start_date=start_date,
        end_date=end_date
    )))


@router.get("/{entity_id}")
async def entity_history(
    entity_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Every audit entry about one record."""
    service = AuditService(db, context)
    return to_response(run_action(db, lambda: service.history(entity_id)))
