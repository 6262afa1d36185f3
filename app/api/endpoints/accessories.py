"""
Accessory Endpoints

CRUD/import/export plus stock checkout. Checkin works on an assignment
id because one user may hold several handouts of the same accessory.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import RequestContext, get_request_context
from app.api.endpoints.crud import add_crud_routes
from app.database import get_db
from app.schemas.accessory import AccessoryCheckout
from app.services.accessories import AccessoryService
from app.services.actions import run_action, to_response

router = APIRouter(prefix="/accessories", tags=["accessories"])


@router.get("/stock")
async def accessory_stock(
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    service = AccessoryService(db, context)
    return to_response(run_action(db, service.stock))


@router.post("/assignments/{assignment_id}/checkin")
async def checkin_assignment(
    assignment_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    service = AccessoryService(db, context)
    return to_response(run_action(db, lambda: service.checkin(assignment_id)))


@router.post("/{accessory_id}/checkout")
async def checkout_accessory(
    accessory_id: str,
    body: AccessoryCheckout,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    service = AccessoryService(db, context)
    return to_response(
        run_action(db, lambda: service.checkout(accessory_id, body)),
        status.HTTP_201_CREATED
    )


@router.get("/{accessory_id}/assignments")
async def list_assignments(
    accessory_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    service = AccessoryService(db, context)
    return to_response(run_action(db, lambda: service.assignments(accessory_id)))


add_crud_routes(router, AccessoryService)
