"""
License Endpoints

CRUD/import/export plus seat checkout and checkin.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import RequestContext, get_request_context
from app.api.endpoints.crud import add_crud_routes
from app.database import get_db
from app.schemas.license import LicenseSeatRequest
from app.services.actions import run_action, to_response
from app.services.licenses import LicenseService

router = APIRouter(prefix="/licenses", tags=["licenses"])


@router.get("/usage")
async def license_usage(
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Seats, allocations and the below-threshold flag per license."""
    service = LicenseService(db, context)
    return to_response(run_action(db, service.usage))


@router.post("/{license_id}/checkout")
async def checkout_seat(
    license_id: str,
    body: LicenseSeatRequest,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    service = LicenseService(db, context)
    return to_response(
        run_action(db, lambda: service.checkout(license_id, body)),
        status.HTTP_201_CREATED
    )


@router.post("/{license_id}/checkin")
async def checkin_seat(
    license_id: str,
    body: LicenseSeatRequest,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    service = LicenseService(db, context)
    return to_response(run_action(db, lambda: service.checkin(license_id, body)))


@router.get("/{license_id}/seats")
async def list_seats(
    license_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    service = LicenseService(db, context)
    return to_response(run_action(db, lambda: service.seats(license_id)))


add_crud_routes(router, LicenseService)
