"""
Asset Endpoints

Standard CRUD/import/export routes plus the checkout state machine and
the dashboard counters.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import RequestContext, get_request_context
from app.api.endpoints.crud import add_crud_routes
from app.database import get_db
from app.schemas.asset import AssetCheckout
from app.services.actions import run_action, to_response
from app.services.assets import AssetService

router = APIRouter(prefix="/assets", tags=["assets"])


@router.get("/stats")
async def asset_stats(
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Totals per state and the share of in-service assets that are checked out."""
    service = AssetService(db, context)
    return to_response(run_action(db, service.stats))


@router.post("/{asset_id}/checkout")
async def checkout_asset(
    asset_id: str,
    body: AssetCheckout,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """
    Assign an available asset to a user.

    Fails with 400 if the asset is checked out or archived, or if the user
    is not an active user of the same company.
    """
    service = AssetService(db, context)
    return to_response(run_action(db, lambda: service.checkout(asset_id, body)))


@router.post("/{asset_id}/checkin")
async def checkin_asset(
    asset_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    service = AssetService(db, context)
    return to_response(run_action(db, lambda: service.checkin(asset_id)))


@router.post("/{asset_id}/archive")
async def archive_asset(
    asset_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    service = AssetService(db, context)
    return to_response(run_action(db, lambda: service.archive(asset_id)))


add_crud_routes(router, AssetService)
