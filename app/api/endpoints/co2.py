"""
CO2 Footprint Endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import RequestContext, get_request_context
from app.database import get_db
from app.services.actions import run_action, to_response
from app.services.co2 import CO2ConsistencyService

router = APIRouter(tags=["co2"])


@router.post("/assets/{asset_id}/co2")
def calculate_asset_co2(
    asset_id: str,
    force: bool = Query(False, description="Ignore cached and stored results"),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Estimate (or reuse the estimate for identical hardware) and store it."""
    service = CO2ConsistencyService(db, context)
    return to_response(run_action(db, lambda: service.calculate(asset_id, force_recalculate=force)))


@router.get("/assets/{asset_id}/co2")
def get_asset_co2(
    asset_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Latest stored estimate; data is null when none exists yet."""
    service = CO2ConsistencyService(db, context)
    return to_response(run_action(db, lambda: service.latest(asset_id)))


@router.delete("/co2/cache")
def clear_co2_cache(
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    """Drop the in-memory results of the caller's company. Stored records stay."""
    service = CO2ConsistencyService(db, context)
    return to_response(run_action(db, lambda: {"cleared": service.clear_cache()}))
