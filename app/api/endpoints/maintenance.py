"""
Maintenance Endpoints

Standard CRUD/import/export under /maintenance, plus the event list of
one asset. Imports name the asset by its serial number.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import RequestContext, get_request_context
from app.api.endpoints.crud import add_crud_routes
from app.database import get_db
from app.services.actions import run_action, to_response
from app.services.maintenance import MaintenanceService

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.get("/asset/{asset_id}")
async def list_asset_maintenance(
    asset_id: str,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    service = MaintenanceService(db, context)
    return to_response(run_action(db, lambda: service.for_asset(asset_id)))


add_crud_routes(router, MaintenanceService)
