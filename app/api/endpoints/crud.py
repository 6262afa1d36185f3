"""
Generic Entity Endpoints

add_crud_routes() attaches the standard routes of one entity to a
router:

    GET    ""                 list (search, orderBy, order)
    POST   ""                 create
    POST   /import            bulk import (JSON {"<plural>": [...]} or text/csv)
    GET    /export            CSV download
    GET    /import/template   CSV header row
    GET    /{record_id}       read
    PUT    /{record_id}       partial update
    DELETE /{record_id}       hard delete

Entity routers define their own fixed paths (/stats, /usage, ...)
before calling it, so those are matched ahead of /{record_id}.

TENANT_ISOLATION: every handler builds its service from the
RequestContext, which carries the caller's company.
"""
from typing import Any, List, Optional, Type
import io

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import Response, StreamingResponse
from sqlalchemy.orm import Session

from app.api.deps import RequestContext, get_request_context
from app.core.exceptions import ValidationError
from app.database import get_db
from app.schemas.common import ListFilter
from app.services.actions import ActionResult, run_action, to_response
from app.services.bulk_import import bulk_create, parse_csv, rows_from_payload
from app.services.crud import EntityService
from app.services.export import export_csv, export_filename, template_csv

CSV_TYPES = ("text/csv", "application/csv", "text/plain")


async def read_import_rows(request: Request, key: str) -> List[Any]:
    """Rows of an import request, from a CSV body or a JSON envelope."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    body = await request.body()

    if content_type in CSV_TYPES:
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError:
            raise ValidationError("CSV must be UTF-8 encoded")
        return parse_csv(text)

    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Request body is not valid JSON")
    return rows_from_payload(payload, key)


def add_crud_routes(router: APIRouter, service_cls: Type[EntityService]) -> APIRouter:
    create_schema = service_cls.create_schema
    update_schema = service_cls.update_schema
    plural = service_cls.plural

    @router.get("", summary=f"List {plural}")
    async def list_records(
        search: Optional[str] = Query(None, max_length=255),
        order_by: Optional[str] = Query(None, alias="orderBy"),
        order: str = Query("asc", pattern="^(asc|desc)$"),
        context: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
    ):
        service = service_cls(db, context)
        filters = ListFilter(search=search, order_by=order_by, order=order)
        return to_response(run_action(db, lambda: service.get_all(filters)))

    @router.post("", summary=f"Create a record in {plural}")
    async def create_record(
        payload: create_schema,
        context: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
    ):
        service = service_cls(db, context)
        return to_response(run_action(db, lambda: service.insert(payload)), status.HTTP_201_CREATED)

    @router.post("/import", summary=f"Bulk import {plural}")
    async def import_records(
        request: Request,
        context: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
    ):
        """
        Import rows from CSV or JSON.

        400 only when the payload itself is unusable; rows that fail are
        listed in the 200 report.
        """
        service = service_cls(db, context)
        try:
            rows = await read_import_rows(request, service_cls.import_key)
        except ValidationError as e:
            return to_response(ActionResult.failure(e))
        return to_response(run_action(db, lambda: bulk_create(service, rows)))

    @router.get("/export", summary=f"Export {plural} as CSV")
    async def export_records(
        context: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
    ):
        service = service_cls(db, context)
        result = run_action(db, lambda: export_csv(service))
        if not result.success:
            return to_response(result)
        return StreamingResponse(
            io.BytesIO(result.data.encode("utf-8")),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{export_filename(service)}"'}
        )

    @router.get("/import/template", summary=f"CSV template for {plural} imports")
    async def import_template(context: RequestContext = Depends(get_request_context)):
        return Response(
            content=template_csv(service_cls),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{plural}-template.csv"'}
        )

    @router.get("/{record_id}", summary=f"Get one of {plural}")
    async def get_record(
        record_id: str,
        context: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
    ):
        service = service_cls(db, context)
        return to_response(run_action(db, lambda: service.get(record_id)))

    @router.put("/{record_id}", summary=f"Update one of {plural}")
    async def update_record(
        record_id: str,
        payload: update_schema,
        context: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
    ):
        service = service_cls(db, context)
        return to_response(run_action(db, lambda: service.update(record_id, payload)))

    @router.delete("/{record_id}", summary=f"Delete one of {plural}")
    async def delete_record(
        record_id: str,
        context: RequestContext = Depends(get_request_context),
        db: Session = Depends(get_db)
    ):
        service = service_cls(db, context)
        return to_response(run_action(db, lambda: service.remove(record_id)))

    return router
