"""
Maintenance Service

Maintenance events of the company's assets. The technician is the
caller; the status label falls back to the company's "Scheduled" label
when none is given.
"""
from typing import Any, Dict, List

from app.core.exceptions import NotFound, ValidationError
from app.models.asset import Asset
from app.models.maintenance import SCHEDULED_LABEL, Maintenance
from app.models.reference import StatusLabel
from app.schemas.maintenance import MaintenanceCreate, MaintenanceRead, MaintenanceUpdate
from app.services.crud import EntityService
from app.services.fields import field, reference


class MaintenanceService(EntityService):
    model = Maintenance
    entity = "MAINTENANCE"
    label = "Maintenance event"
    plural = "maintenance"
    import_key = "maintenance"

    create_schema = MaintenanceCreate
    update_schema = MaintenanceUpdate
    read_schema = MaintenanceRead

    unique_fields = ()
    references = {
        "asset_id": Asset,
        "status_label_id": StatusLabel,
    }
    search_fields = ("title", "notes")
    order_fields = ("title", "start_date", "completion_date", "estimated_cost", "created_at", "updated_at")
    default_order = "start_date"
    import_fields = (
        reference("asset", "Asset", Asset, auto_create=False, lookup="serial_number", required=True),
        field("title", "Title", True),
        field("start_date", "Start Date", True),
        field("completion_date", "Completion Date"),
        field("is_warranty", "Warranty", False, "Is Warranty"),
        field("estimated_cost", "Estimated Cost", False, "Cost"),
        field("notes", "Notes"),
        reference("status_label", "Status", StatusLabel),
    )

    def describe(self, event: Maintenance) -> str:
        return event.title

    def build(self, values: Dict[str, Any]) -> Maintenance:
        values = dict(values)
        values.setdefault("technician_id", self.context.user_id)
        if not values.get("status_label_id"):
            scheduled = self.db.query(StatusLabel.id).filter(
                StatusLabel.company_id == self.context.company_id,
                StatusLabel.name == SCHEDULED_LABEL
            ).first()
            values["status_label_id"] = scheduled[0] if scheduled else None
        return super().build(values)

    def validate_update(self, event: Maintenance, changes: Dict[str, Any]) -> None:
        start_date = changes.get("start_date", event.start_date)
        completion_date = changes.get("completion_date", event.completion_date)
        if start_date and completion_date and completion_date < start_date:
            raise ValidationError("Completion date cannot be before the start date")

    def for_asset(self, asset_id: str) -> List[MaintenanceRead]:
        """Events of one asset, most recent start first."""
        asset = self.db.query(Asset.id).filter(
            Asset.id == asset_id,
            Asset.company_id == self.context.company_id
        ).first()
        if asset is None:
            raise NotFound("Asset", asset_id)
        events = self._query().filter(Maintenance.asset_id == asset_id).order_by(
            Maintenance.start_date.desc(), Maintenance.created_at.desc()
        ).all()
        return [self.to_read(event) for event in events]
