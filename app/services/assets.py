"""
Asset Service

CRUD for assets plus the checkout state machine:

    available -> checked_out -> available
    available | checked_out -> archived (terminal)

Each transition is one conditional UPDATE filtered on the expected
state. When two requests race for the same asset the first commit wins
and the other matches zero rows and fails with InvalidStateTransition.
"""
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func, update

from app.core.exceptions import Conflict, InvalidStateTransition
from app.models.asset import Asset, AssetHistory, AssetState
from app.models.reference import (
    AssetModel,
    Category,
    Department,
    Inventory,
    Location,
    StatusLabel,
    Supplier,
)
from app.schemas.asset import AssetCheckout, AssetCreate, AssetRead, AssetStats, AssetUpdate
from app.services.crud import EntityService
from app.services.fields import field, reference
from app.utils.logging import get_logger

logger = get_logger(__name__)


class AssetService(EntityService):
    model = Asset
    entity = "ASSET"
    label = "Asset"
    plural = "assets"
    import_key = "assets"

    create_schema = AssetCreate
    update_schema = AssetUpdate
    read_schema = AssetRead

    unique_fields = ("serial_number",)
    references = {
        "model_id": AssetModel,
        "category_id": Category,
        "status_label_id": StatusLabel,
        "location_id": Location,
        "department_id": Department,
        "inventory_id": Inventory,
        "supplier_id": Supplier,
    }
    search_fields = ("name", "serial_number", "po_number")
    order_fields = (
        "name", "serial_number", "state", "purchase_date",
        "purchase_price", "created_at", "updated_at",
    )
    import_fields = (
        field("name", "Asset Name", True),
        field("serial_number", "Serial Number", True, "Asset Tag"),
        reference("model", "Model", AssetModel),
        reference("category", "Category", Category),
        reference("status_label", "Status Label", StatusLabel),
        reference("location", "Location", Location),
        reference("department", "Department", Department),
        reference("inventory", "Inventory", Inventory),
        reference("supplier", "Supplier", Supplier, auto_create=False),
        field("purchase_date", "Purchase Date"),
        field("end_of_life", "End of Life"),
        field("purchase_price", "Purchase Price"),
        field("po_number", "PO Number"),
        field("notes", "Notes"),
    )

    # Maintenance lists show the asset name and go with a deleted asset
    invalidates = ("maintenance",)

    def before_remove(self, asset: Asset) -> None:
        if asset.state == AssetState.CHECKED_OUT:
            raise Conflict("Asset is checked out; check it in before deleting it")

    def _transition(
        self,
        asset: Asset,
        expected: Iterable[AssetState],
        target: AssetState,
        user_id: Optional[str],
        error: str
    ) -> None:
        result = self.db.execute(
            update(Asset)
            .where(
                Asset.id == asset.id,
                Asset.company_id == self.context.company_id,
                Asset.state.in_(list(expected))
            )
            .values(state=target, user_id=user_id, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateTransition(error)

    def _record(self, asset: Asset, event_type: str, user_id: Optional[str], notes: Optional[str] = None) -> None:
        self.db.add(AssetHistory(
            asset_id=asset.id,
            company_id=self.context.company_id,
            type=event_type,
            user_id=user_id,
            notes=notes
        ))

    def _finish(self, asset: Asset, action: str, details: str) -> AssetRead:
        self.db.commit()
        self.db.refresh(asset)
        result = self.to_read(asset)
        logger.info(
            f"Asset {asset.id} {action.lower()}: {details}",
            extra={"company_id": self.context.company_id, "entity": self.entity, "entity_id": asset.id}
        )
        self.after_change(action, asset.id, details)
        return result

    def checkout(self, asset_id: str, body: AssetCheckout) -> AssetRead:
        """Assign an available asset to a user of the same company."""
        asset = self._get_or_404(asset_id)
        user = self.require_user(body.user_id)

        if asset.state != AssetState.AVAILABLE:
            raise InvalidStateTransition(f"Asset is {asset.state.value.replace('_', ' ')}, not available")

        self._transition(
            asset, (AssetState.AVAILABLE,), AssetState.CHECKED_OUT, user.id,
            "Asset was checked out by another request"
        )
        self._record(asset, "assignment", user.id, body.notes)
        return self._finish(asset, "CHECKOUT", f"Checked out to {user.name}")

    def checkin(self, asset_id: str) -> AssetRead:
        asset = self._get_or_404(asset_id)
        if asset.state != AssetState.CHECKED_OUT:
            raise InvalidStateTransition("Asset is not checked out")

        previous_user = asset.user_id
        self._transition(
            asset, (AssetState.CHECKED_OUT,), AssetState.AVAILABLE, None,
            "Asset was checked in by another request"
        )
        self._record(asset, "return", previous_user)
        return self._finish(asset, "CHECKIN", "Checked in")

    def archive(self, asset_id: str) -> AssetRead:
        """Retire an asset. Clears the assignee; archived is terminal."""
        asset = self._get_or_404(asset_id)
        if asset.state == AssetState.ARCHIVED:
            raise InvalidStateTransition("Asset is already archived")

        self._transition(
            asset, (AssetState.AVAILABLE, AssetState.CHECKED_OUT), AssetState.ARCHIVED, None,
            "Asset was archived by another request"
        )
        self._record(asset, "archive", asset.user_id)
        return self._finish(asset, "ARCHIVED", "Archived")

    def stats(self) -> AssetStats:
        counts = dict(
            self._query()
            .with_entities(Asset.state, func.count(Asset.id))
            .group_by(Asset.state)
            .all()
        )
        available = counts.get(AssetState.AVAILABLE, 0)
        checked_out = counts.get(AssetState.CHECKED_OUT, 0)
        archived = counts.get(AssetState.ARCHIVED, 0)
        in_service = available + checked_out

        return AssetStats(
            total=available + checked_out + archived,
            available=available,
            checked_out=checked_out,
            archived=archived,
            utilization_rate=round(checked_out / in_service, 4) if in_service else 0.0
        )
