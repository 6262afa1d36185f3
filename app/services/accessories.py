"""
Accessory Service

CRUD for accessories plus stock handouts. A checkout moves units from
available to assigned with a conditional UPDATE that only matches while
enough units are left; the assignment row is written in the same
transaction. Checking an assignment in returns all of its units.
"""
from typing import Any, Dict, List

from sqlalchemy import update

from app.core.exceptions import Conflict, InvalidStateTransition, NotFound, ValidationError
from app.models.accessory import Accessory, AccessoryAssignment
from app.models.reference import (
    AssetModel,
    Category,
    Department,
    Inventory,
    Location,
    StatusLabel,
    Supplier,
)
from app.schemas.accessory import (
    AccessoryAssignmentRead,
    AccessoryCheckout,
    AccessoryCreate,
    AccessoryRead,
    AccessoryStock,
    AccessoryUpdate,
)
from app.services.crud import EntityService
from app.services.fields import field, reference
from app.utils.logging import get_logger

logger = get_logger(__name__)


class AccessoryService(EntityService):
    model = Accessory
    entity = "ACCESSORY"
    label = "Accessory"
    plural = "accessories"
    import_key = "accessories"

    create_schema = AccessoryCreate
    update_schema = AccessoryUpdate
    read_schema = AccessoryRead

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
    order_fields = ("name", "serial_number", "total_quantity", "quantity_assigned", "created_at", "updated_at")
    import_fields = (
        field("name", "Accessory Name", True),
        field("serial_number", "Serial Number", True),
        field("total_quantity", "Total Quantity", True),
        field("reorder_point", "Reorder Point"),
        field("price", "Price"),
        field("alert_email", "Alert Email"),
        field("purchase_date", "Purchase Date"),
        field("end_of_life", "End of Life"),
        field("po_number", "PO Number"),
        field("notes", "Notes"),
        reference("model", "Model", AssetModel),
        reference("category", "Category", Category),
        reference("status_label", "Status Label", StatusLabel),
        reference("location", "Location", Location),
        reference("department", "Department", Department),
        reference("inventory", "Inventory", Inventory),
        reference("supplier", "Supplier", Supplier, auto_create=False),
    )

    def validate_update(self, accessory: Accessory, changes: Dict[str, Any]) -> None:
        total = changes.get("total_quantity", accessory.total_quantity)
        reorder_point = changes.get("reorder_point", accessory.reorder_point)

        if total < accessory.quantity_assigned:
            raise ValidationError(
                f"Cannot reduce total quantity to {total}: {accessory.quantity_assigned} units are assigned"
            )
        if reorder_point is not None and reorder_point > total:
            raise ValidationError("Reorder point cannot exceed total quantity")

    def before_remove(self, accessory: Accessory) -> None:
        if accessory.quantity_assigned > 0:
            raise Conflict(f"Accessory has {accessory.quantity_assigned} units checked out; check them in first")

    def checkout(self, accessory_id: str, body: AccessoryCheckout) -> AccessoryAssignmentRead:
        accessory = self._get_or_404(accessory_id)
        user = self.require_user(body.user_id)

        result = self.db.execute(
            update(Accessory)
            .where(
                Accessory.id == accessory.id,
                Accessory.company_id == self.context.company_id,
                Accessory.quantity_assigned + body.quantity <= Accessory.total_quantity
            )
            .values(quantity_assigned=Accessory.quantity_assigned + body.quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateTransition(
                f"Only {accessory.available_quantity} units of {accessory.name} are available"
            )

        assignment = AccessoryAssignment(
            company_id=self.context.company_id,
            accessory_id=accessory.id,
            user_id=user.id,
            quantity=body.quantity,
            notes=body.notes
        )
        self.db.add(assignment)
        self.db.commit()
        self.db.refresh(assignment)

        logger.info(
            f"Accessory checked out: {accessory.id} x{body.quantity} -> {user.id}",
            extra={"company_id": self.context.company_id, "entity": self.entity, "entity_id": accessory.id}
        )
        self.after_change("CHECKOUT", accessory.id, f"{body.quantity} units to {user.name}")
        return AccessoryAssignmentRead.model_validate(assignment)

    def checkin(self, assignment_id: str) -> AccessoryRead:
        """Return every unit of an assignment to stock."""
        assignment = self.db.query(AccessoryAssignment).filter(
            AccessoryAssignment.id == assignment_id,
            AccessoryAssignment.company_id == self.context.company_id
        ).first()
        if assignment is None:
            raise NotFound("Accessory assignment", assignment_id)

        accessory = assignment.accessory
        quantity = assignment.quantity
        self.db.delete(assignment)
        self.db.execute(
            update(Accessory)
            .where(Accessory.id == accessory.id, Accessory.quantity_assigned >= quantity)
            .values(quantity_assigned=Accessory.quantity_assigned - quantity)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(accessory)

        logger.info(
            f"Accessory checked in: {accessory.id} x{quantity}",
            extra={"company_id": self.context.company_id, "entity": self.entity, "entity_id": accessory.id}
        )
        result = self.to_read(accessory)
        self.after_change("CHECKIN", accessory.id, f"{quantity} units returned")
        return result

    def assignments(self, accessory_id: str) -> List[AccessoryAssignmentRead]:
        accessory = self._get_or_404(accessory_id)
        rows = self.db.query(AccessoryAssignment).filter(
            AccessoryAssignment.accessory_id == accessory.id
        ).order_by(AccessoryAssignment.created_at).all()
        return [AccessoryAssignmentRead.model_validate(row) for row in rows]

    def stock(self) -> List[AccessoryStock]:
        return [
            AccessoryStock.model_validate(accessory)
            for accessory in self._query().order_by(Accessory.name).all()
        ]
