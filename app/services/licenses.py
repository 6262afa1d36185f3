"""
License Service

CRUD for licenses plus seat allocation. Allocating a seat increments
seats_allocated with a conditional UPDATE (only while a seat is free)
and inserts the assignment row in the same transaction, so a license
can never be over-allocated and a failed insert releases the seat.
"""
from typing import Any, Dict, List

from sqlalchemy import update

from app.core.exceptions import Conflict, InvalidStateTransition, NotFound, ValidationError
from app.models.license import License, LicenseAssignment
from app.models.reference import Department, Inventory, Location, StatusLabel, Supplier
from app.schemas.license import (
    LicenseAssignmentRead,
    LicenseCreate,
    LicenseRead,
    LicenseSeatRequest,
    LicenseUpdate,
    LicenseUsage,
)
from app.services.crud import EntityService
from app.services.fields import field, reference
from app.utils.logging import get_logger

logger = get_logger(__name__)


class LicenseService(EntityService):
    model = License
    entity = "LICENSE"
    label = "License"
    plural = "licenses"
    import_key = "licenses"

    create_schema = LicenseCreate
    update_schema = LicenseUpdate
    read_schema = LicenseRead

    unique_fields = ("name",)
    references = {
        "supplier_id": Supplier,
        "department_id": Department,
        "location_id": Location,
        "inventory_id": Inventory,
        "status_label_id": StatusLabel,
    }
    search_fields = ("name", "licensed_email", "po_number")
    order_fields = ("name", "seats", "seats_allocated", "renewal_date", "purchase_date", "created_at", "updated_at")
    import_fields = (
        field("name", "License Name", True),
        field("seats", "Seats", True),
        field("min_seats_alert", "Min Seats Alert"),
        field("licensed_email", "Licensed Email"),
        field("purchase_date", "Purchase Date"),
        field("renewal_date", "Renewal Date"),
        field("alert_renewal_days", "Alert Renewal Days"),
        field("purchase_price", "Purchase Price"),
        field("po_number", "PO Number"),
        field("notes", "Notes"),
        reference("supplier", "Supplier", Supplier, auto_create=False),
        reference("department", "Department", Department),
        reference("location", "Location", Location),
        reference("inventory", "Inventory", Inventory),
        reference("status_label", "Status Label", StatusLabel),
    )

    def validate_update(self, license: License, changes: Dict[str, Any]) -> None:
        seats = changes.get("seats", license.seats)
        min_seats_alert = changes.get("min_seats_alert", license.min_seats_alert)
        purchase_date = changes.get("purchase_date", license.purchase_date)
        renewal_date = changes.get("renewal_date", license.renewal_date)

        if seats < license.seats_allocated:
            raise ValidationError(
                f"Cannot reduce seats to {seats}: {license.seats_allocated} seats are allocated"
            )
        if min_seats_alert is not None and min_seats_alert > seats:
            raise ValidationError("Minimum seats alert cannot exceed the number of seats")
        if purchase_date and renewal_date and renewal_date < purchase_date:
            raise ValidationError("Renewal date cannot be before the purchase date")

    def before_remove(self, license: License) -> None:
        if license.seats_allocated > 0:
            raise Conflict(f"License has {license.seats_allocated} allocated seats; check them in first")

    def checkout(self, license_id: str, body: LicenseSeatRequest) -> LicenseAssignmentRead:
        """Give one seat to a user."""
        license = self._get_or_404(license_id)
        user = self.require_user(body.user_id)

        holder = self.db.query(LicenseAssignment.id).filter(
            LicenseAssignment.license_id == license.id,
            LicenseAssignment.user_id == user.id
        ).first()
        if holder:
            raise ValidationError(f"{user.name} already holds a seat of {license.name}")

        result = self.db.execute(
            update(License)
            .where(
                License.id == license.id,
                License.company_id == self.context.company_id,
                License.seats_allocated < License.seats
            )
            .values(seats_allocated=License.seats_allocated + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateTransition(f"No seats available for {license.name}")

        assignment = LicenseAssignment(
            company_id=self.context.company_id,
            license_id=license.id,
            user_id=user.id
        )
        self.db.add(assignment)
        self.db.commit()
        self.db.refresh(assignment)

        logger.info(
            f"License seat allocated: {license.id} -> {user.id}",
            extra={"company_id": self.context.company_id, "entity": self.entity, "entity_id": license.id}
        )
        self.after_change("CHECKOUT", license.id, f"Seat assigned to {user.name}")
        return LicenseAssignmentRead.model_validate(assignment)

    def checkin(self, license_id: str, body: LicenseSeatRequest) -> LicenseRead:
        """Release the seat a user holds."""
        license = self._get_or_404(license_id)
        assignment = self.db.query(LicenseAssignment).filter(
            LicenseAssignment.license_id == license.id,
            LicenseAssignment.user_id == body.user_id,
            LicenseAssignment.company_id == self.context.company_id
        ).first()
        if assignment is None:
            raise NotFound("License seat", body.user_id)

        self.db.delete(assignment)
        self.db.execute(
            update(License)
            .where(License.id == license.id, License.seats_allocated > 0)
            .values(seats_allocated=License.seats_allocated - 1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(license)

        logger.info(
            f"License seat released: {license.id} <- {body.user_id}",
            extra={"company_id": self.context.company_id, "entity": self.entity, "entity_id": license.id}
        )
        result = self.to_read(license)
        self.after_change("CHECKIN", license.id, f"Seat released by user {body.user_id}")
        return result

    def seats(self, license_id: str) -> List[LicenseAssignmentRead]:
        license = self._get_or_404(license_id)
        rows = self.db.query(LicenseAssignment).filter(
            LicenseAssignment.license_id == license.id
        ).order_by(LicenseAssignment.created_at).all()
        return [LicenseAssignmentRead.model_validate(row) for row in rows]

    def usage(self) -> List[LicenseUsage]:
        return [
            LicenseUsage.model_validate(license)
            for license in self._query().order_by(License.name).all()
        ]
