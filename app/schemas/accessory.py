"""
Accessory Schemas
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import EmailStr, Field, model_validator

from app.schemas.common import CamelModel, FlexibleDate, InputModel, Label, Name, RecordRead, partial_model


class AccessoryCreate(InputModel):
    """Schema for creating an accessory."""
    name: Name
    serial_number: Name
    total_quantity: int = Field(..., ge=0)
    reorder_point: int = Field(0, ge=0)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    alert_email: Optional[EmailStr] = None
    purchase_date: Optional[FlexibleDate] = None
    end_of_life: Optional[FlexibleDate] = None
    po_number: Optional[Label] = None
    notes: Optional[str] = None
    model_id: Optional[str] = None
    category_id: Optional[str] = None
    status_label_id: Optional[str] = None
    location_id: Optional[str] = None
    department_id: Optional[str] = None
    inventory_id: Optional[str] = None
    supplier_id: Optional[str] = None

    @model_validator(mode="after")
    def check_reorder_point(self):
        # Both are optional on updates; the service re-checks the merged row
        if self.reorder_point is not None and self.total_quantity is not None:
            if self.reorder_point > self.total_quantity:
                raise ValueError("Reorder point cannot exceed total quantity")
        return self


AccessoryUpdate = partial_model(AccessoryCreate, "AccessoryUpdate")


class AccessoryRead(RecordRead):
    name: str
    serial_number: str
    total_quantity: int
    quantity_assigned: int
    available_quantity: int
    reorder_point: int
    needs_reorder: bool
    price: Optional[float] = None
    alert_email: Optional[str] = None
    purchase_date: Optional[date] = None
    end_of_life: Optional[date] = None
    po_number: Optional[str] = None
    notes: Optional[str] = None
    model_id: Optional[str] = None
    category_id: Optional[str] = None
    status_label_id: Optional[str] = None
    location_id: Optional[str] = None
    department_id: Optional[str] = None
    inventory_id: Optional[str] = None
    supplier_id: Optional[str] = None


class AccessoryCheckout(InputModel):
    """Body of POST /accessories/{id}/checkout."""
    user_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    notes: Optional[str] = None


class AccessoryAssignmentRead(RecordRead):
    accessory_id: str
    user_id: str
    quantity: int
    notes: Optional[str] = None


class AccessoryStock(CamelModel):
    id: str
    name: str
    total_quantity: int
    quantity_assigned: int
    available_quantity: int
    reorder_point: int
    needs_reorder: bool
