"""
License Schemas
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import EmailStr, Field, model_validator

from app.schemas.common import CamelModel, FlexibleDate, InputModel, Label, Name, RecordRead, partial_model


class LicenseCreate(InputModel):
    """
    Schema for creating a license.

    min_seats_alert is the reorder threshold: the license is flagged once
    free seats drop to it.
    """
    name: Name
    seats: int = Field(..., ge=1)
    min_seats_alert: int = Field(0, ge=0)
    licensed_email: Optional[EmailStr] = None
    purchase_date: Optional[FlexibleDate] = None
    renewal_date: Optional[FlexibleDate] = None
    alert_renewal_days: Optional[int] = Field(None, ge=0)
    purchase_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    po_number: Optional[Label] = None
    notes: Optional[str] = None
    supplier_id: Optional[str] = None
    department_id: Optional[str] = None
    location_id: Optional[str] = None
    inventory_id: Optional[str] = None
    status_label_id: Optional[str] = None

    @model_validator(mode="after")
    def check_thresholds(self):
        if self.min_seats_alert is not None and self.seats is not None:
            if self.min_seats_alert > self.seats:
                raise ValueError("Minimum seats alert cannot exceed the number of seats")
        if self.purchase_date and self.renewal_date and self.renewal_date < self.purchase_date:
            raise ValueError("Renewal date cannot be before the purchase date")
        return self


LicenseUpdate = partial_model(LicenseCreate, "LicenseUpdate")


class LicenseRead(RecordRead):
    name: str
    seats: int
    seats_allocated: int
    seats_available: int
    min_seats_alert: int
    below_threshold: bool
    licensed_email: Optional[str] = None
    purchase_date: Optional[date] = None
    renewal_date: Optional[date] = None
    alert_renewal_days: Optional[int] = None
    renewal_due: bool = False
    purchase_price: Optional[float] = None
    po_number: Optional[str] = None
    notes: Optional[str] = None
    supplier_id: Optional[str] = None
    department_id: Optional[str] = None
    location_id: Optional[str] = None
    inventory_id: Optional[str] = None
    status_label_id: Optional[str] = None


class LicenseSeatRequest(InputModel):
    """Body of POST /licenses/{id}/checkout and /checkin."""
    user_id: str = Field(..., min_length=1)


class LicenseAssignmentRead(RecordRead):
    license_id: str
    user_id: str


class LicenseUsage(CamelModel):
    id: str
    name: str
    seats: int
    seats_allocated: int
    seats_available: int
    min_seats_alert: int
    below_threshold: bool
    renewal_date: Optional[date] = None
    renewal_due: bool
