"""
Maintenance Schemas
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import Field, model_validator
from typing_extensions import Annotated

from app.schemas.common import FlexibleBool, FlexibleDate, InputModel, RecordRead, partial_model

Title = Annotated[str, Field(min_length=3, max_length=255)]


class MaintenanceCreate(InputModel):
    """Schema for scheduling a maintenance event. Without a status label the company's "Scheduled" one is used."""
    asset_id: str = Field(..., min_length=1)
    title: Title
    start_date: FlexibleDate
    completion_date: Optional[FlexibleDate] = None
    notes: Optional[str] = None
    is_warranty: FlexibleBool = False
    estimated_cost: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    status_label_id: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.completion_date and self.completion_date < self.start_date:
            raise ValueError("Completion date cannot be before the start date")
        return self


MaintenanceUpdate = partial_model(MaintenanceCreate, "MaintenanceUpdate")


class MaintenanceRead(RecordRead):
    asset_id: str
    asset_name: Optional[str] = None
    title: str
    start_date: date
    completion_date: Optional[date] = None
    notes: Optional[str] = None
    is_warranty: bool
    estimated_cost: Optional[float] = None
    status_label_id: Optional[str] = None
    status_label_name: Optional[str] = None
    technician_id: Optional[str] = None
