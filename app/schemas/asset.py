"""
Asset Schemas

Request/response models for assets, their checkout actions and the
dashboard counters.
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import Field

from app.models.asset import AssetState
from app.schemas.common import CamelModel, FlexibleDate, InputModel, Label, Name, RecordRead, partial_model


class AssetCreate(InputModel):
    """
    Schema for creating an asset.

    The state is not accepted here: new assets start available and move
    only through checkout/checkin/archive.
    """
    name: Name
    serial_number: Name
    model_id: Optional[str] = None
    category_id: Optional[str] = None
    status_label_id: Optional[str] = None
    location_id: Optional[str] = None
    department_id: Optional[str] = None
    inventory_id: Optional[str] = None
    supplier_id: Optional[str] = None
    purchase_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    purchase_date: Optional[FlexibleDate] = None
    end_of_life: Optional[FlexibleDate] = None
    po_number: Optional[Label] = None
    notes: Optional[str] = None


AssetUpdate = partial_model(AssetCreate, "AssetUpdate")


class AssetRead(RecordRead):
    """Asset response schema with the names of what it points at."""
    name: str
    serial_number: str
    state: AssetState
    user_id: Optional[str] = None
    assigned_to: Optional[str] = None
    model_id: Optional[str] = None
    model_name: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    status_label_id: Optional[str] = None
    status_label_name: Optional[str] = None
    location_id: Optional[str] = None
    department_id: Optional[str] = None
    inventory_id: Optional[str] = None
    supplier_id: Optional[str] = None
    purchase_price: Optional[float] = None
    purchase_date: Optional[date] = None
    end_of_life: Optional[date] = None
    po_number: Optional[str] = None
    notes: Optional[str] = None


class AssetCheckout(InputModel):
    """Body of POST /assets/{id}/checkout."""
    user_id: str = Field(..., min_length=1)
    notes: Optional[str] = None


class AssetStats(CamelModel):
    total: int
    available: int
    checked_out: int
    archived: int
    utilization_rate: float
