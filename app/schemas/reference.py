"""
Reference Schemas

Lookup entities (categories, departments, locations, ...) and roles.
Update schemas are derived from the create schemas with every field
optional.
"""
from datetime import date
from typing import Optional

from pydantic import EmailStr

from app.schemas.common import (
    Code,
    FlexibleBool,
    FlexibleDate,
    InputModel,
    Label,
    Line,
    Name,
    Phone,
    RecordRead,
    ShortName,
    Url,
    partial_model,
)


class NamedCreate(InputModel):
    """Lookups that only carry a name."""
    name: Name


class NamedRead(RecordRead):
    name: str


CategoryCreate = DepartmentCreate = InventoryCreate = NamedCreate
NamedUpdate = partial_model(NamedCreate, "NamedUpdate")


class LocationCreate(InputModel):
    name: Name
    address_line1: Optional[Line] = None
    address_line2: Optional[Line] = None
    city: Optional[Label] = None
    state: Optional[Label] = None
    zip: Optional[Code] = None
    country: Optional[Label] = None


LocationUpdate = partial_model(LocationCreate, "LocationUpdate")


class LocationRead(RecordRead):
    name: str
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


class ManufacturerCreate(InputModel):
    name: Name
    url: Optional[Url] = None
    support_url: Optional[Url] = None
    support_phone: Optional[Phone] = None
    support_email: Optional[EmailStr] = None


ManufacturerUpdate = partial_model(ManufacturerCreate, "ManufacturerUpdate")


class ManufacturerRead(RecordRead):
    name: str
    url: Optional[str] = None
    support_url: Optional[str] = None
    support_phone: Optional[str] = None
    support_email: Optional[str] = None


class ModelCreate(InputModel):
    """An asset model such as "Latitude 7420"."""
    name: Name
    model_no: Optional[Label] = None
    manufacturer_id: Optional[str] = None
    category_id: Optional[str] = None
    end_of_life: Optional[FlexibleDate] = None
    notes: Optional[str] = None


ModelUpdate = partial_model(ModelCreate, "ModelUpdate")


class ModelRead(RecordRead):
    name: str
    model_no: Optional[str] = None
    manufacturer_id: Optional[str] = None
    manufacturer_name: Optional[str] = None
    category_id: Optional[str] = None
    end_of_life: Optional[date] = None
    notes: Optional[str] = None


class SupplierCreate(InputModel):
    name: Name
    contact_name: Optional[Line] = None
    email: Optional[EmailStr] = None
    phone: Optional[Phone] = None
    url: Optional[Url] = None
    notes: Optional[str] = None
    address_line1: Optional[Line] = None
    address_line2: Optional[Line] = None
    city: Optional[Label] = None
    state: Optional[Label] = None
    zip: Optional[Code] = None
    country: Optional[Label] = None
    active: FlexibleBool = True


SupplierUpdate = partial_model(SupplierCreate, "SupplierUpdate")


class SupplierRead(RecordRead):
    name: str
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    url: Optional[str] = None
    notes: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    active: bool


class StatusLabelCreate(InputModel):
    name: ShortName
    description: Optional[str] = None
    color_code: Optional[Code] = None
    is_archived: FlexibleBool = False
    allow_loan: FlexibleBool = True


StatusLabelUpdate = partial_model(StatusLabelCreate, "StatusLabelUpdate")


class StatusLabelRead(RecordRead):
    name: str
    description: Optional[str] = None
    color_code: Optional[str] = None
    is_archived: bool
    allow_loan: bool


class RoleCreate(InputModel):
    name: ShortName
    description: Optional[str] = None
    is_admin: FlexibleBool = False


RoleUpdate = partial_model(RoleCreate, "RoleUpdate")


class RoleRead(RecordRead):
    name: str
    description: Optional[str] = None
    is_admin: bool
