"""
Shared Schema Pieces

Base classes and field types used by every entity schema.

API payloads use camelCase keys (serialNumber, companyId) while Python
code uses snake_case; the alias generator bridges the two.
"""
from datetime import date, datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, create_model, model_validator
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated

T = TypeVar("T")

TRUE_VALUES = {"true", "1", "yes"}
FALSE_VALUES = {"false", "0", "no"}

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%m/%d/%Y")


def parse_bool(value: Any) -> Any:
    """Accept true/1/yes and false/0/no (any case) as well as real booleans."""
    if isinstance(value, bool) or value is None:
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"'{value}' is not a boolean (use true/false, 1/0 or yes/no)")


def parse_date(value: Any) -> Any:
    """ISO dates plus the day/month formats spreadsheets like to export."""
    if value is None or isinstance(value, (date, datetime)):
        return value
    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValueError(f"'{value}' is not a valid date")


FlexibleBool = Annotated[bool, BeforeValidator(parse_bool)]
FlexibleDate = Annotated[date, BeforeValidator(parse_date)]
Name = Annotated[str, Field(min_length=1, max_length=255)]
ShortName = Annotated[str, Field(min_length=1, max_length=100)]

# Optional text limited to the width of its column
Code = Annotated[str, Field(max_length=20)]
Phone = Annotated[str, Field(max_length=50)]
Label = Annotated[str, Field(max_length=100)]
Line = Annotated[str, Field(max_length=255)]
Url = Annotated[str, Field(max_length=512)]


class CamelModel(BaseModel):
    """Base for every API schema."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class InputModel(CamelModel):
    """
    Base for request bodies.

    Blank strings are treated as absent, so a form or CSV cell left empty
    falls back to the field default instead of failing validation.
    """

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: value for key, value in data.items()
                if not (isinstance(value, str) and value.strip() == "")
            }
        return data


class RecordRead(CamelModel):
    """Fields every tenant-owned record exposes."""

    id: str
    company_id: str
    created_at: datetime
    updated_at: datetime


class ApiResponse(CamelModel, Generic[T]):
    """The uniform response envelope."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None


class ListFilter(CamelModel):
    """Optional filtering and sorting for get_all."""

    search: Optional[str] = None
    order_by: Optional[str] = None
    order: str = Field("asc", pattern="^(asc|desc)$")


def partial_model(model: type, name: str) -> type:
    """
    Derive an update schema where every field is optional.

    Field validators of the source model still run on values that are sent.
    """
    fields = {}
    for field_name, info in model.model_fields.items():
        annotation = info.annotation
        if info.metadata:
            annotation = Annotated[(annotation, *info.metadata)]
        fields[field_name] = (Optional[annotation], None)
    return create_model(name, __base__=model, **fields)
