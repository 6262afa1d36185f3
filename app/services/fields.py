"""
Import/Export Field Declarations

Each entity service lists its CSV columns as ImportField entries. The
same list drives column mapping on import, the export column order and
the downloadable template header.
"""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Tuple
import enum
import re


def normalize_header(text: str) -> str:
    """Lower case with separators removed: "Serial Number" == "serialNumber" == "serial_number"."""
    return re.sub(r"[^a-z0-9]", "", str(text).lower())


@dataclass(frozen=True)
class Reference:
    """A column holding the name of another tenant-owned row."""

    model: type
    column: str  # foreign key set on the imported row, e.g. "category_id"
    auto_create: bool = True
    lookup: str = "name"


@dataclass(frozen=True)
class ImportField:
    name: str  # schema field, or relationship name for references
    label: str
    required: bool = False
    reference: Optional[Reference] = None
    aliases: Tuple[str, ...] = ()

    @property
    def headers(self) -> Tuple[str, ...]:
        """Every spelling a header cell may use for this field."""
        names = (self.name, self.label) + self.aliases
        if self.reference:
            names += (f"{self.name}_name", f"{self.label} Name")
        return tuple(normalize_header(name) for name in names)

    def export_value(self, obj: Any) -> str:
        if self.reference:
            related = getattr(obj, self.name, None)
            return format_cell(getattr(related, self.reference.lookup) if related else None)
        return format_cell(getattr(obj, self.name, None))


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def field(name: str, label: str, required: bool = False, *aliases: str) -> ImportField:
    return ImportField(name=name, label=label, required=required, aliases=aliases)


def reference(
    name: str,
    label: str,
    model: type,
    auto_create: bool = True,
    lookup: str = "name",
    required: bool = False
) -> ImportField:
    return ImportField(
        name=name,
        label=label,
        required=required,
        reference=Reference(model=model, column=f"{name}_id", auto_create=auto_create, lookup=lookup)
    )
