"""
Shared model columns.

Every tenant-owned table gets the same id, company_id and timestamp
columns. company_id is the isolation boundary: every query filters on it.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import declared_attr
from datetime import datetime
import uuid


def new_id() -> str:
    return str(uuid.uuid4())


class TenantScopedMixin:
    """id, company_id (cascading FK) and created/updated timestamps."""

    id = Column(String(36), primary_key=True, default=new_id)

    @declared_attr
    def company_id(cls):
        return Column(
            String(36),
            ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        label = getattr(self, "name", None) or self.id
        return f"<{type(self).__name__} {label} (company={self.company_id})>"


def reference_fk(table: str, nullable: bool = True) -> Column:
    """FK to another tenant-owned row. RESTRICT so in-use rows cannot be deleted."""
    return Column(
        String(36),
        ForeignKey(f"{table}.id", ondelete="RESTRICT"),
        nullable=nullable,
        index=True
    )
