"""
Reference Models

Lookup tables that assets, accessories, licenses and users point at.
Each is unique by (name, company_id).
"""
from sqlalchemy import Column, String, Text, Boolean, Date, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.base import TenantScopedMixin, reference_fk


def _unique_name(table: str) -> tuple:
    return (UniqueConstraint("name", "company_id", name=f"uq_{table}_name_company"),)


class Category(TenantScopedMixin, Base):
    __tablename__ = "categories"

    name = Column(String(255), nullable=False)

    __table_args__ = _unique_name("categories")


class Department(TenantScopedMixin, Base):
    __tablename__ = "departments"

    name = Column(String(255), nullable=False)

    __table_args__ = _unique_name("departments")


class Inventory(TenantScopedMixin, Base):
    __tablename__ = "inventories"

    name = Column(String(255), nullable=False)

    __table_args__ = _unique_name("inventories")


class Location(TenantScopedMixin, Base):
    __tablename__ = "locations"

    name = Column(String(255), nullable=False)
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zip = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)

    __table_args__ = _unique_name("locations")


class Manufacturer(TenantScopedMixin, Base):
    __tablename__ = "manufacturers"

    name = Column(String(255), nullable=False)
    url = Column(String(512), nullable=True)
    support_url = Column(String(512), nullable=True)
    support_phone = Column(String(50), nullable=True)
    support_email = Column(String(255), nullable=True)

    __table_args__ = _unique_name("manufacturers")


class AssetModel(TenantScopedMixin, Base):
    """A product model, e.g. "Latitude 7420". Named AssetModel to avoid clashing with ORM terms."""
    __tablename__ = "models"

    name = Column(String(255), nullable=False)
    model_no = Column(String(100), nullable=True)
    manufacturer_id = reference_fk("manufacturers")
    category_id = reference_fk("categories")
    end_of_life = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    manufacturer = relationship("Manufacturer")
    category = relationship("Category")

    __table_args__ = _unique_name("models")

    @property
    def manufacturer_name(self):
        return self.manufacturer.name if self.manufacturer else None


class Supplier(TenantScopedMixin, Base):
    __tablename__ = "suppliers"

    name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    url = Column(String(512), nullable=True)
    notes = Column(Text, nullable=True)
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zip = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)
    active = Column(Boolean, default=True, nullable=False)

    __table_args__ = _unique_name("suppliers")


class StatusLabel(TenantScopedMixin, Base):
    __tablename__ = "status_labels"

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color_code = Column(String(20), nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    allow_loan = Column(Boolean, default=True, nullable=False)

    __table_args__ = _unique_name("status_labels")
