"""
Accessory Model

Stocked items handed out in quantities (keyboards, docks, cables).
quantity_assigned is kept in step with the assignment rows by the
accessory service; the available count is total minus assigned.
"""
from sqlalchemy import Column, String, Text, Date, Integer, Numeric, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.base import TenantScopedMixin, reference_fk


class Accessory(TenantScopedMixin, Base):
    __tablename__ = "accessories"

    name = Column(String(255), nullable=False)
    serial_number = Column(String(255), nullable=False)

    total_quantity = Column(Integer, nullable=False, default=0)
    quantity_assigned = Column(Integer, nullable=False, default=0)
    reorder_point = Column(Integer, nullable=False, default=0)

    price = Column(Numeric(12, 2), nullable=True)
    alert_email = Column(String(255), nullable=True)
    purchase_date = Column(Date, nullable=True)
    end_of_life = Column(Date, nullable=True)
    po_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    model_id = reference_fk("models")
    category_id = reference_fk("categories")
    status_label_id = reference_fk("status_labels")
    location_id = reference_fk("locations")
    department_id = reference_fk("departments")
    inventory_id = reference_fk("inventories")
    supplier_id = reference_fk("suppliers")

    model = relationship("AssetModel")
    category = relationship("Category")
    status_label = relationship("StatusLabel")
    location = relationship("Location")
    department = relationship("Department")
    inventory = relationship("Inventory")
    supplier = relationship("Supplier")
    assignments = relationship("AccessoryAssignment", back_populates="accessory")

    __table_args__ = (
        UniqueConstraint("serial_number", "company_id", name="uq_accessory_serial_company"),
        CheckConstraint("quantity_assigned <= total_quantity", name="ck_accessory_stock"),
    )

    @property
    def available_quantity(self) -> int:
        return (self.total_quantity or 0) - (self.quantity_assigned or 0)

    @property
    def needs_reorder(self) -> bool:
        return self.available_quantity <= (self.reorder_point or 0)


class AccessoryAssignment(TenantScopedMixin, Base):
    __tablename__ = "accessory_assignments"

    accessory_id = reference_fk("accessories", nullable=False)
    user_id = reference_fk("users", nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)

    accessory = relationship("Accessory", back_populates="assignments")
    user = relationship("User")
