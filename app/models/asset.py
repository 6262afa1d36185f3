"""
Asset Model

Hardware assets and their checkout history.

STATE MACHINE:
    available -> checked_out -> available (loop)
    available | checked_out -> archived (terminal)

Transitions are applied with conditional UPDATEs in the asset service,
so the state column is the single source of truth for who holds an asset.
"""
from sqlalchemy import Column, String, Text, Date, DateTime, Numeric, ForeignKey, Index, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database import Base
from app.models.base import TenantScopedMixin, reference_fk, new_id
import enum


class AssetState(str, enum.Enum):
    AVAILABLE = "available"
    CHECKED_OUT = "checked_out"
    ARCHIVED = "archived"


class Asset(TenantScopedMixin, Base):
    __tablename__ = "assets"

    name = Column(String(255), nullable=False)
    serial_number = Column(String(255), nullable=False)

    model_id = reference_fk("models")
    category_id = reference_fk("categories")
    status_label_id = reference_fk("status_labels")
    location_id = reference_fk("locations")
    department_id = reference_fk("departments")
    inventory_id = reference_fk("inventories")
    supplier_id = reference_fk("suppliers")

    # Assignee, only set while checked out
    user_id = reference_fk("users")

    state = Column(
        SQLEnum(AssetState, values_callable=lambda e: [m.value for m in e]),
        default=AssetState.AVAILABLE,
        nullable=False
    )

    purchase_price = Column(Numeric(12, 2), nullable=True)
    purchase_date = Column(Date, nullable=True)
    end_of_life = Column(Date, nullable=True)
    po_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    model = relationship("AssetModel")
    category = relationship("Category")
    status_label = relationship("StatusLabel")
    location = relationship("Location")
    department = relationship("Department")
    inventory = relationship("Inventory")
    supplier = relationship("Supplier")
    user = relationship("User")
    history = relationship(
        "AssetHistory",
        back_populates="asset",
        cascade="all, delete-orphan",
        order_by="AssetHistory.created_at"
    )

    __table_args__ = (
        UniqueConstraint("serial_number", "company_id", name="uq_asset_serial_company"),
        Index("idx_asset_company_state", "company_id", "state"),
    )

    @property
    def model_name(self):
        return self.model.name if self.model else None

    @property
    def category_name(self):
        return self.category.name if self.category else None

    @property
    def status_label_name(self):
        return self.status_label.name if self.status_label else None

    @property
    def assigned_to(self):
        return self.user.name if self.user else None


class AssetHistory(Base):
    """Append-only trail of assignments and returns for one asset."""
    __tablename__ = "asset_history"

    id = Column(String(36), primary_key=True, default=new_id)
    asset_id = Column(String(36), ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id = Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # assignment, return, archive
    user_id = Column(String(36), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    asset = relationship("Asset", back_populates="history")
