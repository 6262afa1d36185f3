"""
Maintenance Model

Repairs, inspections and warranty work scheduled against an asset.
Events go with their asset when it is deleted.
"""
from sqlalchemy import Boolean, Column, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.base import TenantScopedMixin, reference_fk

SCHEDULED_LABEL = "Scheduled"


class Maintenance(TenantScopedMixin, Base):
    __tablename__ = "maintenance"

    asset_id = Column(String(36), ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    completion_date = Column(Date, nullable=True)
    is_warranty = Column(Boolean, nullable=False, default=False)
    estimated_cost = Column(Numeric(12, 2), nullable=True)
    technician_id = Column(String(255), nullable=True)  # identity-provider subject

    status_label_id = reference_fk("status_labels")

    asset = relationship("Asset")
    status_label = relationship("StatusLabel")

    __table_args__ = (
        Index("idx_maintenance_company_start", "company_id", "start_date"),
    )

    @property
    def asset_name(self):
        return self.asset.name if self.asset else None

    @property
    def status_label_name(self):
        return self.status_label.name if self.status_label else None
