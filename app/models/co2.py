"""
CO2e Record Model

Stored footprint estimates. The fingerprint identifies the kind of asset
(normalized manufacturer, model, category, type) so identical hardware
gets identical numbers.
"""
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Index, JSON
from datetime import datetime
from app.database import Base
from app.models.base import new_id


class Co2eRecord(Base):
    __tablename__ = "co2e_records"

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    asset_id = Column(String(36), ForeignKey("assets.id", ondelete="CASCADE"), nullable=True, index=True)
    fingerprint = Column(String(64), nullable=False)
    co2e = Column(Numeric(14, 3), nullable=False)
    units = Column(String(20), nullable=False, default="kgCO2e")
    source = Column(String(100), nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_co2e_company_fingerprint", "company_id", "fingerprint"),
    )
