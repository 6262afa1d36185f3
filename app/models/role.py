"""
Role Model

Roles are per-company reference rows that users point at.
"""
from sqlalchemy import Column, String, Boolean, Text, UniqueConstraint
from app.database import Base
from app.models.base import TenantScopedMixin


class Role(TenantScopedMixin, Base):
    __tablename__ = "roles"

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("name", "company_id", name="uq_role_name_company"),
    )
