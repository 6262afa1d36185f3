"""
Company Model

The company is the tenant: the unit of data isolation. Every other
table carries a company_id with ON DELETE CASCADE, so removing a
company removes everything it owns.
"""
from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime
from app.database import Base
from app.models.base import new_id


class Company(Base):
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), unique=True, nullable=False)

    # Inactive companies keep their data but every request is refused
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Company {self.name}>"
