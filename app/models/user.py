"""
User Model

People in a company: the assignees of assets, seats and accessories.

Authentication lives with the identity provider. oauth_id links a row to
the provider's subject when the person also signs in.

IMPORTANT: email and employee_id are unique per company, not globally.
"""
from sqlalchemy import Column, String, Enum as SQLEnum, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.base import TenantScopedMixin, reference_fk
import enum


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class User(TenantScopedMixin, Base):
    __tablename__ = "users"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    employee_id = Column(String(100), nullable=False)
    title = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    oauth_id = Column(String(255), nullable=True, index=True)

    role_id = reference_fk("roles")
    department_id = reference_fk("departments")
    location_id = reference_fk("locations")

    status = Column(
        SQLEnum(UserStatus, values_callable=lambda e: [m.value for m in e]),
        default=UserStatus.ACTIVE,
        nullable=False
    )

    role = relationship("Role")
    department = relationship("Department")
    location = relationship("Location")

    __table_args__ = (
        UniqueConstraint("email", "company_id", name="uq_user_email_company"),
        UniqueConstraint("employee_id", "company_id", name="uq_user_employee_company"),
        Index("idx_user_company_status", "company_id", "status"),
    )

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def role_name(self):
        return self.role.name if self.role else None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
