"""
License Model

Software licenses with a fixed number of seats. Each seat handed to a
user is a LicenseAssignment row; seats_allocated mirrors their count.
"""
from datetime import date, timedelta

from sqlalchemy import Column, String, Text, Date, Integer, Numeric, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.base import TenantScopedMixin, reference_fk

# Reminder window when alert_renewal_days is not set
DEFAULT_RENEWAL_ALERT_DAYS = 7


class License(TenantScopedMixin, Base):
    __tablename__ = "licenses"

    name = Column(String(255), nullable=False)
    seats = Column(Integer, nullable=False, default=1)
    seats_allocated = Column(Integer, nullable=False, default=0)
    min_seats_alert = Column(Integer, nullable=False, default=0)

    licensed_email = Column(String(255), nullable=True)
    purchase_date = Column(Date, nullable=True)
    renewal_date = Column(Date, nullable=True)
    alert_renewal_days = Column(Integer, nullable=True)
    purchase_price = Column(Numeric(12, 2), nullable=True)
    po_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    supplier_id = reference_fk("suppliers")
    department_id = reference_fk("departments")
    location_id = reference_fk("locations")
    inventory_id = reference_fk("inventories")
    status_label_id = reference_fk("status_labels")

    supplier = relationship("Supplier")
    department = relationship("Department")
    location = relationship("Location")
    inventory = relationship("Inventory")
    status_label = relationship("StatusLabel")
    assignments = relationship("LicenseAssignment", back_populates="license")

    __table_args__ = (
        UniqueConstraint("name", "company_id", name="uq_license_name_company"),
        CheckConstraint("seats_allocated <= seats", name="ck_license_seats"),
    )

    @property
    def seats_available(self) -> int:
        return (self.seats or 0) - (self.seats_allocated or 0)

    @property
    def below_threshold(self) -> bool:
        return self.seats_available <= (self.min_seats_alert or 0)

    @property
    def renewal_due(self) -> bool:
        """Renewal falls between today and the end of the alert window."""
        if self.renewal_date is None:
            return False
        days = self.alert_renewal_days if self.alert_renewal_days is not None else DEFAULT_RENEWAL_ALERT_DAYS
        today = date.today()
        return today <= self.renewal_date <= today + timedelta(days=days)


class LicenseAssignment(TenantScopedMixin, Base):
    __tablename__ = "license_assignments"

    license_id = reference_fk("licenses", nullable=False)
    user_id = reference_fk("users", nullable=False)

    license = relationship("License", back_populates="assignments")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("license_id", "user_id", name="uq_license_assignment_user"),
    )
