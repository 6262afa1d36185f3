"""
Audit Log Model

Append-only record of mutating actions. The application never updates
or deletes these rows; the mapper events below turn any attempt into an
error. Rows disappear only through the company cascade.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, event
from datetime import datetime
from app.database import Base
from app.models.base import new_id


class AuditLogImmutableError(Exception):
    """Raised when code tries to modify or delete an audit entry."""


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    action = Column(String(100), nullable=False)  # ASSET_CREATED, LICENSE_CHECKOUT, ...
    entity = Column(String(50), nullable=False)  # ASSET, LICENSE, ...
    entity_id = Column(String(36), nullable=True, index=True)

    # Identity-provider subject of the caller, kept as plain text so
    # removing a user never touches the trail
    user_id = Column(String(255), nullable=True)

    company_id = Column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    details = Column(Text, nullable=True)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_audit_company_created", "company_id", "created_at"),
        Index("idx_audit_company_action", "company_id", "action"),
    )

    def __repr__(self):
        return f"<AuditLog {self.action} {self.entity_id} (company={self.company_id})>"


@event.listens_for(AuditLog, "before_update")
def _refuse_update(mapper, connection, target):
    raise AuditLogImmutableError(f"Audit log {target.id} cannot be modified")


@event.listens_for(AuditLog, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise AuditLogImmutableError(f"Audit log {target.id} cannot be deleted")
