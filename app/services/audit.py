"""
Audit Service

Appends audit entries after the primary change has been committed and
serves the read-only audit API.

Writes are best-effort: a failed audit insert is logged and rolled back
on its own, the mutation it describes stays committed.
"""
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.api.deps import RequestContext
from app.models.audit_log import AuditLog
from app.schemas.audit_log import AuditLogPage, AuditLogRead
from app.utils.logging import get_logger

logger = get_logger(__name__)

# (action, entity, entity_id, details)
AuditEntry = Tuple[str, str, Optional[str], Optional[str]]


class AuditService:

    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context

    def _entry(self, action: str, entity: str, entity_id: Optional[str], details: Optional[str]) -> AuditLog:
        return AuditLog(
            action=action,
            entity=entity,
            entity_id=entity_id,
            details=details,
            user_id=self.context.user_id,
            company_id=self.context.company_id,
            ip_address=self.context.ip_address
        )

    def log(self, action: str, entity: str, entity_id: Optional[str] = None, details: Optional[str] = None) -> bool:
        """Append one entry. Returns False if it could not be written."""
        return self.log_many([(action, entity, entity_id, details)])

    def log_many(self, entries: Iterable[AuditEntry]) -> bool:
        entries = list(entries)
        if not entries:
            return True
        try:
            self.db.add_all([self._entry(*entry) for entry in entries])
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to write {len(entries)} audit entries ({entries[0][0]}): {e}",
                exc_info=True,
                extra={"company_id": self.context.company_id, "action": entries[0][0]}
            )
            return False

    def list(
        self,
        page: int = 1,
        page_size: int = 50,
        action: Optional[str] = None,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> AuditLogPage:
        """Audit entries of the caller's company, newest first."""
        query = self.db.query(AuditLog).filter(AuditLog.company_id == self.context.company_id)

        if action:
            query = query.filter(AuditLog.action == action.upper())
        if entity:
            query = query.filter(AuditLog.entity == entity.upper())
        if entity_id:
            query = query.filter(AuditLog.entity_id == entity_id)
        if start_date:
            query = query.filter(AuditLog.created_at >= datetime.combine(start_date, time.min))
        if end_date:
            query = query.filter(AuditLog.created_at <= datetime.combine(end_date, time.max))

        total = query.count()
        rows = query.order_by(
            AuditLog.created_at.desc()
        ).offset((page - 1) * page_size).limit(page_size).all()

        return AuditLogPage(
            items=[AuditLogRead.model_validate(row) for row in rows],
            total=total,
            page=page,
            page_size=page_size
        )

    def history(self, entity_id: str) -> List[AuditLogRead]:
        rows = self.db.query(AuditLog).filter(
            AuditLog.company_id == self.context.company_id,
            AuditLog.entity_id == entity_id
        ).order_by(AuditLog.created_at.desc()).all()
        return [AuditLogRead.model_validate(row) for row in rows]
