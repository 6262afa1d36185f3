"""
Audit Log Schemas

Read-only: audit entries are created by services, never by clients.
"""
from datetime import datetime
from typing import List, Optional

from app.schemas.common import CamelModel


class AuditLogRead(CamelModel):
    id: str
    action: str
    entity: str
    entity_id: Optional[str] = None
    user_id: Optional[str] = None
    company_id: str
    details: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: datetime


class AuditLogPage(CamelModel):
    """Paginated list of audit entries, newest first."""
    items: List[AuditLogRead]
    total: int
    page: int
    page_size: int
