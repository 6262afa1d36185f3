"""
Bulk Import Schemas
"""
from typing import List

from app.schemas.common import CamelModel


class ImportRowError(CamelModel):
    row: int  # 1-based, header not counted
    message: str


class ImportReport(CamelModel):
    """Outcome of a bulk import. Partial failure is a normal result."""
    total_processed: int
    success_count: int
    error_count: int
    errors: List[ImportRowError]
