"""
CO2 Footprint Schemas
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class NormalizedAsset(CamelModel):
    manufacturer: str
    model: str
    category: str
    type: str


class Co2Estimate(CamelModel):
    """
    What an estimator returns.

    Providers answer in camelCase JSON, so the aliases double as the
    wire format of HttpProvider.
    """
    total_co2e: float = Field(..., gt=0, alias="totalCo2e")
    units: str = "kgCO2e"
    confidence_score: float = Field(..., ge=0, le=1)
    lifecycle_breakdown: Dict[str, float] = {}
    methodology: str = ""
    description: Optional[str] = None


class Co2Result(CamelModel):
    asset_id: Optional[str] = None
    fingerprint: str
    source: str  # memory, database or calculation
    provider: str
    normalized: NormalizedAsset
    estimate: Co2Estimate
    record_id: Optional[str] = None
    calculated_at: datetime
    details: Optional[Dict[str, Any]] = None
