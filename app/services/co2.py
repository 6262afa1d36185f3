"""
CO2 Footprint Service

Consistent lifecycle CO2e estimates for assets. Two assets describing
the same hardware ("Dell Inc." / "Latitude 7420 Laptop" and "dell" /
"latitude 7420") normalize to the same fingerprint and therefore get the
same number.

Lookup order, unless a recalculation is forced:
    in-memory TTL cache -> latest stored Co2eRecord with the fingerprint
    -> estimator provider (result stored as a new Co2eRecord)

Providers:
- StaticFactorProvider: deterministic per-type lifecycle factors (default)
- HttpProvider: POSTs the normalized asset to CO2_ESTIMATOR_URL
"""
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple
import hashlib
import re
import threading
import time

import requests
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.api.deps import RequestContext
from app.config import get_settings
from app.core.exceptions import InternalError, NotFound
from app.models.asset import Asset
from app.models.co2 import Co2eRecord
from app.schemas.co2 import Co2Estimate, Co2Result, NormalizedAsset
from app.services.audit import AuditService
from app.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


MANUFACTURER_ALIASES = {
    "apple inc": "apple",
    "apple inc.": "apple",
    "dell inc": "dell",
    "dell inc.": "dell",
    "dell technologies": "dell",
    "hewlett-packard": "hp",
    "hewlett packard": "hp",
    "hp inc": "hp",
    "lenovo group": "lenovo",
    "microsoft corporation": "microsoft",
    "samsung electronics": "samsung",
    "lg electronics": "lg",
    "sony corporation": "sony",
    "asustek": "asus",
    "acer inc": "acer",
}

MODEL_ALIASES = {
    "macbook pro 14": "macbook pro 14-inch",
    "macbook pro 16": "macbook pro 16-inch",
    "macbook air 13": "macbook air 13-inch",
    "macbook air 15": "macbook air 15-inch",
}

# Words that describe the same hardware differently
MODEL_NOISE = (
    re.compile(r"\s+(laptop|desktop|computer|pc|workstation)$"),
    re.compile(r"^(laptop|desktop|computer|pc|workstation)\s+"),
    re.compile(r"\s+(black|white|silver|gray|grey)$"),
    re.compile(r"\s+\d+(gb|tb)$"),
    re.compile(r"\s+\d+\"$"),
    re.compile(r"\s+inch$"),
)

CATEGORY_ALIASES = {
    "laptops": "laptop",
    "notebook": "laptop",
    "notebooks": "laptop",
    "portable computer": "laptop",
    "desktops": "desktop",
    "desktop computer": "desktop",
    "pc": "desktop",
    "workstations": "workstation",
    "servers": "server",
    "monitors": "monitor",
    "display": "monitor",
    "displays": "monitor",
    "printers": "printer",
    "tablets": "tablet",
    "phone": "smartphone",
    "mobile": "smartphone",
}

# First match wins; laptop is the fallback
TYPE_KEYWORDS = (
    ("laptop", ("laptop", "macbook", "notebook")),
    ("workstation", ("workstation",)),
    ("desktop", ("desktop", "pc ", "imac")),
    ("server", ("server",)),
    ("monitor", ("monitor", "display")),
    ("tablet", ("tablet", "ipad", "surface pro")),
    ("smartphone", ("phone", "iphone")),
    ("printer", ("printer",)),
)


def normalize_manufacturer(name: str) -> str:
    text = (name or "").lower().strip()
    return MANUFACTURER_ALIASES.get(text, text)


def normalize_model(name: str) -> str:
    text = (name or "").lower().strip()
    for pattern in MODEL_NOISE:
        text = pattern.sub("", text).strip()
    return MODEL_ALIASES.get(text, text)


def normalize_category(name: str) -> str:
    text = (name or "").lower().strip()
    return CATEGORY_ALIASES.get(text, text)


def determine_asset_type(type_hint: str, model: str) -> str:
    combined = f"{type_hint} {model}".lower()
    for asset_type, keywords in TYPE_KEYWORDS:
        if any(keyword in combined for keyword in keywords):
            return asset_type
    return "laptop"


def normalize_asset(manufacturer: str, model: str, category: Optional[str], type_hint: str) -> NormalizedAsset:
    return NormalizedAsset(
        manufacturer=normalize_manufacturer(manufacturer),
        model=normalize_model(model),
        category=normalize_category(category or type_hint),
        type=determine_asset_type(type_hint, model)
    )


def fingerprint(asset: NormalizedAsset) -> str:
    data = f"{asset.manufacturer}|{asset.model}|{asset.category}|{asset.type}".lower()
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class Co2Cache:
    """
    Short-lived in-memory results keyed by (company, fingerprint).

    Expired entries are dropped when read and purged on every write.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl_seconds
        self.clock = clock
        self._entries: Dict[Tuple[str, str], Tuple[float, Co2Result]] = {}
        self._lock = threading.Lock()

    def get(self, company_id: str, key: str) -> Optional[Co2Result]:
        with self._lock:
            entry = self._entries.get((company_id, key))
            if entry is None:
                return None
            expires_at, result = entry
            if expires_at <= self.clock():
                del self._entries[(company_id, key)]
                return None
            return result

    def set(self, company_id: str, key: str, result: Co2Result) -> None:
        with self._lock:
            now = self.clock()
            for cache_key in [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]:
                del self._entries[cache_key]
            self._entries[(company_id, key)] = (now + self.ttl, result)

    def clear(self, company_id: Optional[str] = None) -> int:
        with self._lock:
            keys = [k for k in self._entries if company_id is None or k[0] == company_id]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def __len__(self) -> int:
        return len(self._entries)


co2_cache = Co2Cache(settings.CO2_CACHE_TTL_SECONDS)


class StaticFactorProvider:
    """Lifecycle factors in kgCO2e per device type."""

    name = "static-factors"

    FACTORS = {
        "laptop": {"manufacturing": 250.0, "transport": 10.0, "use": 60.0, "endOfLife": 5.0},
        "desktop": {"manufacturing": 400.0, "transport": 20.0, "use": 400.0, "endOfLife": 10.0},
        "workstation": {"manufacturing": 550.0, "transport": 25.0, "use": 600.0, "endOfLife": 12.0},
        "server": {"manufacturing": 1200.0, "transport": 40.0, "use": 4800.0, "endOfLife": 30.0},
        "monitor": {"manufacturing": 350.0, "transport": 15.0, "use": 150.0, "endOfLife": 5.0},
        "tablet": {"manufacturing": 100.0, "transport": 5.0, "use": 15.0, "endOfLife": 2.0},
        "smartphone": {"manufacturing": 55.0, "transport": 3.0, "use": 8.0, "endOfLife": 1.0},
        "printer": {"manufacturing": 150.0, "transport": 10.0, "use": 250.0, "endOfLife": 5.0},
    }

    def estimate(self, asset: NormalizedAsset) -> Co2Estimate:
        factors = self.FACTORS.get(asset.type, self.FACTORS["laptop"])
        return Co2Estimate(
            total_co2e=round(sum(factors.values()), 3),
            units="kgCO2e",
            confidence_score=0.6,
            lifecycle_breakdown=dict(factors),
            methodology="Average lifecycle factors per device type",
            description=f"Typical {asset.type} over a four year service life"
        )


class HttpProvider:
    """Remote estimator. The endpoint answers with a Co2Estimate in camelCase JSON."""

    name = "http-estimator"

    def __init__(self, url: str, token: str = "", timeout: int = 20):
        self.url = url
        self.token = token
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def estimate(self, asset: NormalizedAsset) -> Co2Estimate:
        try:
            response = requests.post(
                self.url,
                json={"asset": asset.model_dump(by_alias=True)},
                headers=self._headers(),
                timeout=self.timeout
            )
            response.raise_for_status()
            return Co2Estimate.model_validate(response.json())
        except requests.RequestException as e:
            logger.error(f"CO2 estimator request failed: {e}")
            raise InternalError("CO2 estimator unavailable")
        except (ValueError, PydanticValidationError) as e:
            logger.error(f"CO2 estimator returned an invalid result: {e}")
            raise InternalError("CO2 estimator returned an invalid result")


def get_provider():
    if settings.CO2_ESTIMATOR_URL:
        return HttpProvider(
            settings.CO2_ESTIMATOR_URL,
            settings.CO2_ESTIMATOR_TOKEN,
            settings.CO2_ESTIMATOR_TIMEOUT
        )
    return StaticFactorProvider()


class CO2ConsistencyService:

    def __init__(
        self,
        db: Session,
        context: RequestContext,
        provider=None,
        cache: Optional[Co2Cache] = None,
        audit: Optional[AuditService] = None
    ):
        self.db = db
        self.context = context
        self.provider = provider or get_provider()
        self.cache = cache if cache is not None else co2_cache
        self.audit = audit if audit is not None else AuditService(db, context)

    def _get_asset(self, asset_id: str) -> Asset:
        asset = self.db.query(Asset).filter(
            Asset.id == asset_id,
            Asset.company_id == self.context.company_id
        ).first()
        if asset is None:
            raise NotFound("Asset", asset_id)
        return asset

    def normalize(self, asset: Asset) -> NormalizedAsset:
        model = asset.model
        manufacturer = model.manufacturer_name if model else None
        return normalize_asset(
            manufacturer=manufacturer or "unknown",
            model=model.name if model else asset.name,
            category=asset.category_name,
            type_hint=asset.name
        )

    def _from_record(self, record: Co2eRecord, asset_id: Optional[str]) -> Optional[Co2Result]:
        """Rebuild a result from a stored record; None if the stored data does not validate."""
        details: Dict[str, Any] = record.details or {}
        try:
            return Co2Result(
                asset_id=asset_id,
                fingerprint=record.fingerprint,
                source="database",
                provider=record.source,
                normalized=NormalizedAsset.model_validate(details["normalized"]),
                estimate=Co2Estimate.model_validate(details["estimate"]),
                record_id=record.id,
                calculated_at=record.created_at
            )
        except (KeyError, TypeError, PydanticValidationError) as e:
            logger.warning(f"Stored CO2 record {record.id} is invalid, ignoring it: {e}")
            return None

    def _latest_record(self, **filters) -> Optional[Co2eRecord]:
        query = self.db.query(Co2eRecord).filter(Co2eRecord.company_id == self.context.company_id)
        for column, value in filters.items():
            query = query.filter(getattr(Co2eRecord, column) == value)
        return query.order_by(Co2eRecord.created_at.desc()).first()

    def calculate(self, asset_id: str, force_recalculate: bool = False) -> Co2Result:
        asset = self._get_asset(asset_id)
        normalized = self.normalize(asset)
        key = fingerprint(normalized)
        company_id = self.context.company_id

        if not force_recalculate:
            cached = self.cache.get(company_id, key)
            if cached is not None:
                logger.debug(f"CO2 memory hit for {key[:12]}")
                return cached.model_copy(update={"asset_id": asset.id, "source": "memory"})

            record = self._latest_record(fingerprint=key)
            stored = self._from_record(record, asset.id) if record else None
            if stored is not None:
                logger.debug(f"CO2 database hit for {key[:12]}")
                self.cache.set(company_id, key, stored)
                return stored

        logger.info(f"Calculating CO2 for asset {asset.id} ({normalized.manufacturer} {normalized.model})")
        estimate = self.provider.estimate(normalized)
        calculated_at = datetime.utcnow()

        record = Co2eRecord(
            company_id=company_id,
            asset_id=asset.id,
            fingerprint=key,
            co2e=estimate.total_co2e,
            units=estimate.units,
            source=self.provider.name,
            details={
                "fingerprint": key,
                "normalized": normalized.model_dump(),
                "estimate": estimate.model_dump(),
                "calculatedAt": calculated_at.isoformat(),
            },
            created_at=calculated_at
        )
        self.db.add(record)
        self.db.commit()

        result = Co2Result(
            asset_id=asset.id,
            fingerprint=key,
            source="calculation",
            provider=self.provider.name,
            normalized=normalized,
            estimate=estimate,
            record_id=record.id,
            calculated_at=calculated_at
        )
        self.cache.set(company_id, key, result)
        self.audit.log(
            "ASSET_CO2_CALCULATED", "ASSET", asset.id,
            f"{estimate.total_co2e} {estimate.units} via {self.provider.name}"
        )
        return result

    def latest(self, asset_id: str) -> Optional[Co2Result]:
        """The newest stored estimate for the asset, or for identical hardware."""
        asset = self._get_asset(asset_id)
        record = self._latest_record(asset_id=asset.id)
        if record is None:
            record = self._latest_record(fingerprint=fingerprint(self.normalize(asset)))
        return self._from_record(record, asset.id) if record else None

    def clear_cache(self) -> int:
        cleared = self.cache.clear(self.context.company_id)
        logger.info(f"Cleared {cleared} CO2 cache entries", extra={"company_id": self.context.company_id})
        return cleared
