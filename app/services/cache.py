"""
Entity List Cache

Server-side cache of get_all results in Redis, keyed by entity and
company. Each (entity, company) pair has a version counter; a mutation
bumps the counter, which orphans every cached list for that pair. The
orphans expire on their own TTL.

Redis is optional. With REDIS_URL empty or the server unreachable the
cache is disabled and every call falls through to the database.
"""
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional
import hashlib
import json

import redis

from app.config import get_settings
from app.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


class EntityCache:
    """Versioned list cache. All Redis failures degrade to a miss."""

    def __init__(self, client: Optional[redis.Redis] = None, ttl: int = 300, prefix: str = "itam"):
        self.client = client
        self.ttl = ttl
        self.prefix = prefix

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _version_key(self, entity: str, company_id: str) -> str:
        return f"{self.prefix}:{entity}:{company_id}:version"

    def _list_key(self, entity: str, company_id: str, version: int, params: Dict[str, Any]) -> str:
        digest = hashlib.md5(json.dumps(params, sort_keys=True, default=str).encode()).hexdigest()
        return f"{self.prefix}:{entity}:{company_id}:v{version}:{digest}"

    def _version(self, entity: str, company_id: str) -> int:
        value = self.client.get(self._version_key(entity, company_id))
        return int(value) if value else 0

    def get_list(self, entity: str, company_id: str, params: Dict[str, Any]) -> Optional[List[dict]]:
        if not self.enabled:
            return None
        try:
            key = self._list_key(entity, company_id, self._version(entity, company_id), params)
            raw = self.client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for {entity}: {e}")
            return None
        if raw is None:
            logger.debug(f"Cache miss: {entity} company={company_id}")
            return None
        return json.loads(raw)

    def set_list(self, entity: str, company_id: str, params: Dict[str, Any], rows: List[dict]) -> None:
        if not self.enabled:
            return
        try:
            key = self._list_key(entity, company_id, self._version(entity, company_id), params)
            self.client.setex(key, self.ttl, json.dumps(rows, default=str))
        except redis.RedisError as e:
            logger.warning(f"Cache write failed for {entity}: {e}")

    def invalidate(self, entities: Iterable[str], company_id: str) -> None:
        if not self.enabled:
            return
        for entity in entities:
            try:
                self.client.incr(self._version_key(entity, company_id))
            except redis.RedisError as e:
                logger.warning(f"Cache invalidation failed for {entity}: {e}")


@lru_cache()
def get_cache() -> EntityCache:
    """
    Build the process-wide cache from settings.

    A failed ping disables caching instead of failing startup.
    """
    if not settings.REDIS_URL:
        logger.info("REDIS_URL not set, entity cache disabled")
        return EntityCache(None)
    try:
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5
        )
        client.ping()
        logger.info("Redis connection established for entity cache")
        return EntityCache(client, ttl=settings.CACHE_TTL_SECONDS)
    except (redis.ConnectionError, redis.TimeoutError) as e:
        logger.error(f"Redis connection failed, entity cache disabled: {e}")
        return EntityCache(None)
