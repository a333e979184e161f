"""
Caching Service.

Redis-backed cache for read-side dashboard projections. Every committing
ledger or complaint command invalidates the affected resident's entry.
A Redis outage degrades to uncached reads.
"""

import json
import logging
from typing import Any, Optional

from redis.exceptions import RedisError

import hostel_ledger.app.core.redis_client as redis_client_module
from hostel_ledger.app.core.config import settings

logger = logging.getLogger(__name__)


def dashboard_key(resident_id: int) -> str:
    return f"hostel_ledger:dashboard:resident:{resident_id}"


class CacheService:

    @staticmethod
    async def get(key: str) -> Optional[Any]:
        try:
            raw = await redis_client_module.redis_client.get(key)
        except RedisError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    @staticmethod
    async def set(key: str, data: Any, ttl_seconds: int = None):
        ttl_seconds = ttl_seconds or settings.dashboard_cache_ttl_seconds
        try:
            await redis_client_module.redis_client.set(key, json.dumps(data), ex=ttl_seconds)
        except RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    @staticmethod
    async def delete(key: str):
        try:
            await redis_client_module.redis_client.delete(key)
        except RedisError as exc:
            logger.warning("Cache invalidation failed for %s: %s", key, exc)

    @staticmethod
    async def invalidate_resident(resident_id: int):
        await CacheService.delete(dashboard_key(resident_id))
