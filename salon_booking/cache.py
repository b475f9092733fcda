"""
Redis cache for the manager schedule
One JSON document per business day, dropped whenever that day changes
"""
import json
import logging
from datetime import date
from typing import Iterable, Optional

from .config import SCHEDULE_CACHE_ENABLED, SCHEDULE_CACHE_TTL_SECONDS
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)


def build_schedule_key(day: date) -> str:
    return f"manager_schedule:{day.isoformat()}"


class ScheduleCache:
    """Fail-soft: any redis problem degrades to an uncached read"""

    def __init__(self, enabled: bool = True, ttl: int = SCHEDULE_CACHE_TTL_SECONDS):
        self.enabled = enabled
        self.ttl = ttl
        self.redis_client = None

    def _get_client(self):
        """Lazy load Redis client"""
        if not self.enabled:
            return None
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Redis cache unavailable: {e}")
                return None
        return self.redis_client

    def get_day(self, day: date) -> Optional[dict]:
        client = self._get_client()
        if not client:
            return None

        key = build_schedule_key(day)
        try:
            value = client.get(key)
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

        if not value:
            logger.debug(f"Cache MISS: {key}")
            return None
        logger.debug(f"✅ Cache HIT: {key}")
        return json.loads(value)

    def store_day(self, day: date, view: dict) -> bool:
        client = self._get_client()
        if not client:
            return False

        key = build_schedule_key(day)
        try:
            client.setex(key, self.ttl, json.dumps(view))
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False
        return True

    def invalidate_days(self, days: Iterable[date]) -> int:
        """Drop cached views for every touched business day"""
        client = self._get_client()
        keys = sorted({build_schedule_key(day) for day in days})
        if not client or not keys:
            return 0

        try:
            removed = client.delete(*keys)
        except Exception as e:
            logger.error(f"❌ Cache invalidation failed for {keys}: {e}")
            return 0
        logger.info(f"🧹 Invalidated schedule cache for {keys}")
        return removed


# Global cache instance
schedule_cache = ScheduleCache(enabled=SCHEDULE_CACHE_ENABLED)


def invalidate_schedule_days(days: Iterable[date]) -> int:
    return schedule_cache.invalidate_days(days)
