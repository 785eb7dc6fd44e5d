"""Redis cache service for rate searches and hotel details."""

import hashlib
import json
import logging
from typing import Any

import redis.asyncio as redis

logger = logging.getLogger(__name__)

# TTLs in seconds
TTL_RATES_SEARCH = 3 * 60          # 3 minutes
TTL_HOTEL_DETAILS = 24 * 60 * 60   # 24 hours


class CacheService:
    """Redis-backed JSON cache. Without a reachable redis every call is a miss."""

    def __init__(
        self,
        redis_url: str,
        rates_ttl: int = TTL_RATES_SEARCH,
        details_ttl: int = TTL_HOTEL_DETAILS,
    ):
        self.redis_url = redis_url
        self.rates_ttl = rates_ttl
        self.details_ttl = details_ttl
        self._redis: redis.Redis | None = None
        self._disabled = not redis_url

    async def _get_redis(self) -> redis.Redis | None:
        if self._disabled:
            return None
        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._redis.ping()
            except Exception as e:
                logger.warning(f"Redis unavailable, cache disabled: {e}")
                self._redis = None
                self._disabled = True
                return None
        return self._redis

    async def get(self, key: str) -> Any | None:
        """Get a value from cache. Returns None on miss or error."""
        try:
            r = await self._get_redis()
            if r is None:
                return None
            raw = await r.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Set a value in cache with TTL. Returns False on error."""
        try:
            r = await self._get_redis()
            if r is None:
                return False
            await r.set(key, json.dumps(value, default=str), ex=ttl or self.rates_ttl)
            return True
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            r = await self._get_redis()
            if r is None:
                return False
            await r.delete(key)
            return True
        except Exception:
            return False

    # Typed helpers

    @staticmethod
    def rates_search_key(params: dict) -> str:
        digest = hashlib.sha256(json.dumps(params, sort_keys=True, default=str).encode()).hexdigest()
        return f"rates:search:{digest[:32]}"

    @staticmethod
    def hotel_details_key(hotel_id: str, language: str | None) -> str:
        return f"hotel:details:{hotel_id}:{language or 'default'}"

    async def get_rates_search(self, params: dict) -> dict | None:
        return await self.get(self.rates_search_key(params))

    async def set_rates_search(self, params: dict, data: dict):
        await self.set(self.rates_search_key(params), data, self.rates_ttl)

    async def get_hotel_details(self, hotel_id: str, language: str | None) -> dict | None:
        return await self.get(self.hotel_details_key(hotel_id, language))

    async def set_hotel_details(self, hotel_id: str, language: str | None, data: dict):
        await self.set(self.hotel_details_key(hotel_id, language), data, self.details_ttl)

    async def close(self):
        if self._redis:
            await self._redis.aclose()
            self._redis = None
