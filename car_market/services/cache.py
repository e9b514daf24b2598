# car_market/services/cache.py

"""
Кэш справочников машин (цвета, города) в Redis.

Кэш необязателен: без REDIS_URL или при недоступном Redis
чтения возвращают промах, а записи ничего не делают. Источник правды - БД.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from car_market.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    def __init__(self, url: Optional[str], namespace: str = "car_market"):
        self._url = url
        self._namespace = namespace
        self._client: Optional[redis.Redis] = None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def connect(self):
        if self._client is not None or not self._url:
            return
        self._client = redis.from_url(self._url, encoding="utf-8", decode_responses=True)
        logger.info("Redis cache enabled (namespace %s)", self._namespace)

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            raw_data = await self._client.get(self._key(key))
        except redis.RedisError as exc:
            logger.warning("Cache read %s failed: %s", key, exc)
            return None
        return None if raw_data is None else json.loads(raw_data)

    async def set(self, key: str, value: Any, ttl: int):
        if not self.enabled:
            return
        try:
            await self._client.setex(self._key(key), ttl, json.dumps(value))
        except redis.RedisError as exc:
            logger.warning("Cache write %s failed: %s", key, exc)

    async def delete(self, *keys: str):
        if not self.enabled or not keys:
            return
        try:
            await self._client.delete(*(self._key(key) for key in keys))
        except redis.RedisError as exc:
            logger.warning("Cache invalidation %s failed: %s", ", ".join(keys), exc)

    async def ping(self) -> bool:
        """True, если Redis подключен и отвечает."""
        if not self.enabled:
            return False
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            return False


cache = RedisCache(settings.REDIS_URL)
