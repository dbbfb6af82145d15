import json
import logging
import time
from typing import Optional

import redis
from redis.exceptions import RedisError

from cod_form.core.config import settings

logger = logging.getLogger(__name__)

class SettingsCache:
    """
    Short-lived cache for the public widget settings.

    Redis when it is configured and reachable, RAM otherwise. Every
    storefront page view hits this, so a dead Redis must not break it.
    """

    def __init__(self, redis_url: Optional[str] = None, ttl: Optional[int] = None):
        self.ttl = ttl if ttl is not None else settings.SETTINGS_CACHE_TTL
        self.redis = None
        self.redis_available = False

        # 1. Primary Memory (Redis)
        if redis_url:
            try:
                self.redis = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=1  # Fail fast if Redis is down
                )
                self.redis.ping()
                self.redis_available = True
                logger.info("✅ SettingsCache: Connected to Redis.")
            except (RedisError, ValueError) as e:
                logger.warning(f"⚠️ SettingsCache: Redis unreachable ({e}). Using RAM fallback.")

        # 2. Fallback Memory (RAM): key -> (expires_at, payload)
        self._memory_store = {}

    def get(self, shop: str) -> Optional[dict]:
        key = self._key(shop)

        if self.redis_available:
            try:
                data = self.redis.get(key)
                if data:
                    return json.loads(data)
            except RedisError as e:
                self._handle_redis_error(e)

        entry = self._memory_store.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if expires_at < time.monotonic():
            self._memory_store.pop(key, None)
            return None
        return dict(payload)

    def set(self, shop: str, payload: dict) -> None:
        key = self._key(shop)

        if self.redis_available:
            try:
                self.redis.setex(key, self.ttl, json.dumps(payload))
            except RedisError as e:
                self._handle_redis_error(e)

        self._memory_store[key] = (time.monotonic() + self.ttl, dict(payload))

    def invalidate(self, shop: str) -> None:
        key = self._key(shop)

        if self.redis_available:
            try:
                self.redis.delete(key)
            except RedisError as e:
                self._handle_redis_error(e)

        self._memory_store.pop(key, None)

    @staticmethod
    def _key(shop: str) -> str:
        return f"store:{shop}:public_settings"

    def _handle_redis_error(self, e):
        """Stop trying Redis after the first failure."""
        logger.error(f"❌ Redis Error: {e}. Switching to RAM mode.")
        self.redis_available = False
