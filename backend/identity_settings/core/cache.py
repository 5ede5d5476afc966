"""Cache client wiring.

Environment variables (read at call-time):
- REDIS_URL (optional; unset disables cache invalidation)
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional, Protocol

import redis

GLOBAL_SETTINGS_CACHE_KEY = "global_settings"

logger = logging.getLogger(__name__)


class CacheClient(Protocol):
    """Minimal surface the settings store needs from a key-value cache."""

    def delete(self, *names: str) -> Any:
        ...


def get_cache_client() -> Optional[CacheClient]:
    """Build a Redis client from `REDIS_URL`, or return None when unset."""
    url = os.getenv("REDIS_URL", "").strip()
    if not url:
        logger.info("REDIS_URL not set; cache invalidation disabled")
        return None
    # from_url does not connect; the first command opens the connection
    return redis.Redis.from_url(url, socket_timeout=2, socket_connect_timeout=2)
