"""
Redis cache layer for employee reads.

Redis is ONLY a cache, never the source of truth. Every mutation invalidates
the keys it could have made stale.

Cache keys:
- employee:{id}                : single employee record
- employees_list:*             : any list payload (employee lists, chat query answers)
- employees_list:chat:{hash}   : deterministic chat answer (TTL from config)
- admin_notifications          : admin notification list, newest first
"""

import hashlib
import json
from typing import Any, Dict, List, Optional

import redis
from redis.exceptions import RedisError

from hrchat.utils.logger import get_logger

logger = get_logger("cache")

EMPLOYEE_KEY = "employee:{id}"
EMPLOYEE_LIST_PATTERN = "employees_list:*"
NOTIFICATIONS_KEY = "admin_notifications"

_CACHE_ERRORS = (RedisError, TypeError, ValueError)


def employee_key(employee_id: Any) -> str:
    return EMPLOYEE_KEY.format(id=employee_id)


def make_chat_query_key(username: str, role: str, text: str) -> str:
    """
    Deterministic key for a chat answer.

    Lives under the employees_list: prefix so list invalidation evicts it, and
    includes the requester so scoped answers are never shared between users.
    """
    raw = json.dumps({"u": username, "r": role, "q": text}, sort_keys=True)
    return f"employees_list:chat:{hashlib.sha256(raw.encode()).hexdigest()[:16]}"


class CacheClient:
    """
    Best-effort Redis client: failures are logged and reported as a miss,
    False or 0, never raised to the request.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379/0", client: Optional[redis.Redis] = None):
        """
        Args:
            redis_url: Connection URL (redis:// or rediss:// for TLS)
            client: Pre-built client (tests)
        """
        self.client = client if client is not None else redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

    def ping(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return bool(self.client.ping())
        except _CACHE_ERRORS:
            return False

    def get(self, key: str) -> Optional[Any]:
        """Get a cached JSON value. Returns None on miss."""
        try:
            cached = self.client.get(key)
            if cached:
                return json.loads(cached)
            return None
        except _CACHE_ERRORS as e:
            logger.error(f"Cache read error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int) -> bool:
        try:
            self.client.setex(key, ttl, json.dumps(value))
            return True
        except _CACHE_ERRORS as e:
            logger.error(f"Cache write error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            self.client.delete(key)
            return True
        except _CACHE_ERRORS as e:
            logger.error(f"Cache delete error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns count of keys deleted."""
        try:
            keys = list(self.client.scan_iter(match=pattern, count=100))
            if keys:
                return self.client.delete(*keys)
            return 0
        except _CACHE_ERRORS as e:
            logger.error(f"Cache invalidation error for {pattern}: {e}")
            return 0

    #
    # Admin notifications (list, newest first)
    #

    def push_notification(self, notification: Dict[str, Any], limit: int = 100) -> bool:
        try:
            self.client.lpush(NOTIFICATIONS_KEY, json.dumps(notification))
            self.client.ltrim(NOTIFICATIONS_KEY, 0, limit - 1)
            return True
        except _CACHE_ERRORS as e:
            logger.error(f"Notification write error: {e}")
            return False

    def get_notifications(self) -> List[Dict[str, Any]]:
        try:
            raw_items = self.client.lrange(NOTIFICATIONS_KEY, 0, -1)
        except _CACHE_ERRORS as e:
            logger.error(f"Notification read error: {e}")
            return []
        notifications = []
        for item in raw_items:
            try:
                notifications.append(json.loads(item))
            except ValueError:
                logger.warning(f"Skipping unreadable notification: {item[:80]!r}")
        return notifications

    def clear_notifications(self) -> bool:
        return self.delete(NOTIFICATIONS_KEY)
