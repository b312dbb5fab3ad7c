import json
import logging
import time
import uuid

import redis
from redis.exceptions import RedisError

from ops_dashboard.interfaces.ISessionStore import ISessionStore

logger = logging.getLogger(__name__)


class AdminSessionStore(ISessionStore):
    """Admin login sessions, kept in Redis with an in-process fallback."""

    def __init__(self, admin_email: str, ttl_seconds: int = 24 * 60 * 60,
                 redis_url: str | None = None, clock=time.time):
        self.admin_email = admin_email
        self.ttl = ttl_seconds
        self._clock = clock
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
                logger.info("✅ SessionStore: Connected to Redis.")
            except RedisError as e:
                logger.warning("⚠️ SessionStore: Redis unreachable (%s). Using RAM fallback.", e)
                self.redis_available = False

        # 2. Fallback Memory (RAM)
        self._memory_store = {}

    def _key(self, token: str) -> str:
        return f"admin:session:{token}"

    def create_session(self) -> str:
        token = uuid.uuid4().hex
        now = self._clock()
        session = {
            "email": self.admin_email,
            "timestamp": now,
            "expires_at": now + self.ttl,
        }
        key = self._key(token)

        if self.redis_available:
            try:
                self.redis.setex(key, self.ttl, json.dumps(session))
            except RedisError as e:
                self._handle_redis_error(e)

        # Always write to RAM so a Redis outage does not log the admin out
        self._memory_store[key] = session
        return token

    def check_session(self, token: str | None) -> bool:
        if not token:
            return False
        key = self._key(token)
        session = None

        if self.redis_available:
            try:
                raw = self.redis.get(key)
                session = json.loads(raw) if raw else None
            except RedisError as e:
                self._handle_redis_error(e)
            except ValueError:
                session = None

        if session is None:
            session = self._memory_store.get(key)

        if not session:
            return False

        if session.get("expires_at", 0) > self._clock() and session.get("email") == self.admin_email:
            return True

        # Expired or foreign session, drop it
        self.clear_session(token)
        return False

    def clear_session(self, token: str | None) -> None:
        if not token:
            return
        key = self._key(token)

        if self.redis_available:
            try:
                self.redis.delete(key)
            except RedisError as e:
                self._handle_redis_error(e)

        self._memory_store.pop(key, None)

    def _handle_redis_error(self, e):
        """Log error and switch flag to False to stop trying Redis for a while."""
        logger.error("❌ Redis Error: %s. Switching to RAM mode.", e)
        self.redis_available = False
