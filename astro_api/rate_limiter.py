"""
Per-IP rate limiting utilities
Counters live behind a CounterStore so limits hold across processes when Redis is configured
"""

import logging
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import REDIS_URL
from .exceptions import RateLimited
from .security_utils import log_security_event

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """Get or create Redis client from REDIS_URL"""
    global redis_client

    if redis_client is None:
        if not REDIS_URL:
            raise RuntimeError("REDIS_URL is not configured")

        # Mask password in URL for logging
        if "@" in REDIS_URL:
            url_parts = REDIS_URL.split("@")
            protocol = url_parts[0].split(":")[0]
            masked_url = f"{protocol}:****@{url_parts[1]}"
        else:
            masked_url = "****"
        logger.info(f"Using Redis URL connection: {masked_url}")

        try:
            redis_client = redis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=15,
                socket_timeout=30,
                retry_on_timeout=True,
                health_check_interval=30,
                max_connections=20,
            )
            redis_client.ping()
            logger.info("Redis connected successfully via URL")
        except Exception as e:
            logger.error(f"Failed to connect to Redis via URL: {str(e)}")
            redis_client = None
            raise

    return redis_client


class CounterStore:
    """Fixed-window counters keyed by string"""

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        """Count one request against key; returns (count in window, seconds until reset)"""
        raise NotImplementedError

    def reset(self) -> None:
        raise NotImplementedError


class InMemoryCounterStore(CounterStore):
    """Process-local counters; correct for a single instance only"""

    def __init__(self):
        self._entries: dict[str, dict] = {}
        self._lock = Lock()

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now >= entry["reset_at"]:
                entry = {"count": 0, "reset_at": now + window_seconds}
                self._entries[key] = entry

            entry["count"] += 1
            ttl = max(1, int(entry["reset_at"] - now + 0.999))
            self._cleanup(now)
            return entry["count"], ttl

    def _cleanup(self, now: float) -> None:
        expired_keys = [k for k, v in self._entries.items() if now >= v["reset_at"]]
        for k in expired_keys:
            del self._entries[k]

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisCounterStore(CounterStore):
    """Counters shared by every instance pointing at the same Redis"""

    def __init__(self, client: redis.Redis):
        self.client = client

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        pipe = self.client.pipeline()
        pipe.incr(key)
        pipe.ttl(key)
        count, ttl = pipe.execute()

        if ttl is None or ttl < 0:
            # First hit in the window (or a key that lost its expiry)
            self.client.expire(key, window_seconds)
            ttl = window_seconds

        return int(count), int(ttl)

    def reset(self) -> None:
        for key in self.client.scan_iter(match="rate_limit:*"):
            self.client.delete(key)


_counter_store: Optional[CounterStore] = None


def get_counter_store() -> CounterStore:
    """Redis-backed store when REDIS_URL is set, otherwise in-process counters"""
    global _counter_store

    if _counter_store is None:
        if REDIS_URL:
            _counter_store = RedisCounterStore(get_redis_client())
            logger.info("Rate limiting uses Redis counters")
        else:
            _counter_store = InMemoryCounterStore()
            logger.info("Rate limiting uses in-memory counters (single instance only)")

    return _counter_store


def set_counter_store(store: Optional[CounterStore]) -> None:
    """Swap the counter store (tests, or an app wiring its own)"""
    global _counter_store
    _counter_store = store


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        candidate = forwarded.split(",")[0].strip()
        if candidate:
            return candidate

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


def check_rate_limit(
    key: str, limit: int, window_seconds: int, store: CounterStore
) -> tuple[bool, int, int]:
    """Check if rate limit is exceeded

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_count, ttl = store.hit(key, window_seconds)
    return current_count <= limit, current_count, ttl


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
):
    """
    FastAPI dependency for per-IP rate limiting

    Args:
        request: FastAPI request object
        limit: Maximum requests allowed
        window_seconds: Time window in seconds
        key_prefix: Prefix for the counter key
    """
    client_ip = get_client_ip(request)
    key = f"rate_limit:{key_prefix}:{client_ip}"

    try:
        is_allowed, current_count, ttl = check_rate_limit(
            key, limit, window_seconds, get_counter_store()
        )
    except Exception as e:
        logger.error(f"Rate limiting error: {str(e)}")
        logger.warning("Denying request due to rate limiting error (fail-closed mode)")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e

    if not is_allowed:
        log_security_event(
            "rate_limited",
            ip_address=client_ip,
            details={"key_prefix": key_prefix, "count": current_count, "limit": limit},
        )
        raise RateLimited(ttl, message=f"Too many requests. Please try again in {ttl} seconds.")

    request.state.rate_limit_remaining = max(0, limit - current_count)


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        rate_limit_otp = create_rate_limiter(limit=5, window_seconds=600, key_prefix="otp")

        @router.post("/auth/otp/reset")
        async def request_reset(data: ResetRequest, _: None = Depends(rate_limit_otp)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter
