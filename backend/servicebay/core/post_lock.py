"""
Keyed mutual exclusion for writes that touch the same post, booking or client.

Each key gets its own in-process lock, so unrelated posts never contend.
When ``redis_url`` is configured a Redis ``SET NX EX`` lock is layered on top
for multi-process deployments. The Redis layer fails open: if Redis is
unreachable the in-process lock and the database row lock still apply.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import ContextManager, Dict, Iterator, List, Optional

from redis import Redis

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .exceptions import PostBusyException

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_URL: Optional[str] = None
_SYNC_REDIS_LOCK = threading.Lock()

_REDIS_POLL_SECONDS = 0.05


class KeyedLockRegistry:
    """
    Map of key -> threading.Lock with reference counting.

    Entries are dropped once no thread holds or waits on them, so the
    registry does not grow with the number of bookings ever touched.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: Dict[str, List] = {}

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._entries[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] <= 0:
                del self._entries[key]

    @contextmanager
    def hold(self, key: str, timeout: Optional[float] = None) -> Iterator[bool]:
        """Acquire the lock for ``key``; yields False if it timed out."""
        lock = self._checkout(key)
        acquired = lock.acquire(timeout=-1 if timeout is None else timeout)
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()
            self._checkin(key)

    def active_keys(self) -> List[str]:
        with self._guard:
            return list(self._entries)


_registry = KeyedLockRegistry()


def get_lock_registry() -> KeyedLockRegistry:
    return _registry


def _lock_key(scope: str, resource_id: str) -> str:
    return f"servicebay:lock:{scope}:{resource_id}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS, _SYNC_REDIS_URL
    url = settings.redis_url
    if not url:
        return None
    if _SYNC_REDIS is not None and _SYNC_REDIS_URL == url:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None and _SYNC_REDIS_URL == url:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(url, encoding="utf-8", decode_responses=True)
            client.ping()
        except Exception as exc:
            logger.warning("post_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        _SYNC_REDIS_URL = url
        return _SYNC_REDIS


def _acquire_redis(key: str, token: str, ttl_s: int, wait_s: float) -> bool:
    client = _get_sync_redis()
    if client is None:
        return True
    deadline = time.monotonic() + wait_s
    try:
        while True:
            if client.set(key, token, nx=True, ex=ttl_s):
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(_REDIS_POLL_SECONDS)
    except Exception as exc:
        prometheus_metrics.record_lock_outcome("redis", "error")
        logger.warning(
            "post_lock_redis_acquire_failed",
            extra={"key": key, "error": str(exc), "error_type": type(exc).__name__},
        )
        return True


def _release_redis(key: str, token: str) -> None:
    client = _get_sync_redis()
    if client is None:
        return
    try:
        if client.get(key) == token:
            client.delete(key)
    except Exception as exc:
        prometheus_metrics.record_lock_outcome("redis", "release_error")
        logger.warning(
            "post_lock_redis_release_failed",
            extra={"key": key, "error": str(exc), "error_type": type(exc).__name__},
        )


@contextmanager
def resource_lock(
    scope: str,
    resource_id: str,
    *,
    wait_s: Optional[float] = None,
    ttl_s: Optional[int] = None,
) -> Iterator[None]:
    """
    Serialize work on one resource.

    Raises:
        PostBusyException: the lock was not obtained within ``wait_s``
    """
    wait = settings.post_lock_wait_seconds if wait_s is None else wait_s
    ttl = settings.post_lock_ttl_seconds if ttl_s is None else ttl_s
    key = _lock_key(scope, resource_id)
    started = time.monotonic()

    with _registry.hold(key, timeout=wait) as acquired:
        if not acquired:
            prometheus_metrics.record_lock_outcome(scope, "timeout")
            logger.warning("resource_lock_timeout", extra={"scope": scope, "id": resource_id})
            raise PostBusyException(resource_id)

        remaining = max(0.0, wait - (time.monotonic() - started))
        token = f"{threading.get_ident()}:{time.time()}"
        if not _acquire_redis(key, token, ttl, remaining):
            prometheus_metrics.record_lock_outcome(scope, "blocked")
            logger.warning("resource_lock_blocked", extra={"scope": scope, "id": resource_id})
            raise PostBusyException(resource_id)

        prometheus_metrics.record_lock_outcome(scope, "acquired")
        try:
            yield
        finally:
            _release_redis(key, token)


def post_lock(post_id: str, **kwargs) -> ContextManager[None]:
    """Serialize booking writes on a single post."""
    return resource_lock("post", post_id, **kwargs)


def booking_lock(booking_id: str, **kwargs) -> ContextManager[None]:
    """Serialize status transitions on a single booking."""
    return resource_lock("booking", booking_id, **kwargs)


def client_lock(client_id: str, **kwargs) -> ContextManager[None]:
    """Serialize identity work on a single client."""
    return resource_lock("client", client_id, **kwargs)
