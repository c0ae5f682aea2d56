# backend/masterbook/services/locks.py
"""
Per-master locks held across check-and-create of an order.

LocalMasterLocks serializes threads of one process. RedisMasterLocks
serializes every process sharing the Redis instance.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from redis import Redis
from redis.exceptions import LockError

from ..errors import BookingInProgress

logger = logging.getLogger(__name__)


class LocalMasterLocks:
    """threading.Lock per master id."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def _lock_for(self, master_id: int) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(master_id, threading.Lock())

    @contextmanager
    def hold(self, master_id: int) -> Iterator[None]:
        with self._lock_for(master_id):
            yield


class RedisMasterLocks:
    """Redis lock per master id (lease expires if the holder dies)."""

    KEY_PREFIX = "lock:master"

    def __init__(self, redis: Redis, timeout_seconds: float = 10.0):
        self.redis = redis
        self.timeout_seconds = timeout_seconds

    def _key(self, master_id: int) -> str:
        return f"{self.KEY_PREFIX}:{master_id}"

    @contextmanager
    def hold(self, master_id: int) -> Iterator[None]:
        lock = self.redis.lock(
            self._key(master_id),
            timeout=self.timeout_seconds,
            blocking_timeout=self.timeout_seconds,
        )
        if not lock.acquire():
            logger.warning(
                f"Lock {self._key(master_id)} not acquired within {self.timeout_seconds}s"
            )
            raise BookingInProgress(
                f"Another booking for master {master_id} is in progress, try again",
                master_id=master_id,
            )
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                logger.warning(f"Lock {self._key(master_id)} expired before release")
