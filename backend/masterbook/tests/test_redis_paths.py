from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockError

from masterbook.errors import BookingInProgress, SlotConflict
from masterbook.main import create_app
from masterbook.services.booking import BookingService
from masterbook.services.events import P2P_QUEUE, emit_event
from masterbook.services.locks import RedisMasterLocks

from .conftest import NOW

NINE = "2024-06-10T09:00:00.000Z"


class _ThreadLock:
    """Named lock shaped like redis.lock.Lock, backed by threading.Lock."""

    def __init__(self, inner: threading.Lock, blocking_timeout: float):
        self._inner = inner
        self._blocking_timeout = blocking_timeout

    def acquire(self) -> bool:
        return self._inner.acquire(timeout=self._blocking_timeout)

    def release(self) -> None:
        self._inner.release()


class _InProcessRedis:
    """The handful of Redis calls the booking service makes, kept in memory."""

    def __init__(self):
        self.pushed: list[tuple[str, dict]] = []
        self.lock_names: list[str] = []
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock(self, name: str, timeout: float, blocking_timeout: float) -> _ThreadLock:
        with self._guard:
            self.lock_names.append(name)
            inner = self._locks.setdefault(name, threading.Lock())
        return _ThreadLock(inner, blocking_timeout)

    def rpush(self, key: str, value: str) -> int:
        self.pushed.append((key, json.loads(value)))
        return len(self.pushed)

    def ping(self) -> bool:
        return True


def _refusing_redis() -> MagicMock:
    redis = MagicMock()
    redis.lock.return_value.acquire.return_value = False
    return redis


# ── Locks ────────────────────────────────────────────────────────────────


def test_redis_lock_serializes_holders() -> None:
    locks = RedisMasterLocks(_InProcessRedis(), timeout_seconds=5)
    barrier = threading.Barrier(2)
    trace: list[str] = []

    def hold(name: str) -> None:
        barrier.wait()
        with locks.hold(7):
            trace.append(f"enter {name}")
            time.sleep(0.05)
            trace.append(f"exit {name}")

    with ThreadPoolExecutor(max_workers=2) as pool:
        list(pool.map(hold, ["a", "b"]))

    assert [t.split()[0] for t in trace] == ["enter", "exit", "enter", "exit"]
    assert trace[0].split()[1] == trace[1].split()[1]


def test_redis_lock_is_keyed_per_master() -> None:
    redis = _InProcessRedis()
    locks = RedisMasterLocks(redis, timeout_seconds=1)

    with locks.hold(1):
        with locks.hold(2):
            pass

    assert redis.lock_names == ["lock:master:1", "lock:master:2"]


def test_busy_lock_is_a_retryable_error() -> None:
    locks = RedisMasterLocks(_refusing_redis(), timeout_seconds=0.1)

    with pytest.raises(BookingInProgress) as exc_info:
        with locks.hold(3):
            pytest.fail("lock body must not run")

    assert exc_info.value.status_code == 503
    assert exc_info.value.to_dict()["error"] == "booking_in_progress"
    assert not isinstance(exc_info.value, SlotConflict)


def test_expired_lease_on_release_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    redis = MagicMock()
    redis.lock.return_value.acquire.return_value = True
    redis.lock.return_value.release.side_effect = LockError("expired")
    ran = []

    with caplog.at_level(logging.WARNING, logger="masterbook.services.locks"):
        with RedisMasterLocks(redis).hold(4):
            ran.append(True)

    assert ran == [True]
    assert "expired before release" in caplog.text


# ── Events ───────────────────────────────────────────────────────────────


def test_emit_event_pushes_json_to_queue() -> None:
    redis = _InProcessRedis()

    emit_event(redis, "order_created", {"order_id": 1})

    [(key, event)] = redis.pushed
    assert key == P2P_QUEUE
    assert event["type"] == "order_created"
    assert event["order_id"] == 1
    assert isinstance(event["ts"], int)


def test_emit_event_swallows_push_failures(caplog: pytest.LogCaptureFixture) -> None:
    redis = MagicMock()
    redis.rpush.side_effect = RedisConnectionError("connection refused")

    with caplog.at_level(logging.ERROR, logger="masterbook.services.events"):
        emit_event(redis, "order_created", {"order_id": 1})  # should not raise

    assert "Failed to emit event order_created" in caplog.text


# ── Booking service over Redis ───────────────────────────────────────────


def test_booking_emits_events(repo, people, monday_schedule) -> None:
    redis = _InProcessRedis()
    service = BookingService(repo, redis=redis, clock=lambda: NOW)

    order = service.create_order(people.client, people.service.id, NINE)
    service.set_order_status(people.master, order.id, "ACCEPTED")

    events = [event for _, event in redis.pushed]
    assert [e["type"] for e in events] == ["order_created", "order_status_changed"]
    assert events[0]["desired_at"] == NINE
    assert events[1]["previous_status"] == "NEW"
    assert events[1]["status"] == "ACCEPTED"
    assert redis.lock_names == [f"lock:master:{people.master.id}"]


def test_booking_survives_event_failure(repo, people, monday_schedule, caplog) -> None:
    redis = _InProcessRedis()
    redis.rpush = MagicMock(side_effect=RedisConnectionError("connection refused"))
    service = BookingService(repo, redis=redis, clock=lambda: NOW)

    with caplog.at_level(logging.ERROR, logger="masterbook.services.events"):
        order = service.create_order(people.client, people.service.id, NINE)

    assert repo.get_order(order.id) == order
    assert "Failed to emit event order_created" in caplog.text


def test_concurrent_bookings_under_redis_lock(repo, people, monday_schedule) -> None:
    service = BookingService(repo, redis=_InProcessRedis(), clock=lambda: NOW)
    barrier = threading.Barrier(2)

    def book(client):
        barrier.wait()
        try:
            return service.create_order(client, people.service.id, NINE)
        except SlotConflict as e:
            return e

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(book, [people.client, people.other_client]))

    assert sum(isinstance(r, SlotConflict) for r in results) == 1
    assert len(service.list_orders(people.master)) == 1


def test_busy_lock_leaves_no_order(repo, people, monday_schedule) -> None:
    service = BookingService(repo, redis=_refusing_redis(), clock=lambda: NOW)

    with pytest.raises(BookingInProgress):
        service.create_order(people.client, people.service.id, NINE)

    assert service.list_orders(people.client) == []


def test_busy_lock_over_http(repo, people, monday_schedule) -> None:
    service = BookingService(repo, redis=_refusing_redis(), clock=lambda: NOW)
    client = TestClient(create_app(service))

    response = client.post(
        "/orders/",
        headers={"X-User-ID": str(people.client.id)},
        json={"service_id": people.service.id, "desired_at": NINE},
    )

    assert response.status_code == 503
    assert response.json()["error"] == "booking_in_progress"


def test_health_reports_redis(repo) -> None:
    service = BookingService(repo, redis=_InProcessRedis(), clock=lambda: NOW)

    response = TestClient(create_app(service)).get("/health")

    assert response.json() == {"status": "ok", "redis": True}
