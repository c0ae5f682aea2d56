from datetime import datetime, timezone

import pytest

from masterbook.errors import IllegalTransition, ValidationError
from masterbook.services.scheduling.lifecycle import (
    ActorRole,
    Order,
    OrderStatus,
    apply_transition,
)

NOW = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
CREATED = datetime(2024, 5, 1, tzinfo=timezone.utc)

MASTER = ActorRole.MASTER
CLIENT = ActorRole.CLIENT


def _order(status: OrderStatus) -> Order:
    return Order(
        id=1,
        service_id=1,
        master_id=10,
        client_id=20,
        desired_at=datetime(2024, 6, 10, 9, tzinfo=timezone.utc),
        status=status,
        status_changed_at=CREATED,
        created_at=CREATED,
    )


@pytest.mark.parametrize("role, current, target", [
    (MASTER, OrderStatus.NEW, OrderStatus.ACCEPTED),
    (MASTER, OrderStatus.NEW, OrderStatus.REJECTED),
    (MASTER, OrderStatus.ACCEPTED, OrderStatus.DONE),
    (MASTER, OrderStatus.ACCEPTED, OrderStatus.CANCELLED),
    (CLIENT, OrderStatus.NEW, OrderStatus.CANCELLED),
    (CLIENT, OrderStatus.ACCEPTED, OrderStatus.CANCELLED),
])
def test_allowed_transitions_stamp_time(role, current, target) -> None:
    updated = apply_transition(_order(current), role, target, now=NOW)

    assert updated.status == target
    assert updated.status_changed_at == NOW
    assert updated.desired_at == _order(current).desired_at


@pytest.mark.parametrize("role, current, target", [
    (MASTER, OrderStatus.NEW, OrderStatus.DONE),
    (MASTER, OrderStatus.NEW, OrderStatus.CANCELLED),
    (MASTER, OrderStatus.ACCEPTED, OrderStatus.NEW),
    (MASTER, OrderStatus.DONE, OrderStatus.CANCELLED),
    (MASTER, OrderStatus.REJECTED, OrderStatus.ACCEPTED),
    (CLIENT, OrderStatus.NEW, OrderStatus.ACCEPTED),
    (CLIENT, OrderStatus.ACCEPTED, OrderStatus.DONE),
    (CLIENT, OrderStatus.DONE, OrderStatus.CANCELLED),
    (CLIENT, OrderStatus.CANCELLED, OrderStatus.NEW),
])
def test_illegal_transitions(role, current, target) -> None:
    with pytest.raises(IllegalTransition):
        apply_transition(_order(current), role, target, now=NOW)


def test_rejection_records_reason() -> None:
    updated = apply_transition(_order(OrderStatus.NEW), MASTER, "REJECTED", "Fully booked", NOW)

    assert updated.status == OrderStatus.REJECTED
    assert updated.rejection_reason == "Fully booked"


def test_reason_is_ignored_for_other_targets() -> None:
    updated = apply_transition(_order(OrderStatus.NEW), MASTER, "ACCEPTED", "whatever", NOW)
    assert updated.rejection_reason is None


def test_same_status_is_a_no_op() -> None:
    order = _order(OrderStatus.CANCELLED)
    assert apply_transition(order, CLIENT, "CANCELLED", now=NOW) is order


@pytest.mark.parametrize("role, status", [
    (MASTER, OrderStatus.ACCEPTED),
    (MASTER, OrderStatus.DONE),
    (CLIENT, OrderStatus.CANCELLED),
])
def test_repeating_a_reachable_status_is_a_no_op(role, status) -> None:
    order = _order(status)
    assert apply_transition(order, role, status, now=NOW) is order


@pytest.mark.parametrize("role, status", [
    (CLIENT, OrderStatus.NEW),
    (CLIENT, OrderStatus.ACCEPTED),
    (CLIENT, OrderStatus.DONE),
    (CLIENT, OrderStatus.REJECTED),
    (MASTER, OrderStatus.NEW),
])
def test_repeating_a_status_the_role_cannot_set(role, status) -> None:
    with pytest.raises(IllegalTransition):
        apply_transition(_order(status), role, status, now=NOW)


def test_unknown_status() -> None:
    with pytest.raises(ValidationError):
        apply_transition(_order(OrderStatus.NEW), MASTER, "PAID", now=NOW)


def test_busy_flag() -> None:
    assert _order(OrderStatus.DONE).is_busy
    assert not _order(OrderStatus.CANCELLED).is_busy
