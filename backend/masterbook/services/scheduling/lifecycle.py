# backend/masterbook/services/scheduling/lifecycle.py
"""
Order lifecycle.

    NEW ──master──▶ ACCEPTED ──master──▶ DONE
     │                 │
     ├──master──▶ REJECTED
     │                 └──master/client──▶ CANCELLED
     └──client──▶ CANCELLED

REJECTED, DONE and CANCELLED are terminal. Requesting the current status
again is a no-op for a role that can set that status.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum

from ...errors import IllegalTransition, ValidationError

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    NEW = "NEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


class ActorRole(str, Enum):
    MASTER = "master"
    CLIENT = "client"


# DONE keeps its slot so a completed visit cannot be re-booked retroactively
BUSY_STATUSES = frozenset({OrderStatus.NEW, OrderStatus.ACCEPTED, OrderStatus.DONE})
TERMINAL_STATUSES = frozenset({OrderStatus.REJECTED, OrderStatus.DONE, OrderStatus.CANCELLED})

TRANSITIONS: dict[ActorRole, dict[OrderStatus, frozenset[OrderStatus]]] = {
    ActorRole.MASTER: {
        OrderStatus.NEW: frozenset({OrderStatus.ACCEPTED, OrderStatus.REJECTED}),
        OrderStatus.ACCEPTED: frozenset({OrderStatus.DONE, OrderStatus.CANCELLED}),
    },
    ActorRole.CLIENT: {
        OrderStatus.NEW: frozenset({OrderStatus.CANCELLED}),
        OrderStatus.ACCEPTED: frozenset({OrderStatus.CANCELLED}),
    },
}


@dataclass(frozen=True)
class Order:
    id: int | None
    service_id: int
    master_id: int
    client_id: int
    desired_at: datetime
    status: OrderStatus = OrderStatus.NEW
    comment: str | None = None
    status_changed_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime | None = None

    @property
    def is_busy(self) -> bool:
        return self.status in BUSY_STATUSES


def parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(
            f"Invalid status {value!r}. Allowed values: {allowed}", field="status"
        ) from None


def allowed_transitions(role: ActorRole, current: OrderStatus) -> frozenset[OrderStatus]:
    return TRANSITIONS.get(ActorRole(role), {}).get(OrderStatus(current), frozenset())


def reachable_statuses(role: ActorRole) -> frozenset[OrderStatus]:
    """Every status the role can move an order into."""
    targets = TRANSITIONS.get(ActorRole(role), {}).values()
    return frozenset().union(*targets)


def apply_transition(
    order: Order,
    role: ActorRole,
    target,
    reason: str | None = None,
    now: datetime | None = None,
) -> Order:
    """
    Move order to target status on behalf of an actor with the given role.

    Returns the updated order, or the same order when it already holds
    target and the role could have moved it there.

    Raises:
        ValidationError: unknown status value
        IllegalTransition: transition not allowed for this role
    """
    target = parse_status(target)
    if target == order.status and target in reachable_statuses(role):
        return order

    if target not in allowed_transitions(role, order.status):
        logger.warning(
            f"Illegal transition: order_id={order.id} {order.status.value} → "
            f"{target.value} by {ActorRole(role).value}"
        )
        raise IllegalTransition(
            f"Cannot change status from {order.status.value} to {target.value} "
            f"as {ActorRole(role).value}",
            from_status=order.status.value,
            to_status=target.value,
        )

    return replace(
        order,
        status=target,
        status_changed_at=now or datetime.now(timezone.utc),
        rejection_reason=reason if target == OrderStatus.REJECTED else order.rejection_reason,
    )
