# backend/masterbook/services/booking.py
"""
Booking service: the operations the API exposes.

get_availability → stored schedule or the system default
set_availability → validated wholesale replacement (master only)
get_slots        → slots of a date with free/busy marks
create_order     → conflict check + insert in NEW, under the master's lock
set_order_status → lifecycle transition with an optimistic status check

Storage is reached only through BookingRepository; Redis (optional) carries
events and cross-process master locks.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from redis import Redis

from ..errors import Forbidden, IllegalTransition, NotFound, ValidationError
from ..repositories.base import Account, BookingRepository
from .events import emit_event
from .locks import LocalMasterLocks, RedisMasterLocks
from .scheduling import (
    BUSY_STATUSES,
    ActorRole,
    Availability,
    Order,
    OrderStatus,
    SchedulingConfig,
    apply_transition,
    build_availability,
    default_availability,
    generate_slots,
    get_scheduling_config,
    mark_occupancy,
)
from .scheduling.conflicts import admit_booking
from .scheduling.timegrid import format_instant, parse_date, parse_instant

logger = logging.getLogger(__name__)

# Master order list: open requests first, closed ones last
STATUS_RANK = {
    OrderStatus.NEW: 1,
    OrderStatus.ACCEPTED: 2,
    OrderStatus.DONE: 3,
    OrderStatus.REJECTED: 4,
    OrderStatus.CANCELLED: 5,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingService:

    def __init__(
        self,
        repository: BookingRepository,
        redis: Redis | None = None,
        config: SchedulingConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
        lock_timeout_seconds: float = 10.0,
    ):
        self.repository = repository
        self.redis = redis
        self.config = config or get_scheduling_config()
        self.clock = clock
        self.locks = (
            RedisMasterLocks(redis, lock_timeout_seconds)
            if redis is not None
            else LocalMasterLocks()
        )

    # ── Accounts ─────────────────────────────────────────────────────────

    def get_actor(self, account_id: int) -> Account:
        account = self.repository.get_account(account_id)
        if account is None:
            raise NotFound(f"Account {account_id} not found")
        return account

    def _get_master(self, master_id: int) -> Account:
        account = self.repository.get_account(master_id)
        if account is None or not account.is_master:
            raise NotFound(f"Master {master_id} not found")
        return account

    # ── Availability ─────────────────────────────────────────────────────

    def get_availability(self, master_id: int) -> Availability:
        self._get_master(master_id)
        availability = self.repository.get_availability(master_id)
        return availability or default_availability(master_id, self.config)

    def set_availability(
        self,
        actor: Account,
        master_id: int,
        slot_minutes,
        week_template,
        exceptions=None,
    ) -> Availability:
        if not actor.is_master:
            raise Forbidden("Only masters can change a schedule")
        if actor.id != master_id:
            raise Forbidden("Masters can change only their own schedule")

        availability = build_availability(
            master_id, slot_minutes, week_template, exceptions, self.config
        )
        saved = self.repository.save_availability(availability)

        logger.info(
            f"Availability saved: master={master_id} slot={saved.slot_minutes}min "
            f"exceptions={len(saved.exceptions)}"
        )
        return saved

    def get_slots(self, master_id: int, date_text: str) -> dict:
        """
        Slots of one date with occupancy.

        Returns:
            {"master_id", "date", "slot_minutes", "slots": list[Slot]}
        """
        target_date = parse_date(date_text)
        self._get_master(master_id)

        availability = self.repository.get_availability(master_id)
        if availability is None:
            return {
                "master_id": master_id,
                "date": target_date,
                "slot_minutes": self.config.default_slot_minutes,
                "slots": [],
            }

        slots = generate_slots(availability, target_date)
        if slots:
            # Orders starting up to one slot earlier can still overlap the first slot
            orders = self.repository.list_master_orders(
                master_id,
                start=slots[0].start - timedelta(minutes=availability.slot_minutes),
                end=slots[-1].end,
                statuses=BUSY_STATUSES,
            )
            slots = mark_occupancy(slots, orders, availability.slot_minutes)

        return {
            "master_id": master_id,
            "date": target_date,
            "slot_minutes": availability.slot_minutes,
            "slots": slots,
        }

    # ── Orders ───────────────────────────────────────────────────────────

    def create_order(
        self,
        actor: Account,
        service_id: int,
        desired_at,
        comment: str | None = None,
    ) -> Order:
        if not actor.is_client:
            raise Forbidden("Only clients can create orders")

        desired_at = parse_instant(desired_at)

        service = self.repository.get_service(service_id)
        if service is None:
            raise NotFound(f"Service {service_id} not found")
        if service.master_id == actor.id:
            raise ValidationError("You cannot book your own service")

        now = self.clock()
        if desired_at < now:
            raise ValidationError("Cannot book a time in the past")

        master_id = service.master_id
        with self.locks.hold(master_id):
            availability = self.repository.get_availability(master_id)
            existing = []
            if availability is not None:
                window = timedelta(minutes=availability.slot_minutes)
                existing = self.repository.list_master_orders(
                    master_id,
                    start=desired_at - window,
                    end=desired_at + window,
                    statuses=BUSY_STATUSES,
                )

            admit_booking(master_id, desired_at, availability, existing)

            order = self.repository.create_order(Order(
                id=None,
                service_id=service.id,
                master_id=master_id,
                client_id=actor.id,
                desired_at=desired_at,
                status=OrderStatus.NEW,
                comment=comment or None,
                status_changed_at=now,
                created_at=now,
            ))

        logger.info(
            f"Order created: order_id={order.id}, service={service.id}, "
            f"master={master_id}, client={actor.id}, time={format_instant(desired_at)}"
        )
        emit_event(self.redis, "order_created", {
            "order_id": order.id,
            "master_id": master_id,
            "client_id": actor.id,
            "desired_at": format_instant(desired_at),
        })
        return order

    def get_order(self, actor: Account, order_id: int) -> Order:
        order = self.repository.get_order(order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        self._check_party(actor, order)
        return order

    def list_orders(self, actor: Account) -> list[Order]:
        if actor.is_client:
            return self.repository.list_client_orders(actor.id)

        orders = self.repository.list_master_orders(actor.id)
        return sorted(orders, key=lambda o: (STATUS_RANK[o.status], o.desired_at))

    def set_order_status(
        self,
        actor: Account,
        order_id: int,
        status,
        reason: str | None = None,
    ) -> Order:
        order = self.get_order(actor, order_id)

        updated = apply_transition(order, actor.role, status, reason, self.clock())
        if updated is order:
            return order

        saved = self.repository.update_order_status(updated, expected_status=order.status)
        if saved is None:
            current = self.repository.get_order(order_id)
            raise IllegalTransition(
                f"Order {order_id} changed status concurrently "
                f"(now {current.status.value if current else 'missing'})"
            )

        logger.info(
            f"Order status changed: order_id={order_id} {order.status.value} → "
            f"{saved.status.value} by {actor.role.value}={actor.id}"
        )
        emit_event(self.redis, "order_status_changed", {
            "order_id": order_id,
            "status": saved.status.value,
            "previous_status": order.status.value,
            "initiated_by": {"user_id": actor.id, "role": actor.role.value},
        })
        return saved

    @staticmethod
    def _check_party(actor: Account, order: Order) -> None:
        if actor.role == ActorRole.CLIENT and order.client_id != actor.id:
            raise Forbidden("You have no access to this order")
        if actor.role == ActorRole.MASTER and order.master_id != actor.id:
            raise Forbidden("You have no access to this order")
