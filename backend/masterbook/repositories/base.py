# backend/masterbook/repositories/base.py
"""
Storage interface of the booking core.

Two adapters implement it (SQL and JSON file). Both hand back plain
dataclass snapshots; the scheduling core never sees sessions or paths.

Guarantees every adapter must give:
✓ create_order is all-or-nothing
✓ create_order refuses a second busy order for the same (master_id, desired_at)
  with SlotConflict
✓ update_order_status only writes when the stored status still matches
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from ..services.scheduling.availability import Availability
from ..services.scheduling.lifecycle import ActorRole, Order, OrderStatus


@dataclass(frozen=True)
class Account:
    id: int
    role: ActorRole
    name: str
    email: str

    @property
    def is_master(self) -> bool:
        return self.role == ActorRole.MASTER

    @property
    def is_client(self) -> bool:
        return self.role == ActorRole.CLIENT


@dataclass(frozen=True)
class ServiceRecord:
    id: int
    master_id: int
    title: str
    price: int
    category_id: int | None = None
    description: str | None = None


class BookingRepository(ABC):

    # ── Accounts / services (owned by the CRUD layer) ────────────────────

    @abstractmethod
    def get_account(self, account_id: int) -> Account | None: ...

    @abstractmethod
    def add_account(self, role: ActorRole, name: str, email: str) -> Account: ...

    @abstractmethod
    def add_category(self, name: str) -> int: ...

    @abstractmethod
    def get_service(self, service_id: int) -> ServiceRecord | None: ...

    @abstractmethod
    def add_service(
        self,
        master_id: int,
        title: str,
        price: int,
        category_id: int | None = None,
        description: str | None = None,
    ) -> ServiceRecord: ...

    # ── Availability ─────────────────────────────────────────────────────

    @abstractmethod
    def get_availability(self, master_id: int) -> Availability | None: ...

    @abstractmethod
    def save_availability(self, availability: Availability) -> Availability:
        """Replace the master's schedule wholesale (last writer wins)."""

    # ── Orders ───────────────────────────────────────────────────────────

    @abstractmethod
    def create_order(self, order: Order) -> Order:
        """Insert a new order and return it with its id."""

    @abstractmethod
    def get_order(self, order_id: int) -> Order | None: ...

    @abstractmethod
    def update_order_status(self, order: Order, expected_status: OrderStatus) -> Order | None:
        """
        Persist status fields of order if the stored status is expected_status.

        Returns None when the stored status moved on meanwhile.
        """

    @abstractmethod
    def list_master_orders(
        self,
        master_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
        statuses: Iterable[OrderStatus] | None = None,
    ) -> list[Order]:
        """Orders of a master with start <= desired_at < end."""

    @abstractmethod
    def list_client_orders(self, client_id: int) -> list[Order]: ...
