# backend/masterbook/repositories/file_store.py
"""
JSON file storage adapter.

Whole store is one JSON document:

    {
      "counters": {"users": 0, "categories": 0, "services": 0, "orders": 0},
      "users": [], "categories": [], "services": [],
      "availability": {"<master_id>": {...}},
      "orders": []
    }

Every operation is a read-modify-write under one lock; writes go to a temp
file that atomically replaces the store. Safe for many threads of one
process; run the SQL adapter when several processes share the data.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from ..errors import SlotConflict
from ..services.scheduling.availability import (
    Availability,
    availability_from_stored,
    exceptions_to_json,
    template_to_json,
)
from ..services.scheduling.lifecycle import BUSY_STATUSES, ActorRole, Order, OrderStatus
from ..services.scheduling.timegrid import format_instant, parse_instant
from .base import Account, BookingRepository, ServiceRecord

logger = logging.getLogger(__name__)

COLLECTIONS = ("users", "categories", "services", "orders")


def _empty_store() -> dict:
    return {
        "counters": {name: 0 for name in COLLECTIONS},
        "users": [],
        "categories": [],
        "services": [],
        "availability": {},
        "orders": [],
    }


class FileBookingRepository(BookingRepository):
    """Repository over a single JSON document on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.RLock()

    # ── Raw document ─────────────────────────────────────────────────────

    def _load(self) -> dict:
        if not self.path.exists():
            return _empty_store()

        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)

        store = _empty_store()
        store.update(data)
        for name in COLLECTIONS:
            store["counters"].setdefault(name, 0)
        return store

    def _save(self, data: dict) -> None:
        folder = self.path.parent
        folder.mkdir(parents=True, exist_ok=True)

        # Atomic write
        with tempfile.NamedTemporaryFile(
            "w", delete=False, encoding="utf-8", dir=folder, suffix=".tmp"
        ) as tf:
            json.dump(data, tf, ensure_ascii=False, indent=2)
            tmp_name = tf.name

        os.replace(tmp_name, self.path)

    @staticmethod
    def _next_id(data: dict, collection: str) -> int:
        data["counters"][collection] += 1
        return data["counters"][collection]

    @staticmethod
    def _find(items: list[dict], item_id: int) -> dict | None:
        return next((item for item in items if item["id"] == item_id), None)

    # ── Accounts / services ──────────────────────────────────────────────

    def get_account(self, account_id: int) -> Account | None:
        with self._lock:
            item = self._find(self._load()["users"], account_id)
        return _account_from_item(item) if item else None

    def add_account(self, role: ActorRole, name: str, email: str) -> Account:
        with self._lock:
            data = self._load()
            if any(u["email"] == email for u in data["users"]):
                raise ValueError(f"Email already registered: {email}")
            item = {
                "id": self._next_id(data, "users"),
                "role": ActorRole(role).value,
                "name": name,
                "email": email,
                "created_at": format_instant(datetime.now(timezone.utc)),
            }
            data["users"].append(item)
            self._save(data)
        return _account_from_item(item)

    def add_category(self, name: str) -> int:
        with self._lock:
            data = self._load()
            category_id = self._next_id(data, "categories")
            data["categories"].append({"id": category_id, "name": name})
            self._save(data)
        return category_id

    def get_service(self, service_id: int) -> ServiceRecord | None:
        with self._lock:
            item = self._find(self._load()["services"], service_id)
        return _service_from_item(item) if item else None

    def add_service(
        self,
        master_id: int,
        title: str,
        price: int,
        category_id: int | None = None,
        description: str | None = None,
    ) -> ServiceRecord:
        with self._lock:
            data = self._load()
            item = {
                "id": self._next_id(data, "services"),
                "master_id": master_id,
                "category_id": category_id,
                "title": title,
                "description": description,
                "price": price,
            }
            data["services"].append(item)
            self._save(data)
        return _service_from_item(item)

    # ── Availability ─────────────────────────────────────────────────────

    def get_availability(self, master_id: int) -> Availability | None:
        with self._lock:
            item = self._load()["availability"].get(str(master_id))
        if item is None:
            return None
        return availability_from_stored(
            master_id, item["slot_minutes"], item.get("week_template"), item.get("exceptions")
        )

    def save_availability(self, availability: Availability) -> Availability:
        with self._lock:
            data = self._load()
            data["availability"][str(availability.master_id)] = {
                "slot_minutes": availability.slot_minutes,
                "week_template": template_to_json(availability),
                "exceptions": exceptions_to_json(availability),
                "updated_at": format_instant(datetime.now(timezone.utc)),
            }
            self._save(data)
        return self.get_availability(availability.master_id)

    # ── Orders ───────────────────────────────────────────────────────────

    def create_order(self, order: Order) -> Order:
        desired_at = format_instant(order.desired_at)
        busy = {s.value for s in BUSY_STATUSES}

        with self._lock:
            data = self._load()
            for existing in data["orders"]:
                if (
                    existing["master_id"] == order.master_id
                    and existing["desired_at"] == desired_at
                    and existing["status"] in busy
                ):
                    logger.warning(
                        f"File store rejected duplicate order: master={order.master_id} "
                        f"time={desired_at} existing={existing['id']}"
                    )
                    raise SlotConflict(f"Slot {desired_at} is already taken", start=desired_at)

            item = _order_to_item(order)
            item["id"] = self._next_id(data, "orders")
            data["orders"].append(item)
            self._save(data)

        return _order_from_item(item)

    def get_order(self, order_id: int) -> Order | None:
        with self._lock:
            item = self._find(self._load()["orders"], order_id)
        return _order_from_item(item) if item else None

    def update_order_status(self, order: Order, expected_status: OrderStatus) -> Order | None:
        with self._lock:
            data = self._load()
            item = self._find(data["orders"], order.id)
            if item is None or item["status"] != OrderStatus(expected_status).value:
                return None
            item["status"] = order.status.value
            item["status_changed_at"] = format_instant(order.status_changed_at)
            item["rejection_reason"] = order.rejection_reason
            self._save(data)
        return _order_from_item(item)

    def list_master_orders(
        self,
        master_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
        statuses: Iterable[OrderStatus] | None = None,
    ) -> list[Order]:
        wanted = {OrderStatus(s).value for s in statuses} if statuses is not None else None
        start_key = format_instant(start) if start is not None else None
        end_key = format_instant(end) if end is not None else None

        with self._lock:
            items = [
                item for item in self._load()["orders"]
                if item["master_id"] == master_id
                and (start_key is None or item["desired_at"] >= start_key)
                and (end_key is None or item["desired_at"] < end_key)
                and (wanted is None or item["status"] in wanted)
            ]

        items.sort(key=lambda item: (item["desired_at"], item["id"]))
        return [_order_from_item(item) for item in items]

    def list_client_orders(self, client_id: int) -> list[Order]:
        with self._lock:
            items = [i for i in self._load()["orders"] if i["client_id"] == client_id]
        items.sort(key=lambda item: (item["created_at"], item["id"]), reverse=True)
        return [_order_from_item(item) for item in items]


# ── Item mapping ─────────────────────────────────────────────────────────


def _account_from_item(item: dict) -> Account:
    return Account(
        id=item["id"], role=ActorRole(item["role"]), name=item["name"], email=item["email"]
    )


def _service_from_item(item: dict) -> ServiceRecord:
    return ServiceRecord(
        id=item["id"],
        master_id=item["master_id"],
        title=item["title"],
        price=item["price"],
        category_id=item.get("category_id"),
        description=item.get("description"),
    )


def _order_to_item(order: Order) -> dict:
    return {
        "id": order.id,
        "service_id": order.service_id,
        "master_id": order.master_id,
        "client_id": order.client_id,
        "desired_at": format_instant(order.desired_at),
        "status": order.status.value,
        "status_changed_at": format_instant(order.status_changed_at),
        "created_at": format_instant(order.created_at),
        "comment": order.comment,
        "rejection_reason": order.rejection_reason,
    }


def _order_from_item(item: dict) -> Order:
    return Order(
        id=item["id"],
        service_id=item["service_id"],
        master_id=item["master_id"],
        client_id=item["client_id"],
        desired_at=parse_instant(item["desired_at"]),
        status=OrderStatus(item["status"]),
        comment=item.get("comment"),
        status_changed_at=parse_instant(item["status_changed_at"]),
        rejection_reason=item.get("rejection_reason"),
        created_at=parse_instant(item["created_at"]),
    )
