# backend/masterbook/repositories/sql.py
"""
SQLAlchemy storage adapter.

Datetimes are stored as "YYYY-MM-DDTHH:MM:SS.000Z" text, so string order is
time order and the partial unique index on orders(master_id, desired_at)
compares canonical values.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..errors import SlotConflict
from ..models import (
    Availability as DBAvailability,
    Categories as DBCategories,
    Orders as DBOrders,
    Services as DBServices,
    Users as DBUsers,
)
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


class SqlBookingRepository(BookingRepository):
    """Repository over any SQLAlchemy-supported database."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _session(self) -> Session:
        return self._session_factory()

    # ── Accounts / services ──────────────────────────────────────────────

    def get_account(self, account_id: int) -> Account | None:
        with self._session() as db:
            row = db.get(DBUsers, account_id)
            return _account_from_row(row) if row else None

    def add_account(self, role: ActorRole, name: str, email: str) -> Account:
        with self._session() as db:
            row = DBUsers(role=ActorRole(role).value, name=name, email=email)
            db.add(row)
            db.commit()
            db.refresh(row)
            return _account_from_row(row)

    def add_category(self, name: str) -> int:
        with self._session() as db:
            row = DBCategories(name=name)
            db.add(row)
            db.commit()
            return row.id

    def get_service(self, service_id: int) -> ServiceRecord | None:
        with self._session() as db:
            row = db.get(DBServices, service_id)
            return _service_from_row(row) if row else None

    def add_service(
        self,
        master_id: int,
        title: str,
        price: int,
        category_id: int | None = None,
        description: str | None = None,
    ) -> ServiceRecord:
        with self._session() as db:
            row = DBServices(
                master_id=master_id,
                title=title,
                price=price,
                category_id=category_id,
                description=description,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return _service_from_row(row)

    # ── Availability ─────────────────────────────────────────────────────

    def get_availability(self, master_id: int) -> Availability | None:
        with self._session() as db:
            row = db.scalars(
                select(DBAvailability).where(DBAvailability.master_id == master_id)
            ).first()
            return _availability_from_row(row) if row else None

    def save_availability(self, availability: Availability) -> Availability:
        values = {
            "slot_minutes": availability.slot_minutes,
            "week_template": json.dumps(template_to_json(availability)),
            "exceptions": json.dumps(exceptions_to_json(availability)),
            "updated_at": format_instant(datetime.now(timezone.utc)),
        }

        with self._session() as db:
            if not self._update_availability(db, availability.master_id, values):
                db.add(DBAvailability(master_id=availability.master_id, **values))
                try:
                    db.commit()
                except IntegrityError:
                    # A concurrent first write created the row; overwrite it
                    db.rollback()
                    if not self._update_availability(db, availability.master_id, values):
                        raise

        return self.get_availability(availability.master_id)

    @staticmethod
    def _update_availability(db: Session, master_id: int, values: dict) -> bool:
        result = db.execute(
            update(DBAvailability)
            .where(DBAvailability.master_id == master_id)
            .values(**values)
        )
        db.commit()
        return result.rowcount > 0

    # ── Orders ───────────────────────────────────────────────────────────

    def create_order(self, order: Order) -> Order:
        desired_at = format_instant(order.desired_at)

        with self._session() as db:
            row = DBOrders(
                service_id=order.service_id,
                master_id=order.master_id,
                client_id=order.client_id,
                desired_at=desired_at,
                status=order.status.value,
                status_changed_at=format_instant(order.status_changed_at),
                created_at=format_instant(order.created_at),
                comment=order.comment,
                rejection_reason=order.rejection_reason,
            )
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                if self._has_busy_order(db, order.master_id, desired_at):
                    logger.warning(
                        f"Unique slot index rejected order: master={order.master_id} "
                        f"time={desired_at}"
                    )
                    raise SlotConflict(
                        f"Slot {desired_at} is already taken", start=desired_at
                    ) from None
                raise
            db.refresh(row)
            return _order_from_row(row)

    @staticmethod
    def _has_busy_order(db: Session, master_id: int, desired_at: str) -> bool:
        return db.scalars(
            select(DBOrders.id).where(
                DBOrders.master_id == master_id,
                DBOrders.desired_at == desired_at,
                DBOrders.status.in_([s.value for s in BUSY_STATUSES]),
            )
        ).first() is not None

    def get_order(self, order_id: int) -> Order | None:
        with self._session() as db:
            row = db.get(DBOrders, order_id)
            return _order_from_row(row) if row else None

    def update_order_status(self, order: Order, expected_status: OrderStatus) -> Order | None:
        with self._session() as db:
            result = db.execute(
                update(DBOrders)
                .where(
                    DBOrders.id == order.id,
                    DBOrders.status == OrderStatus(expected_status).value,
                )
                .values(
                    status=order.status.value,
                    status_changed_at=format_instant(order.status_changed_at),
                    rejection_reason=order.rejection_reason,
                )
            )
            db.commit()
            if result.rowcount == 0:
                return None
        return self.get_order(order.id)

    def list_master_orders(
        self,
        master_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
        statuses: Iterable[OrderStatus] | None = None,
    ) -> list[Order]:
        query = select(DBOrders).where(DBOrders.master_id == master_id)
        if start is not None:
            query = query.where(DBOrders.desired_at >= format_instant(start))
        if end is not None:
            query = query.where(DBOrders.desired_at < format_instant(end))
        if statuses is not None:
            query = query.where(DBOrders.status.in_([OrderStatus(s).value for s in statuses]))

        with self._session() as db:
            rows = db.scalars(query.order_by(DBOrders.desired_at, DBOrders.id)).all()
            return [_order_from_row(row) for row in rows]

    def list_client_orders(self, client_id: int) -> list[Order]:
        with self._session() as db:
            rows = db.scalars(
                select(DBOrders)
                .where(DBOrders.client_id == client_id)
                .order_by(DBOrders.created_at.desc(), DBOrders.id.desc())
            ).all()
            return [_order_from_row(row) for row in rows]


# ── Row mapping ──────────────────────────────────────────────────────────


def _account_from_row(row: DBUsers) -> Account:
    return Account(id=row.id, role=ActorRole(row.role), name=row.name, email=row.email)


def _service_from_row(row: DBServices) -> ServiceRecord:
    return ServiceRecord(
        id=row.id,
        master_id=row.master_id,
        title=row.title,
        price=row.price,
        category_id=row.category_id,
        description=row.description,
    )


def _availability_from_row(row: DBAvailability) -> Availability:
    try:
        week_template = json.loads(row.week_template) if row.week_template else {}
        exceptions = json.loads(row.exceptions) if row.exceptions else {}
    except json.JSONDecodeError:
        logger.error(f"Corrupted availability JSON for master {row.master_id}")
        raise
    return availability_from_stored(row.master_id, row.slot_minutes, week_template, exceptions)


def _order_from_row(row: DBOrders) -> Order:
    return Order(
        id=row.id,
        service_id=row.service_id,
        master_id=row.master_id,
        client_id=row.client_id,
        desired_at=parse_instant(row.desired_at),
        status=OrderStatus(row.status),
        comment=row.comment,
        status_changed_at=parse_instant(row.status_changed_at),
        rejection_reason=row.rejection_reason,
        created_at=parse_instant(row.created_at),
    )
