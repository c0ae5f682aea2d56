# backend/masterbook/services/scheduling/conflicts.py
"""
Booking conflict checks.

An order occupies [desired_at, desired_at + slot_minutes). Orders in a busy
status (NEW, ACCEPTED, DONE) block every slot their window overlaps.

Admission policy: the requested instant must be exactly the start of a
generated slot. Off-grid instants are rejected even when they would fit
inside a working range.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable

from ...errors import OutsideWorkingHours, ScheduleNotConfigured, SlotConflict
from .availability import Availability
from .calculator import Slot, slots_starting_on
from .lifecycle import BUSY_STATUSES, Order
from .timegrid import calendar_date, format_instant, to_utc

logger = logging.getLogger(__name__)


def booking_window(start: datetime, slot_minutes: int) -> tuple[datetime, datetime]:
    start = to_utc(start)
    return start, start + timedelta(minutes=slot_minutes)


def windows_overlap(
    a: tuple[datetime, datetime],
    b: tuple[datetime, datetime],
) -> bool:
    return max(a[0], b[0]) < min(a[1], b[1])


def busy_orders(orders: Iterable[Order], master_id: int) -> list[Order]:
    return [o for o in orders if o.master_id == master_id and o.status in BUSY_STATUSES]


def admit_booking(
    master_id: int,
    desired_at: datetime,
    availability: Availability | None,
    existing_orders: Iterable[Order],
) -> Slot:
    """
    Validate that a new order may take desired_at.

    Returns:
        The slot the order will occupy.

    Raises:
        ScheduleNotConfigured: master has no availability
        OutsideWorkingHours: desired_at is not a slot start
        SlotConflict: an active order of the master overlaps the slot
    """
    if availability is None:
        raise ScheduleNotConfigured(f"Master {master_id} has no schedule configured")

    desired_at = to_utc(desired_at)
    target_date = calendar_date(desired_at)

    slot = next(
        (s for s in slots_starting_on(availability, target_date) if s.start == desired_at),
        None,
    )
    if slot is None:
        raise OutsideWorkingHours(
            f"{format_instant(desired_at)} is outside working hours of master {master_id}"
        )

    window = (slot.start, slot.end)
    for order in busy_orders(existing_orders, master_id):
        if windows_overlap(window, booking_window(order.desired_at, availability.slot_minutes)):
            logger.warning(
                f"Slot conflict: master={master_id} time={format_instant(desired_at)} "
                f"taken by order={order.id} ({order.status.value})"
            )
            raise SlotConflict(
                f"Slot {format_instant(desired_at)} is already taken",
                start=format_instant(desired_at),
            )

    return slot


def mark_occupancy(
    slots: list[Slot],
    orders: Iterable[Order],
    slot_minutes: int,
) -> list[Slot]:
    """Return slots with status "busy" where any busy order overlaps."""
    windows = [
        booking_window(o.desired_at, slot_minutes)
        for o in orders
        if o.status in BUSY_STATUSES
    ]

    marked = []
    for slot in slots:
        taken = any(windows_overlap((slot.start, slot.end), w) for w in windows)
        marked.append(slot.as_busy() if taken else slot)
    return marked
