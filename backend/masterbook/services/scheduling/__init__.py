# backend/masterbook/services/scheduling/__init__.py
"""
Scheduling core.

timegrid     → clock/date helpers
availability → weekly template + exceptions → ranges for a date
calculator   → ranges → fixed-size slots
conflicts    → admission and occupancy against existing orders
lifecycle    → order status state machine
"""

from .config import SchedulingConfig, get_scheduling_config
from .availability import (
    Availability,
    build_availability,
    default_availability,
    ranges_for_date,
)
from .calculator import SLOT_BUSY, SLOT_FREE, Slot, generate_slots
from .conflicts import admit_booking, mark_occupancy
from .lifecycle import (
    BUSY_STATUSES,
    ActorRole,
    Order,
    OrderStatus,
    apply_transition,
)

__all__ = [
    "SchedulingConfig",
    "get_scheduling_config",
    "Availability",
    "build_availability",
    "default_availability",
    "ranges_for_date",
    "SLOT_BUSY",
    "SLOT_FREE",
    "Slot",
    "generate_slots",
    "admit_booking",
    "mark_occupancy",
    "BUSY_STATUSES",
    "ActorRole",
    "Order",
    "OrderStatus",
    "apply_transition",
]
