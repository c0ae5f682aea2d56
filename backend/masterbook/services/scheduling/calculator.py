# backend/masterbook/services/scheduling/calculator.py
"""
Slot generation.

Expands the ranges of one calendar date into fixed-size slots:

✓ exceptions override the weekly template (availability.ranges_for_date)
✓ ranges with end < start cross midnight; their late slots land on the next date
✓ partial trailing slots are dropped (a slot must fit inside its range)

Does NOT contain:
✗ Bookings (marked later by conflicts.mark_occupancy)
✗ Overlap checks between ranges (validated when the schedule is written)
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta

from .availability import Availability, ranges_for_date
from .timegrid import MINUTES_PER_DAY, format_instant, utc_midnight

SLOT_FREE = "free"
SLOT_BUSY = "busy"


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    status: str = SLOT_FREE

    @property
    def is_free(self) -> bool:
        return self.status == SLOT_FREE

    def as_busy(self) -> "Slot":
        return replace(self, status=SLOT_BUSY)

    def to_dict(self) -> dict:
        return {
            "start": format_instant(self.start),
            "end": format_instant(self.end),
            "status": self.status,
        }


def generate_slots(availability: Availability, target_date: date) -> list[Slot]:
    """
    Generate all slots for target_date, sorted by start.

    Every slot is exactly availability.slot_minutes long and anchored at
    midnight UTC of target_date.
    """
    anchor = utc_midnight(target_date)
    step = availability.slot_minutes
    slots: list[Slot] = []

    for start_min, end_min in ranges_for_date(availability, target_date):
        if end_min < start_min:
            end_min += MINUTES_PER_DAY

        cursor = start_min
        while cursor + step <= end_min:
            slots.append(Slot(
                start=anchor + timedelta(minutes=cursor),
                end=anchor + timedelta(minutes=cursor + step),
            ))
            cursor += step

    # A midnight-crossing range can emit slots later than a subsequent range
    slots.sort(key=lambda slot: slot.start)
    return slots


def slots_starting_on(availability: Availability, target_date: date) -> list[Slot]:
    """
    Slots whose start falls on target_date.

    Includes the previous date's midnight-crossing slots and leaves out this
    date's own slots that start after midnight.
    """
    day_start = utc_midnight(target_date)
    day_end = day_start + timedelta(days=1)

    candidates = generate_slots(availability, target_date - timedelta(days=1))
    candidates += generate_slots(availability, target_date)

    return sorted(
        (slot for slot in candidates if day_start <= slot.start < day_end),
        key=lambda slot: slot.start,
    )
