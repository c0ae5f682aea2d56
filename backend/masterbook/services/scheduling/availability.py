# backend/masterbook/services/scheduling/availability.py
"""
Availability model: a master's weekly template plus dated exceptions.

Week template is a fixed 7-tuple indexed 0 = Sunday .. 6 = Saturday.
Every day is present; an empty tuple means the day is closed.

Exceptions map "YYYY-MM-DD" to the ranges for that exact date and replace
the template entry (no merge). An empty range list closes the date.

Ranges are (start, end) in minutes since midnight. A range read back with
end < start crosses midnight (see calculator.generate_slots).
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping

from ...errors import ValidationError
from .config import SchedulingConfig, get_scheduling_config
from .timegrid import (
    day_of_week,
    is_clock_time,
    is_iso_date,
    minutes_to_time,
    parse_date,
    time_to_minutes,
)

TimeRange = tuple[int, int]
DayRanges = tuple[TimeRange, ...]

DAYS_IN_WEEK = 7

DEFAULT_WEEK_TEMPLATE: dict[int, list[list[str]]] = {
    0: [],
    1: [["09:00", "13:00"], ["14:00", "18:00"]],
    2: [["09:00", "13:00"], ["14:00", "18:00"]],
    3: [["09:00", "13:00"], ["14:00", "18:00"]],
    4: [["09:00", "13:00"], ["14:00", "18:00"]],
    5: [["10:00", "16:00"]],
    6: [["10:00", "14:00"]],
}


@dataclass(frozen=True)
class Availability:
    """Snapshot of one master's schedule."""
    master_id: int
    slot_minutes: int
    week_template: tuple[DayRanges, ...]
    exceptions: Mapping[str, DayRanges] = field(default_factory=dict)
    is_default: bool = False

    def __post_init__(self):
        if len(self.week_template) != DAYS_IN_WEEK:
            raise ValueError(
                f"week_template must have {DAYS_IN_WEEK} days, got {len(self.week_template)}"
            )
        if self.slot_minutes <= 0:
            raise ValueError(f"slot_minutes must be positive, got {self.slot_minutes}")


def ranges_for_date(availability: Availability, target_date: date) -> DayRanges:
    """
    Ranges that apply on target_date.

    An exception entry (even an empty one) wins over the weekly template.
    """
    key = target_date.isoformat()
    if key in availability.exceptions:
        return availability.exceptions[key]
    return availability.week_template[day_of_week(target_date)]


def default_availability(
    master_id: int,
    config: SchedulingConfig | None = None,
) -> Availability:
    """System-wide schedule for masters who never configured one."""
    config = config or get_scheduling_config()
    template = tuple(
        _load_ranges(DEFAULT_WEEK_TEMPLATE[day]) for day in range(DAYS_IN_WEEK)
    )
    return Availability(
        master_id=master_id,
        slot_minutes=config.default_slot_minutes,
        week_template=template,
        exceptions={},
        is_default=True,
    )


# ── Write-side validation ────────────────────────────────────────────────


def build_availability(
    master_id: int,
    slot_minutes,
    week_template,
    exceptions=None,
    config: SchedulingConfig | None = None,
) -> Availability:
    """
    Validate a submitted schedule and build an Availability.

    Accepts a week template keyed by day number (int or numeric string) or a
    7-item list. Missing days are closed.

    Raises:
        ValidationError naming the offending field, day or date.
    """
    config = config or get_scheduling_config()

    if isinstance(slot_minutes, bool) or not isinstance(slot_minutes, int):
        raise ValidationError("slot_minutes must be an integer", field="slot_minutes")
    if not config.is_valid_slot_length(slot_minutes):
        raise ValidationError(
            f"slot_minutes must be between {config.min_slot_minutes} "
            f"and {config.max_slot_minutes}",
            field="slot_minutes",
        )

    days = _week_entries(week_template)
    template = tuple(
        _validate_ranges(days.get(day) or [], day=day) for day in range(DAYS_IN_WEEK)
    )

    if exceptions is None:
        exceptions = {}
    if not isinstance(exceptions, Mapping):
        raise ValidationError("exceptions must be an object", field="exceptions")

    validated: dict[str, DayRanges] = {}
    for key, ranges in exceptions.items():
        if not is_iso_date(key):
            raise ValidationError(f"Invalid exception date {key!r}", date=str(key))
        try:
            parse_date(key)
        except ValidationError:
            raise ValidationError(f"Invalid exception date {key!r}", date=key) from None
        validated[key] = _validate_ranges(ranges if ranges is not None else [], date=key)

    return Availability(
        master_id=master_id,
        slot_minutes=slot_minutes,
        week_template=template,
        exceptions=dict(sorted(validated.items())),
    )


def _week_entries(week_template) -> dict[int, list]:
    if isinstance(week_template, (list, tuple)):
        if len(week_template) != DAYS_IN_WEEK:
            raise ValidationError(
                f"week_template must list {DAYS_IN_WEEK} days", field="week_template"
            )
        return dict(enumerate(week_template))

    if not isinstance(week_template, Mapping):
        raise ValidationError("week_template must be an object", field="week_template")

    days: dict[int, list] = {}
    for key, ranges in week_template.items():
        try:
            day = int(key)
        except (TypeError, ValueError):
            day = -1
        if not 0 <= day < DAYS_IN_WEEK:
            raise ValidationError(f"Invalid day {key!r}, expected 0..6", day=str(key))
        days[day] = ranges
    return days


def _validate_ranges(raw, **where) -> DayRanges:
    label = ", ".join(f"{k} {v}" for k, v in where.items())
    if not isinstance(raw, (list, tuple)):
        raise ValidationError(f"Invalid intervals for {label}", **where)

    ranges: list[TimeRange] = []
    for interval in raw:
        if not isinstance(interval, (list, tuple)) or len(interval) != 2:
            raise ValidationError(f"Invalid intervals for {label}", **where)
        start, end = interval
        if not is_clock_time(start) or not is_clock_time(end):
            raise ValidationError(f"Invalid intervals for {label}", **where)
        start_min, end_min = time_to_minutes(start), time_to_minutes(end)
        if start_min >= end_min:
            raise ValidationError(
                f"Interval {start}-{end} must start before it ends ({label})", **where
            )
        ranges.append((start_min, end_min))

    ordered = sorted(ranges)
    for (_, prev_end), (next_start, _) in zip(ordered, ordered[1:]):
        if next_start < prev_end:
            raise ValidationError(f"Overlapping intervals for {label}", **where)

    return tuple(ranges)


# ── Storage form ─────────────────────────────────────────────────────────


def template_to_json(availability: Availability) -> dict[str, list[list[str]]]:
    """Week template as {"0": [["09:00", "13:00"]], ...}."""
    return {
        str(day): _dump_ranges(ranges)
        for day, ranges in enumerate(availability.week_template)
    }


def exceptions_to_json(availability: Availability) -> dict[str, list[list[str]]]:
    return {key: _dump_ranges(ranges) for key, ranges in availability.exceptions.items()}


def availability_from_stored(
    master_id: int,
    slot_minutes: int,
    week_template: Mapping | None,
    exceptions: Mapping | None,
) -> Availability:
    """
    Rebuild an Availability from its stored JSON form.

    Stored ranges with end < start are kept as
    midnight-crossing ranges.
    """
    week_template = week_template or {}
    template = tuple(
        _load_ranges(week_template.get(str(day)) or week_template.get(day) or [])
        for day in range(DAYS_IN_WEEK)
    )
    return Availability(
        master_id=master_id,
        slot_minutes=slot_minutes,
        week_template=template,
        exceptions={
            key: _load_ranges(ranges or []) for key, ranges in (exceptions or {}).items()
        },
    )


def _load_ranges(raw) -> DayRanges:
    return tuple(
        (time_to_minutes(start), time_to_minutes(end)) for start, end in raw
    )


def _dump_ranges(ranges: DayRanges) -> list[list[str]]:
    return [[minutes_to_time(start), minutes_to_time(end)] for start, end in ranges]
