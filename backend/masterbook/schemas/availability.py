# backend/masterbook/schemas/availability.py

from typing import Any, Optional

from pydantic import BaseModel, Field

from ..services.scheduling.availability import (
    Availability,
    exceptions_to_json,
    template_to_json,
)


class AvailabilityUpdate(BaseModel):
    """Whole schedule; replaces the stored one. Shapes are validated by the core."""
    slot_minutes: int
    week_template: Any = Field(
        description='Day number (0 = Sunday) → [["HH:MM", "HH:MM"], ...]'
    )
    exceptions: Optional[Any] = Field(
        None, description='"YYYY-MM-DD" → ranges; [] closes the date'
    )


class AvailabilityRead(BaseModel):
    master_id: int
    slot_minutes: int
    week_template: dict[str, list[list[str]]]
    exceptions: dict[str, list[list[str]]]
    is_default: bool = False

    @classmethod
    def from_domain(cls, availability: Availability) -> "AvailabilityRead":
        return cls(
            master_id=availability.master_id,
            slot_minutes=availability.slot_minutes,
            week_template=template_to_json(availability),
            exceptions=exceptions_to_json(availability),
            is_default=availability.is_default,
        )
