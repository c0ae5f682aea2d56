# backend/masterbook/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from ..services.scheduling.calculator import Slot


class SlotRead(BaseModel):
    """A single slot; instants as "YYYY-MM-DDTHH:MM:SS.000Z"."""
    start: str
    end: str
    status: Literal["free", "busy"]

    @classmethod
    def from_domain(cls, slot: Slot) -> "SlotRead":
        return cls(**slot.to_dict())


class SlotsDayResponse(BaseModel):
    """Slots of one master on one date."""
    master_id: int
    date: date
    slot_minutes: int = Field(description="Length of every slot in minutes")
    slots: list[SlotRead]
