# backend/masterbook/services/scheduling/config.py
"""
Scheduling configuration: slot length bounds and the default slot length.
"""

from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Configuration for availability and slot generation.

    Attributes:
        min_slot_minutes: Shortest slot a master may configure
        max_slot_minutes: Longest slot a master may configure
        default_slot_minutes: Slot length of the system default schedule
    """
    min_slot_minutes: int = 15
    max_slot_minutes: int = 120
    default_slot_minutes: int = 30

    def __post_init__(self):
        """Validate configuration."""
        if not 0 < self.min_slot_minutes <= self.max_slot_minutes:
            raise ValueError(
                f"Invalid slot bounds: {self.min_slot_minutes}..{self.max_slot_minutes}"
            )
        if not self.min_slot_minutes <= self.default_slot_minutes <= self.max_slot_minutes:
            raise ValueError(
                f"default_slot_minutes must be within bounds, got {self.default_slot_minutes}"
            )

    def is_valid_slot_length(self, minutes: int) -> bool:
        return self.min_slot_minutes <= minutes <= self.max_slot_minutes


@lru_cache
def get_scheduling_config() -> SchedulingConfig:
    """Get scheduling configuration (singleton)."""
    return SchedulingConfig()
