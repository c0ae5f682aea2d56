from .tables import (
    Availability,
    Base,
    Categories,
    Orders,
    Services,
    Users,
    metadata,
)

__all__ = [
    "Availability",
    "Base",
    "Categories",
    "Orders",
    "Services",
    "Users",
    "metadata",
]
