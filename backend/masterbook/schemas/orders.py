# backend/masterbook/schemas/orders.py

from typing import Optional

from pydantic import BaseModel, Field

from ..services.scheduling.lifecycle import Order
from ..services.scheduling.timegrid import format_instant


class OrderCreate(BaseModel):
    service_id: int
    desired_at: str = Field(description="UTC instant, e.g. 2030-06-10T09:00:00.000Z")
    comment: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: str
    reason: Optional[str] = None


class OrderRead(BaseModel):
    id: int

    service_id: int
    master_id: int
    client_id: int

    desired_at: str
    status: str
    status_changed_at: str

    comment: Optional[str] = None
    rejection_reason: Optional[str] = None

    created_at: str

    @classmethod
    def from_domain(cls, order: Order) -> "OrderRead":
        return cls(
            id=order.id,
            service_id=order.service_id,
            master_id=order.master_id,
            client_id=order.client_id,
            desired_at=format_instant(order.desired_at),
            status=order.status.value,
            status_changed_at=format_instant(order.status_changed_at),
            comment=order.comment,
            rejection_reason=order.rejection_reason,
            created_at=format_instant(order.created_at),
        )
