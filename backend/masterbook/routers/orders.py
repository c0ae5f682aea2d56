# backend/masterbook/routers/orders.py
# Status changes: PUT only, PATCH = 405

from fastapi import APIRouter, Depends, HTTPException, status

from ..repositories.base import Account
from ..schemas.orders import OrderCreate, OrderRead, OrderStatusUpdate
from ..services.booking import BookingService
from .deps import get_booking_service, get_current_account

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/", response_model=list[OrderRead])
def list_orders(
    actor: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    return [OrderRead.from_domain(o) for o in service.list_orders(actor)]


@router.get("/{id}", response_model=OrderRead)
def get_order(
    id: int,
    actor: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    return OrderRead.from_domain(service.get_order(actor, id))


@router.post("/", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    data: OrderCreate,
    actor: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    order = service.create_order(actor, data.service_id, data.desired_at, data.comment)
    return OrderRead.from_domain(order)


@router.put("/{id}/status", response_model=OrderRead)
def set_order_status(
    id: int,
    data: OrderStatusUpdate,
    actor: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    order = service.set_order_status(actor, id, data.status, data.reason)
    return OrderRead.from_domain(order)


@router.patch("/{id}/status")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
