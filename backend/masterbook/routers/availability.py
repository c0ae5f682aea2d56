# backend/masterbook/routers/availability.py
"""
Availability API endpoints.

GET /availability/{master_id}        - schedule (system default if never set)
PUT /availability/{master_id}        - replace schedule (the master only)
GET /availability/{master_id}/slots  - slots of a date with free/busy status
"""

from fastapi import APIRouter, Depends, Query

from ..errors import InvalidDate
from ..repositories.base import Account
from ..schemas.availability import AvailabilityRead, AvailabilityUpdate
from ..schemas.slots import SlotRead, SlotsDayResponse
from ..services.booking import BookingService
from .deps import get_booking_service, get_current_account

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/{master_id}", response_model=AvailabilityRead)
def get_availability(
    master_id: int,
    service: BookingService = Depends(get_booking_service),
):
    return AvailabilityRead.from_domain(service.get_availability(master_id))


@router.put("/{master_id}", response_model=AvailabilityRead)
def put_availability(
    master_id: int,
    data: AvailabilityUpdate,
    actor: Account = Depends(get_current_account),
    service: BookingService = Depends(get_booking_service),
):
    availability = service.set_availability(
        actor,
        master_id,
        data.slot_minutes,
        data.week_template,
        data.exceptions,
    )
    return AvailabilityRead.from_domain(availability)


@router.get("/{master_id}/slots", response_model=SlotsDayResponse)
def get_slots(
    master_id: int,
    target_date: str | None = Query(None, alias="date"),
    service: BookingService = Depends(get_booking_service),
):
    if not target_date:
        raise InvalidDate("Query parameter date is required (YYYY-MM-DD)")

    result = service.get_slots(master_id, target_date)
    return SlotsDayResponse(
        master_id=result["master_id"],
        date=result["date"],
        slot_minutes=result["slot_minutes"],
        slots=[SlotRead.from_domain(slot) for slot in result["slots"]],
    )
