# backend/masterbook/routers/deps.py
"""
Request dependencies.

Identity arrives from the trusted gateway as X-User-ID; the role is read
from the account store.
"""

from fastapi import Depends, Header, HTTPException, Request, status

from ..errors import NotFound
from ..repositories.base import Account
from ..services.booking import BookingService


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


def get_current_account(
    x_user_id: int | None = Header(None),
    service: BookingService = Depends(get_booking_service),
) -> Account:
    if x_user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-ID")
    try:
        return service.get_actor(x_user_id)
    except NotFound:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user"
        ) from None
