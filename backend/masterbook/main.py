import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .errors import BookingError
from .redis_client import redis_client
from .repositories import build_repository
from .routers import availability, orders
from .services.booking import BookingService

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(booking_service: BookingService | None = None) -> FastAPI:
    """
    Build the API app.

    Without an explicit service, storage is built from settings at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "booking_service", None) is None:
            app.state.booking_service = BookingService(
                build_repository(settings),
                redis=redis_client,
                lock_timeout_seconds=settings.lock_timeout_seconds,
            )
            logger.info(
                f"Booking service ready: storage={settings.storage_backend}, "
                f"redis={'on' if redis_client is not None else 'off'}"
            )
        yield

    app = FastAPI(title="Masterbook Booking API", lifespan=lifespan)
    app.state.booking_service = booking_service

    app.add_exception_handler(BookingError, booking_error_handler)
    app.include_router(availability.router)
    app.include_router(orders.router)

    @app.get("/health")
    def health():
        service = app.state.booking_service
        redis = service.redis if service is not None else None
        return {"status": "ok", "redis": redis.ping() if redis is not None else None}

    return app


app = create_app()
