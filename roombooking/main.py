import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from roombooking.config import get_settings
from roombooking.db import init_database
from roombooking.errors import (
    AuthorizationError,
    BookingError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from roombooking.routers import admin, bookings, notifications, rooms

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    "lifespan for initing database"
    await init_database()
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Room booker",
    description="Room booker with administrator approval based on FastAPI.",
    version="0.1.0",
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT",
    },
)


def error_status(exc: BookingError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, (ConflictError, InvalidStateError)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, AuthorizationError):
        if exc.code == "not_authenticated":
            return status.HTTP_401_UNAUTHORIZED
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, StoreError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    logger.debug(f"{request.method} {request.url.path} rejected: {exc.code}")
    return JSONResponse(
        status_code=error_status(exc),
        content={"detail": exc.message, "code": exc.code},
    )


app.include_router(rooms.router)
app.include_router(bookings.router)
app.include_router(admin.router)
app.include_router(notifications.router)
