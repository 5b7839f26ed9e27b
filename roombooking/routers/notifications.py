import logging
import secrets
from typing import Literal, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from roombooking.config import get_settings
from roombooking.dependencies import get_store
from roombooking.errors import StoreError
from roombooking.services.notifications import compose_message
from roombooking.services.store import SqlBookingStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)

service_bearer = HTTPBearer(auto_error=False, scheme_name="ServiceKey")


class BookingNotificationRequest(BaseModel):
    bookingId: str
    status: Literal["approved", "rejected"]
    adminNotes: Optional[str] = None


def _failure(error: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@router.post("/booking", summary="Deliver a booking decision email")
async def send_booking_notification(
    payload: BookingNotificationRequest,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(service_bearer),
    store: SqlBookingStore = Depends(get_store),
):
    """
    Compose the decision email for the booking's requester and hand it to the
    mail log. Answers ``{"success": true, ...}`` with a preview of the email.
    """
    expected = get_settings().notification_api_key.get_secret_value()
    if credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        logger.error("Notification request with invalid service key")
        return _failure("Invalid service key", status.HTTP_401_UNAUTHORIZED)

    try:
        booking = await store.get_booking(payload.bookingId)
    except StoreError as e:
        return _failure(f"Error loading booking: {e.message}")
    if booking is None:
        logger.error(f"Notification requested for unknown booking: {payload.bookingId}")
        return _failure("Booking not found")

    message = compose_message(booking, payload.status, payload.adminNotes)
    logger.info(f"Booking email to {message.to}\nSubject: {message.subject}\n{message.body}")

    return {
        "success": True,
        "message": "Notification processed",
        "emailDetails": {
            "to": message.to,
            "subject": message.subject,
            "preview": message.preview,
        },
    }
