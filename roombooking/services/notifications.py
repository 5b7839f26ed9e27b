"""Booking decision notifications.

The dispatcher posts ``{bookingId, status, adminNotes}`` to the delivery
endpoint after an approve/reject has been committed. Delivery problems are
reported through ``NotificationResult`` and the log, never by raising: the
booking's status change stands whether or not the requester hears about it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import httpx
from pydantic import SecretStr

from roombooking.config import Settings
from roombooking.errors import NotificationError
from roombooking.models.booking import BookingStatus

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100


@dataclass
class NotificationResult:
    success: bool
    status_code: Optional[int] = None
    detail: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


@dataclass(frozen=True)
class NotificationMessage:
    to: str
    subject: str
    body: str

    @property
    def preview(self) -> str:
        return self.body[:PREVIEW_LENGTH] + "..."


class NotificationDispatcher(Protocol):
    async def notify(self, booking_id: str, new_status: str, admin_notes: str) -> NotificationResult: ...


def compose_message(booking, status: str, admin_notes: Optional[str] = None) -> NotificationMessage:
    """Build the email telling the requester how their booking was decided."""
    status_text = "approved" if status == BookingStatus.APPROVED.value else "rejected"
    room_name = booking.room_name
    start = booking.start_time.strftime("%Y-%m-%d %H:%M %Z")
    end = booking.end_time.strftime("%Y-%m-%d %H:%M %Z")

    lines = [
        f"Hello {booking.requester_name},",
        "",
        f"Your booking request for {room_name} has been {status_text}.",
        "",
        "Booking details:",
        f"- Room: {room_name}",
        f"- Start: {start}",
        f"- End: {end}",
        "",
    ]
    if admin_notes:
        lines += ["Administrator note:", admin_notes, ""]
    lines += ["Regards,", "The Bookings Team"]

    return NotificationMessage(
        to=booking.requester_email,
        subject=f"Booking {status_text}: {room_name}",
        body="\n".join(lines),
    )


class HttpNotificationDispatcher:
    """Posts decisions to the notification endpoint over HTTP."""

    def __init__(
        self,
        url: str,
        api_key: SecretStr | str = "",
        timeout: float = 10.0,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.api_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        self.timeout = timeout
        self._http = http

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpNotificationDispatcher":
        return cls(
            url=settings.notification_url,
            api_key=settings.notification_api_key,
            timeout=settings.notification_timeout,
        )

    async def notify(self, booking_id: str, new_status: str, admin_notes: str) -> NotificationResult:
        payload = {"bookingId": booking_id, "status": new_status, "adminNotes": admin_notes or ""}
        try:
            status_code, body = await self._post(payload)
        except NotificationError as e:
            logger.exception(f"Error sending notification for booking {booking_id}: {e.message}")
            return NotificationResult(success=False, error=e.message)

        logger.info(f"Notification sent for booking {booking_id}: {new_status}")
        return NotificationResult(success=True, status_code=status_code, detail=body)

    async def _post(self, payload: dict) -> tuple[int, dict]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            if self._http is not None:
                response = await self._http.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise NotificationError(f"Notification endpoint unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise NotificationError(
                f"Notification endpoint returned non-JSON response ({response.status_code})"
            ) from e

        if response.status_code >= 400 or not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else None
            raise NotificationError(
                f"Notification endpoint refused delivery ({response.status_code}): {error or body}"
            )
        return response.status_code, body
