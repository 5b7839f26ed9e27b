"""Booking lifecycle: create, approve, reject, cancel.

States are ``pending`` (initial), ``approved`` and ``rejected`` (terminal).
Cancellation deletes a pending booking that has not started yet; it is not a
state. Every operation takes the acting identity explicitly and checks its
preconditions before touching the store.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional

from roombooking.db import utcnow
from roombooking.errors import AuthorizationError, ConflictError, InvalidStateError, NotFoundError, ValidationError
from roombooking.models.booking import Booking, BookingStatus
from roombooking.services.notifications import NotificationDispatcher, NotificationResult
from roombooking.services.store import BookingStore
from roombooking.utils.auth import Actor
from roombooking.utils.availability import day_bounds, day_range, find_conflicts
from roombooking.utils.validation_helpers import ensure_utc

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    booking: Booking
    notification: NotificationResult


class BookingLifecycle:
    def __init__(
        self,
        store: BookingStore,
        dispatcher: NotificationDispatcher,
        now: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.now = now

    async def create(
        self,
        actor: Optional[Actor],
        room_id: Optional[str],
        start_time: Optional[datetime],
        end_time: Optional[datetime],
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Request a booking. Checks run in order and stop at the first failure:
        authentication, required fields, interval order, start not in the past,
        then (with store access) room existence and slot availability.
        """
        if actor is None:
            raise AuthorizationError("You must be signed in to book a room", "not_authenticated")

        missing = [
            name
            for name, value in (("room_id", room_id), ("start_time", start_time), ("end_time", end_time))
            if value is None or value == ""
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", "missing_fields")

        try:
            start_time = ensure_utc(start_time)
            end_time = ensure_utc(end_time)
        except ValueError as e:
            raise ValidationError(str(e), "invalid_interval") from e
        if start_time >= end_time:
            raise ValidationError("Start time must be before end time", "invalid_interval")
        try:
            working_set = day_range(start_time, end_time)
        except ValueError as e:
            raise ValidationError(str(e), "invalid_interval") from e
        if start_time < self.now():
            raise ValidationError("Cannot book a slot in the past", "start_in_past")

        logger.debug(f"Creating booking for user: {actor.id}, room_id: {room_id}, time: {start_time} to {end_time}")

        room = await self.store.get_room(room_id)
        if room is None:
            logger.error(f"Room not found: {room_id}")
            raise NotFoundError("Room not found", "room_not_found")

        existing = await self.store.list_bookings(room_id, working_set)
        conflicts = find_conflicts(room_id, start_time, end_time, existing)
        if conflicts:
            logger.error(f"Overlapping booking found for room_id: {room_id}, time: {start_time} to {end_time}")
            raise ConflictError("Room is already booked for this time slot", "slot_unavailable", conflicts)

        booking = await self.store.insert_booking(
            {
                "room_id": room_id,
                "user_id": actor.id,
                "start_time": start_time,
                "end_time": end_time,
                "notes": (notes or "").strip(),
                "status": BookingStatus.PENDING.value,
                "admin_notes": "",
            }
        )
        logger.debug(f"Created booking: {booking.id}, status: {booking.status}")
        return booking

    async def approve(self, actor: Optional[Actor], booking_id: str, admin_notes: str = "") -> TransitionResult:
        return await self._decide(actor, booking_id, BookingStatus.APPROVED, admin_notes)

    async def reject(self, actor: Optional[Actor], booking_id: str, admin_notes: str = "") -> TransitionResult:
        return await self._decide(actor, booking_id, BookingStatus.REJECTED, admin_notes)

    async def _decide(
        self, actor: Optional[Actor], booking_id: str, new_status: BookingStatus, admin_notes: str
    ) -> TransitionResult:
        self._require_admin(actor)
        admin_notes = (admin_notes or "").strip()

        booking = await self.store.get_booking(booking_id)
        if booking is None:
            logger.error(f"Booking not found: {booking_id}")
            raise NotFoundError("Booking not found", "booking_not_found")
        if booking.status != BookingStatus.PENDING.value:
            logger.error(f"Booking {booking_id} is {booking.status}, cannot mark {new_status.value}")
            raise InvalidStateError(f"Only pending bookings can be {new_status.value}", "not_pending")

        updated = await self.store.update_booking_status(
            booking_id, new_status.value, admin_notes, expected_status=BookingStatus.PENDING.value
        )
        if updated is None:
            # decided by someone else between the read and the write
            logger.error(f"Booking {booking_id} left pending before it could be marked {new_status.value}")
            raise InvalidStateError(f"Only pending bookings can be {new_status.value}", "not_pending")

        logger.debug(f"Booking {booking_id} marked {new_status.value} by {actor.id}")
        notification = await self.dispatcher.notify(booking_id, new_status.value, admin_notes)
        if not notification.success:
            logger.warning(f"Booking {booking_id} is {new_status.value} but the requester was not notified")
        return TransitionResult(booking=updated, notification=notification)

    async def cancel(self, actor: Optional[Actor], booking_id: str) -> None:
        """Owner deletes a pending booking that has not started. No notification is sent."""
        if actor is None:
            raise AuthorizationError("You must be signed in to cancel a booking", "not_authenticated")

        booking = await self.store.get_booking(booking_id)
        if booking is None:
            logger.error(f"Booking not found: {booking_id}")
            raise NotFoundError("Booking not found", "booking_not_found")
        if booking.user_id != actor.id:
            logger.error(f"User {actor.id} not authorized to cancel booking {booking_id}")
            raise AuthorizationError("Not authorized to cancel this booking", "not_owner")
        if booking.status != BookingStatus.PENDING.value:
            raise InvalidStateError("Only pending bookings can be cancelled", "not_pending")
        if booking.start_time <= self.now():
            raise InvalidStateError("Cannot cancel a booking that has already started", "already_started")

        deleted = await self.store.delete_booking(booking_id, actor.id)
        if not deleted:
            raise NotFoundError("Booking not found", "booking_not_found")
        logger.debug(f"Cancelled booking: {booking_id}")

    async def get_booking(self, actor: Optional[Actor], booking_id: str) -> Booking:
        if actor is None:
            raise AuthorizationError("You must be signed in", "not_authenticated")
        booking = await self.store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found", "booking_not_found")
        if booking.user_id != actor.id and not actor.is_admin:
            raise AuthorizationError("Not authorized to view this booking", "not_owner")
        return booking

    async def room_bookings(self, room_id: str, day: date) -> List[Booking]:
        """All bookings of a room touching one UTC day, rejected ones included."""
        try:
            bounds = day_bounds(day)
        except ValueError as e:
            raise ValidationError(str(e), "invalid_interval") from e
        room = await self.store.get_room(room_id)
        if room is None:
            raise NotFoundError("Room not found", "room_not_found")
        return await self.store.list_bookings(room_id, bounds)

    async def my_bookings(self, actor: Optional[Actor]) -> List[Booking]:
        if actor is None:
            raise AuthorizationError("You must be signed in", "not_authenticated")
        return await self.store.list_user_bookings(actor.id)

    async def all_bookings(self, actor: Optional[Actor], status: Optional[BookingStatus] = None) -> List[Booking]:
        self._require_admin(actor)
        return await self.store.list_all_bookings(status.value if status is not None else None)

    @staticmethod
    def _require_admin(actor: Optional[Actor]) -> None:
        if actor is None:
            raise AuthorizationError("You must be signed in", "not_authenticated")
        if not actor.is_admin:
            logger.error(f"User {actor.id} is not an administrator")
            raise AuthorizationError("Administrator role required", "not_admin")
