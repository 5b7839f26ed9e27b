"""Booking store: the query and mutation surface the workflow consumes."""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional, Protocol

from sqlalchemy import delete, insert, literal, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from roombooking.db import utcnow
from roombooking.errors import ConflictError, StoreError
from roombooking.models.booking import EFFECTIVE_STATUSES, Booking, BookingStatus
from roombooking.models.profile import Profile
from roombooking.models.room import Room
from roombooking.services.changes import BookingChange, BookingChangeFeed, ChangeCallback, ChangeFilter, change_feed
from roombooking.utils.availability import DateRange

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    async def get_room(self, room_id: str) -> Optional[Room]: ...

    async def list_rooms(self) -> List[Room]: ...

    async def get_profile(self, profile_id: str) -> Optional[Profile]: ...

    async def get_booking(self, booking_id: str) -> Optional[Booking]: ...

    async def list_bookings(self, room_id: str, date_range: DateRange) -> List[Booking]: ...

    async def list_user_bookings(self, user_id: str) -> List[Booking]: ...

    async def list_all_bookings(self, status: Optional[str] = None) -> List[Booking]: ...

    async def insert_booking(self, fields: dict) -> Booking: ...

    async def update_booking_status(
        self, booking_id: str, status: str, admin_notes: str, expected_status: str = BookingStatus.PENDING.value
    ) -> Optional[Booking]: ...

    async def delete_booking(
        self, booking_id: str, owner_id: str, expected_status: str = BookingStatus.PENDING.value
    ) -> bool: ...

    def subscribe_to_booking_changes(self, change_filter: Optional[ChangeFilter], callback: ChangeCallback): ...


class SqlBookingStore:
    """``BookingStore`` on a SQLAlchemy async session; commits each mutation."""

    def __init__(self, db: AsyncSession, feed: BookingChangeFeed = change_feed):
        self.db = db
        self.feed = feed

    @asynccontextmanager
    async def _guard(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Store failure during {operation}: {e}")
            await self.db.rollback()
            raise StoreError(f"Data store failure during {operation}") from e

    async def get_room(self, room_id: str) -> Optional[Room]:
        async with self._guard("get_room"):
            return await self.db.get(Room, room_id)

    async def list_rooms(self) -> List[Room]:
        async with self._guard("list_rooms"):
            result = await self.db.execute(select(Room).order_by(Room.name))
            return list(result.scalars().all())

    async def get_profile(self, profile_id: str) -> Optional[Profile]:
        async with self._guard("get_profile"):
            return await self.db.get(Profile, profile_id)

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        async with self._guard("get_booking"):
            result = await self.db.execute(
                select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def list_bookings(self, room_id: str, date_range: DateRange) -> List[Booking]:
        async with self._guard("list_bookings"):
            result = await self.db.execute(
                select(Booking)
                .where(
                    Booking.room_id == room_id,
                    Booking.start_time < date_range.end,
                    Booking.end_time > date_range.start,
                )
                .order_by(Booking.start_time)
            )
            return list(result.scalars().all())

    async def list_user_bookings(self, user_id: str) -> List[Booking]:
        async with self._guard("list_user_bookings"):
            result = await self.db.execute(
                select(Booking).where(Booking.user_id == user_id).order_by(Booking.start_time.desc())
            )
            return list(result.scalars().all())

    async def list_all_bookings(self, status: Optional[str] = None) -> List[Booking]:
        query = select(Booking).order_by(Booking.created_at.desc())
        if status is not None:
            query = query.where(Booking.status == status)
        async with self._guard("list_all_bookings"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def insert_booking(self, fields: dict) -> Booking:
        """
        Insert a booking only if no effective booking of the same room overlaps it.

        The overlap guard and the insert are one ``INSERT ... SELECT ... WHERE NOT
        EXISTS`` statement. SQLite serialises writers, so two writers racing for
        the same slot cannot both win. On a server database under READ COMMITTED
        two such statements can both succeed; that needs an exclusion constraint
        or SERIALIZABLE isolation.
        """
        now = utcnow()
        values = {
            "id": str(uuid.uuid4()),
            "room_id": fields["room_id"],
            "user_id": fields["user_id"],
            "start_time": fields["start_time"],
            "end_time": fields["end_time"],
            "status": fields.get("status", BookingStatus.PENDING.value),
            "notes": fields.get("notes") or "",
            "admin_notes": fields.get("admin_notes") or "",
            "created_at": now,
            "updated_at": now,
        }
        table = Booking.__table__
        overlapping = (
            select(table.c.id)
            .where(
                table.c.room_id == values["room_id"],
                table.c.status.in_(EFFECTIVE_STATUSES),
                table.c.start_time < values["end_time"],
                table.c.end_time > values["start_time"],
            )
            .correlate(None)
            .exists()
        )
        guarded = select(
            *[literal(value, type_=table.c[name].type).label(name) for name, value in values.items()]
        ).where(~overlapping)

        async with self._guard("insert_booking"):
            result = await self.db.execute(insert(table).from_select(list(values), guarded))
            if result.rowcount != 1:
                logger.error(
                    f"Guarded insert refused for room_id: {values['room_id']}, "
                    f"time: {values['start_time']} to {values['end_time']}"
                )
                raise ConflictError("Room is already booked for this time slot", "slot_unavailable")
            await self.db.commit()

        booking = await self.get_booking(values["id"])
        self.feed.publish(
            BookingChange("INSERT", booking.id, booking.room_id, booking.user_id, booking.status)
        )
        return booking

    async def update_booking_status(
        self, booking_id: str, status: str, admin_notes: str, expected_status: str = BookingStatus.PENDING.value
    ) -> Optional[Booking]:
        """Compare-and-set the status; returns None when the booking is not in ``expected_status``."""
        table = Booking.__table__
        async with self._guard("update_booking_status"):
            result = await self.db.execute(
                update(table)
                .where(table.c.id == booking_id, table.c.status == expected_status)
                .values(status=status, admin_notes=admin_notes or "", updated_at=utcnow())
            )
            if result.rowcount != 1:
                return None
            await self.db.commit()

        booking = await self.get_booking(booking_id)
        self.feed.publish(
            BookingChange("UPDATE", booking.id, booking.room_id, booking.user_id, booking.status)
        )
        return booking

    async def delete_booking(
        self, booking_id: str, owner_id: str, expected_status: str = BookingStatus.PENDING.value
    ) -> bool:
        """Delete a booking owned by ``owner_id``; False when nothing matched."""
        booking = await self.get_booking(booking_id)
        if booking is None or booking.user_id != owner_id:
            return False

        table = Booking.__table__
        async with self._guard("delete_booking"):
            result = await self.db.execute(
                delete(table).where(
                    table.c.id == booking_id,
                    table.c.user_id == owner_id,
                    table.c.status == expected_status,
                )
            )
            if result.rowcount != 1:
                return False
            await self.db.commit()

        self.db.expunge(booking)
        self.feed.publish(BookingChange("DELETE", booking_id, booking.room_id, owner_id, booking.status))
        return True

    def subscribe_to_booking_changes(self, change_filter: Optional[ChangeFilter], callback: ChangeCallback):
        return self.feed.subscribe(change_filter, callback)
