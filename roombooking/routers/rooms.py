import logging
from datetime import date, datetime, timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from roombooking.config import get_settings
from roombooking.dependencies import get_lifecycle, get_store
from roombooking.errors import ValidationError
from roombooking.schemas.booking import AvailabilityResponse, BookingResponse, SlotResponse
from roombooking.schemas.room import RoomResponse
from roombooking.services.lifecycle import BookingLifecycle
from roombooking.services.store import SqlBookingStore
from roombooking.utils.availability import day_bounds, day_range, find_conflicts, free_slots
from roombooking.utils.validation_helpers import ensure_utc

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

router = APIRouter(
    prefix="/rooms",
    tags=["rooms"],
)


@router.get("/", response_model=List[RoomResponse])
async def get_rooms(store: SqlBookingStore = Depends(get_store)):
    """
    Retrieve a list of all rooms.
    """
    return await store.list_rooms()


@router.get("/{room_id}", response_model=RoomResponse)
async def get_room(room_id: str, store: SqlBookingStore = Depends(get_store)):
    """
    Retrieve a specific room by ID.
    """
    room = await store.get_room(room_id)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


@router.get(
    "/{room_id}/bookings",
    response_model=List[BookingResponse],
    summary="List a room's bookings for a day",
)
async def get_room_bookings(
    room_id: str,
    date: date,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    """
    Bookings of the room touching the given UTC day, ordered by start time.
    Rejected bookings are listed too; they do not block the slot.
    """
    return await lifecycle.room_bookings(room_id, date)


@router.get(
    "/{room_id}/availability",
    response_model=AvailabilityResponse,
    summary="Check a candidate interval",
)
async def check_availability(
    room_id: str,
    start_time: datetime,
    end_time: datetime,
    store: SqlBookingStore = Depends(get_store),
):
    """
    Tell whether ``[start_time, end_time)`` is free in the room and list the
    effective bookings it would collide with.
    """
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

    room = await store.get_room(room_id)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")

    existing = await store.list_bookings(room_id, working_set)
    conflicts = find_conflicts(room_id, start_time, end_time, existing)
    logger.debug(f"Availability for room_id: {room_id}, {start_time} to {end_time}: {len(conflicts)} conflicts")
    return AvailabilityResponse(
        room_id=room_id,
        start_time=start_time,
        end_time=end_time,
        available=not conflicts,
        conflicts=[BookingResponse.model_validate(b) for b in conflicts],
    )


@router.get(
    "/{room_id}/available_slots",
    response_model=List[SlotResponse],
    summary="List available time slots",
)
async def get_available_slots(
    room_id: str,
    date: date,
    duration: int = 60,
    store: SqlBookingStore = Depends(get_store),
):
    """
    List free slots of ``duration`` minutes within working hours of the day.
    """
    if duration <= 0 or duration > MINUTES_PER_DAY:
        logger.error(f"Invalid duration: {duration}, must be between 1 and {MINUTES_PER_DAY}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Duration must be between 1 and {MINUTES_PER_DAY} minutes",
        )
    try:
        day = day_bounds(date)
    except ValueError as e:
        raise ValidationError(str(e), "invalid_interval") from e

    room = await store.get_room(room_id)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")

    settings = get_settings()
    day_start = day.start + timedelta(hours=settings.working_day_start_hour)
    day_end = day.start + timedelta(hours=settings.working_day_end_hour)

    existing = await store.list_bookings(room_id, day)
    slots = free_slots(day_start, day_end, timedelta(minutes=duration), existing)
    logger.debug(f"Found {len(slots)} available slots for room_id: {room_id}")
    return [SlotResponse(start_time=slot.start, end_time=slot.end) for slot in slots]
