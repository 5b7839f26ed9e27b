import logging
from typing import List

from fastapi import APIRouter, Depends, status
from roombooking.dependencies import get_lifecycle
from roombooking.schemas.booking import BookingCreate, BookingResponse
from roombooking.services.lifecycle import BookingLifecycle
from roombooking.utils.auth import Actor, get_current_actor

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking",
    description="Request a room for a time interval. The booking starts out pending. Requires authentication.",
)
async def create_booking(
    booking: BookingCreate,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    """
    Request a booking.

    - **room_id**: ID of the room to book.
    - **start_time**: Start of the interval; must not be in the past.
    - **end_time**: End of the interval, or give **duration_minutes** instead.
    - **notes**: Optional notes for the administrator.

    Returns the pending booking.
    """
    return await lifecycle.create(
        actor,
        booking.room_id,
        booking.start_time,
        booking.end_time,
        booking.notes,
    )


@router.get(
    "/mine",
    response_model=List[BookingResponse],
    summary="List my bookings",
)
async def get_my_bookings(
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    """
    The caller's bookings, latest start first.
    """
    bookings = await lifecycle.my_bookings(actor)
    logger.debug(f"Retrieved {len(bookings)} bookings for user: {actor.id}")
    return bookings


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking by ID",
)
async def get_booking(
    booking_id: str,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    """
    Retrieve a booking. Only its owner or an administrator may see it.
    """
    return await lifecycle.get_booking(actor, booking_id)


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel a booking",
    description="Cancel a pending booking that has not started. Requires ownership.",
)
async def cancel_booking(
    booking_id: str,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    await lifecycle.cancel(actor, booking_id)
    return None
