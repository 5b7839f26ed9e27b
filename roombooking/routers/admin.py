import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from roombooking.dependencies import get_lifecycle
from roombooking.models.booking import BookingStatus
from roombooking.schemas.booking import (
    BookingDecision,
    BookingResponse,
    BookingTransitionResponse,
    NotificationResultResponse,
)
from roombooking.services.lifecycle import BookingLifecycle, TransitionResult
from roombooking.utils.auth import Actor, get_current_actor

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/bookings",
    tags=["admin"],
)


def _transition_response(result: TransitionResult) -> BookingTransitionResponse:
    return BookingTransitionResponse(
        booking=BookingResponse.model_validate(result.booking),
        notification=NotificationResultResponse.model_validate(result.notification),
    )


@router.get(
    "/",
    response_model=List[BookingResponse],
    summary="List all bookings",
)
async def get_all_bookings(
    status: Optional[BookingStatus] = None,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    """
    Every booking, newest request first, optionally filtered by **status**.
    Administrators only.
    """
    return await lifecycle.all_bookings(actor, status)


@router.post(
    "/{booking_id}/approve",
    response_model=BookingTransitionResponse,
    summary="Approve a pending booking",
)
async def approve_booking(
    booking_id: str,
    decision: BookingDecision,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    """
    Approve the booking and notify the requester. The approval stands even if
    the notification could not be delivered; see **notification** in the response.
    """
    result = await lifecycle.approve(actor, booking_id, decision.admin_notes or "")
    return _transition_response(result)


@router.post(
    "/{booking_id}/reject",
    response_model=BookingTransitionResponse,
    summary="Reject a pending booking",
)
async def reject_booking(
    booking_id: str,
    decision: BookingDecision,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    """
    Reject the booking, freeing its slot, and notify the requester.
    """
    result = await lifecycle.reject(actor, booking_id, decision.admin_notes or "")
    return _transition_response(result)
