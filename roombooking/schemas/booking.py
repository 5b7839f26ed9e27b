from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from roombooking.models.booking import BookingStatus
from roombooking.utils.validation_helpers import duration_minutes as interval_minutes, end_time_for, ensure_utc

# one year
MAX_BOOKING_MINUTES = 366 * 24 * 60


class BookingCreate(BaseModel):
    """
    Fields are optional at the schema level so that missing ones are reported
    by the booking workflow with its own error code.
    """

    room_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=MAX_BOOKING_MINUTES)
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timezone(cls, value):
        return ensure_utc(value)

    @model_validator(mode="after")
    def derive_end_time(self):
        # duration never wins over the interval; it only computes end_time
        if self.duration_minutes is None or self.start_time is None:
            return self
        derived = end_time_for(self.start_time, timedelta(minutes=self.duration_minutes))
        if self.end_time is not None and self.end_time != derived:
            raise ValueError("end_time and duration_minutes disagree")
        self.end_time = derived
        return self


class BookingDecision(BaseModel):
    admin_notes: Optional[str] = ""


class BookingResponse(BaseModel):
    id: str
    room_id: str
    user_id: str
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    notes: str
    admin_notes: str
    created_at: datetime
    updated_at: datetime
    room_name: Optional[str] = None
    requester_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def duration_minutes(self) -> float:
        return interval_minutes(self.start_time, self.end_time)


class NotificationResultResponse(BaseModel):
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BookingTransitionResponse(BaseModel):
    booking: BookingResponse
    notification: NotificationResultResponse

    model_config = ConfigDict(from_attributes=True)


class AvailabilityResponse(BaseModel):
    room_id: str
    start_time: datetime
    end_time: datetime
    available: bool
    conflicts: List[BookingResponse] = []


class SlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime
