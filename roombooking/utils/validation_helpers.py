from datetime import datetime, timedelta, timezone


def ensure_utc(value):
    """Normalize a datetime to an aware UTC instant; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError(f"{value} is outside the supported date range") from e


def booking_duration(start_time: datetime, end_time: datetime) -> timedelta:
    return end_time - start_time


def end_time_for(start_time: datetime, duration: timedelta) -> datetime:
    """The end of a booking is always recomputed from its start and duration."""
    if duration <= timedelta(0):
        raise ValueError("Duration must be positive")
    try:
        return start_time + duration
    except OverflowError as e:
        raise ValueError("Booking would end after the supported date range") from e


def duration_minutes(start_time: datetime, end_time: datetime) -> float:
    return booking_duration(start_time, end_time).total_seconds() / 60
