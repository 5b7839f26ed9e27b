"""Slot conflict detection over a room's known bookings.

Everything here is pure: callers fetch the working set of bookings for the
room and day of interest and pass it in.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List

from roombooking.models.booking import BookingStatus


@dataclass(frozen=True)
class DateRange:
    """Half-open window ``[start, end)``."""

    start: datetime
    end: datetime


def is_effective(booking) -> bool:
    """Pending and approved bookings occupy their slot; rejected ones never do."""
    return booking.status != BookingStatus.REJECTED.value


def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    # touching boundaries do not overlap
    return start < other_end and end > other_start


def find_conflicts(room_id, candidate_start: datetime, candidate_end: datetime, existing: Iterable) -> List:
    """Return the effective bookings of ``room_id`` overlapping the candidate interval."""
    assert candidate_start < candidate_end, "candidate interval must have positive length"
    return [
        booking
        for booking in existing
        if booking.room_id == room_id
        and is_effective(booking)
        and overlaps(candidate_start, candidate_end, booking.start_time, booking.end_time)
    ]


def is_slot_available(room_id, candidate_start: datetime, candidate_end: datetime, existing: Iterable) -> bool:
    return not find_conflicts(room_id, candidate_start, candidate_end, existing)


def day_bounds(day: date) -> DateRange:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    try:
        return DateRange(start=start, end=start + timedelta(days=1))
    except OverflowError as e:
        raise ValueError(f"{day} is outside the supported date range") from e


def day_range(start: datetime, end: datetime) -> DateRange:
    """
    The UTC day(s) covering ``[start, end)``, used as the availability working set.

    Raises ``ValueError`` when the last day has no following midnight.
    """
    try:
        first_day = start.astimezone(timezone.utc).date()
        last_day = (end - timedelta(microseconds=1)).astimezone(timezone.utc).date()
    except OverflowError as e:
        raise ValueError("Interval is outside the supported date range") from e
    first = day_bounds(first_day)
    last = day_bounds(last_day)
    return DateRange(start=first.start, end=last.end)


def free_slots(day_start: datetime, day_end: datetime, duration: timedelta, existing: Iterable) -> List[DateRange]:
    """
    Split ``[day_start, day_end)`` into consecutive free slots of ``duration``,
    skipping over the effective bookings in ``existing``.
    """
    if duration <= timedelta(0):
        raise ValueError("Duration must be positive")

    busy = sorted(
        (b for b in existing if is_effective(b) and overlaps(day_start, day_end, b.start_time, b.end_time)),
        key=lambda b: b.start_time,
    )

    slots = []
    current_time = day_start
    for booking in busy:
        while booking.start_time - current_time >= duration:
            slot_end = current_time + duration
            slots.append(DateRange(start=current_time, end=slot_end))
            current_time = slot_end
        current_time = max(current_time, booking.end_time)

    while day_end - current_time >= duration:
        slot_end = current_time + duration
        slots.append(DateRange(start=current_time, end=slot_end))
        current_time = slot_end

    return slots
