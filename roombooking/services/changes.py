"""In-process booking change feed used as a refresh signal for subscribers."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingChange:
    event: str  # INSERT|UPDATE|DELETE
    booking_id: str
    room_id: str
    user_id: str
    status: Optional[str] = None


@dataclass(frozen=True)
class ChangeFilter:
    room_id: Optional[str] = None
    user_id: Optional[str] = None

    def matches(self, change: BookingChange) -> bool:
        if self.room_id is not None and change.room_id != self.room_id:
            return False
        if self.user_id is not None and change.user_id != self.user_id:
            return False
        return True


ChangeCallback = Callable[[BookingChange], None]


class BookingChangeFeed:
    def __init__(self) -> None:
        self._subscribers: List[Tuple[ChangeFilter, ChangeCallback]] = []

    def subscribe(self, change_filter: Optional[ChangeFilter], callback: ChangeCallback) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        entry = (change_filter or ChangeFilter(), callback)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, change: BookingChange) -> None:
        for change_filter, callback in list(self._subscribers):
            if not change_filter.matches(change):
                continue
            try:
                callback(change)
            except Exception:
                # subscribers only refresh views; the mutation already committed
                logger.exception(f"Booking change subscriber failed for {change.event} {change.booking_id}")


change_feed = BookingChangeFeed()
