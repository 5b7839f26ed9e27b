from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from roombooking.config import get_settings
from roombooking.db import get_db
from roombooking.services.lifecycle import BookingLifecycle
from roombooking.services.notifications import HttpNotificationDispatcher, NotificationDispatcher
from roombooking.services.store import SqlBookingStore


def get_store(db: AsyncSession = Depends(get_db)) -> SqlBookingStore:
    return SqlBookingStore(db)


def get_dispatcher() -> NotificationDispatcher:
    return HttpNotificationDispatcher.from_settings(get_settings())


def get_lifecycle(
    store: SqlBookingStore = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> BookingLifecycle:
    return BookingLifecycle(store, dispatcher)
