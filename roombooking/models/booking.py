import enum
import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship
from roombooking.db import Base, UTCDateTime, utcnow


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


EFFECTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.APPROVED.value)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id = Column(String, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    status = Column(String, nullable=False, default=BookingStatus.PENDING.value)
    notes = Column(Text, nullable=False, default="")
    admin_notes = Column(Text, nullable=False, default="")
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    room = relationship("Room", back_populates="bookings", lazy="joined")
    user = relationship("Profile", back_populates="bookings", lazy="joined")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="booking_time_valid"),
        CheckConstraint(
            "status in ('pending','approved','rejected')", name="booking_status_valid"
        ),
        Index("ix_bookings_room_start", "room_id", "start_time"),
    )

    @property
    def duration(self):
        return self.end_time - self.start_time

    @property
    def room_name(self):
        return self.room.name if self.room is not None else None

    @property
    def requester_name(self):
        return self.user.full_name if self.user is not None else None

    @property
    def requester_email(self):
        return self.user.email if self.user is not None else None
