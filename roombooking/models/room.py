import uuid

from sqlalchemy.orm import relationship
from sqlalchemy import CheckConstraint, Column, Integer, String, Text
from roombooking.db import Base, UTCDateTime, utcnow


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, index=True, unique=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    capacity = Column(Integer, nullable=False, default=1)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    bookings = relationship(
        "Booking", back_populates="room", cascade="all, delete-orphan", lazy="raise"
    )

    __table_args__ = (CheckConstraint("capacity > 0", name="room_capacity_positive"),)
