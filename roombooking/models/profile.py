import enum

from sqlalchemy.orm import relationship
from sqlalchemy import CheckConstraint, Column, String
from roombooking.db import Base, UTCDateTime, utcnow


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class Profile(Base):
    """Identity projection kept in sync by the identity provider."""

    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    full_name = Column(String, nullable=False, default="")
    role = Column(String, nullable=False, default=Role.USER.value)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    bookings = relationship(
        "Booking", back_populates="user", cascade="all, delete-orphan", lazy="raise"
    )

    __table_args__ = (CheckConstraint("role in ('user','admin')", name="profile_role_valid"),)
