# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""FamilyMember ORM model – the public profile shown on the map and in chat."""

from sqlalchemy import Column, String, Boolean, Float, DateTime, ForeignKey

from database import Base

DEFAULT_AVATAR = "https://placehold.co/150x150.png"
DEFAULT_LOCATION_NAME = "Unknown location"
DEFAULT_LAT = -34.723
DEFAULT_LNG = -58.254


class FamilyMember(Base):
    __tablename__ = "family_members"

    # Same key as the credential; a row exists only once the user is authorized
    id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    avatar = Column(String(2048), nullable=False, default=DEFAULT_AVATAR)

    # Last known location, overwritten on every update
    location_name = Column(String(255), nullable=False, default=DEFAULT_LOCATION_NAME)
    location_lat = Column(Float, nullable=False, default=DEFAULT_LAT)
    location_lng = Column(Float, nullable=False, default=DEFAULT_LNG)
    location_timestamp = Column(DateTime(timezone=True), nullable=True)

    is_online = Column(Boolean, nullable=False, default=False)
    is_sharing_location = Column(Boolean, nullable=False, default=True)
    is_chat_enabled = Column(Boolean, nullable=False, default=True)
    is_admin = Column(Boolean, nullable=False, default=False)
