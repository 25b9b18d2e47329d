# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the member directory."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from core.results import ActionResult


# -- Requests --------------------------------------------------------------


class ProfileUpdate(BaseModel):
    # Every field optional: only the ones sent are written
    name: Optional[str] = None
    avatar: Optional[str] = None
    is_sharing_location: Optional[bool] = None
    is_chat_enabled: Optional[bool] = None
    is_online: Optional[bool] = None


class LocationUpdate(BaseModel):
    lat: float
    lng: float
    label: str = Field("Current location", max_length=255)


# -- Responses -------------------------------------------------------------


class Location(BaseModel):
    name: str
    lat: float
    lng: float
    timestamp: Optional[datetime] = None


class MemberOut(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    avatar: str
    location: Location
    is_online: bool
    status: str
    is_sharing_location: bool
    is_chat_enabled: bool
    is_admin: bool
    # False for credentials that have no profile yet (placeholder entries)
    has_profile: bool = True


class MemberListResult(ActionResult):
    members: List[MemberOut] = []
    # Polling interval the client should use to re-fetch this list
    refresh_seconds: Optional[int] = None


class ProfileResult(ActionResult):
    member: Optional[MemberOut] = None
