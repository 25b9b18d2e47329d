# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Member directory: the join of credentials and public profiles.

A credential without a profile (a user still waiting for approval) is shown
as a placeholder entry so the admin can act on it.  The list is re-fetched
by the client on a fixed interval rather than pushed.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from core.config import settings
from core.logger import logger
from core.results import ErrorCode, action, ActionResult
from models.family_member import (
    DEFAULT_AVATAR,
    DEFAULT_LAT,
    DEFAULT_LNG,
    DEFAULT_LOCATION_NAME,
    FamilyMember,
)
from models.user import User
from members.schemas import Location, MemberListResult, MemberOut, ProfileResult

_NOT_FOUND = "User not found."

# Fields a profile edit may touch
_EDITABLE = {"name", "avatar", "is_sharing_location", "is_chat_enabled", "is_online"}


def new_profile(user: User, is_admin: bool = False) -> FamilyMember:
    """A fresh profile for *user* at the default location, sharing and chat on."""
    return FamilyMember(
        id=user.id,
        name=user.name or ("Admin" if is_admin else "New member"),
        email=user.email,
        avatar=DEFAULT_AVATAR,
        location_name=DEFAULT_LOCATION_NAME,
        location_lat=DEFAULT_LAT,
        location_lng=DEFAULT_LNG,
        location_timestamp=datetime.now(timezone.utc),
        is_online=False,
        is_sharing_location=True,
        is_chat_enabled=True,
        is_admin=is_admin,
    )


def member_out(profile: FamilyMember, status: str) -> MemberOut:
    return MemberOut(
        id=profile.id,
        name=profile.name,
        email=profile.email,
        avatar=profile.avatar,
        location=Location(
            name=profile.location_name,
            lat=profile.location_lat,
            lng=profile.location_lng,
            timestamp=profile.location_timestamp,
        ),
        is_online=profile.is_online,
        status=status,
        is_sharing_location=profile.is_sharing_location,
        is_chat_enabled=profile.is_chat_enabled,
        is_admin=profile.is_admin,
    )


def placeholder_out(user: User) -> MemberOut:
    """Entry for a credential that has no profile yet."""
    return MemberOut(
        id=user.id,
        name=user.name or "Pending user",
        email=user.email,
        avatar=DEFAULT_AVATAR,
        location=Location(name="N/A", lat=0, lng=0),
        is_online=False,
        status=user.status,
        is_sharing_location=False,
        is_chat_enabled=False,
        is_admin=user.is_admin,
        has_profile=False,
    )


def sort_members(members: list[MemberOut]) -> list[MemberOut]:
    """
    Administrator first, then pending members, then everyone else; ties
    broken by case-insensitive name.
    """
    admin = next((m for m in members if m.is_admin), None)
    others = [m for m in members if m is not admin]
    others.sort(key=lambda m: (m.status != "pending", m.name.casefold()))
    return [admin, *others] if admin else others


def visible_on_map(members: list[MemberOut], viewer_id: str) -> list[MemberOut]:
    """
    Members whose marker the viewer may see: everyone sharing their location,
    the viewer themself, and the administrator regardless of the sharing flag.
    Placeholder entries have no real location and are never drawn.
    """
    return [
        m for m in members
        if m.has_profile and (m.is_sharing_location or m.is_admin or m.id == viewer_id)
    ]


@action("list_members", MemberListResult)
def list_members(db: Session) -> MemberListResult:
    profiles = {p.id: p for p in db.query(FamilyMember).all()}
    members = []
    for user in db.query(User).all():
        profile = profiles.get(user.id)
        members.append(member_out(profile, user.status) if profile else placeholder_out(user))
    return MemberListResult.ok(
        members=sort_members(members),
        refresh_seconds=settings.member_refresh_seconds,
    )


@action("update_location")
def update_location(db: Session, member_id: str, lat: float, lng: float, label: str) -> ActionResult:
    """Overwrite the member's location and mark them online.  No throttling."""
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        return ActionResult.fail(ErrorCode.VALIDATION, "Coordinates out of range.")

    profile: Optional[FamilyMember] = db.get(FamilyMember, member_id)
    if not profile:
        return ActionResult.fail(ErrorCode.NOT_FOUND, _NOT_FOUND)

    profile.location_name = label
    profile.location_lat = lat
    profile.location_lng = lng
    profile.location_timestamp = datetime.now(timezone.utc)
    profile.is_online = True
    db.commit()
    return ActionResult.ok()


@action("update_profile", ProfileResult)
def update_profile(db: Session, member_id: str, fields: dict) -> ProfileResult:
    """Write the given profile fields and return the merged record."""
    profile: Optional[FamilyMember] = db.get(FamilyMember, member_id)
    if not profile:
        return ProfileResult.fail(ErrorCode.NOT_FOUND, _NOT_FOUND)

    unknown = set(fields) - _EDITABLE
    if unknown:
        return ProfileResult.fail(
            ErrorCode.VALIDATION, f"Fields cannot be edited: {', '.join(sorted(unknown))}"
        )

    for field, value in fields.items():
        setattr(profile, field, value)
    db.commit()
    db.refresh(profile)

    user = db.get(User, member_id)
    logger.info("Profile %s updated: %s", member_id, ", ".join(sorted(fields)) or "(nothing)")
    return ProfileResult.ok(
        "Profile updated.",
        member=member_out(profile, user.status if user else "active"),
    )
