# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Member directory endpoints.

Access rules
------------
* Every endpoint requires a valid JWT.
* A member edits only their own profile; an admin may edit anyone's.
* Only the member themself reports their location.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from core.results import ActionResult
from core.security import get_current_user
from models.user import User
from members import service
from members.schemas import LocationUpdate, MemberListResult, ProfileResult, ProfileUpdate

router = APIRouter(prefix="/members", tags=["members"])


# ---------------------------------------------------------------------------
# GET /members  – full directory, polled by the client
# ---------------------------------------------------------------------------


@router.get("", response_model=MemberListResult)
def list_members(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return service.list_members(db)


# ---------------------------------------------------------------------------
# GET /members/map  – members whose marker the caller may see
# ---------------------------------------------------------------------------


@router.get("/map", response_model=MemberListResult)
def list_map_members(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = service.list_members(db)
    if result.success:
        result.members = service.visible_on_map(result.members, current_user.id)
    return result


# ---------------------------------------------------------------------------
# PUT /members/{id}  – partial profile update
# ---------------------------------------------------------------------------


@router.put("/{member_id}", response_model=ProfileResult)
def update_profile(
    member_id: str,
    body: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if member_id != current_user.id and current_user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return service.update_profile(db, member_id, body.model_dump(exclude_none=True))


# ---------------------------------------------------------------------------
# PUT /members/{id}/location
# ---------------------------------------------------------------------------


@router.put("/{member_id}/location", response_model=ActionResult)
def update_location(
    member_id: str,
    body: LocationUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if member_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return service.update_location(db, member_id, body.lat, body.lng, body.label)
