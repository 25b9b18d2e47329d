# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Administrator actions on member accounts.

Authorizing a user touches four rows (credential, new profile, group chat
membership, audit entry); they are staged on the session and committed
together.
"""

from typing import Optional

from sqlalchemy.orm import Session

from core.logger import logger
from core.results import ActionResult, ErrorCode, action
from models.audit_log import AuditLog
from models.family_member import FamilyMember
from models.user import User
from chat.service import ensure_group_membership
from members.service import new_profile

_USER_NOT_FOUND = "User not found."


@action("authorize_user")
def authorize_user(
    db: Session,
    user_id: str,
    actor_id: Optional[str] = None,
    request_ip: Optional[str] = None,
) -> ActionResult:
    """
    Activate a pending user whose email is verified, create their profile at
    the default location and add them to the group conversation.
    """
    user = db.get(User, user_id)
    if not user:
        return ActionResult.fail(ErrorCode.USER_NOT_FOUND, _USER_NOT_FOUND)
    if user.status != "pending":
        return ActionResult.fail(ErrorCode.INVALID_STATE, "This user is not awaiting approval.")
    if user.verification_token:
        return ActionResult.fail(
            ErrorCode.INVALID_STATE, "This user has not verified their email yet."
        )

    user.status = "active"
    if db.get(FamilyMember, user_id) is None:
        db.add(new_profile(user))
    ensure_group_membership(db, user_id)
    db.add(AuditLog(actor_id=actor_id, target_user_id=user_id, action="authorize_user", request_ip=request_ip))
    db.commit()
    logger.info("User %s authorized by %s", user_id, actor_id)
    return ActionResult.ok("User authorized.")


@action("suspend_user")
def suspend_user(
    db: Session,
    user_id: str,
    actor_id: Optional[str] = None,
    request_ip: Optional[str] = None,
) -> ActionResult:
    """
    Block an active account.  Existing JWTs stop working because the guards
    only accept active users.  An admin cannot suspend themself.
    """
    if user_id == actor_id:
        return ActionResult.fail(ErrorCode.FORBIDDEN, "You cannot suspend yourself.")

    user = db.get(User, user_id)
    if not user:
        return ActionResult.fail(ErrorCode.USER_NOT_FOUND, _USER_NOT_FOUND)
    if user.status != "active":
        return ActionResult.fail(ErrorCode.INVALID_STATE, "Only active users can be suspended.")

    user.status = "suspended"
    profile = db.get(FamilyMember, user_id)
    if profile:
        profile.is_online = False
    db.add(AuditLog(actor_id=actor_id, target_user_id=user_id, action="suspend_user", request_ip=request_ip))
    db.commit()
    logger.info("User %s suspended by %s", user_id, actor_id)
    return ActionResult.ok("User suspended.")


@action("reactivate_user")
def reactivate_user(
    db: Session,
    user_id: str,
    actor_id: Optional[str] = None,
    request_ip: Optional[str] = None,
) -> ActionResult:
    user = db.get(User, user_id)
    if not user:
        return ActionResult.fail(ErrorCode.USER_NOT_FOUND, _USER_NOT_FOUND)
    if user.status != "suspended":
        return ActionResult.fail(ErrorCode.INVALID_STATE, "Only suspended users can be reactivated.")

    user.status = "active"
    db.add(AuditLog(actor_id=actor_id, target_user_id=user_id, action="reactivate_user", request_ip=request_ip))
    db.commit()
    logger.info("User %s reactivated by %s", user_id, actor_id)
    return ActionResult.ok("User reactivated.")
