# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Account lifecycle: registration, email verification, login.

Status transitions
------------------
    register        → pending, token issued
    verify_token    → token cleared (admin: status active + profile + group chat)
    authorize_user  → active          (see admin.service)
    suspend_user    → suspended       (see admin.service)

The bootstrap administrator is the credential row keyed ``admin_user``.
Until it holds a verified email, logging in with the configured
ADMIN_EMAIL / ADMIN_PASSWORD pair reports ``first_login`` together with a
short-lived setup token, and only that token unlocks the setup form.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from core import mailer
from core.config import settings
from core.logger import logger
from core.results import ActionResult, ErrorCode, action
from core.security import (
    VERIFICATION_TOKEN_LENGTH,
    as_utc,
    create_access_token,
    create_setup_token,
    hash_password,
    is_valid_setup_token,
    new_verification_token,
    verify_password,
)
from models.audit_log import AuditLog
from models.family_member import FamilyMember
from models.user import ADMIN_USER_ID, User
from auth.schemas import LoginResult
from chat.service import ensure_group_membership
from members.service import new_profile

_VERIFICATION_SENT = "A verification code has been sent to your email."
# Same message for unknown email and wrong password
_LOGIN_FAIL = "Invalid email or password."


def _find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def _admin_is_set_up(db: Session) -> bool:
    admin = db.get(User, ADMIN_USER_ID)
    return bool(admin and admin.email)


def _issue_token(user: User) -> None:
    user.verification_token, user.token_expiry = new_verification_token()


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


@action("register")
def register(db: Session, email: str, password: str, name: str, phone: str = "") -> ActionResult:
    """
    Create a pending account and mail its verification code.

    Registering again with the email of an account that is still unverified
    issues a fresh code instead of failing.  The row is committed before the
    email goes out; if sending fails the account stays pending and
    :func:`resend_token` repairs it.
    """
    email = (email or "").strip()
    name = (name or "").strip()
    if not email or not password or not name:
        return ActionResult.fail(ErrorCode.VALIDATION, "Email, password and name are required.")

    existing = _find_by_email(db, email)
    if existing:
        if existing.status == "pending" and existing.verification_token:
            _issue_token(existing)
            db.commit()
            mailer.send_verification_email(email, existing.verification_token)
            return ActionResult.ok(_VERIFICATION_SENT)
        return ActionResult.fail(ErrorCode.CONFLICT, "A user with this email already exists.")

    user = User(
        name=name,
        phone=phone or "",
        email=email,
        password_hash=hash_password(password),
        role="user",
        status="pending",
    )
    _issue_token(user)
    db.add(user)
    db.flush()  # get user.id before commit
    db.add(AuditLog(target_user_id=user.id, action="register"))
    db.commit()
    logger.info("Registered %s as pending user %s", email, user.id)

    mailer.send_verification_email(email, user.verification_token)
    return ActionResult.ok(_VERIFICATION_SENT)


@action("setup_admin")
def setup_admin(db: Session, setup_token: str, email: str, password: str, name: str) -> ActionResult:
    """
    First-run administrator setup: write the ``admin_user`` credential as a
    pending admin and mail its verification code.

    Requires the setup token that the bootstrap login (configured
    ADMIN_EMAIL / ADMIN_PASSWORD) hands out.  Refused once the administrator
    account is active.
    """
    if not is_valid_setup_token(setup_token, ADMIN_USER_ID):
        return ActionResult.fail(
            ErrorCode.FORBIDDEN, "Log in with the bootstrap administrator credentials first."
        )

    email = (email or "").strip()
    name = (name or "").strip()
    if not email or not password or not name:
        return ActionResult.fail(ErrorCode.VALIDATION, "Email, password and name are required.")

    admin = db.get(User, ADMIN_USER_ID)
    if admin and admin.email and admin.status == "active":
        return ActionResult.fail(ErrorCode.CONFLICT, "The administrator account is already set up.")

    holder = _find_by_email(db, email)
    if holder and holder.id != ADMIN_USER_ID:
        return ActionResult.fail(ErrorCode.CONFLICT, "A user with this email already exists.")

    if admin is None:
        admin = User(id=ADMIN_USER_ID)
        db.add(admin)
    admin.name = name
    admin.email = email
    admin.password_hash = hash_password(password)
    admin.role = "admin"
    admin.status = "pending"
    _issue_token(admin)
    db.commit()
    logger.info("Administrator account staged for %s", email)

    mailer.send_verification_email(email, admin.verification_token)
    return ActionResult.ok(
        "Administrator details saved. A verification code has been sent to your email."
    )


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


@action("verify_token")
def verify_token(db: Session, token: str) -> ActionResult:
    """
    Consume a verification code.

    An expired code is reported as expired, never as unknown.  Verifying the
    administrator activates the account, creates its profile and places it in
    the group conversation in the same commit.
    """
    token = (token or "").strip()
    if len(token) != VERIFICATION_TOKEN_LENGTH:
        return ActionResult.fail(ErrorCode.TOKEN_INVALID, "Invalid token format.")

    user = db.query(User).filter(User.verification_token == token).first()
    if not user:
        return ActionResult.fail(
            ErrorCode.TOKEN_INVALID, "Invalid token or the account is already verified."
        )

    expiry = as_utc(user.token_expiry)
    if expiry and datetime.now(timezone.utc) > expiry:
        return ActionResult.fail(
            ErrorCode.TOKEN_EXPIRED, "The verification code has expired. Please request a new one."
        )

    user.verification_token = None
    user.token_expiry = None

    if user.is_admin:
        user.status = "active"
        profile = db.get(FamilyMember, user.id)
        if profile is None:
            db.add(new_profile(user, is_admin=True))
        else:
            profile.is_admin = True
            profile.email = user.email
        ensure_group_membership(db, user.id)
        db.add(AuditLog(target_user_id=user.id, action="verify_email", detail="admin activated"))
        db.commit()
        logger.info("Administrator %s verified and activated", user.id)
        return ActionResult.ok("Administrator account verified. You can now log in.")

    db.add(AuditLog(target_user_id=user.id, action="verify_email"))
    db.commit()
    logger.info("User %s verified their email", user.id)
    return ActionResult.ok("Email verified. Your account is now awaiting administrator approval.")


@action("resend_token")
def resend_token(db: Session, email: str) -> ActionResult:
    """Issue and mail a new code for a pending, still unverified account."""
    email = (email or "").strip()
    if not email:
        return ActionResult.fail(ErrorCode.VALIDATION, "Please enter your email address.")

    user = (
        db.query(User)
        .filter(User.email == email, User.status == "pending")
        .first()
    )
    if not user:
        return ActionResult.fail(
            ErrorCode.USER_NOT_FOUND, "No pending account was found for this email."
        )
    if not user.verification_token:
        return ActionResult.fail(
            ErrorCode.NEEDS_ADMIN_APPROVAL,
            "This email is already verified. The account is awaiting administrator approval.",
        )

    _issue_token(user)
    db.commit()
    mailer.send_verification_email(email, user.verification_token)
    return ActionResult.ok("A new verification code has been sent to your email.")


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------


@action("login", LoginResult)
def login(db: Session, email: str, password: str, request_ip: Optional[str] = None) -> LoginResult:
    """
    Authenticate and return a signed session token.

    Every refusal carries its own error code so the client can tell the
    user what to do next (verify, wait for approval, contact the admin).
    """
    if (
        settings.admin_email
        and settings.admin_password
        and email == settings.admin_email
        and password == settings.admin_password
        and not _admin_is_set_up(db)
    ):
        return LoginResult.ok(
            first_login=True,
            user_id=ADMIN_USER_ID,
            is_admin=True,
            setup_token=create_setup_token(ADMIN_USER_ID),
        )

    user = _find_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return LoginResult.fail(ErrorCode.INVALID_CREDENTIALS, _LOGIN_FAIL)

    if user.status == "pending":
        if user.verification_token:
            return LoginResult.fail(
                ErrorCode.NEEDS_VERIFICATION,
                "Please verify your email before logging in.",
                needs_verification=True,
            )
        return LoginResult.fail(
            ErrorCode.NEEDS_ADMIN_APPROVAL, "Your account is awaiting administrator approval."
        )

    if user.status == "suspended":
        return LoginResult.fail(ErrorCode.ACCOUNT_SUSPENDED, "Your account has been suspended.")

    if user.status != "active":
        return LoginResult.fail(ErrorCode.ACCOUNT_INACTIVE, "Your account is not active.")

    profile = db.get(FamilyMember, user.id)
    if profile:
        profile.is_online = True
    user.last_login = datetime.now(timezone.utc)
    db.add(AuditLog(actor_id=user.id, target_user_id=user.id, action="user_login", request_ip=request_ip))
    db.commit()

    token = create_access_token({"sub": user.email, "user_id": user.id, "role": user.role})
    return LoginResult.ok(
        user_id=user.id,
        is_admin=user.is_admin,
        access_token=token,
        token_type="bearer",
    )


@action("logout")
def logout(db: Session, user_id: str) -> ActionResult:
    """Mark the member offline.  The JWT itself simply expires."""
    profile = db.get(FamilyMember, user_id)
    if profile:
        profile.is_online = False
        db.commit()
    return ActionResult.ok()
