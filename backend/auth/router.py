# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – registration, verification, login, current-user info.

Security notes
--------------
* Login returns the *same* message whether the email doesn't exist or the
  password is wrong.
* Outcomes are reported in the result envelope (``success`` / ``error``)
  with HTTP 200; only a missing or bad JWT on /auth/me and /auth/logout
  yields 401.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from core.results import ActionResult
from core.security import get_client_ip, get_current_user
from models.user import User
from auth import service
from auth.schemas import (
    LoginRequest,
    LoginResult,
    RegisterRequest,
    ResendTokenRequest,
    SetupAdminRequest,
    UserInfoResponse,
    VerifyTokenRequest,
)

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# POST /auth/register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=ActionResult)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create a pending account and mail its verification code."""
    return service.register(db, body.email, body.password, body.name, body.phone)


# ---------------------------------------------------------------------------
# POST /auth/setup-admin  – first-run administrator credentials
# ---------------------------------------------------------------------------


@router.post("/setup-admin", response_model=ActionResult)
def setup_admin(body: SetupAdminRequest, db: Session = Depends(get_db)):
    return service.setup_admin(db, body.setup_token, body.email, body.password, body.name)


# ---------------------------------------------------------------------------
# POST /auth/verify-token
# ---------------------------------------------------------------------------


@router.post("/verify-token", response_model=ActionResult)
def verify_token(body: VerifyTokenRequest, db: Session = Depends(get_db)):
    return service.verify_token(db, body.token)


# ---------------------------------------------------------------------------
# POST /auth/resend-token
# ---------------------------------------------------------------------------


@router.post("/resend-token", response_model=ActionResult)
def resend_token(body: ResendTokenRequest, db: Session = Depends(get_db)):
    return service.resend_token(db, body.email)


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResult)
def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Authenticate and return a signed JWT."""
    return service.login(db, body.email, body.password, get_client_ip(request))


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=ActionResult)
def logout(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return service.logout(db, current_user.id)


# ---------------------------------------------------------------------------
# GET /auth/me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserInfoResponse)
def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's public profile (no secrets)."""
    return current_user
