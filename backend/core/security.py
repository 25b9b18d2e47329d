# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Central security module.  All credential primitives and auth guards live
here.  No other module should touch hashing or JWT directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Verification tokens                      (secrets, 24 hex chars, 1 hour)
3. JWT creation / decoding                  (PyJWT / HS256)
4. FastAPI dependency guards                (get_current_user, require_admin)
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from core.config import settings
from database import get_db

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """
    Hash a plaintext password with PBKDF2-SHA256 (``password_hash_rounds``,
    600 000 by default).

    The per-password salt is embedded in the returned hash string
    ("$pbkdf2-sha256$<rounds>$<salt>$<digest>").
    """
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a
    pbkdf2_sha256 hash produced by :func:`hash_password`.
    """
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except ValueError:
        # Not a pbkdf2 hash at all (e.g. an empty column)
        return False


# ---------------------------------------------------------------------------
# 2.  Email verification tokens
# ---------------------------------------------------------------------------

VERIFICATION_TOKEN_LENGTH = 24
VERIFICATION_TOKEN_TTL = timedelta(hours=1)


def new_verification_token(now: Optional[datetime] = None) -> tuple[str, datetime]:
    """
    Return a fresh ``(token, expiry)`` pair.

    The token is 12 random bytes rendered as 24 lowercase hex characters,
    which is URL-safe and easy to paste from an email.
    """
    now = now or datetime.now(timezone.utc)
    return secrets.token_hex(VERIFICATION_TOKEN_LENGTH // 2), now + VERIFICATION_TOKEN_TTL


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from backends that drop tzinfo."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# 3.  JWT – access tokens
# ---------------------------------------------------------------------------


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a JWT with HS256.

    *data* should contain at minimum: sub (email), user_id, role.
    An ``exp`` claim is added automatically.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode["exp"] = expire
    return _jwt.encode(to_encode, settings.secret_key, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT.  Raises HTTP 401 on any failure (expired,
    bad signature, malformed).
    """
    try:
        return _jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    except (_jwt.ExpiredSignatureError, _jwt.InvalidTokenError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


# Scoped token handed out by the bootstrap login; only /auth/setup-admin takes it
ADMIN_SETUP_SCOPE = "admin_setup"
ADMIN_SETUP_TOKEN_TTL = timedelta(minutes=15)


def create_setup_token(user_id: str) -> str:
    return create_access_token(
        {"user_id": user_id, "scope": ADMIN_SETUP_SCOPE},
        expires_delta=ADMIN_SETUP_TOKEN_TTL,
    )


def is_valid_setup_token(token: Optional[str], user_id: str) -> bool:
    """True only for an unexpired setup token issued for *user_id*."""
    if not token:
        return False
    try:
        payload = _jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    except _jwt.InvalidTokenError:
        return False
    return payload.get("scope") == ADMIN_SETUP_SCOPE and payload.get("user_id") == user_id


# ---------------------------------------------------------------------------
# 4.  FastAPI dependency guards
# ---------------------------------------------------------------------------

# The tokenUrl here is only used by the auto-generated OpenAPI docs;
# the actual login endpoint is POST /auth/login.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def load_active_user(token: str, db):
    """
    Resolve a raw JWT to an active User row.  Shared by the HTTP guard and
    the chat WebSocket, which receives its token as a query parameter.
    """
    payload = decode_access_token(token)
    # Scoped tokens (admin setup) are not sessions
    if payload.get("scope"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    # Lazy import to avoid circular dependency at module load time
    from models.user import User  # noqa: E402

    user = db.get(User, payload.get("user_id"))
    if not user or user.status != "active":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db=Depends(get_db),
):
    """
    Dependency: decode the JWT, load the User row, verify the account is
    active.  Returns the User ORM instance.

    Raises 401 if the token is invalid or the user is gone/suspended.
    """
    return load_active_user(token, db)


def require_admin(current_user=Depends(get_current_user)):
    """
    Dependency: wraps :func:`get_current_user` and additionally asserts
    ``role == 'admin'``.  Raises 403 otherwise.
    """
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For header first (for proxies), then falls back to client host.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
