# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from typing import Optional

from pydantic import BaseModel

from core.results import ActionResult


# -- Requests --------------------------------------------------------------


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str
    phone: str = ""


class SetupAdminRequest(BaseModel):
    setup_token: str  # from the first_login response of /auth/login
    email: str
    password: str
    name: str


class LoginRequest(BaseModel):
    email: str
    password: str


class VerifyTokenRequest(BaseModel):
    token: str


class ResendTokenRequest(BaseModel):
    email: str


# -- Responses -------------------------------------------------------------


class LoginResult(ActionResult):
    # True only on the bootstrap path: the caller must run /auth/setup-admin
    first_login: bool = False
    # Short-lived token that /auth/setup-admin requires; bootstrap path only
    setup_token: Optional[str] = None
    needs_verification: bool = False
    user_id: Optional[str] = None
    is_admin: bool = False
    access_token: Optional[str] = None
    token_type: Optional[str] = None  # "bearer" when access_token is set


class UserInfoResponse(BaseModel):
    id: str
    email: Optional[str]
    name: str
    role: str
    status: str

    model_config = {"from_attributes": True}
