# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""User credential ORM model – login identity and account lifecycle."""

import uuid

from sqlalchemy import Column, String, Enum, DateTime
from sqlalchemy.sql import func

from database import Base

# Fixed key of the bootstrap administrator's credential row
ADMIN_USER_ID = "admin_user"


def new_user_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=new_user_id)
    name = Column(String(255), nullable=False, default="")
    phone = Column(String(64), nullable=False, default="")
    email = Column(String(255), unique=True, nullable=True, index=True)
    # passlib embeds the salt in the hash string
    password_hash = Column(String(255), nullable=False, default="")
    role = Column(Enum("admin", "user", name="user_role"), nullable=False, default="user")
    # pending → (email verified) → active ⇄ suspended
    status = Column(
        Enum("pending", "active", "suspended", name="user_status"),
        nullable=False,
        default="pending",
    )
    # Present only while the email address is unverified
    verification_token = Column(String(64), nullable=True, index=True)
    token_expiry = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
