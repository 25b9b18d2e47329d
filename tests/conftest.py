"""
Pytest configuration.

Provides a throw-away SQLite database, a recording mail transport and
factories for users at each lifecycle stage.
"""

import os
import tempfile
from pathlib import Path

# Settings are read once at import time, so the environment has to be in
# place before any application module is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="famlocator-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{(_DB_DIR / 'test.db').as_posix()}"
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["ADMIN_EMAIL"] = "bootstrap@famlocator.test"
os.environ["ADMIN_PASSWORD"] = "bootstrap-pass"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["SMTP_HOST"] = "smtp.famlocator.test"
os.environ["MAPS_API_KEY"] = "maps-test-key"

import pytest
from fastapi.testclient import TestClient

from core import mailer
from core.security import create_access_token, hash_password
from database import Base, SessionLocal, engine
from models.audit_log import AuditLog  # noqa: F401
from models.chat import Chat, ChatMember  # noqa: F401
from models.family_member import FamilyMember  # noqa: F401
from models.message import Message  # noqa: F401
from models.site_setting import SiteSetting  # noqa: F401
from models.user import ADMIN_USER_ID, User
from chat.service import ensure_group_membership
from members.service import new_profile

PASSWORD = "secret1"


# ==================== Database fixtures ====================


@pytest.fixture(autouse=True)
def _schema():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ==================== Mail fixtures ====================


class Mailbox:
    """Records every verification email instead of sending it."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    def __call__(self, to_email: str, token: str) -> None:
        if self.fail:
            raise mailer.MailDeliveryError("relay unreachable")
        self.sent.append((to_email, token))

    def last_token(self, email: str) -> str:
        return [token for to, token in self.sent if to == email][-1]


@pytest.fixture(autouse=True)
def mailbox(monkeypatch):
    box = Mailbox()
    monkeypatch.setattr(mailer, "send_verification_email", box)
    return box


# ==================== HTTP fixtures ====================


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as c:
        yield c


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": user.email, "user_id": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


# ==================== User factories ====================


def add_user(
    db,
    email: str,
    name: str,
    status: str = "active",
    role: str = "user",
    user_id: str = None,
    with_profile: bool = None,
    token: str = None,
) -> User:
    """
    Insert a credential directly.  Active users also get a profile and group
    chat membership, as authorization would give them.
    """
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
        status=status,
        verification_token=token,
    )
    if user_id:
        user.id = user_id
    db.add(user)
    db.flush()
    if with_profile is None:
        with_profile = status != "pending"
    if with_profile:
        db.add(new_profile(user, is_admin=role == "admin"))
        ensure_group_membership(db, user.id)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db):
    return add_user(db, "admin@famlocator.test", "Admin", role="admin", user_id=ADMIN_USER_ID)


@pytest.fixture
def ana(db):
    return add_user(db, "ana@famlocator.test", "Ana")


@pytest.fixture
def bruno(db):
    return add_user(db, "bruno@famlocator.test", "Bruno")
