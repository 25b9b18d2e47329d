"""
Registration, verification and login.

Covers the account lifecycle from an unused email to an active session,
including the first-run administrator setup.
"""

from datetime import datetime, timedelta, timezone

from auth import service
from conftest import PASSWORD, add_user, auth_headers
from core.results import ErrorCode
from core.security import VERIFICATION_TOKEN_TTL, as_utc, create_setup_token, new_verification_token
from models.audit_log import AuditLog
from models.chat import GROUP_CHAT_ID, Chat
from models.family_member import FamilyMember
from models.user import ADMIN_USER_ID, User


class TestRegister:
    def test_new_email_creates_pending_credential_with_token(self, db, mailbox):
        before = datetime.now(timezone.utc)
        result = service.register(db, "a@x.com", "secret1", "Ana")
        after = datetime.now(timezone.utc)

        assert result.success
        user = db.query(User).filter(User.email == "a@x.com").one()
        assert user.status == "pending"
        assert user.role == "user"
        assert len(user.verification_token) == 24
        expiry = as_utc(user.token_expiry)
        assert before + VERIFICATION_TOKEN_TTL <= expiry + timedelta(seconds=1)
        assert expiry <= after + VERIFICATION_TOKEN_TTL
        assert mailbox.sent == [("a@x.com", user.verification_token)]

    def test_token_expiry_is_exactly_one_hour(self):
        now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        token, expiry = new_verification_token(now)
        assert len(token) == 24
        assert expiry - now == timedelta(hours=1)

    def test_missing_fields_is_validation_failure(self, db, mailbox):
        result = service.register(db, "a@x.com", "", "Ana")
        assert not result.success
        assert result.error == ErrorCode.VALIDATION
        assert mailbox.sent == []

    def test_existing_active_email_conflicts(self, db, ana):
        result = service.register(db, ana.email, "secret1", "Other Ana")
        assert not result.success
        assert result.error == ErrorCode.CONFLICT

    def test_existing_unverified_email_gets_fresh_token(self, db, mailbox):
        service.register(db, "a@x.com", "secret1", "Ana")
        first = mailbox.last_token("a@x.com")

        result = service.register(db, "a@x.com", "secret1", "Ana")

        assert result.success
        second = mailbox.last_token("a@x.com")
        assert second != first
        assert db.query(User).filter(User.email == "a@x.com").count() == 1

    def test_mail_failure_keeps_credential_for_resend(self, db, mailbox):
        mailbox.fail = True
        result = service.register(db, "a@x.com", "secret1", "Ana")

        assert not result.success
        assert result.error == ErrorCode.MAIL_FAILURE
        user = db.query(User).filter(User.email == "a@x.com").one()
        assert user.status == "pending"

        mailbox.fail = False
        assert service.resend_token(db, "a@x.com").success
        assert len(mailbox.sent) == 1

    def test_register_is_audited(self, db):
        service.register(db, "a@x.com", "secret1", "Ana")
        user = db.query(User).filter(User.email == "a@x.com").one()
        row = db.query(AuditLog).filter(AuditLog.action == "register").one()
        assert row.target_user_id == user.id


class TestVerifyToken:
    def test_register_verify_authorize_scenario(self, db, mailbox, admin):
        from admin.service import authorize_user

        assert service.register(db, "a@x.com", "secret1", "Ana").success
        token = mailbox.last_token("a@x.com")

        wrong = service.verify_token(db, "0" * 24)
        assert not wrong.success
        assert wrong.error == ErrorCode.TOKEN_INVALID

        assert service.verify_token(db, token).success
        user = db.query(User).filter(User.email == "a@x.com").one()
        assert user.verification_token is None
        assert user.token_expiry is None
        assert user.status == "pending"

        assert authorize_user(db, user.id, admin.id).success
        db.expire_all()
        profile = db.get(FamilyMember, user.id)
        assert profile.location_name == "Unknown location"
        assert (profile.location_lat, profile.location_lng) == (-34.723, -58.254)
        assert user.id in db.get(Chat, GROUP_CHAT_ID).member_ids

    def test_wrong_length_is_invalid(self, db):
        result = service.verify_token(db, "short")
        assert result.error == ErrorCode.TOKEN_INVALID

    def test_expired_token_reports_expiry_not_missing(self, db, mailbox):
        service.register(db, "a@x.com", "secret1", "Ana")
        token = mailbox.last_token("a@x.com")
        user = db.query(User).filter(User.email == "a@x.com").one()
        user.token_expiry = datetime.now(timezone.utc) - timedelta(minutes=1)
        db.commit()

        result = service.verify_token(db, token)

        assert not result.success
        assert result.error == ErrorCode.TOKEN_EXPIRED
        db.refresh(user)
        assert user.verification_token == token

    def test_used_token_cannot_be_replayed(self, db, mailbox):
        service.register(db, "a@x.com", "secret1", "Ana")
        token = mailbox.last_token("a@x.com")
        assert service.verify_token(db, token).success
        assert service.verify_token(db, token).error == ErrorCode.TOKEN_INVALID


class TestResendToken:
    def test_empty_email_is_validation_failure(self, db):
        assert service.resend_token(db, "").error == ErrorCode.VALIDATION

    def test_unknown_email(self, db):
        assert service.resend_token(db, "nobody@x.com").error == ErrorCode.USER_NOT_FOUND

    def test_already_verified_needs_admin_approval(self, db):
        add_user(db, "wait@x.com", "Waiting", status="pending")
        result = service.resend_token(db, "wait@x.com")
        assert result.error == ErrorCode.NEEDS_ADMIN_APPROVAL

    def test_replaces_token(self, db, mailbox):
        service.register(db, "a@x.com", "secret1", "Ana")
        first = mailbox.last_token("a@x.com")
        assert service.resend_token(db, "a@x.com").success
        assert mailbox.last_token("a@x.com") != first
        assert service.verify_token(db, first).error == ErrorCode.TOKEN_INVALID


class TestLogin:
    def test_active_user_gets_session_token(self, db, ana):
        result = service.login(db, ana.email, PASSWORD, "10.0.0.1")

        assert result.success
        assert result.access_token
        assert result.token_type == "bearer"
        assert result.user_id == ana.id
        assert not result.is_admin
        db.expire_all()
        assert db.get(FamilyMember, ana.id).is_online
        assert db.get(User, ana.id).last_login is not None
        row = db.query(AuditLog).filter(AuditLog.action == "user_login").one()
        assert row.request_ip == "10.0.0.1"

    def test_wrong_password_and_unknown_email_look_the_same(self, db, ana):
        bad_pw = service.login(db, ana.email, "nope")
        unknown = service.login(db, "ghost@x.com", PASSWORD)
        assert bad_pw.error == unknown.error == ErrorCode.INVALID_CREDENTIALS
        assert bad_pw.message == unknown.message

    def test_unverified_user_must_verify(self, db):
        add_user(db, "new@x.com", "New", status="pending", token="a" * 24)
        result = service.login(db, "new@x.com", PASSWORD)
        assert result.error == ErrorCode.NEEDS_VERIFICATION
        assert result.needs_verification

    def test_verified_pending_user_waits_for_admin(self, db):
        add_user(db, "wait@x.com", "Waiting", status="pending")
        result = service.login(db, "wait@x.com", PASSWORD)
        assert result.error == ErrorCode.NEEDS_ADMIN_APPROVAL
        assert not result.needs_verification

    def test_suspended_user_cannot_log_in(self, db):
        add_user(db, "gone@x.com", "Gone", status="suspended")
        result = service.login(db, "gone@x.com", PASSWORD)
        assert not result.success
        assert result.error == ErrorCode.ACCOUNT_SUSPENDED
        assert result.access_token is None

    def test_logout_marks_member_offline(self, db, ana):
        service.login(db, ana.email, PASSWORD)
        assert service.logout(db, ana.id).success
        db.expire_all()
        assert not db.get(FamilyMember, ana.id).is_online


def _setup_token(db) -> str:
    return service.login(db, "bootstrap@famlocator.test", "bootstrap-pass").setup_token


class TestAdminBootstrap:
    def test_configured_pair_starts_first_login(self, db):
        result = service.login(db, "bootstrap@famlocator.test", "bootstrap-pass")
        assert result.success
        assert result.first_login
        assert result.user_id == ADMIN_USER_ID
        assert result.is_admin
        assert result.access_token is None
        assert result.setup_token

    def test_setup_then_verify_activates_admin(self, db, mailbox):
        result = service.setup_admin(db, _setup_token(db), "boss@x.com", "boss-pass", "Boss")
        assert result.success
        admin = db.get(User, ADMIN_USER_ID)
        assert admin.role == "admin"
        assert admin.status == "pending"

        assert service.verify_token(db, mailbox.last_token("boss@x.com")).success

        db.expire_all()
        admin = db.get(User, ADMIN_USER_ID)
        assert admin.status == "active"
        profile = db.get(FamilyMember, ADMIN_USER_ID)
        assert profile.is_admin
        assert db.get(Chat, GROUP_CHAT_ID).member_ids == [ADMIN_USER_ID]

        login = service.login(db, "boss@x.com", "boss-pass")
        assert login.success and login.is_admin and not login.first_login

    def test_setup_without_bootstrap_login_is_refused(self, db, mailbox):
        result = service.setup_admin(db, "", "evil@x.com", "evil", "Mallory")

        assert not result.success
        assert result.error == ErrorCode.FORBIDDEN
        assert db.get(User, ADMIN_USER_ID) is None
        assert mailbox.sent == []

    def test_session_token_does_not_unlock_setup(self, db, ana):
        session = service.login(db, ana.email, PASSWORD).access_token
        result = service.setup_admin(db, session, "evil@x.com", "evil", "Mallory")
        assert result.error == ErrorCode.FORBIDDEN

    def test_bootstrap_pair_stops_working_after_setup(self, db, mailbox):
        service.setup_admin(db, _setup_token(db), "boss@x.com", "boss-pass", "Boss")
        result = service.login(db, "bootstrap@famlocator.test", "bootstrap-pass")
        assert not result.first_login
        assert result.setup_token is None
        assert result.error == ErrorCode.INVALID_CREDENTIALS

    def test_setup_refused_once_admin_active(self, db, admin):
        token = create_setup_token(ADMIN_USER_ID)
        result = service.setup_admin(db, token, "other@x.com", "pw", "Other")
        assert result.error == ErrorCode.CONFLICT

    def test_setup_refuses_email_of_another_account(self, db, ana):
        result = service.setup_admin(db, _setup_token(db), ana.email, "pw", "Boss")
        assert result.error == ErrorCode.CONFLICT

    def test_stranger_cannot_take_over_pending_setup(self, client, mailbox):
        r = client.post("/auth/login", json={"email": "bootstrap@famlocator.test", "password": "bootstrap-pass"})
        token = r.json()["setup_token"]
        r = client.post(
            "/auth/setup-admin",
            json={"setup_token": token, "email": "boss@x.com", "password": "boss-pass", "name": "Boss"},
        )
        assert r.json()["success"] is True

        r = client.post(
            "/auth/setup-admin",
            json={"setup_token": "forged", "email": "evil@x.com", "password": "evil", "name": "Mallory"},
        )
        assert r.json()["error"] == "forbidden"
        assert [to for to, _ in mailbox.sent] == ["boss@x.com"]

    def test_setup_token_is_not_a_session(self, client):
        headers = {"Authorization": f"Bearer {create_setup_token(ADMIN_USER_ID)}"}
        assert client.get("/auth/me", headers=headers).status_code == 401



class TestAuthRoutes:
    def test_register_and_login_over_http(self, client, mailbox):
        r = client.post("/auth/register", json={"email": "a@x.com", "password": "secret1", "name": "Ana"})
        assert r.status_code == 200
        assert r.json()["success"] is True

        r = client.post("/auth/login", json={"email": "a@x.com", "password": "secret1"})
        body = r.json()
        assert body["success"] is False
        assert body["error"] == "needs_verification"

        r = client.post("/auth/verify-token", json={"token": mailbox.last_token("a@x.com")})
        assert r.json()["success"] is True

    def test_me_requires_token(self, client):
        assert client.get("/auth/me").status_code == 401

    def test_me_returns_caller(self, client, ana):
        r = client.get("/auth/me", headers=auth_headers(ana))
        assert r.status_code == 200
        assert r.json()["email"] == ana.email
        assert "password_hash" not in r.json()

    def test_suspended_token_is_rejected(self, client, db, ana):
        headers = auth_headers(ana)
        ana.status = "suspended"
        db.commit()
        assert client.get("/auth/me", headers=headers).status_code == 401
