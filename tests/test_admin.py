"""Administrator actions: approval, suspension, chat moderation, audit trail."""

import io

from openpyxl import load_workbook

from admin import service
from conftest import PASSWORD, add_user, auth_headers
from auth.service import login
from core.results import ErrorCode
from models.audit_log import AuditLog
from models.chat import GROUP_CHAT_ID, Chat
from models.family_member import FamilyMember
from models.user import User


class TestAuthorizeUser:
    def test_unknown_user(self, db, admin):
        result = service.authorize_user(db, "missing", admin.id)
        assert result.error == ErrorCode.USER_NOT_FOUND

    def test_unverified_user_cannot_be_authorized(self, db, admin):
        user = add_user(db, "new@x.com", "New", status="pending", token="b" * 24)
        result = service.authorize_user(db, user.id, admin.id)
        assert result.error == ErrorCode.INVALID_STATE
        assert db.get(FamilyMember, user.id) is None

    def test_second_authorization_fails(self, db, admin):
        user = add_user(db, "wait@x.com", "Waiting", status="pending")
        assert service.authorize_user(db, user.id, admin.id).success
        again = service.authorize_user(db, user.id, admin.id)
        assert not again.success
        assert again.error == ErrorCode.INVALID_STATE

    def test_creates_group_chat_when_missing(self, db):
        user = add_user(db, "wait@x.com", "Waiting", status="pending")
        assert db.get(Chat, GROUP_CHAT_ID) is None

        assert service.authorize_user(db, user.id).success

        db.expire_all()
        group = db.get(Chat, GROUP_CHAT_ID)
        assert group.is_group
        assert group.member_ids == [user.id]

    def test_writes_everything_in_one_commit(self, db, admin):
        user = add_user(db, "wait@x.com", "Waiting", status="pending")
        service.authorize_user(db, user.id, admin.id, "10.1.1.1")

        db.expire_all()
        assert db.get(User, user.id).status == "active"
        assert db.get(FamilyMember, user.id) is not None
        row = db.query(AuditLog).filter(AuditLog.action == "authorize_user").one()
        assert row.actor_id == admin.id
        assert row.target_user_id == user.id
        assert row.request_ip == "10.1.1.1"

    def test_failure_leaves_no_partial_rows(self, db, admin, monkeypatch):
        user = add_user(db, "wait@x.com", "Waiting", status="pending")

        def broken(*args, **kwargs):
            raise RuntimeError("store unavailable")

        monkeypatch.setattr(service, "ensure_group_membership", broken)
        result = service.authorize_user(db, user.id, admin.id)

        assert result.error == ErrorCode.INTERNAL
        db.expire_all()
        assert db.get(User, user.id).status == "pending"
        assert db.get(FamilyMember, user.id) is None


class TestSuspension:
    def test_suspend_blocks_login_and_marks_offline(self, db, admin, ana):
        login(db, ana.email, PASSWORD)
        assert service.suspend_user(db, ana.id, admin.id).success

        db.expire_all()
        assert db.get(User, ana.id).status == "suspended"
        assert not db.get(FamilyMember, ana.id).is_online
        assert login(db, ana.email, PASSWORD).error == ErrorCode.ACCOUNT_SUSPENDED

    def test_admin_cannot_suspend_themself(self, db, admin):
        result = service.suspend_user(db, admin.id, admin.id)
        assert result.error == ErrorCode.FORBIDDEN

    def test_only_active_users_are_suspended(self, db, admin):
        user = add_user(db, "wait@x.com", "Waiting", status="pending")
        assert service.suspend_user(db, user.id, admin.id).error == ErrorCode.INVALID_STATE

    def test_reactivate(self, db, admin, ana):
        service.suspend_user(db, ana.id, admin.id)
        assert service.reactivate_user(db, ana.id, admin.id).success
        assert login(db, ana.email, PASSWORD).success

    def test_reactivate_requires_suspended(self, db, admin, ana):
        assert service.reactivate_user(db, ana.id, admin.id).error == ErrorCode.INVALID_STATE


class TestAdminRoutes:
    def test_non_admin_gets_403(self, client, ana, bruno):
        r = client.put(f"/admin/users/{bruno.id}/suspend", headers=auth_headers(ana))
        assert r.status_code == 403

    def test_authorize_over_http(self, client, db, admin):
        user = add_user(db, "wait@x.com", "Waiting", status="pending")
        r = client.post(f"/admin/users/{user.id}/authorize", headers=auth_headers(admin))
        assert r.status_code == 200
        assert r.json()["success"] is True

    def test_audit_log_filter_by_action(self, client, db, admin, ana):
        service.suspend_user(db, ana.id, admin.id)
        service.reactivate_user(db, ana.id, admin.id)

        r = client.get("/admin/audit-logs", params={"action": "suspend_user"}, headers=auth_headers(admin))

        logs = r.json()["logs"]
        assert len(logs) == 1
        assert logs[0]["actor_email"] == admin.email
        assert logs[0]["target_email"] == ana.email

    def test_audit_export_is_a_workbook(self, client, db, admin, ana):
        service.suspend_user(db, ana.id, admin.id)

        r = client.get("/admin/audit-logs/export", headers=auth_headers(admin))

        assert r.status_code == 200
        wb = load_workbook(io.BytesIO(r.content))
        ws = wb.active
        assert ws.cell(row=1, column=1).value == "ID"
        assert ws.cell(row=2, column=5).value == "suspend_user"
