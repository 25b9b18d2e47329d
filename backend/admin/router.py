# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – member approval, suspension, chat moderation, audit trail.

Every endpoint in this router is guarded by ``require_admin``.  A request
that carries a valid JWT but belongs to a ``user`` role will receive 403
before any business logic runs.
"""

import io
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

from database import get_db
from core.results import ActionResult
from core.security import get_client_ip, require_admin
from models.user import User
from models.audit_log import AuditLog
from admin import service
from admin.schemas import AuditLogListResponse, AuditLogRow
from chat.live import hub
from chat.service import clear_all_chat_history

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# POST /admin/users/{id}/authorize  – approve a verified registration
# ---------------------------------------------------------------------------


@router.post("/users/{user_id}/authorize", response_model=ActionResult)
def authorize_user(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return service.authorize_user(db, user_id, admin.id, get_client_ip(request))


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}/suspend
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/suspend", response_model=ActionResult)
def suspend_user(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Set ``status = suspended``.  The user can no longer log in, and any
    existing tokens will be rejected by ``get_current_user``.
    """
    return service.suspend_user(db, user_id, admin.id, get_client_ip(request))


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}/reactivate
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/reactivate", response_model=ActionResult)
def reactivate_user(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return service.reactivate_user(db, user_id, admin.id, get_client_ip(request))


# ---------------------------------------------------------------------------
# DELETE /admin/chats/messages  – wipe every conversation's history
# ---------------------------------------------------------------------------


@router.delete("/chats/messages", response_model=ActionResult)
def clear_all_messages(
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = clear_all_chat_history(db, admin.id, get_client_ip(request))
    if result.success:
        hub.publish_all({"type": "cleared"})
    return result


# ---------------------------------------------------------------------------
# GET /admin/audit-logs  – audit trail with optional filters
# ---------------------------------------------------------------------------


def _audit_query(db: Session, action: Optional[str], since: Optional[datetime], until: Optional[datetime]):
    q = db.query(AuditLog)
    if action:
        q = q.filter(AuditLog.action == action)
    if since:
        q = q.filter(AuditLog.created_at >= since)
    if until:
        q = q.filter(AuditLog.created_at <= until)
    return q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())


def _emails(db: Session) -> dict[str, Optional[str]]:
    return {uid: email for uid, email in db.query(User.id, User.email).all()}


@router.get("/audit-logs", response_model=AuditLogListResponse)
def list_audit_logs(
    action: Optional[str] = Query(None, description="Exact action name, e.g. authorize_user"),
    since: Optional[datetime] = Query(None, description="ISO-8601 start of time window"),
    until: Optional[datetime] = Query(None, description="ISO-8601 end of time window"),
    limit: int = Query(200, ge=1, le=1000),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Return audit log rows newest-first.

    * ``action`` – only rows with this action name.
    * ``since`` / ``until`` – ISO-8601 bounds on ``created_at``.
    * ``limit`` – max rows returned (default 200, cap 1000).
    """
    rows = _audit_query(db, action, since, until).limit(limit).all()
    emails = _emails(db)

    return AuditLogListResponse(logs=[
        AuditLogRow(
            id=row.id,
            actor_email=emails.get(row.actor_id),
            target_email=emails.get(row.target_user_id),
            action=row.action,
            detail=row.detail,
            request_ip=row.request_ip,
            created_at=row.created_at,
        )
        for row in rows
    ])


# ---------------------------------------------------------------------------
# GET /admin/audit-logs/export  – download audit logs as Excel
# ---------------------------------------------------------------------------

_AUDIT_HEADER_FONT  = Font(name="Calibri", size=11, bold=True, color="FFFFFF")
_AUDIT_HEADER_FILL  = PatternFill(start_color="26A69A", end_color="26A69A", fill_type="solid")
_AUDIT_HEADER_ALIGN = Alignment(horizontal="center", vertical="center")
_AUDIT_THIN_BORDER  = Border(
    left=Side(style="thin", color="CCCCCC"),
    right=Side(style="thin", color="CCCCCC"),
    top=Side(style="thin", color="CCCCCC"),
    bottom=Side(style="thin", color="CCCCCC"),
)

_AUDIT_EXPORT_HEADERS = ["ID", "Time", "Actor", "Target", "Action", "Request IP", "Details"]
_AUDIT_COL_MIN = [8, 20, 28, 28, 22, 16, 50]


@router.get("/audit-logs/export")
def export_audit_logs(
    action: Optional[str] = Query(None),
    since: Optional[datetime] = Query(None),
    until: Optional[datetime] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Export the (filtered) audit trail as an Excel file."""
    rows = _audit_query(db, action, since, until).all()
    emails = _emails(db)

    wb = Workbook()
    ws = wb.active
    ws.title = "Audit Logs"

    ws.append(_AUDIT_EXPORT_HEADERS)
    for cell in ws[1]:
        cell.font = _AUDIT_HEADER_FONT
        cell.fill = _AUDIT_HEADER_FILL
        cell.alignment = _AUDIT_HEADER_ALIGN
        cell.border = _AUDIT_THIN_BORDER

    for row in rows:
        ws.append([
            row.id,
            row.created_at.strftime("%Y-%m-%d %H:%M:%S") if row.created_at else "",
            emails.get(row.actor_id) or "",
            emails.get(row.target_user_id) or "",
            row.action,
            row.request_ip or "",
            row.detail or "",
        ])
        row_idx = ws.max_row
        for col_idx in range(1, len(_AUDIT_EXPORT_HEADERS) + 1):
            ws.cell(row=row_idx, column=col_idx).border = _AUDIT_THIN_BORDER

    for col_idx, min_w in enumerate(_AUDIT_COL_MIN, start=1):
        ws.column_dimensions[chr(64 + col_idx)].width = min_w

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    wb.close()

    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="audit-logs.xlsx"'},
    )
