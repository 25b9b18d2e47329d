# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Chat endpoints – conversations, messages and the live message stream.

Access rules
------------
* Every endpoint requires a valid JWT.
* Reading or clearing a conversation requires membership (admins may clear
  any conversation); sending always requires membership.
* Sending is refused while the site-wide chat toggle is off.
"""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from database import SessionLocal, get_db
from core.logger import logger
from core.results import ActionResult, ErrorCode
from core.security import get_client_ip, get_current_user, load_active_user
from models.chat import Chat
from models.family_member import DEFAULT_AVATAR, FamilyMember
from models.user import User
from chat import service
from chat.live import hub
from chat.schemas import (
    ChatListResult,
    ChatResult,
    CreatePrivateChat,
    MessageListResult,
    MessageResult,
    SendMessageRequest,
)
from site_config.service import get_site_settings

router = APIRouter(prefix="/chats", tags=["chat"])


def _guard_member(db: Session, chat_id: str, user: User, allow_admin: bool = False) -> None:
    """
    403 when the conversation exists and *user* is not in it.  Unknown ids
    fall through so the service reports them as not found.
    """
    if db.get(Chat, chat_id) is None:
        return
    if allow_admin and user.role == "admin":
        return
    if not service.is_member(db, chat_id, user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


# ---------------------------------------------------------------------------
# GET /chats  – conversations of the current user
# ---------------------------------------------------------------------------


@router.get("", response_model=ChatListResult)
def list_chats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return service.list_chats_for_user(db, current_user.id)


# ---------------------------------------------------------------------------
# POST /chats/private  – open (or reopen) a one-to-one conversation
# ---------------------------------------------------------------------------


@router.post("/private", response_model=ChatResult)
def open_private_chat(
    body: CreatePrivateChat,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return service.get_or_create_chat(db, current_user.id, body.member_id)


# ---------------------------------------------------------------------------
# GET /chats/{id}/messages  – full history, oldest first
# ---------------------------------------------------------------------------


@router.get("/{chat_id}/messages", response_model=MessageListResult)
def list_messages(
    chat_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _guard_member(db, chat_id, current_user)
    return service.list_messages(db, chat_id)


# ---------------------------------------------------------------------------
# POST /chats/{id}/messages  – send a message
# ---------------------------------------------------------------------------


@router.post("/{chat_id}/messages", response_model=MessageResult)
def send_message(
    chat_id: str,
    body: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    site = get_site_settings(db)
    if site.success and not site.settings.is_chat_enabled:
        return MessageResult.fail(ErrorCode.CHAT_DISABLED, "Chat is disabled for this site.")

    _guard_member(db, chat_id, current_user)

    profile = db.get(FamilyMember, current_user.id)
    result = service.send_message(
        db,
        chat_id,
        current_user.id,
        profile.name if profile else current_user.name,
        profile.avatar if profile else DEFAULT_AVATAR,
        body.text,
    )
    if result.success and result.sent:
        hub.publish(chat_id, {"type": "added", "message": result.sent.model_dump(mode="json")})
    return result


# ---------------------------------------------------------------------------
# DELETE /chats/{id}  – delete a private conversation
# ---------------------------------------------------------------------------


@router.delete("/{chat_id}", response_model=ActionResult)
def delete_chat(
    chat_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = service.delete_private_chat(db, chat_id, current_user.id, get_client_ip(request))
    if result.success:
        hub.publish(chat_id, {"type": "cleared"})
    return result


# ---------------------------------------------------------------------------
# DELETE /chats/{id}/messages  – clear one conversation's history
# ---------------------------------------------------------------------------


@router.delete("/{chat_id}/messages", response_model=ActionResult)
def clear_chat_history(
    chat_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _guard_member(db, chat_id, current_user, allow_admin=True)
    result = service.clear_private_chat_history(db, chat_id, current_user.id, get_client_ip(request))
    if result.success:
        hub.publish(chat_id, {"type": "cleared"})
    return result


# ---------------------------------------------------------------------------
# WS /chats/{id}/ws?token=<jwt>  – live message stream
# ---------------------------------------------------------------------------


@router.websocket("/{chat_id}/ws")
async def chat_stream(websocket: WebSocket, chat_id: str, token: str = ""):
    """
    Send the current history as one ``snapshot`` frame, then one ``added``
    frame per new message until the client disconnects.
    """
    db = SessionLocal()
    try:
        try:
            user = await run_in_threadpool(load_active_user, token, db)
        except HTTPException:
            await websocket.close(code=1008, reason="Invalid token")
            return

        if not await run_in_threadpool(service.is_member, db, chat_id, user.id):
            await websocket.close(code=1008, reason="Access denied")
            return

        await websocket.accept()
        # Subscribe before reading history so nothing sent in between is lost
        sub = hub.subscribe(chat_id, user.id)
        try:
            history = await run_in_threadpool(service.load_messages, db, chat_id)
        except Exception:
            hub.unsubscribe(sub)
            logger.exception("Chat stream %s: history could not be loaded", chat_id)
            await websocket.close(code=1011)
            return
    finally:
        db.close()

    last_seen = history[-1].id if history else 0

    async def _pump():
        await websocket.send_json({
            "type": "snapshot",
            "messages": [m.model_dump(mode="json") for m in history],
        })
        while True:
            frame = await sub.queue.get()
            if frame is None:
                # Fell too far behind; the client reconnects for a fresh snapshot
                await websocket.close(code=1013, reason="Too far behind")
                return
            # Already part of the snapshot
            if frame["type"] == "added" and frame["message"]["id"] <= last_seen:
                continue
            await websocket.send_json(frame)

    async def _drain():
        # Inbound frames carry nothing; reading them is how a close is noticed
        while True:
            await websocket.receive_text()

    tasks = [asyncio.create_task(_pump()), asyncio.create_task(_drain())]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            exc = task.exception()
            if exc and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Chat stream %s for %s ended: %r", chat_id, user.id, exc)
    finally:
        hub.unsubscribe(sub)
