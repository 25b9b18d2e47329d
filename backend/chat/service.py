# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Conversations and messages.

There is exactly one group conversation (``general``) that every authorized
member joins, plus at most one private conversation per unordered pair of
members.  The private conversation's key is derived from the sorted pair, so
"get or create" is an upsert on a primary key instead of a lookup-then-insert
race.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.logger import logger
from core.results import ErrorCode, action, ActionResult
from models.audit_log import AuditLog
from models.chat import Chat, ChatMember, GROUP_CHAT_ID, GROUP_CHAT_NAME, private_chat_id
from models.family_member import FamilyMember
from models.message import Message
from chat.schemas import (
    ChatListResult,
    ChatOut,
    ChatResult,
    MessageListResult,
    MessageOut,
    MessageResult,
)

_CHAT_NOT_FOUND = "Conversation not found."


def ensure_group_membership(db: Session, user_id: str) -> Chat:
    """
    Stage (without committing) the group conversation, creating it if it does
    not exist yet, and add *user_id* to its members when missing.  Callers
    commit it together with their own changes.
    """
    group = db.get(Chat, GROUP_CHAT_ID)
    if group is None:
        group = Chat(id=GROUP_CHAT_ID, name=GROUP_CHAT_NAME, is_group=True)
        db.add(group)
    if user_id not in group.member_ids:
        group.members.append(ChatMember(user_id=user_id))
    return group


def is_member(db: Session, chat_id: str, user_id: str) -> bool:
    return db.get(ChatMember, (chat_id, user_id)) is not None


def _chat_out(chat: Chat, name: Optional[str] = None) -> ChatOut:
    return ChatOut(
        id=chat.id,
        name=name or chat.name,
        member_ids=chat.member_ids,
        is_group=chat.is_group,
        created_at=chat.created_at,
    )


@action("get_or_create_chat", ChatResult)
def get_or_create_chat(db: Session, user_a: str, user_b: str) -> ChatResult:
    """
    Return the private conversation between *user_a* and *user_b*, creating
    it on first contact.  The new conversation is named after *user_b*, the
    member being contacted.
    """
    if user_a == user_b:
        return ChatResult.fail(ErrorCode.VALIDATION, "Cannot start a conversation with yourself.")

    chat_id = private_chat_id(user_a, user_b)
    chat = db.get(Chat, chat_id)
    if chat:
        return ChatResult.ok(chat=_chat_out(chat))

    other = db.get(FamilyMember, user_b)
    if not other or not db.get(FamilyMember, user_a):
        return ChatResult.fail(ErrorCode.NOT_FOUND, "Member not found.")

    chat = Chat(id=chat_id, name=other.name, is_group=False)
    chat.members = [ChatMember(user_id=user_a), ChatMember(user_id=user_b)]
    db.add(chat)
    try:
        db.commit()
    except IntegrityError:
        # Another request created the same pair in the meantime
        db.rollback()
        chat = db.get(Chat, chat_id)
        return ChatResult.ok(chat=_chat_out(chat))

    db.refresh(chat)
    logger.info("Private chat %s created", chat_id)
    return ChatResult.ok(chat=_chat_out(chat))


@action("list_chats_for_user", ChatListResult)
def list_chats_for_user(db: Session, user_id: str) -> ChatListResult:
    """Group conversation first, then private ones oldest first."""
    chats = (
        db.query(Chat)
        .join(ChatMember, ChatMember.chat_id == Chat.id)
        .filter(ChatMember.user_id == user_id)
        .all()
    )
    chats.sort(key=lambda c: (not c.is_group, c.created_at, c.id))

    # Private chats are labelled with the other participant's current name
    names = {p.id: p.name for p in db.query(FamilyMember).all()}
    result = []
    for chat in chats:
        label = None
        if not chat.is_group:
            other = next((m for m in chat.member_ids if m != user_id), None)
            label = names.get(other)
        result.append(_chat_out(chat, label))
    return ChatListResult.ok(chats=result)


@action("list_messages", MessageListResult)
def list_messages(db: Session, chat_id: str) -> MessageListResult:
    if not db.get(Chat, chat_id):
        return MessageListResult.fail(ErrorCode.NOT_FOUND, _CHAT_NOT_FOUND)
    return MessageListResult.ok(messages=load_messages(db, chat_id))


def load_messages(db: Session, chat_id: str) -> list[MessageOut]:
    """All messages of a conversation in delivery order."""
    rows = (
        db.query(Message)
        .filter(Message.chat_id == chat_id)
        .order_by(Message.timestamp.asc(), Message.id.asc())
        .all()
    )
    return [MessageOut.model_validate(row) for row in rows]


@action("send_message", MessageResult)
def send_message(
    db: Session,
    chat_id: str,
    sender_id: str,
    sender_name: str,
    sender_avatar: str,
    text: str,
) -> MessageResult:
    """
    Append a message.  Blank text is silently ignored.  Name and avatar are
    stored as given so later profile edits do not rewrite history.
    """
    if not text.strip():
        return MessageResult.ok()

    if not db.get(Chat, chat_id):
        return MessageResult.fail(ErrorCode.NOT_FOUND, _CHAT_NOT_FOUND)

    message = Message(
        chat_id=chat_id,
        sender_id=sender_id,
        sender_name=sender_name,
        sender_avatar=sender_avatar or "",
        text=text,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return MessageResult.ok(sent=MessageOut.model_validate(message))


@action("delete_private_chat")
def delete_private_chat(
    db: Session,
    chat_id: str,
    requester_id: str,
    request_ip: Optional[str] = None,
) -> ActionResult:
    """Remove a private conversation with all its messages in one commit."""
    if chat_id == GROUP_CHAT_ID:
        return ActionResult.fail(ErrorCode.FORBIDDEN, "The group conversation cannot be deleted.")

    chat = db.get(Chat, chat_id)
    if not chat:
        return ActionResult.fail(ErrorCode.NOT_FOUND, _CHAT_NOT_FOUND)
    if chat.is_group:
        return ActionResult.fail(ErrorCode.FORBIDDEN, "The group conversation cannot be deleted.")
    if requester_id not in chat.member_ids:
        return ActionResult.fail(ErrorCode.FORBIDDEN, "You are not a member of this conversation.")

    db.query(Message).filter(Message.chat_id == chat_id).delete(synchronize_session=False)
    db.delete(chat)
    db.add(AuditLog(actor_id=requester_id, action="delete_chat", detail=f"chat={chat_id}", request_ip=request_ip))
    db.commit()
    logger.info("Private chat %s deleted by %s", chat_id, requester_id)
    return ActionResult.ok("Conversation deleted.")


@action("clear_private_chat_history")
def clear_private_chat_history(
    db: Session,
    chat_id: str,
    actor_id: Optional[str] = None,
    request_ip: Optional[str] = None,
) -> ActionResult:
    """Delete every message of one conversation.  Succeeds when already empty."""
    if not db.get(Chat, chat_id):
        return ActionResult.fail(ErrorCode.NOT_FOUND, _CHAT_NOT_FOUND)

    removed = db.query(Message).filter(Message.chat_id == chat_id).delete(synchronize_session=False)
    db.add(AuditLog(
        actor_id=actor_id,
        action="clear_chat_history",
        detail=f"chat={chat_id}, messages={removed}",
        request_ip=request_ip,
    ))
    db.commit()
    logger.info("Chat %s history cleared (%d messages)", chat_id, removed)
    return ActionResult.ok("Chat history cleared.")


@action("clear_all_chat_history")
def clear_all_chat_history(
    db: Session,
    actor_id: Optional[str] = None,
    request_ip: Optional[str] = None,
) -> ActionResult:
    """Delete every message of every conversation.  Succeeds when already empty."""
    removed = db.query(Message).delete(synchronize_session=False)
    db.add(AuditLog(
        actor_id=actor_id,
        action="clear_all_chat_history",
        detail=f"messages={removed}",
        request_ip=request_ip,
    ))
    db.commit()
    logger.info("All chat history cleared (%d messages)", removed)
    return ActionResult.ok("Chat history cleared.")
