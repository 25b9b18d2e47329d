# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for conversations and messages."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from core.results import ActionResult


# -- Requests --------------------------------------------------------------


class CreatePrivateChat(BaseModel):
    member_id: str  # the other participant


class SendMessageRequest(BaseModel):
    text: str


# -- Responses -------------------------------------------------------------


class ChatOut(BaseModel):
    id: str
    name: str
    member_ids: List[str]
    is_group: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MessageOut(BaseModel):
    id: int
    chat_id: str
    sender_id: str
    sender_name: str
    sender_avatar: str
    text: str
    timestamp: datetime

    model_config = {"from_attributes": True}


class ChatResult(ActionResult):
    chat: Optional[ChatOut] = None


class ChatListResult(ActionResult):
    chats: List[ChatOut] = []


class MessageResult(ActionResult):
    # None when the text was blank and nothing was stored
    sent: Optional[MessageOut] = None


class MessageListResult(ActionResult):
    messages: List[MessageOut] = []
