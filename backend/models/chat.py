# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Chat and ChatMember ORM models – conversations and who belongs to them."""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base

# The single family-wide conversation
GROUP_CHAT_ID = "general"
GROUP_CHAT_NAME = "General"


def private_chat_id(user_a: str, user_b: str) -> str:
    """Deterministic key for the one private conversation of an unordered pair."""
    first, second = sorted((user_a, user_b))
    return f"private_{first}_{second}"


class Chat(Base):
    __tablename__ = "chats"

    id = Column(String(160), primary_key=True)
    name = Column(String(255), nullable=False)
    is_group = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    members = relationship(
        "ChatMember",
        back_populates="chat",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def member_ids(self) -> list[str]:
        return [m.user_id for m in self.members]


class ChatMember(Base):
    __tablename__ = "chat_members"

    chat_id = Column(String(160), ForeignKey("chats.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    chat = relationship("Chat", back_populates="members")
