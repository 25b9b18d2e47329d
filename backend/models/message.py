# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Message ORM model.  Sender name and avatar are snapshots taken at send time."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from database import Base


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(
        String(160),
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender_id = Column(String(64), nullable=False, index=True)
    sender_name = Column(String(255), nullable=False)
    sender_avatar = Column(String(2048), nullable=False, default="")
    text = Column(Text, nullable=False)
    # Assigned by the database server, never by the client
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
