"""Chat sessions — one row per conversation, owner + optional title.

Created by the first persist of a conversation; updated_at refreshed on every persist.
Message parts hang off it with ON DELETE CASCADE.
"""
from __future__ import annotations

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin


class ChatSession(TimestampMixin, Base):
    __tablename__ = "chat_sessions"

    __table_args__ = (
        Index("ix_chat_sessions_user_created", "user_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)   # UUID from the client
    user_id: Mapped[str] = mapped_column(String(64))
    chat_title: Mapped[str | None] = mapped_column(String(200), default=None)

    parts = relationship(
        "MessagePart",
        back_populates="chat_session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<ChatSession {self.id} user={self.user_id}>"
