"""Fetch one chat: session row + all its parts in a single ordered query."""
from __future__ import annotations

import logging
from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chat_store.decoder import format_messages
from chat_store.parts import Message
from models.chat_session import ChatSession
from models.message_part import MessagePart

logger = logging.getLogger("chatstore.fetch")


class ChatNotFoundError(LookupError):
    """Chat missing, not owned by the caller, or unreadable."""

    def __init__(self, chat_id: str):
        self.chat_id = chat_id
        super().__init__(f"Chat {chat_id} not found")


class ChatView(BaseModel):
    id: str
    user_id: str
    chat_title: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    messages: list[Message] = Field(default_factory=list)


async def fetch_chat(db: AsyncSession, chat_id: str, *, user_id: str | None = None) -> ChatView:
    """Load a chat with its messages, parts ordered by (message_seq, order).

    Query failures are logged and reported as ChatNotFoundError like a missing chat.
    """
    stmt = (
        select(ChatSession, MessagePart)
        .outerjoin(MessagePart, MessagePart.chat_session_id == ChatSession.id)
        .where(ChatSession.id == chat_id)
        .order_by(MessagePart.message_seq, MessagePart.order, MessagePart.created_at)
    )
    if user_id is not None:
        stmt = stmt.where(ChatSession.user_id == user_id)

    try:
        result = await db.execute(stmt)
        pairs = result.all()
    except SQLAlchemyError as exc:
        logger.error("Error loading chat %s: %s", chat_id, exc)
        raise ChatNotFoundError(chat_id) from exc

    if not pairs:
        raise ChatNotFoundError(chat_id)

    chat = pairs[0][0]
    parts = [part for _, part in pairs if part is not None]

    return ChatView(
        id=chat.id,
        user_id=chat.user_id,
        chat_title=chat.chat_title,
        created_at=chat.created_at,
        updated_at=chat.updated_at,
        messages=format_messages(parts),
    )
