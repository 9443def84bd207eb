"""Chat session management — history sidebar previews, rename, delete.

Previews are grouped into date buckets (today, yesterday, last 7 days, ...)
evaluated in the configured timezone.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chat_store.config import NO_MESSAGES_PREVIEW
from config import settings
from models.chat_session import ChatSession
from models.message_part import MessagePart

logger = logging.getLogger("chatstore.sessions")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ChatPreview(BaseModel):
    id: str
    first_message: str
    created_at: datetime


class CategorizedChats(BaseModel):
    today: list[ChatPreview] = Field(default_factory=list)
    yesterday: list[ChatPreview] = Field(default_factory=list)
    last_7_days: list[ChatPreview] = Field(default_factory=list)
    last_30_days: list[ChatPreview] = Field(default_factory=list)
    last_2_months: list[ChatPreview] = Field(default_factory=list)
    older: list[ChatPreview] = Field(default_factory=list)


class ChatPreviewPage(BaseModel):
    chat_previews: list[ChatPreview] = Field(default_factory=list)
    categorized_chats: CategorizedChats = Field(default_factory=CategorizedChats)


class ChatTitleUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    chat_id: UUID
    title: str = Field(min_length=1, max_length=200)


# ---------------------------------------------------------------------------
# Date buckets
# ---------------------------------------------------------------------------

def _as_utc(ts: datetime) -> datetime:
    # stored naive, in UTC
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


def categorize_chats(
    previews: list[ChatPreview],
    now: datetime | None = None,
    tz_name: str | None = None,
) -> CategorizedChats:
    """Split previews into sidebar buckets by creation date."""
    tz = ZoneInfo(tz_name or settings.CHAT_TIMEZONE)
    now = _as_utc(now or datetime.now(timezone.utc)).astimezone(tz)
    today = now.date()
    yesterday = today - timedelta(days=1)
    seven_days_ago = now - timedelta(days=7)
    thirty_days_ago = now - timedelta(days=30)
    sixty_days_ago = now - timedelta(days=60)

    buckets = CategorizedChats()
    for preview in previews:
        created = _as_utc(preview.created_at).astimezone(tz)
        day = created.date()
        if day == today:
            buckets.today.append(preview)
        elif day == yesterday:
            buckets.yesterday.append(preview)
        elif created > seven_days_ago:
            buckets.last_7_days.append(preview)
        elif created > thirty_days_ago:
            buckets.last_30_days.append(preview)
        elif created > sixty_days_ago:
            buckets.last_2_months.append(preview)
        else:
            buckets.older.append(preview)
    return buckets


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

async def _first_user_texts(db: AsyncSession, chat_ids: list[str]) -> dict[str, str]:
    if not chat_ids:
        return {}
    result = await db.execute(
        select(MessagePart.chat_session_id, MessagePart.text_text)
        .where(
            MessagePart.chat_session_id.in_(chat_ids),
            MessagePart.type == "text",
            MessagePart.role == "user",
            MessagePart.text_text.is_not(None),
        )
        .order_by(MessagePart.chat_session_id, MessagePart.message_seq, MessagePart.order)
    )
    first: dict[str, str] = {}
    for chat_id, text in result.all():
        first.setdefault(chat_id, text)
    return first


async def list_chat_previews(
    db: AsyncSession,
    user_id: str,
    *,
    offset: int = 0,
    limit: int | None = None,
) -> ChatPreviewPage:
    """Newest-first page of the user's chats with a one-line preview each.

    Preview = chat title, else the start of the first user message, else a placeholder.
    Storage errors are logged and give an empty page.
    """
    limit = limit or settings.CHAT_PREVIEWS_PAGE_SIZE
    try:
        result = await db.execute(
            select(ChatSession)
            .where(ChatSession.user_id == user_id)
            .order_by(ChatSession.created_at.desc(), ChatSession.id)
            .offset(offset)
            .limit(limit)
        )
        chats = result.scalars().all()
        first_texts = await _first_user_texts(db, [c.id for c in chats])
    except SQLAlchemyError as exc:
        logger.error("Error listing chats for user %s: %s", user_id, exc)
        return ChatPreviewPage()

    previews = [
        ChatPreview(
            id=chat.id,
            first_message=(
                chat.chat_title
                or (first_texts.get(chat.id) or "")[: settings.CHAT_PREVIEW_LENGTH]
                or NO_MESSAGES_PREVIEW
            ),
            created_at=chat.created_at,
        )
        for chat in chats
    ]
    return ChatPreviewPage(chat_previews=previews, categorized_chats=categorize_chats(previews))


async def update_chat_title(db: AsyncSession, chat_id: str, user_id: str, title: str) -> bool:
    """Rename the user's chat. Raises ValidationError (a ValueError) on bad input.

    Returns False when the chat does not exist or belongs to someone else.
    """
    data = ChatTitleUpdate(chat_id=chat_id, title=title)
    result = await db.execute(
        update(ChatSession)
        .where(ChatSession.id == chat_id, ChatSession.user_id == user_id)
        .values(chat_title=data.title)
    )
    await db.commit()
    updated = result.rowcount > 0
    if updated:
        logger.info("Chat %s renamed", chat_id)
    return updated


async def delete_chat(db: AsyncSession, chat_id: str, user_id: str) -> bool:
    """Delete the user's chat; its parts go with it (ON DELETE CASCADE)."""
    result = await db.execute(
        delete(ChatSession).where(ChatSession.id == chat_id, ChatSession.user_id == user_id)
    )
    await db.commit()
    deleted = result.rowcount > 0
    if deleted:
        logger.info("Chat %s deleted", chat_id)
    return deleted
