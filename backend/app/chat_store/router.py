"""Chat store API.

POST   /api/chat/{chat_id}/messages  — persist a step snapshot (step-completion hook)
GET    /api/chat/{chat_id}           — chat with messages for rendering
GET    /api/chat                     — history sidebar previews
PATCH  /api/chat/{chat_id}/title     — rename
DELETE /api/chat/{chat_id}           — delete with all parts

The caller is identified by the X-User-Id header set by the auth proxy.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chat_store.fetch import ChatNotFoundError, ChatView, fetch_chat
from chat_store.parts import Message
from chat_store.sessions import ChatPreviewPage, delete_chat, list_chat_previews, update_chat_title
from chat_store.writer import ChatOwnershipError, save_messages
from models import get_session

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = logging.getLogger("chatstore.api")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class SaveMessagesRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    messages: list[Message] = Field(default_factory=list)
    is_first_step: bool = False
    assistant_message_id: str | None = None


class SaveMessagesResult(BaseModel):
    chat_id: str
    parts_saved: int


class TitleUpdate(BaseModel):
    title: str


class TitleUpdateResult(BaseModel):
    success: bool


async def current_user_id(x_user_id: str = Header(..., min_length=1)) -> str:
    return x_user_id


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=ChatPreviewPage)
async def list_chats(
    offset: int = Query(0, ge=0),
    limit: int | None = Query(None, ge=1, le=100),
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_session),
) -> ChatPreviewPage:
    """Chat history previews, newest first, with date buckets. Page size defaults to CHAT_PREVIEWS_PAGE_SIZE."""
    return await list_chat_previews(session, user_id, offset=offset, limit=limit)


@router.get("/{chat_id}", response_model=ChatView, response_model_exclude_none=True)
async def get_chat(
    chat_id: str,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_session),
) -> ChatView:
    try:
        return await fetch_chat(session, chat_id, user_id=user_id)
    except ChatNotFoundError:
        raise HTTPException(404, "Chat not found")


@router.post("/{chat_id}/messages", response_model=SaveMessagesResult)
async def save_chat_messages(
    chat_id: str,
    data: SaveMessagesRequest,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_session),
) -> SaveMessagesResult:
    """Persist the messages of one streaming step. Safe to repeat for the same step."""
    try:
        saved = await save_messages(
            session,
            chat_session_id=chat_id,
            user_id=user_id,
            messages=data.messages,
            is_first_step=data.is_first_step,
            assistant_message_id=data.assistant_message_id,
        )
    except ChatOwnershipError:
        raise HTTPException(403, "Chat belongs to another user")
    except SQLAlchemyError:
        raise HTTPException(500, "Failed to save chat messages")
    return SaveMessagesResult(chat_id=chat_id, parts_saved=saved)


@router.patch("/{chat_id}/title", response_model=TitleUpdateResult)
async def rename_chat(
    chat_id: str,
    data: TitleUpdate,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_session),
) -> TitleUpdateResult:
    try:
        updated = await update_chat_title(session, chat_id, user_id, data.title)
    except ValidationError as e:
        raise HTTPException(422, f"Invalid input: {e.errors(include_url=False)}")
    if not updated:
        raise HTTPException(404, "Chat not found")
    return TitleUpdateResult(success=True)


@router.delete("/{chat_id}", status_code=204)
async def remove_chat(
    chat_id: str,
    user_id: str = Depends(current_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not await delete_chat(session, chat_id, user_id):
        raise HTTPException(404, "Chat not found")
