"""Incremental writer — persist a conversation snapshot at every streaming step.

Called from the step-completion hook with the full message list so far.
Session row and part rows are upserted in one transaction; parts are keyed
by a stable id so a part re-sent with more text (or a tool call with its
output) overwrites its earlier version instead of adding a row.

Ordering: each stored message gets a per-session message_seq. A message
already in storage keeps its number, new ones continue after the highest.
Steps of the current assistant turn may arrive as several messages; they are
stored as one, with part order continuing from one step to the next.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chat_store.encoder import encode_part
from chat_store.parts import Message
from models.chat_session import ChatSession
from models.message_part import MessagePart

logger = logging.getLogger("chatstore.writer")

# Columns kept from the first insert of a part row
_PART_INSERT_ONLY = {"id", "created_at"}


class ChatOwnershipError(PermissionError):
    """Chat session exists and belongs to another user."""

    def __init__(self, chat_id: str):
        self.chat_id = chat_id
        super().__init__(f"Chat {chat_id} belongs to another user")


def _utcnow() -> datetime:
    # DB columns are TIMESTAMP WITHOUT TIME ZONE
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _insert_for(db: AsyncSession):
    """Dialect insert() with on_conflict_do_update (Postgres in prod, SQLite in tests)."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Upsert not supported for dialect {dialect}")
    return insert


def _upsert(db: AsyncSession, table, rows: list[dict], update_columns: Iterable[str], only_if=None):
    """Bulk upsert on id. ``only_if(stmt)`` builds the conflict WHERE clause."""
    insert = _insert_for(db)
    stmt = insert(table).values(rows)
    return stmt.on_conflict_do_update(
        index_elements=[table.c.id],
        set_={col: stmt.excluded[col] for col in update_columns},
        where=only_if(stmt) if only_if is not None else None,
    )


def _same_owner(stmt):
    return ChatSession.__table__.c.user_id == stmt.excluded.user_id


async def _known_sequences(db: AsyncSession, chat_session_id: str) -> dict[str, int]:
    result = await db.execute(
        select(MessagePart.message_id, func.min(MessagePart.message_seq))
        .where(MessagePart.chat_session_id == chat_session_id)
        .group_by(MessagePart.message_id)
    )
    return {message_id: seq for message_id, seq in result.all()}


def _as_message(message) -> Message:
    if isinstance(message, Message):
        return message
    return Message.model_validate(message)


def _stored_ids(
    messages: list[Message],
    assistant_message_id: str | None,
    already_stored: set[str],
) -> list[str]:
    """Storage message_id per snapshot message.

    Only the current turn (assistant messages after the last user message)
    is renamed to ``assistant_message_id``; earlier turns and messages
    already stored under their own id keep it.
    """
    last_user = max((i for i, m in enumerate(messages) if m.role == "user"), default=-1)
    ids = []
    for index, message in enumerate(messages):
        if (
            assistant_message_id
            and message.role == "assistant"
            and index > last_user
            and message.id not in already_stored
        ):
            ids.append(assistant_message_id)
        else:
            ids.append(message.id)
    return ids


async def save_messages(
    db: AsyncSession,
    *,
    chat_session_id: str,
    user_id: str,
    messages: list,
    is_first_step: bool = False,
    assistant_message_id: str | None = None,
) -> int:
    """Upsert the session and every part of every eligible message.

    User messages are written only on the first step of a turn (later steps
    resend them unchanged). Assistant messages of the current turn are
    stored under ``assistant_message_id`` when given, so all steps of one
    turn collapse into one stored message.

    Returns the number of part rows upserted. Raises ChatOwnershipError,
    without writing anything, when the session belongs to another user.
    Storage errors are logged, rolled back and re-raised; retrying is up to
    the caller.
    """
    if not chat_session_id:
        logger.warning("Chat session id is empty - skipping save")
        return 0

    now = _utcnow()
    parsed = [_as_message(m) for m in messages]

    try:
        # owner is set once; a foreign caller's upsert leaves the row untouched
        await db.execute(
            _upsert(
                db,
                ChatSession.__table__,
                [{"id": chat_session_id, "user_id": user_id, "updated_at": now}],
                ("updated_at",),
                only_if=_same_owner,
            )
        )
        owner = await db.scalar(select(ChatSession.user_id).where(ChatSession.id == chat_session_id))
        if owner != user_id:
            await db.rollback()
            logger.warning("User %s tried to write to chat %s owned by %s", user_id, chat_session_id, owner)
            raise ChatOwnershipError(chat_session_id)

        known_seq = await _known_sequences(db, chat_session_id)
        next_seq = max(known_seq.values(), default=-1) + 1
        stored_ids = _stored_ids(parsed, assistant_message_id, set(known_seq))

        # keyed by row id: a part seen twice in one snapshot is written once (last wins)
        rows: dict[str, dict] = {}
        # next free part order per stored message within this snapshot
        next_order: dict[str, int] = {}
        for message, message_id in zip(parsed, stored_ids):
            if message.role == "user" and not is_first_step:
                continue
            seq = known_seq.get(message_id)
            if seq is None:
                seq = known_seq[message_id] = next_seq
                next_seq += 1

            first_order = next_order.get(message_id, 0)
            next_order[message_id] = first_order + len(message.parts)
            for position, part in enumerate(message.parts):
                row = encode_part(
                    part,
                    chat_session_id=chat_session_id,
                    message_id=message_id,
                    role=message.role,
                    order=first_order + position,
                    message_seq=seq,
                    created_at=now,
                )
                if row is not None:
                    rows[row["id"]] = row

        if rows:
            table = MessagePart.__table__
            update_columns = [c.key for c in table.columns if c.key not in _PART_INSERT_ONLY]
            await db.execute(_upsert(db, table, list(rows.values()), update_columns))

        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Error saving chat %s (%d messages): %s", chat_session_id, len(parsed), exc, exc_info=True)
        raise

    logger.debug("Saved chat %s: %d part rows (first_step=%s)", chat_session_id, len(rows), is_first_step)
    return len(rows)
