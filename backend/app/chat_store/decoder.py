"""Part decoder — ordered message_parts rows -> messages for the UI.

Rows must already be sorted (message_seq, order); nothing is re-sorted here.
Rows missing the field their type needs are dropped, which covers parts
half-written by an interrupted stream.
"""
from __future__ import annotations

import logging
from typing import Iterable

from pydantic import ValidationError

from chat_store.config import (
    DEFAULT_TOOL_STATE,
    TEXT_STATES,
    TOOL_COLUMN_PREFIXES,
    TOOL_STATES,
    tool_columns,
    tool_name_from_type,
)
from chat_store.parts import (
    FilePart,
    Message,
    ReasoningPart,
    SourceDocumentPart,
    SourceUrlPart,
    TextPart,
    ToolPart,
)

logger = logging.getLogger("chatstore.decoder")


def _text_state(value):
    return value if value in TEXT_STATES else None


def _decode_tool(row, prefix: str) -> ToolPart:
    cols = tool_columns(prefix)
    state = getattr(row, cols["state"])
    return ToolPart(
        type=row.type,
        tool_call_id=getattr(row, cols["toolcallid"]) or "",
        state=state if state in TOOL_STATES else DEFAULT_TOOL_STATE,
        input=getattr(row, cols["input"]),
        output=getattr(row, cols["output"]),
        error_text=getattr(row, cols["errortext"]) or None,
        provider_executed=getattr(row, cols["providerexecuted"]) or None,
    )


def reconstruct_part(row):
    """Rebuild one part from a row; None if the row is incomplete or of an unknown type."""
    part_type = row.type

    if part_type == "text":
        if not row.text_text:
            return None
        return TextPart(text=row.text_text, state=_text_state(row.text_state))

    if part_type == "reasoning":
        if not row.reasoning_text:
            return None
        return ReasoningPart(text=row.reasoning_text, state=_text_state(row.reasoning_state))

    if part_type == "file":
        if not row.file_url:
            return None
        return FilePart(
            url=row.file_url,
            media_type=row.file_mediatype or "",
            filename=row.file_filename or None,
        )

    if part_type == "source-url":
        if not row.source_url_url:
            return None
        return SourceUrlPart(
            source_id=row.source_url_id or "",
            url=row.source_url_url,
            title=row.source_url_title or None,
        )

    if part_type == "source-document":
        if not row.source_document_title or not row.source_document_mediatype:
            return None
        return SourceDocumentPart(
            source_id=row.source_document_id or "",
            media_type=row.source_document_mediatype,
            title=row.source_document_title,
            filename=row.source_document_filename or None,
        )

    tool_name = tool_name_from_type(part_type or "")
    prefix = TOOL_COLUMN_PREFIXES.get(tool_name) if tool_name else None
    if prefix is not None:
        return _decode_tool(row, prefix)

    return None


def format_messages(rows: Iterable) -> list[Message]:
    """Group consecutive rows by message_id into messages, keeping row order."""
    messages: list[Message] = []
    current: Message | None = None
    current_id: str | None = None

    for row in rows:
        if current is None or row.message_id != current_id:
            if current is not None:
                messages.append(current)
            current_id = row.message_id
            # role comes from our own rows; skip validation so one odd row can't fail the whole chat
            current = Message.model_construct(id=row.message_id, role=row.role, parts=[])

        try:
            part = reconstruct_part(row)
        except ValidationError as exc:
            logger.warning("Dropping malformed %s row %s: %s", row.type, row.id, exc)
            continue
        if part is not None:
            current.parts.append(part)

    if current is not None:
        messages.append(current)
    return messages
