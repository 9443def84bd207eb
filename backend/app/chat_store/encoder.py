"""Part encoder — one in-memory part -> one full-width message_parts row.

Every row carries every column key (unused families stay None) so a batch
of mixed part types goes out as a single multi-row upsert. Parts that carry
nothing worth storing encode to None and are skipped.
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime

from chat_store.config import TOOL_COLUMN_PREFIXES, DEFAULT_TEXT_STATE, tool_columns
from chat_store.parts import (
    FilePart,
    ReasoningPart,
    SourceDocumentPart,
    SourceUrlPart,
    StepStartPart,
    TextPart,
    ToolPart,
)
from chat_store.sanitizer import sanitize
from models.message_part import PART_COLUMNS

logger = logging.getLogger("chatstore.encoder")

# Fixed namespaces: the same input always yields the same uuid5
PART_ID_NAMESPACE = uuid.UUID("6f1c2a4e-8d1b-5b7e-9a43-2c0f7d3e5a10")
TOOL_CALL_NAMESPACE = uuid.UUID("b3e9d5a2-41c7-5f08-8e6d-97a1c4f02b3d")

_UUID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def part_row_id(chat_session_id: str, message_id: str, order: int) -> str:
    """Stable row id: one logical part -> one row, however often it is re-sent."""
    return str(uuid.uuid5(PART_ID_NAMESPACE, f"{chat_session_id}/{message_id}/{order}"))


def normalize_tool_call_id(tool_call_id: str) -> str:
    """Keep a well-formed UUID as is; map any other provider id to a uuid5 of it."""
    if _UUID_RE.match(tool_call_id):
        return tool_call_id
    return str(uuid.uuid5(TOOL_CALL_NAMESPACE, tool_call_id))


# ---------------------------------------------------------------------------
# Per-type column mapping. Each returns False when the part must be skipped.
# ---------------------------------------------------------------------------

def _encode_text(part: TextPart, row: dict) -> bool:
    if not part.text:
        return False
    row["text_text"] = sanitize(part.text)
    row["text_state"] = part.state or DEFAULT_TEXT_STATE
    return True


def _encode_reasoning(part: ReasoningPart, row: dict) -> bool:
    if not part.text:
        return False
    row["reasoning_text"] = sanitize(part.text)
    row["reasoning_state"] = part.state or DEFAULT_TEXT_STATE
    return True


def _encode_file(part: FilePart, row: dict) -> bool:
    if not part.url:
        return False
    row["file_url"] = sanitize(part.url)
    row["file_filename"] = sanitize(part.filename) or None
    row["file_mediatype"] = sanitize(part.media_type) or None
    return True


def _encode_source_url(part: SourceUrlPart, row: dict) -> bool:
    if not part.url:
        return False
    # source ids are optional on the provider side
    row["source_url_id"] = sanitize(part.source_id) or str(uuid.uuid4())
    row["source_url_url"] = sanitize(part.url)
    row["source_url_title"] = sanitize(part.title) or None
    return True


def _encode_source_document(part: SourceDocumentPart, row: dict) -> bool:
    # both are required to render it back
    if not part.title or not part.media_type:
        return False
    row["source_document_id"] = sanitize(part.source_id) or str(uuid.uuid4())
    row["source_document_mediatype"] = sanitize(part.media_type)
    row["source_document_title"] = sanitize(part.title)
    row["source_document_filename"] = sanitize(part.filename) or None
    return True


def _encode_tool(part: ToolPart, row: dict) -> bool:
    prefix = TOOL_COLUMN_PREFIXES.get(part.tool_name)
    if prefix is None:
        logger.warning("No columns for tool %s - skipping part", part.tool_name)
        return False
    if not part.tool_call_id:
        logger.debug("Tool part %s without toolCallId - skipping", part.type)
        return False

    cols = tool_columns(prefix)
    row[cols["toolcallid"]] = normalize_tool_call_id(part.tool_call_id)
    row[cols["state"]] = part.state
    row[cols["input"]] = sanitize(part.input)
    row[cols["output"]] = sanitize(part.output)
    row[cols["errortext"]] = sanitize(part.error_text) or None
    row[cols["providerexecuted"]] = part.provider_executed or None
    return True


_ENCODERS = {
    TextPart: _encode_text,
    ReasoningPart: _encode_reasoning,
    FilePart: _encode_file,
    SourceUrlPart: _encode_source_url,
    SourceDocumentPart: _encode_source_document,
    ToolPart: _encode_tool,
}


def encode_part(
    part,
    *,
    chat_session_id: str,
    message_id: str,
    role: str,
    order: int,
    message_seq: int,
    created_at: datetime,
) -> dict | None:
    """Map one part to a message_parts row, or None when nothing should be stored."""
    if isinstance(part, StepStartPart):
        return None

    encoder = _ENCODERS.get(type(part))
    if encoder is None:
        logger.warning("Unknown part type: %s - skipping", getattr(part, "type", None))
        return None

    row = dict.fromkeys(PART_COLUMNS)
    row.update(
        id=part_row_id(chat_session_id, message_id, order),
        chat_session_id=chat_session_id,
        message_id=message_id,
        role=role,
        type=part.type,
        order=order,
        message_seq=message_seq,
        created_at=created_at,
    )
    if not encoder(part, row):
        logger.debug("Empty %s part (msg=%s #%d) - skipping", part.type, message_id, order)
        return None

    row["providermetadata"] = sanitize(getattr(part, "provider_metadata", None)) or None
    return row
