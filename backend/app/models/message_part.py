"""Message parts — one row per part of a chat message.

Wide table: a type discriminator plus one nullable column family per part type
(text, reasoning, file, source-url, source-document, one family per tool).
Rows are upserted by id while a part streams, so the same part is rewritten
in place (text_state: streaming -> done, tool output growing).
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base

# Python None -> SQL NULL (not JSON 'null')
JsonColumn = JSON(none_as_null=True)


class MessagePart(Base):
    __tablename__ = "message_parts"

    __table_args__ = (
        Index("ix_message_parts_session_seq", "chat_session_id", "message_seq", "order"),
        Index("ix_message_parts_message", "message_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    chat_session_id: Mapped[str] = mapped_column(
        ForeignKey("chat_sessions.id", ondelete="CASCADE")
    )
    message_id: Mapped[str] = mapped_column(String(64))
    role: Mapped[str] = mapped_column(String(20))          # user|assistant|system
    type: Mapped[str] = mapped_column(String(64))          # text|reasoning|file|source-url|...|tool-<name>
    order: Mapped[int] = mapped_column()                   # position within the message
    message_seq: Mapped[int] = mapped_column(default=0)    # position of the message within the session
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    # --- text ---
    text_text: Mapped[str | None] = mapped_column(Text, default=None)
    text_state: Mapped[str | None] = mapped_column(String(20), default=None)

    # --- reasoning ---
    reasoning_text: Mapped[str | None] = mapped_column(Text, default=None)
    reasoning_state: Mapped[str | None] = mapped_column(String(20), default=None)

    # --- file ---
    file_mediatype: Mapped[str | None] = mapped_column(String(200), default=None)
    file_filename: Mapped[str | None] = mapped_column(String(500), default=None)
    file_url: Mapped[str | None] = mapped_column(Text, default=None)

    # --- source-url ---
    source_url_id: Mapped[str | None] = mapped_column(String(200), default=None)
    source_url_url: Mapped[str | None] = mapped_column(Text, default=None)
    source_url_title: Mapped[str | None] = mapped_column(Text, default=None)

    # --- source-document ---
    source_document_id: Mapped[str | None] = mapped_column(String(200), default=None)
    source_document_mediatype: Mapped[str | None] = mapped_column(String(200), default=None)
    source_document_title: Mapped[str | None] = mapped_column(Text, default=None)
    source_document_filename: Mapped[str | None] = mapped_column(String(500), default=None)

    # --- tool-searchUserDocument ---
    tool_searchuserdocument_toolcallid: Mapped[str | None] = mapped_column(String(64), default=None)
    tool_searchuserdocument_state: Mapped[str | None] = mapped_column(String(20), default=None)
    tool_searchuserdocument_input: Mapped[dict | None] = mapped_column(JsonColumn, default=None)
    tool_searchuserdocument_output: Mapped[dict | None] = mapped_column(JsonColumn, default=None)
    tool_searchuserdocument_errortext: Mapped[str | None] = mapped_column(Text, default=None)
    tool_searchuserdocument_providerexecuted: Mapped[bool | None] = mapped_column(default=None)

    # --- tool-websiteSearchTool ---
    tool_websitesearchtool_toolcallid: Mapped[str | None] = mapped_column(String(64), default=None)
    tool_websitesearchtool_state: Mapped[str | None] = mapped_column(String(20), default=None)
    tool_websitesearchtool_input: Mapped[dict | None] = mapped_column(JsonColumn, default=None)
    tool_websitesearchtool_output: Mapped[dict | None] = mapped_column(JsonColumn, default=None)
    tool_websitesearchtool_errortext: Mapped[str | None] = mapped_column(Text, default=None)
    tool_websitesearchtool_providerexecuted: Mapped[bool | None] = mapped_column(default=None)

    providermetadata: Mapped[dict | None] = mapped_column(JsonColumn, default=None)

    chat_session = relationship("ChatSession", back_populates="parts")

    def __repr__(self) -> str:
        return f"<MessagePart {self.type} msg={self.message_id} #{self.order}>"


# Every column key, in declaration order. Encoded rows carry all of them so
# one multi-row INSERT covers parts of different types.
PART_COLUMNS: tuple[str, ...] = tuple(c.key for c in MessagePart.__table__.columns)
