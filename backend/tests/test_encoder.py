"""Tests for part -> row encoding."""

import uuid
from datetime import datetime

import pytest

from chat_store.encoder import encode_part, normalize_tool_call_id, part_row_id
from chat_store.parts import (
    FilePart,
    ReasoningPart,
    SourceDocumentPart,
    SourceUrlPart,
    StepStartPart,
    TextPart,
    ToolPart,
    UnknownPart,
)
from models.message_part import PART_COLUMNS

NOW = datetime(2026, 10, 19, 12, 0, 0)


def encode(part, order=0, message_id="m1", role="assistant"):
    return encode_part(
        part,
        chat_session_id="chat-1",
        message_id=message_id,
        role=role,
        order=order,
        message_seq=0,
        created_at=NOW,
    )


class TestTextLikeParts:
    """text / reasoning"""

    def test_text_row(self):
        row = encode(TextPart(text="Hi"), role="user")

        assert set(row) == set(PART_COLUMNS)
        assert row["type"] == "text"
        assert row["text_text"] == "Hi"
        assert row["text_state"] == "done"
        assert row["role"] == "user"
        assert row["order"] == 0
        assert row["reasoning_text"] is None

    def test_streaming_state_kept(self):
        assert encode(TextPart(text="Hel", state="streaming"))["text_state"] == "streaming"

    def test_empty_text_skipped(self):
        assert encode(TextPart(text="")) is None
        assert encode(ReasoningPart(text="")) is None

    def test_reasoning_row(self):
        row = encode(ReasoningPart(text="thinking", state="streaming"))
        assert row["reasoning_text"] == "thinking"
        assert row["reasoning_state"] == "streaming"

    def test_control_chars_stripped(self):
        row = encode(TextPart(text="a\u0000b", provider_metadata={"x": "y\u0001"}))
        assert row["text_text"] == "ab"
        assert row["providermetadata"] == {"x": "y"}

    def test_empty_provider_metadata_is_null(self):
        assert encode(TextPart(text="x", provider_metadata={}))["providermetadata"] is None


class TestFileAndSources:
    """file / source-url / source-document"""

    def test_file_without_url_skipped(self):
        assert encode(FilePart(url="", media_type="image/png")) is None

    def test_file_row(self):
        row = encode(FilePart(url="https://x/y.png", media_type="image/png"))
        assert row["file_url"] == "https://x/y.png"
        assert row["file_mediatype"] == "image/png"
        assert row["file_filename"] is None

    def test_source_url_generates_id(self):
        row = encode(SourceUrlPart(url="https://example.com"))
        uuid.UUID(row["source_url_id"])
        assert row["source_url_title"] is None

    def test_source_url_keeps_id(self):
        assert encode(SourceUrlPart(source_id="s1", url="https://e.com"))["source_url_id"] == "s1"

    def test_source_document_requires_title(self):
        assert encode(SourceDocumentPart(media_type="text/plain", title="")) is None

    def test_source_document_requires_media_type(self):
        # the reader drops such rows, so they are never written
        assert encode(SourceDocumentPart(media_type="", title="Manual")) is None

    def test_source_document_row(self):
        row = encode(SourceDocumentPart(media_type="application/pdf", title="Manual", filename="m.pdf"))
        uuid.UUID(row["source_document_id"])
        assert row["source_document_title"] == "Manual"
        assert row["source_document_filename"] == "m.pdf"


class TestToolParts:
    """tool-<name>"""

    def test_input_available_without_output(self):
        part = ToolPart(
            type="tool-searchUserDocument",
            tool_call_id="call_abc",
            state="input-available",
            input={"query": "q"},
        )
        row = encode(part)

        assert row["type"] == "tool-searchUserDocument"
        assert row["tool_searchuserdocument_state"] == "input-available"
        assert row["tool_searchuserdocument_input"] == {"query": "q"}
        assert row["tool_searchuserdocument_output"] is None
        assert row["tool_searchuserdocument_errortext"] is None
        assert row["tool_websitesearchtool_toolcallid"] is None

    def test_uuid_call_id_kept(self):
        call_id = "9b2f6c1e-3d4a-4b5c-8d7e-0f1a2b3c4d5e"
        part = ToolPart(type="tool-websiteSearchTool", tool_call_id=call_id)
        assert encode(part)["tool_websitesearchtool_toolcallid"] == call_id

    def test_other_call_id_mapped_deterministically(self):
        first = normalize_tool_call_id("call_abc")
        assert first == normalize_tool_call_id("call_abc")
        assert first != normalize_tool_call_id("call_xyz")
        uuid.UUID(first)

    def test_missing_call_id_skipped(self):
        assert encode(ToolPart(type="tool-searchUserDocument")) is None

    def test_unregistered_tool_skipped(self, caplog):
        part = ToolPart(type="tool-weather", tool_call_id="c1")
        with caplog.at_level("WARNING", logger="chatstore.encoder"):
            assert encode(part) is None
        assert "weather" in caplog.text


class TestSkippedParts:
    """Parts never persisted"""

    def test_step_start(self):
        assert encode(StepStartPart()) is None

    def test_unknown_type_warns(self, caplog):
        with caplog.at_level("WARNING", logger="chatstore.encoder"):
            assert encode(UnknownPart(type="something-future")) is None
        assert "something-future" in caplog.text


class TestRowIds:
    """Stable identity for upserts"""

    def test_same_position_same_id(self):
        first = encode(TextPart(text="Hel", state="streaming"), order=2)
        second = encode(TextPart(text="Hello", state="done"), order=2)
        assert first["id"] == second["id"]

    @pytest.mark.parametrize("other", [
        {"order": 3},
        {"message_id": "m2"},
    ])
    def test_different_position_different_id(self, other):
        base = encode(TextPart(text="x"), order=2)
        assert encode(TextPart(text="x"), **{"order": 2, **other})["id"] != base["id"]

    def test_id_depends_on_session(self):
        assert part_row_id("chat-1", "m1", 0) != part_row_id("chat-2", "m1", 0)
