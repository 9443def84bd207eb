"""Tests for loading a chat with its messages."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from chat_store.fetch import ChatNotFoundError, fetch_chat
from chat_store.writer import save_messages
from conftest import assistant_message, user_message
from models import ChatSession


class TestFetchChat:
    """Read path"""

    async def test_missing_chat(self, db):
        with pytest.raises(ChatNotFoundError):
            await fetch_chat(db, "does-not-exist")

    async def test_full_conversation(self, db, chat_id):
        await save_messages(
            db, chat_session_id=chat_id, user_id="user-1",
            messages=[user_message(text="Find the manual")], is_first_step=True,
        )
        await save_messages(
            db, chat_session_id=chat_id, user_id="user-1",
            messages=[assistant_message(parts=[
                {"type": "step-start"},
                {
                    "type": "tool-searchUserDocument",
                    "toolCallId": "call_1",
                    "state": "input-available",
                    "input": {"query": "manual"},
                },
                {"type": "text", "text": "Here it is", "state": "done"},
            ])],
            assistant_message_id="assistant-1",
        )

        chat = await fetch_chat(db, chat_id)

        assert chat.id == chat_id
        assert chat.user_id == "user-1"
        assert [(m.id, m.role) for m in chat.messages] == [("u1", "user"), ("assistant-1", "assistant")]
        tool, text = chat.messages[1].parts
        assert tool.type == "tool-searchUserDocument"
        assert tool.input == {"query": "manual"}
        assert tool.output is None
        assert text.text == "Here it is"

    async def test_chat_without_parts(self, db, chat_id):
        db.add(ChatSession(id=chat_id, user_id="user-1", chat_title="Empty"))
        await db.commit()

        chat = await fetch_chat(db, chat_id)
        assert chat.chat_title == "Empty"
        assert chat.messages == []

    async def test_other_users_chat_not_found(self, db, chat_id):
        await save_messages(
            db, chat_session_id=chat_id, user_id="user-1",
            messages=[user_message()], is_first_step=True,
        )
        with pytest.raises(ChatNotFoundError):
            await fetch_chat(db, chat_id, user_id="user-2")
        assert (await fetch_chat(db, chat_id, user_id="user-1")).id == chat_id

    async def test_query_error_reported_as_not_found(self, chat_id):
        db = MagicMock()
        db.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("db down")))

        with pytest.raises(ChatNotFoundError) as info:
            await fetch_chat(db, chat_id)
        assert info.value.chat_id == chat_id
