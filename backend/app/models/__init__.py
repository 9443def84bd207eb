from models.base import Base, async_session, engine, get_session
from models.chat_session import ChatSession
from models.message_part import PART_COLUMNS, MessagePart

__all__ = [
    "Base",
    "async_session",
    "engine",
    "get_session",
    "ChatSession",
    "MessagePart",
    "PART_COLUMNS",
]
