"""Chat store — persistence of streamed, multi-part AI conversations.

Write path: step snapshot -> sanitize -> encode parts to wide rows -> upsert.
Read path: one ordered query -> rows grouped back into messages.

Integration points:
  1. main.py: include router
  2. streaming route: POST each step snapshot to /api/chat/{chat_id}/messages
"""
