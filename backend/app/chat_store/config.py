"""Chat store — constants shared by the encoder, decoder and model.

Pure constants, no imports from the rest of the app.
"""

# Tools with their own column family in message_parts.
# Key = tool name as it appears in the part type ("tool-<name>"),
# value = column prefix (lowercased, Postgres folds unquoted identifiers).
TOOL_COLUMN_PREFIXES = {
    "searchUserDocument": "tool_searchuserdocument",
    "websiteSearchTool": "tool_websitesearchtool",
}

TOOL_TYPE_PREFIX = "tool-"

# Suffixes of one tool column family
TOOL_COLUMN_SUFFIXES = (
    "toolcallid",
    "state",
    "input",
    "output",
    "errortext",
    "providerexecuted",
)

# Text / reasoning lifecycle
TEXT_STATES = ("streaming", "done")
DEFAULT_TEXT_STATE = "done"

# Tool call lifecycle
TOOL_STATES = ("input-streaming", "input-available", "output-available", "output-error")
DEFAULT_TOOL_STATE = "input-available"

# UI-only markers, never persisted
UI_ONLY_PART_TYPES = {"step-start"}

NO_MESSAGES_PREVIEW = "No messages yet"


def tool_name_from_type(part_type: str) -> str | None:
    """'tool-searchUserDocument' -> 'searchUserDocument'; None for non-tool types."""
    if not part_type.startswith(TOOL_TYPE_PREFIX):
        return None
    name = part_type[len(TOOL_TYPE_PREFIX):]
    return name or None


def tool_columns(prefix: str) -> dict[str, str]:
    """Column names of one tool family keyed by suffix."""
    return {suffix: f"{prefix}_{suffix}" for suffix in TOOL_COLUMN_SUFFIXES}
