"""Chat store — in-memory message and part models.

A part is a closed tagged union on ``type``. Field names follow the
streaming SDK's JSON shape (camelCase aliases), Python attributes are
snake_case. Any ``tool-<name>`` type parses as ToolPart; types nobody knows
parse as UnknownPart so a new upstream part type never breaks validation.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel

from chat_store.config import DEFAULT_TOOL_STATE, TOOL_TYPE_PREFIX, tool_name_from_type

Role = Literal["user", "assistant", "system"]
TextState = Literal["streaming", "done"]


class _PartModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TextPart(_PartModel):
    type: Literal["text"] = "text"
    text: str = ""
    state: TextState | None = None
    provider_metadata: dict[str, Any] | None = None


class ReasoningPart(_PartModel):
    type: Literal["reasoning"] = "reasoning"
    text: str = ""
    state: TextState | None = None
    provider_metadata: dict[str, Any] | None = None


class FilePart(_PartModel):
    type: Literal["file"] = "file"
    url: str = ""
    media_type: str = ""
    filename: str | None = None
    provider_metadata: dict[str, Any] | None = None


class SourceUrlPart(_PartModel):
    type: Literal["source-url"] = "source-url"
    source_id: str | None = None
    url: str = ""
    title: str | None = None
    provider_metadata: dict[str, Any] | None = None


class SourceDocumentPart(_PartModel):
    type: Literal["source-document"] = "source-document"
    source_id: str | None = None
    media_type: str = ""
    title: str = ""
    filename: str | None = None
    provider_metadata: dict[str, Any] | None = None


class ToolPart(_PartModel):
    """One tool invocation; ``type`` is ``tool-<toolName>``."""

    type: str = Field(pattern=r"^tool-.+")
    tool_call_id: str | None = None
    state: str = DEFAULT_TOOL_STATE
    input: Any = None
    output: Any = None
    error_text: str | None = None
    provider_executed: bool | None = None

    @property
    def tool_name(self) -> str:
        return tool_name_from_type(self.type) or ""


class StepStartPart(_PartModel):
    type: Literal["step-start"] = "step-start"


class UnknownPart(_PartModel):
    model_config = ConfigDict(extra="allow")

    type: str = ""


_TAGGED_TYPES = {"text", "reasoning", "file", "source-url", "source-document", "step-start"}


def _part_tag(value: Any) -> str:
    if isinstance(value, dict):
        part_type = value.get("type")
    else:
        part_type = getattr(value, "type", None)
    if not isinstance(part_type, str):
        return "unknown"
    if part_type in _TAGGED_TYPES:
        return part_type
    if part_type.startswith(TOOL_TYPE_PREFIX) and len(part_type) > len(TOOL_TYPE_PREFIX):
        return "tool"
    return "unknown"


Part = Annotated[
    Union[
        Annotated[TextPart, Tag("text")],
        Annotated[ReasoningPart, Tag("reasoning")],
        Annotated[FilePart, Tag("file")],
        Annotated[SourceUrlPart, Tag("source-url")],
        Annotated[SourceDocumentPart, Tag("source-document")],
        Annotated[ToolPart, Tag("tool")],
        Annotated[StepStartPart, Tag("step-start")],
        Annotated[UnknownPart, Tag("unknown")],
    ],
    Discriminator(_part_tag),
]


class Message(_PartModel):
    id: str
    role: Role
    parts: list[Part] = Field(default_factory=list)
