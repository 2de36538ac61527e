"""Conversation snapshot models for outbound chat payloads.

Models:
- ContentPart: tagged union of Thinking / ToolUse / Text / Other parts
- MessageInfo: role and identifiers of a single turn
- Message: one turn with its ordered parts
- ValidationResult: outcome of validating one message

Field aliases follow the host's wire format (sessionID, messageID, modelID).
Unknown fields are kept so a snapshot can be sent on unchanged.
"""
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

# Part types the API accepts as the leading reasoning block
THINKING_PART_TYPES = ("thinking", "reasoning", "redacted_thinking")
TOOL_PART_TYPES = ("tool_use", "tool")

Role = Literal["user", "assistant", "system"]


class _PartBase(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ThinkingPart(_PartBase):
    """
    Reasoning block.

    synthetic=True marks parts inserted by the validator rather than
    produced by the model.
    """
    type: Literal["thinking", "reasoning", "redacted_thinking"] = "thinking"
    thinking: Optional[str] = None
    text: Optional[str] = None
    id: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionID")
    message_id: Optional[str] = Field(default=None, alias="messageID")
    synthetic: bool = False

    @property
    def content(self) -> str:
        """Reasoning text, preferring `thinking` over `text`."""
        return self.thinking or self.text or ""


class ToolUsePart(_PartBase):
    """Tool invocation. Opaque beyond its type."""
    type: Literal["tool_use", "tool"] = "tool_use"


class TextPart(_PartBase):
    """Plain assistant text."""
    type: Literal["text"] = "text"
    text: Optional[str] = None


class OtherPart(_PartBase):
    """Any part type not classified above. Counts as content."""
    type: str


def _part_tag(value: Any) -> str:
    if isinstance(value, dict):
        part_type = value.get("type")
    else:
        part_type = getattr(value, "type", None)

    if part_type in THINKING_PART_TYPES:
        return "thinking"
    if part_type in TOOL_PART_TYPES:
        return "tool_use"
    if part_type == "text":
        return "text"
    return "other"


ContentPart = Annotated[
    Union[
        Annotated[ThinkingPart, Tag("thinking")],
        Annotated[ToolUsePart, Tag("tool_use")],
        Annotated[TextPart, Tag("text")],
        Annotated[OtherPart, Tag("other")],
    ],
    Discriminator(_part_tag),
]


def is_thinking_part(part: ContentPart) -> bool:
    """True for reasoning blocks, False for every content variant."""
    if isinstance(part, ThinkingPart):
        return True
    if isinstance(part, (ToolUsePart, TextPart, OtherPart)):
        return False
    raise TypeError(f"Unsupported content part: {type(part).__name__}")


class MessageInfo(BaseModel):
    """
    Per-turn metadata.

    model_id is carried on user turns and decides whether the
    following assistant turns are checked.
    """
    model_config = ConfigDict(
        extra="allow", populate_by_name=True, protected_namespaces=()
    )

    role: Role
    id: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionID")
    model_id: Optional[str] = Field(default=None, alias="modelID")


class Message(BaseModel):
    """One conversation turn. Order of parts is significant."""
    model_config = ConfigDict(extra="allow")

    info: MessageInfo
    parts: list[ContentPart] = Field(default_factory=list)


class ValidationResult(BaseModel):
    """Outcome of checking a single message."""
    valid: bool
    fixed: bool
    issue: Optional[str] = None
    action: Optional[str] = None
