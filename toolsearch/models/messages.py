"""
Conversation data model.

Messages are immutable once created; content blocks form a closed union
(TextBlock | ToolUseBlock | ToolResultBlock) that every consumer handles
exhaustively.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Union


class Role(Enum):
    """Conversation roles."""

    USER = "user"
    ASSISTANT = "assistant"


class ToolResultStatus(Enum):
    """Outcome of a tool invocation as reported back to the model."""

    SUCCESS = "success"
    ERROR = "error"


class StopReason(Enum):
    """Why the inference backend stopped generating."""

    TOOL_USE = "tool_use"
    END_TURN = "end_turn"
    OTHER = "other"


@dataclass(frozen=True)
class TextBlock:
    """Plain text content."""

    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    """
    A request from the assistant to run a named tool.

    ``input`` is copied on construction so the block never aliases the
    caller's dict. Treat it as read-only once the block is in history.
    """

    tool_use_id: str
    tool_name: str
    input: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", dict(self.input))


@dataclass(frozen=True)
class ToolResultBlock:
    """The result of a tool call, answering a ToolUseBlock by id."""

    tool_use_id: str
    status: ToolResultStatus
    content: tuple[TextBlock, ...] = ()


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]


@dataclass(frozen=True)
class Message:
    """One turn of the conversation."""

    role: Role
    content: tuple[ContentBlock, ...]

    @classmethod
    def user_text(cls, text: str) -> "Message":
        return cls(role=Role.USER, content=(TextBlock(text),))

    @classmethod
    def tool_result(
        cls,
        tool_use_id: str,
        status: ToolResultStatus,
        content: tuple[TextBlock, ...],
    ) -> "Message":
        return cls(
            role=Role.USER,
            content=(
                ToolResultBlock(
                    tool_use_id=tool_use_id, status=status, content=tuple(content)
                ),
            ),
        )

    @property
    def text(self) -> str:
        """Concatenated text of all TextBlocks in this message."""
        return "".join(b.text for b in self.content if isinstance(b, TextBlock))

    def first_tool_use(self) -> Optional[ToolUseBlock]:
        """Return the first (actionable) ToolUseBlock, if any."""
        for block in self.content:
            if isinstance(block, ToolUseBlock):
                return block
        return None


@dataclass(frozen=True)
class InferenceResponse:
    """A single response from the inference backend."""

    message: Message
    stop_reason: StopReason
    model: str = ""


class ConversationHistory:
    """
    Append-only, ordered conversation history.

    Replayed verbatim to the inference backend on every call. Never
    truncated.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def append(self, message: Message) -> None:
        """Append a message to the end of the history."""
        self._messages.append(message)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __reversed__(self) -> Iterator[Message]:
        return reversed(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the history as an immutable tuple."""
        return tuple(self._messages)

    def last_assistant_message(self) -> Optional[Message]:
        """Scan newest-first for the most recent assistant message."""
        for message in reversed(self):
            if message.role is Role.ASSISTANT:
                return message
        return None

    def pending_tool_use_ids(self) -> set[str]:
        """Tool use ids that do not yet have a matching tool result."""
        pending: set[str] = set()
        for message in self._messages:
            for block in message.content:
                if isinstance(block, ToolUseBlock):
                    pending.add(block.tool_use_id)
                elif isinstance(block, ToolResultBlock):
                    pending.discard(block.tool_use_id)
        return pending
