"""
Data models for toolsearch.
"""

from .messages import (
    Role,
    ToolResultStatus,
    StopReason,
    TextBlock,
    ToolUseBlock,
    ToolResultBlock,
    ContentBlock,
    Message,
    InferenceResponse,
    ConversationHistory,
)
from .tools import (
    EMPTY_INPUT_SCHEMA,
    ToolDescriptor,
    ToolIndexEntry,
    ToolCallResult,
    ToolPage,
)

__all__ = [
    # Conversation models
    "Role",
    "ToolResultStatus",
    "StopReason",
    "TextBlock",
    "ToolUseBlock",
    "ToolResultBlock",
    "ContentBlock",
    "Message",
    "InferenceResponse",
    "ConversationHistory",
    # Tool models
    "EMPTY_INPUT_SCHEMA",
    "ToolDescriptor",
    "ToolIndexEntry",
    "ToolCallResult",
    "ToolPage",
]
