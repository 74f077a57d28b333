"""
Conversation orchestration: schema translation, resilient inference and
the per-conversation tool loop.
"""

from .tool_defs import build_tool_definition, build_tool_definitions, translate_schema
from .resilient import DEFAULT_MAX_RETRIES, ResilientInferenceClient, quadratic_backoff
from .loop import (
    ConversationOrchestrator,
    ConversationState,
    TextEvent,
    ToolCallEvent,
    ToolResultEvent,
    TurnEvent,
    TurnResult,
    build_search_query,
)

__all__ = [
    "build_tool_definition",
    "build_tool_definitions",
    "translate_schema",
    "DEFAULT_MAX_RETRIES",
    "ResilientInferenceClient",
    "quadratic_backoff",
    "ConversationOrchestrator",
    "ConversationState",
    "TextEvent",
    "ToolCallEvent",
    "ToolResultEvent",
    "TurnEvent",
    "TurnResult",
    "build_search_query",
]
