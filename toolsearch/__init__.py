"""
toolsearch - agentic tool orchestration with semantic tool discovery

This package provides:
- A tool router aggregating tools from many tool-providing backends
- A vector index of tool descriptions with radial similarity search
- An inference client with sticky model fallback and throttling backoff
- A conversation loop that searches, infers and dispatches tool calls
- Interactive CLI for testing
"""

from .orchestration import ConversationOrchestrator, ResilientInferenceClient
from .index import ToolIndex
from .tools import ToolRouter

__all__ = [
    "ConversationOrchestrator",
    "ResilientInferenceClient",
    "ToolIndex",
    "ToolRouter",
]

__version__ = "0.1.0"
