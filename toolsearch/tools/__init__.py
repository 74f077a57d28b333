"""
toolsearch Tools Package

- backends: tool-providing backend protocol and the JSON-RPC HTTP client
- registry: in-process backend of registered Python callables
- builtin: filesystem tools served by a local backend
- router: flat tool namespace routed across backends
"""

from .backends import ToolBackend, HttpToolBackend, content_to_blocks
from .registry import LocalToolBackend, ToolDefinition
from .builtin import FilesystemTools, create_builtin_backend
from .router import RoutedTool, ToolRouter, iter_tools

__all__ = [
    "ToolBackend",
    "HttpToolBackend",
    "content_to_blocks",
    "LocalToolBackend",
    "ToolDefinition",
    "FilesystemTools",
    "create_builtin_backend",
    "RoutedTool",
    "ToolRouter",
    "iter_tools",
]
