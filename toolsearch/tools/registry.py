"""
Local tool registry.

An in-process tool-providing backend: Python callables registered with
their metadata, listed in pages and executed on demand.
"""

import json
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..errors import ToolExecutionError
from ..models import ToolCallResult, ToolDescriptor, ToolPage
from ..models.tools import EMPTY_INPUT_SCHEMA

logger = logging.getLogger(__name__)

HandlerResult = Union[str, dict, ToolCallResult]


@dataclass
class ToolDefinition:
    """Metadata for a tool - defined once, used everywhere."""

    name: str
    description: str
    input_schema: dict
    handler: Callable[[dict], HandlerResult]

    @property
    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
        )


class LocalToolBackend:
    """Tool backend serving registered Python callables."""

    def __init__(self, name: str = "local", page_size: Optional[int] = None):
        self.name = name
        self.page_size = page_size
        self._tools: dict[str, ToolDefinition] = {}

    def register(
        self,
        name: str,
        description: str,
        handler: Callable[[dict], HandlerResult],
        input_schema: Optional[dict] = None,
    ) -> None:
        """Register a tool with its metadata."""
        self._tools[name] = ToolDefinition(
            name=name,
            description=description,
            input_schema=input_schema or dict(EMPTY_INPUT_SCHEMA),
            handler=handler,
        )

    def tool(
        self,
        name: str,
        description: str,
        input_schema: Optional[dict] = None,
    ) -> Callable[[Callable[[dict], HandlerResult]], Callable[[dict], HandlerResult]]:
        """Decorator form of ``register``."""

        def decorator(handler: Callable[[dict], HandlerResult]):
            self.register(name, description, handler, input_schema)
            return handler

        return decorator

    def get(self, name: str) -> Optional[ToolDefinition]:
        """Get a tool by name."""
        return self._tools.get(name)

    def all_tools(self) -> dict[str, ToolDefinition]:
        """Get a copy of all registered tools."""
        return self._tools.copy()

    def list_tools(self, cursor: Optional[str] = None) -> ToolPage:
        """List tools, paging by ``page_size`` with an offset cursor."""
        descriptors = [tool.descriptor for tool in self._tools.values()]
        if not self.page_size:
            return ToolPage(tools=tuple(descriptors))

        start = int(cursor) if cursor else 0
        end = start + self.page_size
        next_cursor = str(end) if end < len(descriptors) else None
        return ToolPage(tools=tuple(descriptors[start:end]), next_cursor=next_cursor)

    def call_tool(self, name: str, arguments: dict) -> ToolCallResult:
        tool_def = self._tools.get(name)
        if tool_def is None:
            raise ToolExecutionError(f"Tool '{name}' is not served by backend '{self.name}'")

        try:
            result = tool_def.handler(arguments)
        except Exception as e:
            logger.error("Tool '%s' execution failed: %s", name, e)
            raise ToolExecutionError(f"Tool '{name}' execution error: {e}") from e

        return _to_call_result(result)

    def __repr__(self) -> str:
        return f"LocalToolBackend(name={self.name!r}, tools={len(self._tools)})"


def _to_call_result(result: HandlerResult) -> ToolCallResult:
    if isinstance(result, ToolCallResult):
        return result
    if isinstance(result, str):
        return ToolCallResult.from_text(result)
    return ToolCallResult.from_text(json.dumps(result, default=str))
