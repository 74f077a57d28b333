"""
Tool Router - one flat tool namespace over many backends.

Each registered backend's tool listing is drained once at registration
time; every tool name maps to exactly one owning backend.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Iterator, Optional

from ..errors import DuplicateToolNameError, UnknownToolError
from ..models import ToolCallResult, ToolDescriptor
from .backends import ToolBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutedTool:
    """A tool descriptor annotated with the backend that serves it."""

    descriptor: ToolDescriptor
    backend_name: str


def iter_tools(backend: ToolBackend) -> Iterator[ToolDescriptor]:
    """Lazily drain every page of a backend's tool listing."""
    cursor: Optional[str] = None
    while True:
        page = backend.list_tools(cursor)
        yield from page.tools
        cursor = page.next_cursor
        if not cursor:
            return


class ToolRouter:
    """Routes tool calls to the backend that owns each tool name."""

    def __init__(self) -> None:
        self._backends: list[ToolBackend] = []
        self._owners: dict[str, ToolBackend] = {}
        self._lock = threading.Lock()

    def register(self, backend: ToolBackend) -> list[ToolDescriptor]:
        """
        Register a backend and claim all of its tool names.

        Args:
            backend: The tool-providing backend.

        Returns:
            The tools the backend exposes.

        Raises:
            DuplicateToolNameError: If a tool name is already owned by another
                backend. The router is left unchanged.
        """
        tools = list(iter_tools(backend))

        with self._lock:
            claimed: dict[str, ToolBackend] = {}
            for tool in tools:
                owner = self._owners.get(tool.name) or claimed.get(tool.name)
                if owner is not None:
                    raise DuplicateToolNameError(tool.name, owner.name, backend.name)
                claimed[tool.name] = backend

            self._owners.update(claimed)
            self._backends.append(backend)

        logger.info(
            "Registered backend '%s' with %d tools: %s",
            backend.name,
            len(tools),
            ", ".join(tool.name for tool in tools),
        )
        return tools

    @property
    def backends(self) -> list[ToolBackend]:
        return list(self._backends)

    def owner_of(self, name: str) -> Optional[ToolBackend]:
        return self._owners.get(name)

    def list_all(self) -> list[RoutedTool]:
        """List the union of tools across all registered backends."""
        routed: list[RoutedTool] = []
        for backend in self.backends:
            routed.extend(RoutedTool(tool, backend.name) for tool in iter_tools(backend))
        return routed

    def descriptors(self) -> list[ToolDescriptor]:
        """Plain descriptors of every routed tool, for index building."""
        return [tool.descriptor for tool in self.list_all()]

    def call(self, name: str, arguments: dict) -> ToolCallResult:
        """
        Call a tool on its owning backend.

        Raises:
            UnknownToolError: If no registered backend owns ``name``.
        """
        backend = self._owners.get(name)
        if backend is None:
            raise UnknownToolError(name)

        logger.debug("Routing tool '%s' to backend '%s'", name, backend.name)
        return backend.call_tool(name, arguments)

    def __len__(self) -> int:
        return len(self._owners)

    def __contains__(self, name: str) -> bool:
        return name in self._owners
