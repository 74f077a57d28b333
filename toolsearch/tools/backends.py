"""
Tool-providing backends.

A backend exposes a paginated tool listing and synchronous tool calls.
HttpToolBackend talks JSON-RPC 2.0 over HTTP to a remote tool server
using the ``tools/list`` and ``tools/call`` methods.
"""

import itertools
import logging
from typing import Optional, Protocol, runtime_checkable

import requests

from ..errors import ToolExecutionError
from ..models import TextBlock, ToolCallResult, ToolDescriptor, ToolPage
from ..models.tools import EMPTY_INPUT_SCHEMA

logger = logging.getLogger(__name__)


@runtime_checkable
class ToolBackend(Protocol):
    """Interface every tool-providing backend implements."""

    name: str

    def list_tools(self, cursor: Optional[str] = None) -> ToolPage:
        """Return one page of tools, starting at ``cursor``."""
        ...

    def call_tool(self, name: str, arguments: dict) -> ToolCallResult:
        """Execute ``name`` with ``arguments`` and return its result."""
        ...


def content_to_blocks(content: Optional[list]) -> tuple[TextBlock, ...]:
    """
    Convert a tool server content list to TextBlocks.

    Only text content is supported; anything else is rejected.
    """
    if not content:
        return ()

    blocks = []
    for item in content:
        if isinstance(item, dict) and item.get("type") == "text":
            blocks.append(TextBlock(str(item.get("text", ""))))
        else:
            item_type = item.get("type") if isinstance(item, dict) else type(item).__name__
            raise ToolExecutionError(f"Unsupported content type: {item_type}")
    return tuple(blocks)


class HttpToolBackend:
    """JSON-RPC 2.0 client for a remote tool server."""

    def __init__(
        self,
        name: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.name = name
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if headers:
            self._session.headers.update(headers)
        self._ids = itertools.count(1)

    def _rpc(self, method: str, params: dict) -> dict:
        """Issue a JSON-RPC request and return its ``result`` member."""
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params,
        }

        try:
            response = self._session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as e:
            logger.error("Tool server '%s' timed out on %s", self.name, method)
            raise ToolExecutionError(
                f"Tool server '{self.name}' timed out after {self.timeout}s"
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error("Tool server '%s' request failed: %s", self.name, e)
            raise ToolExecutionError(f"Tool server '{self.name}' request failed: {e}") from e
        except ValueError as e:
            raise ToolExecutionError(
                f"Tool server '{self.name}' returned invalid JSON: {e}"
            ) from e

        if data.get("error"):
            error = data["error"]
            message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            raise ToolExecutionError(f"{message} (code {code})" if code is not None else message)

        return data.get("result") or {}

    def list_tools(self, cursor: Optional[str] = None) -> ToolPage:
        params = {"cursor": cursor} if cursor else {}
        result = self._rpc("tools/list", params)

        tools = tuple(
            ToolDescriptor(
                name=tool["name"],
                description=tool.get("description") or "",
                input_schema=tool.get("inputSchema") or dict(EMPTY_INPUT_SCHEMA),
            )
            for tool in result.get("tools", [])
        )
        return ToolPage(tools=tools, next_cursor=result.get("nextCursor") or None)

    def call_tool(self, name: str, arguments: dict) -> ToolCallResult:
        logger.debug("Calling tool '%s' on server '%s'", name, self.name)
        result = self._rpc("tools/call", {"name": name, "arguments": arguments})
        return ToolCallResult(
            content=content_to_blocks(result.get("content")),
            is_error=bool(result.get("isError", False)),
        )

    def close(self) -> None:
        self._session.close()

    def __repr__(self) -> str:
        return f"HttpToolBackend(name={self.name!r}, url={self.url!r})"
