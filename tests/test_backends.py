"""
Tests for tool-providing backends.

Tests cover the JSON-RPC HTTP backend with a mocked requests session and
the in-process LocalToolBackend.
"""

from unittest.mock import MagicMock, Mock

import pytest
import requests

from toolsearch.errors import ToolExecutionError
from toolsearch.models import TextBlock, ToolCallResult
from toolsearch.tools import HttpToolBackend, LocalToolBackend, ToolBackend, content_to_blocks


def _session(*payloads):
    """Mock session whose POSTs return the given JSON payloads in order."""
    session = MagicMock()
    session.headers = {}
    responses = []
    for payload in payloads:
        response = Mock()
        response.raise_for_status.return_value = None
        response.json.return_value = payload
        responses.append(response)
    session.post.side_effect = responses
    return session


class TestContentToBlocks:
    """Tests for tool server content conversion."""

    def test_text_items(self):
        """Text items become TextBlocks in order."""
        blocks = content_to_blocks([{"type": "text", "text": "a"}, {"type": "text", "text": "b"}])

        assert blocks == (TextBlock("a"), TextBlock("b"))

    def test_empty_content(self):
        """Missing content is an empty result."""
        assert content_to_blocks(None) == ()

    def test_unsupported_content_type(self):
        """Non-text content is rejected."""
        with pytest.raises(ToolExecutionError, match="Unsupported content type: image"):
            content_to_blocks([{"type": "image", "data": "..."}])


class TestHttpToolBackend:
    """Tests for the JSON-RPC HTTP tool backend."""

    def test_satisfies_protocol(self):
        """HttpToolBackend implements the ToolBackend protocol."""
        assert isinstance(HttpToolBackend("remote", "http://x", session=_session()), ToolBackend)

    def test_headers_are_applied(self):
        """Configured headers are set on the session."""
        session = _session()
        HttpToolBackend("remote", "http://x", headers={"Authorization": "Bearer t"}, session=session)

        assert session.headers["Authorization"] == "Bearer t"
        assert session.headers["Content-Type"] == "application/json"

    def test_list_tools_page(self):
        """tools/list results map to descriptors and a next cursor."""
        session = _session(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "result": {
                    "tools": [
                        {
                            "name": "search_websites",
                            "description": "Searches the internet",
                            "inputSchema": {"type": "object", "properties": {"query": {"type": "string"}}},
                        },
                        {"name": "ping"},
                    ],
                    "nextCursor": "page-2",
                },
            }
        )
        backend = HttpToolBackend("remote", "http://tools/rpc", session=session)

        page = backend.list_tools()

        assert [tool.name for tool in page.tools] == ["search_websites", "ping"]
        assert page.tools[0].input_schema["properties"]["query"] == {"type": "string"}
        assert page.tools[1].input_schema == {"type": "object", "properties": {}}
        assert page.next_cursor == "page-2"

        payload = session.post.call_args.kwargs["json"]
        assert payload["method"] == "tools/list"
        assert payload["params"] == {}

    def test_empty_next_cursor_ends_listing(self):
        """An empty nextCursor on the last page means there are no more pages."""
        session = _session({"result": {"tools": [{"name": "a"}], "nextCursor": ""}})
        backend = HttpToolBackend("remote", "http://tools/rpc", session=session)

        assert backend.list_tools().next_cursor is None

    def test_list_tools_passes_cursor(self):
        """The cursor is forwarded to the server."""
        session = _session({"result": {"tools": []}})
        backend = HttpToolBackend("remote", "http://tools/rpc", session=session)

        page = backend.list_tools("page-2")

        assert session.post.call_args.kwargs["json"]["params"] == {"cursor": "page-2"}
        assert page.next_cursor is None

    def test_call_tool(self):
        """tools/call results map to a ToolCallResult."""
        session = _session(
            {"result": {"content": [{"type": "text", "text": "42"}], "isError": False}}
        )
        backend = HttpToolBackend("remote", "http://tools/rpc", timeout=5, session=session)

        result = backend.call_tool("answer", {"question": "everything"})

        assert result == ToolCallResult(content=(TextBlock("42"),), is_error=False)
        call = session.post.call_args
        assert call.kwargs["json"]["params"] == {
            "name": "answer",
            "arguments": {"question": "everything"},
        }
        assert call.kwargs["timeout"] == 5

    def test_call_tool_error_result(self):
        """isError is carried on the result rather than raised."""
        session = _session({"result": {"content": [{"type": "text", "text": "nope"}], "isError": True}})
        backend = HttpToolBackend("remote", "http://tools/rpc", session=session)

        result = backend.call_tool("answer", {})

        assert result.is_error is True
        assert result.text == "nope"

    def test_rpc_error(self):
        """A JSON-RPC error member raises ToolExecutionError."""
        session = _session({"error": {"code": -32602, "message": "Invalid params"}})
        backend = HttpToolBackend("remote", "http://tools/rpc", session=session)

        with pytest.raises(ToolExecutionError, match="Invalid params"):
            backend.call_tool("answer", {})

    def test_request_ids_increase(self):
        """Each request gets a fresh JSON-RPC id."""
        session = _session({"result": {"tools": []}}, {"result": {"tools": []}})
        backend = HttpToolBackend("remote", "http://tools/rpc", session=session)

        backend.list_tools()
        backend.list_tools()

        ids = [call.kwargs["json"]["id"] for call in session.post.call_args_list]
        assert ids == [1, 2]

    def test_timeout(self):
        """A request timeout raises ToolExecutionError."""
        session = _session()
        session.post.side_effect = requests.exceptions.Timeout("too slow")
        backend = HttpToolBackend("remote", "http://tools/rpc", timeout=2, session=session)

        with pytest.raises(ToolExecutionError, match="timed out after 2s"):
            backend.call_tool("answer", {})

    def test_connection_error(self):
        """A transport failure raises ToolExecutionError."""
        session = _session()
        session.post.side_effect = requests.exceptions.ConnectionError("refused")
        backend = HttpToolBackend("remote", "http://tools/rpc", session=session)

        with pytest.raises(ToolExecutionError, match="request failed"):
            backend.list_tools()

    def test_invalid_json(self):
        """A non-JSON body raises ToolExecutionError."""
        session = _session({})
        session.post.side_effect = None
        response = Mock()
        response.json.side_effect = ValueError("Expecting value")
        session.post.return_value = response
        backend = HttpToolBackend("remote", "http://tools/rpc", session=session)

        with pytest.raises(ToolExecutionError, match="invalid JSON"):
            backend.list_tools()


class TestLocalToolBackend:
    """Tests for the in-process backend."""

    def test_register_and_call(self):
        """Registered handlers are called with the arguments."""
        backend = LocalToolBackend()
        backend.register("echo", "Echo the input", lambda args: args["text"])

        result = backend.call_tool("echo", {"text": "hi"})

        assert result.text == "hi"
        assert result.is_error is False

    def test_decorator_registration(self):
        """The tool decorator registers and returns the handler."""
        backend = LocalToolBackend()

        @backend.tool("add", "Add two numbers")
        def add(args):
            return {"sum": args["a"] + args["b"]}

        assert backend.get("add").handler is add
        assert backend.call_tool("add", {"a": 1, "b": 2}).text == '{"sum": 3}'

    def test_default_input_schema(self):
        """Tools registered without a schema get an empty object schema."""
        backend = LocalToolBackend()
        backend.register("noop", "Do nothing", lambda args: "")

        assert backend.get("noop").input_schema == {"type": "object", "properties": {}}

    def test_handler_result_passthrough(self):
        """Handlers may return a ToolCallResult directly."""
        backend = LocalToolBackend()
        backend.register("fail", "Always fails", lambda args: ToolCallResult.from_text("bad", is_error=True))

        assert backend.call_tool("fail", {}).is_error is True

    def test_handler_exception(self):
        """Handler exceptions raise ToolExecutionError."""
        backend = LocalToolBackend()

        def boom(args):
            raise KeyError("path")

        backend.register("boom", "Raises", boom)

        with pytest.raises(ToolExecutionError, match="execution error"):
            backend.call_tool("boom", {})

    def test_unknown_tool(self):
        """Calling a tool the backend does not serve raises ToolExecutionError."""
        with pytest.raises(ToolExecutionError):
            LocalToolBackend().call_tool("missing", {})

    def test_all_tools_returns_copy(self):
        """all_tools returns a copy, not the internal dict."""
        backend = LocalToolBackend()
        backend.register("a", "A", lambda args: "")

        tools = backend.all_tools()
        tools.clear()

        assert backend.get("a") is not None
