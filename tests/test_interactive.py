"""Tests for the interactive CLI."""

from unittest.mock import Mock

from toolsearch.interactive import InteractiveCLI, print_event
from toolsearch.models import ToolDescriptor, ToolResultStatus
from toolsearch.orchestration import TextEvent, ToolCallEvent, ToolResultEvent


def _cli():
    app = Mock()
    app.index.search.return_value = [ToolDescriptor(name="read_file", description="Reads a file")]
    return InteractiveCLI(app), app


class TestPrintEvent:
    """Tests for event rendering."""

    def test_text_and_tool_call(self, capsys):
        print_event(TextEvent("Hello"))
        print_event(ToolCallEvent("read_file", {"path": "a.txt"}))

        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "\U0001F916: Hello",
            '\U0001F916: Calling tool [read_file] with arguments {"path": "a.txt"}',
        ]

    def test_long_tool_result_is_truncated(self, capsys):
        print_event(ToolResultEvent("read_file", ToolResultStatus.SUCCESS, "x" * 500))

        out = capsys.readouterr().out
        assert "[read_file -> success]" in out
        assert out.rstrip().endswith("...")


class TestHandleCommand:
    """Tests for slash commands."""

    def test_quit(self):
        cli, _ = _cli()
        assert cli.handle_command("/quit") is False

    def test_search(self, capsys):
        cli, app = _cli()

        assert cli.handle_command("/search read a file") is True

        app.index.search.assert_called_once_with("read a file")
        assert "read_file: Reads a file" in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        cli, _ = _cli()

        assert cli.handle_command("/frobnicate") is True
        assert "Unknown command" in capsys.readouterr().out

    def test_conversation_receives_event_printer(self):
        cli, app = _cli()

        app.new_conversation.assert_called_once_with(on_event=print_event)
        assert cli.conversation is app.new_conversation.return_value
