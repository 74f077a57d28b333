#!/usr/bin/env python3
"""
toolsearch Interactive CLI

A command-line chat interface: every turn searches the tool index for
relevant tools, asks the model, and runs any tool it calls.
"""

import argparse
import json
import logging
import sys

from .config import config
from .errors import ToolsearchError
from .orchestration import (
    ConversationOrchestrator,
    TextEvent,
    ToolCallEvent,
    ToolResultEvent,
    TurnEvent,
)
from .orchestrator import ToolSearchApp
from .tracing import init_tracing_client, shutdown_tracing

logger = logging.getLogger(__name__)

ASSISTANT_PREFIX = "\U0001F916: "


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner() -> None:
    """Print the welcome banner."""
    print(
        """
toolsearch interactive

Available commands:
  /help          - Show this help message
  /tools         - List every routed tool
  /search <text> - Show which tools a query would surface
  /history       - Show the conversation history
  /quit          - Exit the CLI
"""
    )


def print_event(event: TurnEvent) -> None:
    """Display a turn event as it happens."""
    if isinstance(event, TextEvent):
        print(ASSISTANT_PREFIX + event.text)
    elif isinstance(event, ToolCallEvent):
        print(ASSISTANT_PREFIX + event.text)
    elif isinstance(event, ToolResultEvent):
        preview = event.text if len(event.text) <= 200 else event.text[:200] + "..."
        print(f"   [{event.tool_name} -> {event.status.value}] {preview}")


def print_tools(app: ToolSearchApp) -> None:
    print()
    for routed in app.router.list_all():
        print(f"  {routed.descriptor.name:<20} [{routed.backend_name}] {routed.descriptor.description}")
    print()


def print_history(conversation: ConversationOrchestrator) -> None:
    print()
    for message in conversation.history:
        print(f"{message.role.value:>9}: {ConversationOrchestrator.text_of(message)}")
    print()


class InteractiveCLI:
    """Interactive CLI over a single conversation."""

    def __init__(self, app: ToolSearchApp):
        self.app = app
        self.conversation = app.new_conversation(on_event=print_event)

    def handle_command(self, user_input: str) -> bool:
        """Run a slash command. Returns False when the CLI should exit."""
        command, _, argument = user_input.partition(" ")
        command = command.lower()

        if command in ("/quit", "/exit", "/q"):
            print("\nGoodbye!\n")
            return False
        elif command in ("/help", "/h", "/?"):
            print_banner()
        elif command == "/tools":
            print_tools(self.app)
        elif command == "/search":
            for tool in self.app.index.search(argument.strip()):
                print(f"\t{tool.name}: {tool.description}")
        elif command == "/history":
            print_history(self.conversation)
        else:
            print(f"\nUnknown command: {user_input}")
            print("Type /help for available commands.\n")
        return True

    def run(self) -> None:
        """Run the interactive CLI loop."""
        print_banner()

        while True:
            try:
                user_input = input(">>> ").strip()
            except EOFError:
                print("\nGoodbye!\n")
                break
            except KeyboardInterrupt:
                print("\n\nType /quit to exit.\n")
                continue

            if not user_input:
                continue
            if user_input.startswith("/"):
                if not self.handle_command(user_input):
                    break
                continue

            try:
                self.conversation.send(user_input)
            except ToolsearchError as e:
                logger.error("Turn failed: %s", e)
                print(f"\nError: {e}\n")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="toolsearch interactive CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # Start interactive mode
  %(prog)s -v                       # Start with verbose logging
  %(prog)s -q "Read the README"     # Run a single turn
  %(prog)s --search "write a file"  # Only show matching tools
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-q", "--query", type=str, help="Run a single turn and exit")
    parser.add_argument("--search", type=str, help="Search the tool index and exit")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output single-turn results as JSON (for scripting)",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)
    init_tracing_client(
        public_key=config.langfuse.public_key,
        secret_key=config.langfuse.secret_key,
        host=config.langfuse.host,
        debug=config.langfuse.debug,
    )

    try:
        app = ToolSearchApp.from_config(config)
        app.rebuild_index()

        if args.search:
            tools = app.index.search(args.search)
            if args.json:
                print(json.dumps([{"name": t.name, "description": t.description} for t in tools], indent=2))
            else:
                for tool in tools:
                    print(f"\t{tool.name}: {tool.description}")
        elif args.query:
            conversation = app.new_conversation(on_event=None if args.json else print_event)
            result = conversation.send(args.query)
            if args.json:
                output = {
                    "query": args.query,
                    "answer": result.text,
                    "tool_calls": result.tool_calls,
                    "rounds": result.rounds,
                }
                print(json.dumps(output, indent=2))
        else:
            InteractiveCLI(app).run()
    except ToolsearchError as e:
        logger.error("%s", e)
        sys.exit(1)
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    main()
