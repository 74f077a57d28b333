"""
Conversation orchestration loop.

Drives one conversation: for every user turn it searches the tool index
for relevant tools, calls the inference backend with the full history, and
keeps dispatching requested tool calls through the router until the model
stops asking for tools.

Per-turn flow:
    1. Append the user message
    2. Build a search query from the user text and the last assistant text
    3. Search the tool index
    4. Invoke the inference client
    5. Append and render the assistant message
    6. Stop unless the model requested a tool
    7. Dispatch the first tool-use block; append its result (or error)
    8. Go back to 3
"""

import json
import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Union

import requests

from ..errors import ToolsearchError
from ..index import ToolIndex
from ..models import (
    ConversationHistory,
    InferenceResponse,
    Message,
    StopReason,
    TextBlock,
    ToolDescriptor,
    ToolResultBlock,
    ToolResultStatus,
    ToolUseBlock,
)
from ..tools.router import ToolRouter
from ..tracing import TracingContext
from .resilient import ResilientInferenceClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 25

_VERTICAL_WHITESPACE = re.compile(r"[\n\r\x0b\x0c\x85\u2028\u2029]+")


class ConversationState(Enum):
    """States of the per-conversation state machine."""

    AWAITING_INPUT = "awaiting_input"
    SEARCHING_TOOLS = "searching_tools"
    INFERRING = "inferring"
    TOOL_DISPATCH = "tool_dispatch"


@dataclass(frozen=True)
class TextEvent:
    """Assistant text surfaced to the caller."""

    text: str


@dataclass(frozen=True)
class ToolCallEvent:
    """The assistant asked for a tool to be called."""

    tool_name: str
    arguments: dict

    @property
    def text(self) -> str:
        return f"Calling tool [{self.tool_name}] with arguments {json.dumps(self.arguments)}"


@dataclass(frozen=True)
class ToolResultEvent:
    """A tool call finished (successfully or not)."""

    tool_name: str
    status: ToolResultStatus
    text: str


TurnEvent = Union[TextEvent, ToolCallEvent, ToolResultEvent]


@dataclass
class TurnResult:
    """Outcome of a single ``send`` call."""

    final_message: Optional[Message] = None
    events: list[TurnEvent] = field(default_factory=list)
    tool_calls: list[str] = field(default_factory=list)
    rounds: int = 0

    @property
    def text(self) -> str:
        return self.final_message.text if self.final_message else ""


def build_search_query(user_text: str, last_assistant: Optional[Message]) -> str:
    """
    Combine the new user text with the last assistant text, if any.

    Vertical whitespace is collapsed into a literal ``\\n`` so the query is
    a single line.
    """
    query = user_text
    if last_assistant is not None:
        query = f"{user_text}\n{last_assistant.text}"
    return _VERTICAL_WHITESPACE.sub(lambda _: "\\n", query)


class ConversationOrchestrator:
    """Owns one conversation's history and runs its turns."""

    def __init__(
        self,
        client: ResilientInferenceClient,
        index: ToolIndex,
        router: ToolRouter,
        system_prompt: str,
        max_results: Optional[int] = None,
        min_score: Optional[float] = None,
        tool_call_delay: float = 0.0,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        on_event: Optional[Callable[[TurnEvent], None]] = None,
        tracing_context: Optional[TracingContext] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.index = index
        self.router = router
        self.system_prompt = system_prompt
        self.max_results = max_results
        self.min_score = min_score
        self.tool_call_delay = tool_call_delay
        self.max_rounds = max_rounds
        self.on_event = on_event
        self.tracing_context = tracing_context
        self._sleep = sleep

        self.history = ConversationHistory()
        self.state = ConversationState.AWAITING_INPUT
        self.turns = 0

    def send(self, user_text: str) -> TurnResult:
        """
        Run one turn of the conversation.

        Args:
            user_text: The user's message.

        Returns:
            TurnResult with the final assistant message and observed events.

        Raises:
            AllRetriesExhaustedError, InferenceError: Inference failures are
                not caught; the history keeps every message appended so far.
            SearchError: The tool search did not complete.
        """
        result = TurnResult()
        self.history.append(Message.user_text(user_text))
        self.turns += 1
        if self.tracing_context is not None:
            self.tracing_context.start_turn(user_text, self.turns)

        status = "error"
        try:
            while True:
                if result.rounds >= self.max_rounds:
                    logger.warning(
                        "Max tool rounds (%d) reached, ending turn", self.max_rounds
                    )
                    break
                result.rounds += 1

                self.state = ConversationState.SEARCHING_TOOLS
                tools = self._search_tools(user_text)

                self.state = ConversationState.INFERRING
                response = self._infer(tools, result.rounds)
                self._append_response(response, result)

                if response.stop_reason is not StopReason.TOOL_USE:
                    break

                tool_use = response.message.first_tool_use()
                if tool_use is None:
                    logger.warning("Tool use requested but no tool request was found")
                    break

                self.state = ConversationState.TOOL_DISPATCH
                self._dispatch(tool_use, result)

                if self.tool_call_delay > 0:
                    self._sleep(self.tool_call_delay)
            status = "success"
        finally:
            self.state = ConversationState.AWAITING_INPUT
            if self.tracing_context is not None:
                self.tracing_context.end_turn(output=result.text[:2000], status=status)

        return result

    def _search_tools(self, user_text: str) -> list[ToolDescriptor]:
        query = build_search_query(user_text, self.history.last_assistant_message())

        if self.tracing_context is None:
            return self.index.search(query, self.max_results, self.min_score)

        with self.tracing_context.span(name="tool_search", input={"query": query}) as span:
            tools = self.index.search(query, self.max_results, self.min_score)
            span.set_output({"tools": [tool.name for tool in tools]})
            return tools

    def _infer(self, tools: list[ToolDescriptor], round_num: int) -> InferenceResponse:
        if self.tracing_context is None:
            return self.client.invoke(self.history, tools, self.system_prompt)

        with self.tracing_context.generation(
            name=f"inference_round_{round_num}",
            model=self.client.current_model,
            input={"messages": len(self.history), "tools": [tool.name for tool in tools]},
        ) as gen:
            try:
                response = self.client.invoke(self.history, tools, self.system_prompt)
            except Exception:
                gen.set_status("error")
                raise
            gen.set_output(self.text_of(response.message)[:2000])
            return response

    def _append_response(self, response: InferenceResponse, result: TurnResult) -> None:
        self.history.append(response.message)
        result.final_message = response.message

        for block in response.message.content:
            if isinstance(block, TextBlock):
                self._emit(TextEvent(block.text), result)
            elif isinstance(block, ToolUseBlock):
                self._emit(ToolCallEvent(block.tool_name, dict(block.input)), result)
            elif isinstance(block, ToolResultBlock):
                logger.warning(
                    "Cannot display tool result block in an assistant message (%s)",
                    block.tool_use_id,
                )

    def _dispatch(self, tool_use: ToolUseBlock, result: TurnResult) -> None:
        """Call a tool and append its result; faults become error results."""
        result.tool_calls.append(tool_use.tool_name)

        if self.tracing_context is None:
            status, content = self._call_tool(tool_use)
        else:
            with self.tracing_context.span(
                name=f"tool:{tool_use.tool_name}", input=tool_use.input
            ) as span:
                status, content = self._call_tool(tool_use)
                if status is ToolResultStatus.ERROR:
                    span.set_status("error")
                span.set_output({"result": "\n".join(b.text for b in content)[:500]})

        self.history.append(Message.tool_result(tool_use.tool_use_id, status, content))
        self._emit(
            ToolResultEvent(
                tool_name=tool_use.tool_name,
                status=status,
                text="\n".join(block.text for block in content),
            ),
            result,
        )

    def _call_tool(
        self, tool_use: ToolUseBlock
    ) -> tuple[ToolResultStatus, tuple[TextBlock, ...]]:
        try:
            call_result = self.router.call(tool_use.tool_name, tool_use.input)
        except (ToolsearchError, requests.exceptions.RequestException) as e:
            logger.error("Failed to call tool %s: %s", tool_use.tool_name, e)
            return ToolResultStatus.ERROR, (TextBlock(str(e)),)

        status = ToolResultStatus.ERROR if call_result.is_error else ToolResultStatus.SUCCESS
        return status, call_result.content

    def _emit(self, event: TurnEvent, result: TurnResult) -> None:
        result.events.append(event)
        if self.on_event is not None:
            self.on_event(event)

    @staticmethod
    def text_of(message: Message) -> str:
        """Render a message the way it is displayed to the user."""
        lines = []
        for block in message.content:
            if isinstance(block, TextBlock):
                lines.append(block.text)
            elif isinstance(block, ToolUseBlock):
                lines.append(ToolCallEvent(block.tool_name, dict(block.input)).text)
            elif isinstance(block, ToolResultBlock):
                lines.append("\n".join(item.text for item in block.content))
        return "\n".join(lines)
