"""
LLM Call Interface for toolsearch

Translates conversation history into OpenAI chat-completions requests
(vLLM, SGLang, OpenAI and other compatible servers) and translates the
responses back into assistant messages.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import json_repair
import openai
from openai import OpenAI

from .errors import InferenceError, ThrottlingError
from .models import (
    InferenceResponse,
    Message,
    Role,
    StopReason,
    TextBlock,
    ToolResultBlock,
    ToolResultStatus,
    ToolUseBlock,
)

logger = logging.getLogger(__name__)


@dataclass
class InferenceRequest:
    """A backend-independent inference request."""

    model: str
    system_prompt: str
    messages: tuple[Message, ...]
    tool_config: Optional[list[dict]] = None
    parameters: dict = field(default_factory=dict)


class InferenceBackend(Protocol):
    """Interface for conversational inference backends."""

    def invoke(self, request: InferenceRequest) -> InferenceResponse:
        """
        Run one inference call.

        Raises:
            ThrottlingError: The backend rate-limited the call.
            InferenceError: Any other backend fault.
        """
        ...


def history_to_openai_messages(system_prompt: str, messages: tuple[Message, ...]) -> list[dict]:
    """Render the system prompt and history as OpenAI chat messages."""
    rendered: list[dict] = [{"role": "system", "content": system_prompt}]

    for message in messages:
        if message.role is Role.ASSISTANT:
            text_parts: list[str] = []
            tool_calls: list[dict] = []
            for block in message.content:
                if isinstance(block, TextBlock):
                    text_parts.append(block.text)
                elif isinstance(block, ToolUseBlock):
                    tool_calls.append(
                        {
                            "id": block.tool_use_id,
                            "type": "function",
                            "function": {
                                "name": block.tool_name,
                                "arguments": json.dumps(block.input),
                            },
                        }
                    )
                elif isinstance(block, ToolResultBlock):
                    raise ValueError("Assistant messages cannot carry tool results")
            entry: dict = {"role": "assistant", "content": "".join(text_parts) or None}
            if tool_calls:
                entry["tool_calls"] = tool_calls
            rendered.append(entry)
            continue

        user_text: list[str] = []
        for block in message.content:
            if isinstance(block, ToolResultBlock):
                content = "\n".join(item.text for item in block.content)
                if block.status is ToolResultStatus.ERROR:
                    content = f"Error: {content}"
                rendered.append(
                    {"role": "tool", "tool_call_id": block.tool_use_id, "content": content}
                )
            elif isinstance(block, TextBlock):
                user_text.append(block.text)
            elif isinstance(block, ToolUseBlock):
                raise ValueError("User messages cannot carry tool use requests")
        if user_text:
            rendered.append({"role": "user", "content": "".join(user_text)})

    return rendered


def parse_tool_arguments(raw: object) -> dict:
    """Parse tool-call arguments, repairing malformed JSON where possible."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)  # type: ignore[arg-type]
    except (json.JSONDecodeError, TypeError):
        logger.warning("Repairing malformed tool arguments: %s", str(raw)[:200])
        parsed = json_repair.loads(raw)  # type: ignore[arg-type]
    return parsed if isinstance(parsed, dict) else {}


def map_finish_reason(finish_reason: Optional[str]) -> StopReason:
    if finish_reason == "tool_calls":
        return StopReason.TOOL_USE
    if finish_reason == "stop":
        return StopReason.END_TURN
    return StopReason.OTHER


class OpenAIInferenceBackend:
    """Inference backend for OpenAI-compatible chat-completions endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: str = "not-needed",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Optional[OpenAI] = None,
    ):
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or OpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            max_retries=0,  # retries are handled by ResilientInferenceClient
        )

    def build_create_kwargs(self, request: InferenceRequest) -> dict:
        create_kwargs: dict = {
            "model": request.model,
            "messages": history_to_openai_messages(request.system_prompt, request.messages),
        }
        if self.temperature is not None:
            create_kwargs["temperature"] = self.temperature
        if self.max_tokens is not None:
            create_kwargs["max_tokens"] = self.max_tokens
        if request.tool_config:
            create_kwargs["tools"] = request.tool_config
        create_kwargs.update(request.parameters)
        return create_kwargs

    def invoke(self, request: InferenceRequest) -> InferenceResponse:
        create_kwargs = self.build_create_kwargs(request)

        try:
            response = self._client.chat.completions.create(**create_kwargs)
        except openai.RateLimitError as e:
            raise ThrottlingError(f"Throttled by model {request.model}: {e}") from e
        except openai.OpenAIError as e:
            logger.error("Inference call to model %s failed: %s", request.model, e)
            raise InferenceError(str(e)) from e

        if not response.choices:
            raise InferenceError(f"Model {request.model} returned no choices")

        choice = response.choices[0]
        blocks: list = []
        if choice.message.content:
            blocks.append(TextBlock(choice.message.content))
        for tool_call in choice.message.tool_calls or []:
            blocks.append(
                ToolUseBlock(
                    tool_use_id=tool_call.id,
                    tool_name=tool_call.function.name,
                    input=parse_tool_arguments(tool_call.function.arguments),
                )
            )

        # some servers report "stop" or "length" alongside tool calls
        stop_reason = map_finish_reason(choice.finish_reason)
        if any(isinstance(block, ToolUseBlock) for block in blocks):
            stop_reason = StopReason.TOOL_USE

        return InferenceResponse(
            message=Message(role=Role.ASSISTANT, content=tuple(blocks)),
            stop_reason=stop_reason,
            model=request.model,
        )

    def close(self) -> None:
        """Close the underlying OpenAI client."""
        try:
            self._client.close()
        except Exception as e:
            logger.debug("Error closing OpenAI client: %s", e)
