"""
Resilient inference client with sticky progressive model fallback.

Throttled calls are retried on the same model with quadratic backoff;
after ``max_retries`` throttled attempts the client moves on to the next
model in the fallback order. The last model that succeeded is remembered
and tried first on the next call. Any non-throttling fault propagates
immediately.

One instance per conversation: the fallback cursor is per-instance state
and is not synchronised.
"""

import logging
import time
from typing import Callable, Iterable, Optional, Sequence

from ..errors import AllRetriesExhaustedError, ThrottlingError
from ..llm_call import InferenceBackend, InferenceRequest
from ..models import ConversationHistory, InferenceResponse, Message, ToolDescriptor
from .tool_defs import build_tool_definitions

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5


def quadratic_backoff(retry: int) -> float:
    """Backoff in milliseconds for the zero-based retry: 100, 200, 500, 1000, 1700..."""
    return 100 + 100 * retry * retry


def _sleep_ms(delay_ms: float) -> None:
    time.sleep(delay_ms / 1000.0)


class ResilientInferenceClient:
    """Invokes an inference backend across an ordered set of models."""

    def __init__(
        self,
        backend: InferenceBackend,
        model_order: Sequence[str],
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff: Callable[[int], float] = quadratic_backoff,
        sleep: Callable[[float], None] = _sleep_ms,
    ):
        if not model_order:
            raise ValueError("model_order must contain at least one model")
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self.backend = backend
        self.model_order: tuple[str, ...] = tuple(model_order)
        self.max_retries = max_retries
        self.backoff = backoff
        self.sleep = sleep
        self.cursor = 0
        self.attempts = 0
        self.fallbacks: list[tuple[str, str]] = []

    @property
    def current_model(self) -> str:
        return self.model_order[self.cursor]

    def build_request(
        self,
        history: ConversationHistory | Iterable[Message],
        tools: Sequence[ToolDescriptor],
        system_prompt: str,
        model: Optional[str] = None,
    ) -> InferenceRequest:
        """
        Build a backend request.

        The tool configuration is only attached when ``tools`` is non-empty.
        """
        messages = history.messages() if isinstance(history, ConversationHistory) else tuple(history)
        return InferenceRequest(
            model=model or self.current_model,
            system_prompt=system_prompt,
            messages=messages,
            tool_config=build_tool_definitions(tools) if tools else None,
        )

    def invoke(
        self,
        history: ConversationHistory | Iterable[Message],
        tools: Sequence[ToolDescriptor],
        system_prompt: str,
    ) -> InferenceResponse:
        """
        Invoke the backend, falling back across models on throttling.

        Raises:
            AllRetriesExhaustedError: Every model was throttled on every retry.
            InferenceError: Any non-throttling backend fault (not retried).
        """
        request = self.build_request(history, tools, system_prompt)
        model_count = len(self.model_order)
        attempts = 0

        logger.info("Making inference call (model %s)", self.current_model)
        for offset in range(model_count):
            index = (self.cursor + offset) % model_count
            model = self.model_order[index]
            if offset > 0:
                previous = self.model_order[(index - 1) % model_count]
                logger.warning(
                    "Throttled by model %s; falling back to model %s", previous, model
                )
                self.fallbacks.append((previous, model))

            request.model = model
            for retry in range(self.max_retries):
                attempts += 1
                self.attempts += 1
                try:
                    response = self.backend.invoke(request)
                except ThrottlingError as e:
                    delay = self.backoff(retry)
                    logger.debug(
                        "Throttled by model %s (retry %d/%d), sleeping %sms: %s",
                        model,
                        retry + 1,
                        self.max_retries,
                        delay,
                        e,
                    )
                    self.sleep(delay)
                    continue

                self.cursor = index
                return response

        logger.error(
            "All %d inference attempts throttled across %d models", attempts, model_count
        )
        raise AllRetriesExhaustedError(self.model_order, attempts)
