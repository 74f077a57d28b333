"""
Conversation-scoped tracing context using Langfuse SDK v3.

A TracingContext owns one root observation per turn; tool searches, tool
dispatches and inference calls are recorded as children of that root by
passing an explicit trace context, so nesting does not depend on OTEL
context state. All operations are no-ops when tracing is disabled.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from langfuse.types import TraceContext

from .client import get_tracing_client

logger = logging.getLogger(__name__)


@dataclass
class _Observation:
    """A Langfuse span or generation with deferred output and status."""

    name: str
    as_type: str = "span"
    enabled: bool = False
    input: Optional[Any] = None
    metadata: Optional[dict] = None
    extra: dict = field(default_factory=dict)
    _trace_context: Optional[TraceContext] = field(default=None, repr=False)
    _context_manager: Any = field(default=None, repr=False)
    _observation: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Optional[Any] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)

    def start(self) -> None:
        if not self.enabled:
            return
        client = get_tracing_client()
        if not client or not client.client:
            return

        try:
            self._start_time = time.time()
            self._context_manager = client.client.start_as_current_observation(
                trace_context=self._trace_context,
                as_type=self.as_type,
                name=self.name,
                input=self.input,
                metadata=self.metadata,
                **self.extra,
            )
            self._observation = self._context_manager.__enter__()
        except Exception as e:
            logger.warning("Failed to start %s '%s': %s", self.as_type, self.name, e)
            self._observation = None

    def end(self) -> None:
        if not self.enabled or not self._observation:
            return

        try:
            update: dict[str, Any] = {
                "metadata": {
                    "status": self._status,
                    "duration_ms": round((time.time() - self._start_time) * 1000, 2),
                }
            }
            if self._output is not None:
                update["output"] = self._output
            self._observation.update(**update)
            self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("Failed to end %s '%s': %s", self.as_type, self.name, e)

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status


class SpanContext(_Observation):
    """A tracing span (tool search, tool dispatch)."""


class GenerationContext(_Observation):
    """A traced inference call."""


@dataclass
class TracingContext:
    """Tracing state for one conversation."""

    conversation_id: str
    user_id: Optional[str] = None
    _enabled: bool = field(default=False, repr=False)
    _context_manager: Any = field(default=None, repr=False)
    _root: Any = field(default=None, repr=False)
    _trace_id: Optional[str] = field(default=None, repr=False)
    _root_id: Optional[str] = field(default=None, repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)

    def __post_init__(self):
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_turn(self, user_text: str, turn: int) -> None:
        """Open the root observation for a turn."""
        if not self._enabled:
            return
        client = get_tracing_client()
        if not client or not client.client:
            return

        try:
            self._context_manager = client.client.start_as_current_observation(
                as_type="span",
                name=f"turn_{turn}",
                input={"user": user_text},
                metadata={"conversation_id": self.conversation_id},
            )
            self._root = self._context_manager.__enter__()
            self._trace_id = getattr(self._root, "trace_id", None)
            self._root_id = getattr(self._root, "id", None)
            self._root.update_trace(session_id=self.conversation_id, user_id=self.user_id)
            self._start_time = time.time()
        except Exception as e:
            logger.warning("[%s] Failed to start turn trace: %s", self.conversation_id, e)
            self._root = None

    def end_turn(self, output: Optional[str] = None, status: str = "success") -> None:
        """Close the root observation for the current turn."""
        if not self._enabled or not self._root:
            return
        try:
            self._root.update(
                output=output,
                metadata={
                    "status": status,
                    "duration_ms": round((time.time() - self._start_time) * 1000, 2),
                },
            )
            self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("[%s] Failed to end turn trace: %s", self.conversation_id, e)
        finally:
            self._root = None
            self._trace_id = None
            self._root_id = None

    def _child_trace_context(self) -> Optional[TraceContext]:
        if not self._trace_id or not self._root_id:
            return None
        return TraceContext(trace_id=self._trace_id, parent_span_id=self._root_id)

    @contextmanager
    def span(
        self,
        name: str,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> Generator[SpanContext, None, None]:
        span_ctx = SpanContext(
            name=name,
            as_type="span",
            enabled=self._enabled,
            input=input,
            metadata=metadata,
            _trace_context=self._child_trace_context(),
        )
        try:
            span_ctx.start()
            yield span_ctx
        finally:
            span_ctx.end()

    @contextmanager
    def generation(
        self,
        name: str,
        model: str,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> Generator[GenerationContext, None, None]:
        gen_ctx = GenerationContext(
            name=name,
            as_type="generation",
            enabled=self._enabled,
            input=input,
            metadata=metadata,
            extra={"model": model},
            _trace_context=self._child_trace_context(),
        )
        try:
            gen_ctx.start()
            yield gen_ctx
        finally:
            gen_ctx.end()
