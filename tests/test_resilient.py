"""
Tests for the resilient inference client.

Tests cover throttling retries, progressive model fallback, the sticky
fallback cursor and request building.
"""

import pytest

from toolsearch.errors import AllRetriesExhaustedError, InferenceError, ThrottlingError
from toolsearch.models import (
    ConversationHistory,
    InferenceResponse,
    Message,
    Role,
    StopReason,
    TextBlock,
    ToolDescriptor,
)
from toolsearch.orchestration.resilient import ResilientInferenceClient, quadratic_backoff


def _throttle_on(*models):
    """Step that throttles the given models and answers on any other."""

    def step(request):
        if request.model in models:
            return ThrottlingError(f"throttled by {request.model}")
        return InferenceResponse(
            message=Message(role=Role.ASSISTANT, content=(TextBlock("ok"),)),
            stop_reason=StopReason.END_TURN,
            model=request.model,
        )

    return step


def _history(text="Hello"):
    history = ConversationHistory()
    history.append(Message.user_text(text))
    return history


class TestQuadraticBackoff:
    """Tests for the default backoff policy."""

    def test_backoff_sequence(self):
        """Backoff grows quadratically from 100ms."""
        assert [quadratic_backoff(i) for i in range(5)] == [100, 200, 500, 1000, 1700]


class TestResilientInferenceClient:
    """Tests for ResilientInferenceClient.invoke."""

    def test_success_on_first_model(self, make_backend, responses):
        """A successful first call makes exactly one attempt."""
        backend = make_backend([responses.text("hi")])
        sleeps = []
        client = ResilientInferenceClient(backend, ["a", "b"], sleep=sleeps.append)

        response = client.invoke(_history(), [], "system")

        assert response.message.text == "hi"
        assert backend.models == ["a"]
        assert client.attempts == 1
        assert client.cursor == 0
        assert sleeps == []

    def test_throttled_then_succeeds_on_same_model(self, make_backend, responses):
        """Throttling is retried on the same model with backoff."""
        backend = make_backend(
            [ThrottlingError("slow down"), ThrottlingError("slow down"), responses.text("ok")]
        )
        sleeps = []
        client = ResilientInferenceClient(backend, ["a", "b"], sleep=sleeps.append)

        client.invoke(_history(), [], "system")

        assert backend.models == ["a", "a", "a"]
        assert sleeps == [100, 200]
        assert client.cursor == 0

    def test_all_models_throttled_exhausts_retries(self, make_backend):
        """Every model throttled on every retry raises after retries x models attempts."""
        backend = make_backend(default=_throttle_on("a", "b"))
        sleeps = []
        client = ResilientInferenceClient(backend, ["a", "b"], max_retries=5, sleep=sleeps.append)

        with pytest.raises(AllRetriesExhaustedError) as exc_info:
            client.invoke(_history(), [], "system")

        assert exc_info.value.attempts == 10
        assert exc_info.value.models == ("a", "b")
        assert backend.models == ["a"] * 5 + ["b"] * 5
        assert sleeps == [100, 200, 500, 1000, 1700] * 2
        assert client.cursor == 0

    def test_non_throttling_error_is_not_retried(self, make_backend):
        """A non-throttling fault propagates after a single attempt."""
        backend = make_backend([InferenceError("bad request")])
        client = ResilientInferenceClient(backend, ["a", "b"], sleep=lambda _: None)

        with pytest.raises(InferenceError, match="bad request"):
            client.invoke(_history(), [], "system")

        assert backend.models == ["a"]
        assert client.attempts == 1

    def test_fallback_is_sticky(self, make_backend):
        """After falling back, the next call starts at the model that worked."""
        backend = make_backend(default=_throttle_on("a"))
        client = ResilientInferenceClient(backend, ["a", "b", "c"], sleep=lambda _: None)

        first = client.invoke(_history(), [], "system")
        assert first.model == "b"
        assert backend.models == ["a"] * 5 + ["b"]
        assert client.cursor == 1
        assert client.current_model == "b"
        assert client.fallbacks == [("a", "b")]

        backend.models.clear()
        client.invoke(_history(), [], "system")
        assert backend.models == ["b"]

    def test_fallback_wraps_around(self, make_backend):
        """Fallback continues from the cursor and wraps to the start of the order."""
        backend = make_backend(default=_throttle_on("b", "c"))
        client = ResilientInferenceClient(backend, ["a", "b", "c"], max_retries=2, sleep=lambda _: None)
        client.cursor = 1

        response = client.invoke(_history(), [], "system")

        assert response.model == "a"
        assert backend.models == ["b", "b", "c", "c", "a"]
        assert client.cursor == 0

    def test_custom_backoff_policy(self, make_backend, responses):
        """The backoff policy is replaceable."""
        backend = make_backend([ThrottlingError("x"), responses.text("ok")])
        sleeps = []
        client = ResilientInferenceClient(
            backend, ["a"], backoff=lambda retry: 7, sleep=sleeps.append
        )

        client.invoke(_history(), [], "system")

        assert sleeps == [7]

    def test_rejects_empty_model_order(self, make_backend):
        """At least one model is required."""
        with pytest.raises(ValueError):
            ResilientInferenceClient(make_backend(), [])

    def test_rejects_zero_retries(self, make_backend):
        """At least one attempt per model is required."""
        with pytest.raises(ValueError):
            ResilientInferenceClient(make_backend(), ["a"], max_retries=0)


class TestBuildRequest:
    """Tests for inference request building."""

    def test_no_tool_config_without_tools(self, make_backend):
        """An empty tool list omits the tool configuration entirely."""
        client = ResilientInferenceClient(make_backend(), ["a"])

        request = client.build_request(_history(), [], "system")

        assert request.tool_config is None
        assert request.model == "a"
        assert request.system_prompt == "system"
        assert len(request.messages) == 1

    def test_tool_config_with_tools(self, make_backend):
        """Tools are translated into function definitions."""
        client = ResilientInferenceClient(make_backend(), ["a"])
        tool = ToolDescriptor(
            name="read_file",
            description="Reads a file",
            input_schema={"type": "object", "properties": {"path": {"type": "string"}}},
        )

        request = client.build_request(_history(), [tool], "system")

        assert len(request.tool_config) == 1
        function = request.tool_config[0]["function"]
        assert function["name"] == "read_file"
        assert function["parameters"]["required"] == []

    def test_history_is_replayed_verbatim(self, make_backend):
        """The full history is sent, in order."""
        history = _history("first")
        history.append(Message.user_text("second"))
        client = ResilientInferenceClient(make_backend(), ["a"])

        request = client.build_request(history, [], "system")

        assert [m.text for m in request.messages] == ["first", "second"]
