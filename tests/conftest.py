"""
Pytest configuration and fixtures for toolsearch tests.
"""

import hashlib
import math
import re
from types import SimpleNamespace

import pytest

from toolsearch.models import (
    InferenceResponse,
    Message,
    Role,
    StopReason,
    TextBlock,
    ToolUseBlock,
)

_TOKEN = re.compile(r"[a-z0-9]+")


class StubEmbedder:
    """
    Deterministic bag-of-words embedder.

    Identical texts embed to identical vectors; texts sharing words are
    similar. Every call is recorded as (text, mode, dimensions).
    """

    def __init__(self):
        self.calls = []

    def embed(self, text, mode, dimensions):
        self.calls.append((text, mode, dimensions))
        vector = [0.0] * dimensions
        vector[0] = 0.01
        for token in _TOKEN.findall(text.lower()):
            bucket = int(hashlib.md5(token.encode()).hexdigest(), 16) % dimensions
            vector[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        return [v / norm for v in vector]


class ScriptedBackend:
    """
    Inference backend replaying a script of responses and exceptions.

    Each step is an InferenceResponse, an exception to raise, or a callable
    taking the request and returning either. Once the script is exhausted
    ``default`` is used.
    """

    def __init__(self, script=(), default=None):
        self.script = list(script)
        self.default = default
        self.models = []
        self.requests = []

    def invoke(self, request):
        self.models.append(request.model)
        self.requests.append(request)
        step = self.script.pop(0) if self.script else self.default
        if step is None:
            raise AssertionError("ScriptedBackend ran out of steps")
        if callable(step):
            step = step(request)
        if isinstance(step, Exception):
            raise step
        return step


def text_response(text, model="test-model"):
    return InferenceResponse(
        message=Message(role=Role.ASSISTANT, content=(TextBlock(text),)),
        stop_reason=StopReason.END_TURN,
        model=model,
    )


def tool_use_response(tool_name, arguments, tool_use_id="call_1", text=None, model="test-model"):
    content = []
    if text:
        content.append(TextBlock(text))
    content.append(ToolUseBlock(tool_use_id=tool_use_id, tool_name=tool_name, input=arguments))
    return InferenceResponse(
        message=Message(role=Role.ASSISTANT, content=tuple(content)),
        stop_reason=StopReason.TOOL_USE,
        model=model,
    )


@pytest.fixture
def embedder():
    """A fresh deterministic embedder."""
    return StubEmbedder()


@pytest.fixture
def make_backend():
    """Factory for scripted inference backends."""
    return ScriptedBackend


@pytest.fixture
def responses():
    """Builders for canned inference responses."""
    return SimpleNamespace(text=text_response, tool_use=tool_use_response)


@pytest.fixture(autouse=True)
def reset_tracing_client(monkeypatch):
    """Make sure no test sees a tracing client initialised by another."""
    monkeypatch.setattr("toolsearch.tracing.client._tracing_client", None)
    yield
