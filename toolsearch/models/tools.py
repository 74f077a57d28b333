"""
Tool data model shared by the router, the index and the inference client.
"""

import json
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .messages import TextBlock

EMPTY_INPUT_SCHEMA: dict = {"type": "object", "properties": {}}


@dataclass(frozen=True)
class ToolDescriptor:
    """Name, description and JSON input schema of a callable tool."""

    name: str
    description: str = ""
    input_schema: dict = field(default_factory=lambda: dict(EMPTY_INPUT_SCHEMA))

    def __hash__(self) -> int:
        return hash(self.name)

    def parameter_descriptions(self) -> Iterator[tuple[str, str]]:
        """Yield (parameter, description) for parameters that carry one."""
        properties = self.input_schema.get("properties") or {}
        for param_name, param_schema in properties.items():
            if not isinstance(param_schema, dict):
                continue
            description = param_schema.get("description")
            if description:
                yield param_name, description


@dataclass(frozen=True)
class ToolIndexEntry:
    """A tool descriptor together with its embedding, as stored in the index."""

    embedding: list[float]
    name: str
    description: str
    input_schema: str

    @classmethod
    def from_descriptor(
        cls, descriptor: ToolDescriptor, embedding: list[float]
    ) -> "ToolIndexEntry":
        return cls(
            embedding=list(embedding),
            name=descriptor.name,
            description=descriptor.description,
            input_schema=json.dumps(descriptor.input_schema),
        )

    def payload(self) -> dict:
        """Vector store payload (everything except the embedding)."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    @staticmethod
    def descriptor_from_payload(payload: dict) -> ToolDescriptor:
        raw_schema = payload.get("input_schema") or "{}"
        schema = json.loads(raw_schema) if isinstance(raw_schema, str) else raw_schema
        return ToolDescriptor(
            name=payload["name"],
            description=payload.get("description", ""),
            input_schema=schema,
        )


@dataclass(frozen=True)
class ToolCallResult:
    """Result of a tool call, as reported by the owning backend."""

    content: tuple[TextBlock, ...] = ()
    is_error: bool = False

    @classmethod
    def from_text(cls, text: str, is_error: bool = False) -> "ToolCallResult":
        return cls(content=(TextBlock(text),), is_error=is_error)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)


@dataclass(frozen=True)
class ToolPage:
    """One page of a backend's tool listing."""

    tools: tuple[ToolDescriptor, ...]
    next_cursor: Optional[str] = None
