"""
Tool definitions for the inference backend.

Converts ToolDescriptors into OpenAI-style function-calling tool
definitions, normalising the JSON schema so that every definition carries
the members the backend requires.
"""

import logging
from typing import Iterable

from ..models import ToolDescriptor

logger = logging.getLogger(__name__)


def translate_schema(schema: dict | None) -> dict:
    """
    Normalise a tool input schema into the backend's parameter schema.

    ``type`` defaults to ``object``, ``properties`` to ``{}`` and
    ``required`` to ``[]``. ``additionalProperties``, ``$defs`` and
    ``definitions`` are carried over when present.
    """
    schema = schema or {}
    translated: dict = {
        "type": schema.get("type") or "object",
        "properties": schema.get("properties") or {},
        "required": list(schema.get("required") or []),
    }
    for key in ("additionalProperties", "$defs", "definitions"):
        if schema.get(key) is not None:
            translated[key] = schema[key]
    return translated


def build_tool_definition(tool: ToolDescriptor) -> dict:
    """Build an OpenAI function-calling tool definition for one tool."""
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": translate_schema(tool.input_schema),
        },
    }


def build_tool_definitions(tools: Iterable[ToolDescriptor]) -> list[dict]:
    """
    Build OpenAI function-calling tool definitions.

    Args:
        tools: Tool descriptors, typically the result of a tool search.

    Returns:
        List of OpenAI-format tool definitions, in input order. Duplicate
        names keep their first occurrence.
    """
    seen: set[str] = set()
    definitions: list[dict] = []
    for tool in tools:
        if tool.name in seen:
            logger.debug("Skipping duplicate tool definition '%s'", tool.name)
            continue
        seen.add(tool.name)
        definitions.append(build_tool_definition(tool))
    return definitions
