"""
Tool server configuration loader for toolsearch.

Loads the list of remote tool-providing backends from a YAML file with
support for environment variable interpolation.

Example ``tool_servers.yaml``::

    version: "1.0"
    servers:
      files:
        url: http://localhost:9200/rpc
        timeout: 30
        headers:
          Authorization: "Bearer ${FILES_TOKEN}"
      web:
        url: ${WEB_TOOLS_URL:-http://localhost:9300/rpc}
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<default>[^}]*))?\}")


@dataclass
class ToolServerConfig:
    """Connection details for one remote tool server."""

    name: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = 30.0


def resolve_env_vars(value: str) -> str:
    """
    Expand ${VAR} and ${VAR:-default} references in ``value``.

    Unset variables without a default expand to an empty string.
    """
    return _ENV_REF.sub(lambda m: os.environ.get(m["name"], m["default"] or ""), value)


def _expand(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    if isinstance(data, list):
        return [_expand(item) for item in data]
    if isinstance(data, dict):
        return {key: _expand(value) for key, value in data.items()}
    return data


def _parse_server(name: str, data: dict) -> ToolServerConfig:
    """Parse a single tool server entry."""
    if not isinstance(data, dict):
        raise ValueError("server entry must be a mapping")

    url = data.get("url", "")
    if not url:
        raise ValueError("url is required")
    if not url.startswith(("http://", "https://")):
        raise ValueError(f"url must start with http:// or https://, got '{url}'")

    headers = data.get("headers") or {}
    if not isinstance(headers, dict):
        raise ValueError("headers must be a mapping")

    return ToolServerConfig(
        name=name,
        url=url,
        headers={str(k): str(v) for k, v in headers.items()},
        timeout=float(data.get("timeout", 30.0)),
    )


def load_tool_servers(path: Optional[str] = None) -> list[ToolServerConfig]:
    """
    Load remote tool server definitions from a YAML file.

    Args:
        path: Path to the YAML file. If None or empty, uses the
              TOOL_SERVERS_CONFIG_PATH env var.

    Returns:
        List of ToolServerConfig, in file order. Empty if no file is configured
        or the file does not exist.

    Raises:
        ValueError: If a server entry is invalid
    """
    if not path:
        path = os.environ.get("TOOL_SERVERS_CONFIG_PATH", "")
    if not path:
        return []

    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Tool servers config not found at %s, using none", config_path)
        return []

    logger.debug("Loading tool servers config from %s", config_path)

    with open(config_path, "r") as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        return []

    servers_data = _expand(raw_config.get("servers") or {})
    if not isinstance(servers_data, dict):
        raise ValueError("'servers' must be a mapping of name -> server config")

    servers = []
    for name, server_data in servers_data.items():
        try:
            servers.append(_parse_server(name, server_data))
            logger.debug("Loaded tool server: %s -> %s", name, servers[-1].url)
        except (ValueError, TypeError) as e:
            logger.error("Failed to parse tool server '%s': %s", name, e)
            raise ValueError(f"Invalid tool server configuration for '{name}': {e}") from e

    return servers
