"""
Built-in filesystem tools.

A small local tool set rooted at a directory: searching, reading and
writing files. Paths are resolved relative to the root and may not escape
it.
"""

import fnmatch
import logging
from pathlib import Path

from ..models import ToolCallResult
from .registry import LocalToolBackend

logger = logging.getLogger(__name__)

MAX_READ_CHARS = 20_000
MAX_SEARCH_RESULTS = 100


def _path_schema(description: str) -> dict:
    return {
        "type": "object",
        "properties": {"path": {"type": "string", "description": description}},
        "required": ["path"],
    }


class FilesystemTools:
    """Handlers for the built-in tools, bound to a root directory."""

    def __init__(self, root: str = "."):
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        resolved = (self.root / path).resolve()
        if resolved != self.root and self.root not in resolved.parents:
            raise ValueError(f"Path '{path}' is outside the tool root")
        return resolved

    def search_websites(self, args: dict) -> ToolCallResult:
        query = args.get("query", "")
        return ToolCallResult.from_text(
            f"Web search is not available in this deployment (query: {query!r})",
            is_error=True,
        )

    def search_files(self, args: dict) -> str:
        pattern = args.get("pattern") or "*"
        matches = []
        for candidate in sorted(self.root.rglob("*")):
            if not candidate.is_file():
                continue
            relative = candidate.relative_to(self.root).as_posix()
            if fnmatch.fnmatch(candidate.name, pattern) or fnmatch.fnmatch(relative, pattern):
                matches.append(relative)
                if len(matches) >= MAX_SEARCH_RESULTS:
                    break

        if not matches:
            return f"No files matching '{pattern}'"
        return "\n".join(matches)

    def read_file(self, args: dict) -> str:
        path = self._resolve(args["path"])
        text = path.read_text(encoding="utf-8")
        if len(text) > MAX_READ_CHARS:
            text = text[:MAX_READ_CHARS] + "\n... [truncated]"
        return text

    def read_files(self, args: dict) -> str:
        parts = []
        for path in args.get("paths", []):
            parts.append(f"==> {path} <==\n{self.read_file({'path': path})}")
        return "\n\n".join(parts)

    def write_file(self, args: dict) -> str:
        path = self._resolve(args["path"])
        path.parent.mkdir(parents=True, exist_ok=True)
        content = args.get("content", "")
        path.write_text(content, encoding="utf-8")
        logger.info("Wrote %d characters to %s", len(content), path)
        return f"Wrote {len(content)} characters to {args['path']}"

    def write_files(self, args: dict) -> str:
        results = [self.write_file(item) for item in args.get("files", [])]
        return "\n".join(results) if results else "No files written"


def create_builtin_backend(root: str = ".", name: str = "builtin") -> LocalToolBackend:
    """Create a LocalToolBackend serving the built-in filesystem tools."""
    fs = FilesystemTools(root)
    backend = LocalToolBackend(name=name)

    backend.register(
        "search_websites",
        "Searches the internet for information.",
        fs.search_websites,
        {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "What to search the web for"}
            },
            "required": ["query"],
        },
    )
    backend.register(
        "search_files",
        "Searches the filesystem for matching files.",
        fs.search_files,
        {
            "type": "object",
            "properties": {
                "pattern": {
                    "type": "string",
                    "description": "Glob pattern matched against file names and relative paths",
                }
            },
        },
    )
    backend.register(
        "read_file",
        "Reads a file from the filesystem.",
        fs.read_file,
        _path_schema("Path of the file to read"),
    )
    backend.register(
        "read_files",
        "Reads multiple files from the filesystem.",
        fs.read_files,
        {
            "type": "object",
            "properties": {
                "paths": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Paths of the files to read",
                }
            },
            "required": ["paths"],
        },
    )
    backend.register(
        "write_file",
        "Writes a file to the filesystem.",
        fs.write_file,
        {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Path of the file to write"},
                "content": {"type": "string", "description": "Text to write"},
            },
            "required": ["path", "content"],
        },
    )
    backend.register(
        "write_files",
        "Writes multiple files to the filesystem.",
        fs.write_files,
        {
            "type": "object",
            "properties": {
                "files": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "path": {"type": "string"},
                            "content": {"type": "string"},
                        },
                        "required": ["path", "content"],
                    },
                    "description": "Files to write, each with a path and content",
                }
            },
            "required": ["files"],
        },
    )
    return backend
