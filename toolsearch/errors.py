"""
Error taxonomy for toolsearch.

Inference faults propagate out of a turn; tool faults are converted into
tool-result messages by the orchestrator; search faults propagate so a
degraded search never silently yields a partial tool set.
"""


class ToolsearchError(Exception):
    """Base class for all toolsearch errors."""


class InferenceError(ToolsearchError):
    """Non-retryable fault reported by the inference backend."""


class ThrottlingError(InferenceError):
    """The inference backend rejected the call because of rate limiting."""


class AllRetriesExhaustedError(ToolsearchError):
    """Every model in the fallback order was throttled on every retry."""

    def __init__(self, models: tuple[str, ...], attempts: int):
        self.models = models
        self.attempts = attempts
        super().__init__(
            f"All retries failed: {attempts} attempts across models {', '.join(models)}"
        )


class DuplicateToolNameError(ToolsearchError):
    """A tool name is already claimed by another registered backend."""

    def __init__(self, tool_name: str, owner: str, claimant: str):
        self.tool_name = tool_name
        self.owner = owner
        self.claimant = claimant
        super().__init__(
            f"Tool '{tool_name}' from backend '{claimant}' is already "
            f"registered by backend '{owner}'"
        )


class UnknownToolError(ToolsearchError):
    """No registered backend owns the requested tool."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool '{tool_name}'")


class ToolExecutionError(ToolsearchError):
    """A tool backend failed to execute a call."""


class IndexNotFoundError(ToolsearchError):
    """The vector index does not exist."""


class IndexAlreadyExistsError(ToolsearchError):
    """The vector index already exists."""


class SearchError(ToolsearchError):
    """The vector search did not complete."""


class SearchTimedOutError(SearchError):
    """The vector search timed out."""


class SearchTerminatedEarlyError(SearchError):
    """The vector search terminated before collecting all candidates."""


class EmbeddingError(ToolsearchError):
    """The embedding backend returned an unusable vector."""
