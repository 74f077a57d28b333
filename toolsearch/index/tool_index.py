"""
Tool Index - semantic tool discovery over a vector store.

Tool descriptions are embedded into a fixed-dimension vector space so that
the orchestrator can find the tools relevant to a conversation turn with a
natural-language query.

Rebuilds are full replacements (delete, create, re-embed everything); they
are not safe to run concurrently with each other or with searches that
expect a stable index. Searches are safe to run concurrently.
"""

import logging
from typing import Iterable

from ..errors import (
    IndexAlreadyExistsError,
    IndexNotFoundError,
    SearchTerminatedEarlyError,
    SearchTimedOutError,
)
from ..models import ToolDescriptor, ToolIndexEntry
from .embeddings import Embedder, EmbeddingMode
from .store import SearchOutcome, VectorStore

logger = logging.getLogger(__name__)

DEFAULT_DIMENSIONS = 256
DEFAULT_MAX_RESULTS = 20
DEFAULT_MIN_SCORE = 0.4


def build_embedding_input(tool: ToolDescriptor) -> str:
    """
    Build the text that represents a tool in embedding space.

    ``name: description``, followed by one ``param: description`` line per
    described parameter. The parameter block is omitted entirely when no
    parameter carries a description.
    """
    text = f"{tool.name}: {tool.description}"
    param_lines = [f"{param}: {desc}" for param, desc in tool.parameter_descriptions()]
    if param_lines:
        text += "\nParameters:\n" + "\n".join(param_lines)
    return text


def validate_search_outcome(outcome: SearchOutcome) -> None:
    """Reject incomplete search results rather than treating them as complete."""
    if outcome.timed_out:
        raise SearchTimedOutError("Search timed out")
    if outcome.terminated_early:
        raise SearchTerminatedEarlyError("Search terminated early")


class ToolIndex:
    """Vector index of tool descriptions supporting radial similarity search."""

    def __init__(
        self,
        store: VectorStore,
        embedder: Embedder,
        index_name: str = "tool-index",
        dimensions: int = DEFAULT_DIMENSIONS,
        max_results: int = DEFAULT_MAX_RESULTS,
        min_score: float = DEFAULT_MIN_SCORE,
        hnsw_m: int = 24,
        hnsw_ef_construct: int = 128,
    ):
        self.store = store
        self.embedder = embedder
        self.index_name = index_name
        self.dimensions = dimensions
        self.max_results = max_results
        self.min_score = min_score
        self.hnsw_m = hnsw_m
        self.hnsw_ef_construct = hnsw_ef_construct

    def rebuild(self, tools: Iterable[ToolDescriptor]) -> int:
        """
        Replace the index contents with ``tools``.

        Args:
            tools: Tool descriptors to index.

        Returns:
            Number of tools indexed.
        """
        logger.info("Deleting index [%s]", self.index_name)
        try:
            self.store.delete_index(self.index_name)
            logger.info("Deleted index [%s]", self.index_name)
        except IndexNotFoundError:
            logger.debug("Index [%s] did not exist", self.index_name)

        logger.info("Creating index [%s]", self.index_name)
        try:
            self.store.create_index(
                self.index_name,
                self.dimensions,
                m=self.hnsw_m,
                ef_construct=self.hnsw_ef_construct,
            )
            logger.info("Created index [%s]", self.index_name)
        except IndexAlreadyExistsError:
            logger.debug("Index [%s] already exists", self.index_name)

        count = 0
        for tool in tools:
            embedding_input = build_embedding_input(tool)
            logger.debug("Embedding tool: [%s]", embedding_input)
            vector = self.embedder.embed(
                embedding_input, EmbeddingMode.DOCUMENT, self.dimensions
            )

            entry = ToolIndexEntry.from_descriptor(tool, vector)
            self.store.upsert(
                self.index_name, entry.name, entry.embedding, entry.payload(), wait=True
            )
            count += 1

        logger.info("Indexed %d tools into [%s]", count, self.index_name)
        return count

    def search(
        self,
        query: str,
        max_results: int | None = None,
        min_score: float | None = None,
    ) -> list[ToolDescriptor]:
        """
        Find tools relevant to ``query``.

        Args:
            query: Natural-language query.
            max_results: Upper bound on results (defaults to the index setting).
            min_score: Cosine similarity floor (defaults to the index setting).

        Returns:
            Matching tools in descending score order; possibly empty.

        Raises:
            SearchTimedOutError: If the vector store reported a timeout.
            SearchTerminatedEarlyError: If the search did not run to completion.
        """
        limit = self.max_results if max_results is None else max_results
        floor = self.min_score if min_score is None else min_score

        vector = self.embedder.embed(query, EmbeddingMode.QUERY, self.dimensions)
        outcome = self.store.radial_search(self.index_name, vector, limit, floor)
        validate_search_outcome(outcome)

        hits = sorted(outcome.hits, key=lambda hit: hit.score, reverse=True)
        tools = [ToolIndexEntry.descriptor_from_payload(hit.payload) for hit in hits]
        logger.info(
            "Search results for [%s]: %s",
            query,
            ", ".join(tool.name for tool in tools) or "(none)",
        )
        return tools
