"""
Embedding backends for the tool index.
"""

import logging
from enum import Enum
from typing import Optional, Protocol

import openai
from openai import OpenAI

from ..errors import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingMode(Enum):
    """Whether text is embedded as a search query or as an indexed document."""

    QUERY = "search_query"
    DOCUMENT = "search_document"


class Embedder(Protocol):
    """Interface for embedding backends."""

    def embed(self, text: str, mode: EmbeddingMode, dimensions: int) -> list[float]:
        """Embed ``text`` into a vector of exactly ``dimensions`` floats."""
        ...


class OpenAIEmbedder:
    """
    Embedder using an OpenAI-compatible embeddings endpoint.

    Backends that distinguish query and document embeddings via an input
    prefix (e.g. ``"search_query: "``) can be configured with
    ``query_prefix``/``document_prefix``.
    """

    def __init__(
        self,
        model: str,
        base_url: Optional[str] = None,
        api_key: str = "not-needed",
        query_prefix: str = "",
        document_prefix: str = "",
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.query_prefix = query_prefix
        self.document_prefix = document_prefix
        self._client = client or OpenAI(base_url=base_url, api_key=api_key)

    def _prefix(self, mode: EmbeddingMode) -> str:
        return self.query_prefix if mode is EmbeddingMode.QUERY else self.document_prefix

    def embed(self, text: str, mode: EmbeddingMode, dimensions: int) -> list[float]:
        try:
            response = self._client.embeddings.create(
                model=self.model,
                input=self._prefix(mode) + text,
                dimensions=dimensions,
            )
        except openai.OpenAIError as e:
            logger.error("Embedding call to model %s failed: %s", self.model, e)
            raise EmbeddingError(f"Embedding model '{self.model}' failed: {e}") from e
        vector = list(response.data[0].embedding)
        if len(vector) != dimensions:
            raise EmbeddingError(
                f"Embedding model '{self.model}' returned {len(vector)} dimensions, "
                f"expected {dimensions}"
            )
        logger.debug("Embedded %d chars (%s) with %s", len(text), mode.value, self.model)
        return vector

    def close(self) -> None:
        try:
            self._client.close()
        except Exception as e:
            logger.debug("Error closing embeddings client: %s", e)
