"""
Semantic tool index: embeddings, vector store adapters and the ToolIndex.
"""

from .embeddings import Embedder, EmbeddingMode, OpenAIEmbedder
from .store import QdrantVectorStore, SearchHit, SearchOutcome, VectorStore
from .tool_index import (
    DEFAULT_DIMENSIONS,
    DEFAULT_MAX_RESULTS,
    DEFAULT_MIN_SCORE,
    ToolIndex,
    build_embedding_input,
    validate_search_outcome,
)

__all__ = [
    "Embedder",
    "EmbeddingMode",
    "OpenAIEmbedder",
    "QdrantVectorStore",
    "SearchHit",
    "SearchOutcome",
    "VectorStore",
    "DEFAULT_DIMENSIONS",
    "DEFAULT_MAX_RESULTS",
    "DEFAULT_MIN_SCORE",
    "ToolIndex",
    "build_embedding_input",
    "validate_search_outcome",
]
