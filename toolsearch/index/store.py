"""
Vector store adapters for the tool index.

QdrantVectorStore wraps qdrant-client and normalises its failure modes
into the outcomes the tool index expects: index-not-found and
index-already-exists as typed errors, and search timeouts as a flag on the
search outcome instead of an exception.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Protocol

import httpx
from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import Distance, HnswConfigDiff, PointStruct, VectorParams

from ..errors import IndexAlreadyExistsError, IndexNotFoundError

logger = logging.getLogger(__name__)

# Namespace for deterministic point ids derived from tool names.
POINT_ID_NAMESPACE = uuid.UUID("6f1c5a0e-3d2b-4c7a-9e8f-1a2b3c4d5e6f")


@dataclass(frozen=True)
class SearchHit:
    """A single scored result of a radial search."""

    score: float
    payload: dict


@dataclass(frozen=True)
class SearchOutcome:
    """Hits of a radial search plus completeness flags."""

    hits: list[SearchHit] = field(default_factory=list)
    timed_out: bool = False
    terminated_early: bool = False


class VectorStore(Protocol):
    """Interface for the vector search engine behind the tool index."""

    def delete_index(self, name: str) -> None: ...

    def create_index(
        self, name: str, dimension: int, m: int = 24, ef_construct: int = 128
    ) -> None: ...

    def upsert(
        self, name: str, key: str, vector: list[float], payload: dict, wait: bool = True
    ) -> None: ...

    def radial_search(
        self, name: str, vector: list[float], max_results: int, min_score: float
    ) -> SearchOutcome: ...


def point_id(key: str) -> str:
    """Deterministic point id for a document key."""
    return str(uuid.uuid5(POINT_ID_NAMESPACE, key))


class QdrantVectorStore:
    """VectorStore backed by Qdrant, using cosine similarity."""

    def __init__(
        self,
        url: str = ":memory:",
        api_key: Optional[str] = None,
        search_timeout: Optional[int] = None,
        client: Optional[QdrantClient] = None,
    ):
        if client is not None:
            self._client = client
        elif url == ":memory:":
            self._client = QdrantClient(location=":memory:")
        else:
            self._client = QdrantClient(url=url, api_key=api_key or None)
        self.search_timeout = search_timeout

    @property
    def client(self) -> QdrantClient:
        return self._client

    def delete_index(self, name: str) -> None:
        try:
            deleted = self._client.delete_collection(collection_name=name)
        except UnexpectedResponse as e:
            if e.status_code == 404:
                raise IndexNotFoundError(f"Index '{name}' not found") from e
            raise
        if deleted is False:
            raise IndexNotFoundError(f"Index '{name}' not found")

    def create_index(
        self, name: str, dimension: int, m: int = 24, ef_construct: int = 128
    ) -> None:
        try:
            self._client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
                hnsw_config=HnswConfigDiff(m=m, ef_construct=ef_construct),
            )
        except UnexpectedResponse as e:
            if e.status_code == 409:
                raise IndexAlreadyExistsError(f"Index '{name}' already exists") from e
            raise
        except ValueError as e:
            # Local mode reports an existing collection as ValueError
            if "already exists" in str(e):
                raise IndexAlreadyExistsError(f"Index '{name}' already exists") from e
            raise

    def upsert(
        self, name: str, key: str, vector: list[float], payload: dict, wait: bool = True
    ) -> None:
        self._client.upsert(
            collection_name=name,
            points=[PointStruct(id=point_id(key), vector=vector, payload=payload)],
            wait=wait,
        )

    def radial_search(
        self, name: str, vector: list[float], max_results: int, min_score: float
    ) -> SearchOutcome:
        try:
            response = self._client.query_points(
                collection_name=name,
                query=vector,
                limit=max_results,
                score_threshold=min_score,
                with_payload=True,
                timeout=self.search_timeout,
            )
        except ResponseHandlingException as e:
            if isinstance(e.source, httpx.TimeoutException):
                logger.warning("Search on index '%s' timed out: %s", name, e)
                return SearchOutcome(timed_out=True)
            raise
        except UnexpectedResponse as e:
            if e.status_code in (408, 504):
                logger.warning("Search on index '%s' timed out server-side", name)
                return SearchOutcome(timed_out=True)
            raise

        hits = [
            SearchHit(score=point.score, payload=dict(point.payload or {}))
            for point in response.points
        ]
        return SearchOutcome(hits=hits)

    def close(self) -> None:
        try:
            self._client.close()
        except Exception as e:
            logger.debug("Error closing Qdrant client: %s", e)
