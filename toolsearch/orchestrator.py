"""
toolsearch application wiring.

Builds the shared, read-mostly components (tool router and tool index)
once, and creates one ConversationOrchestrator per conversation, each with
its own inference client and history.
"""

import logging
import uuid
from typing import Callable, Optional

from .config import Config, config as default_config
from .config_loader import load_tool_servers
from .index import OpenAIEmbedder, QdrantVectorStore, ToolIndex
from .llm_call import InferenceBackend, OpenAIInferenceBackend
from .orchestration import (
    ConversationOrchestrator,
    ResilientInferenceClient,
    TurnEvent,
)
from .tools import HttpToolBackend, ToolRouter, create_builtin_backend
from .tracing import TracingContext

logger = logging.getLogger(__name__)


def build_router(cfg: Optional[Config] = None) -> ToolRouter:
    """Register the built-in tools and every configured remote tool server."""
    cfg = cfg or default_config
    router = ToolRouter()

    if cfg.tool_servers.builtin_enabled:
        router.register(create_builtin_backend(cfg.tool_servers.builtin_root))

    for server in load_tool_servers(cfg.tool_servers.config_path):
        backend = HttpToolBackend(
            name=server.name,
            url=server.url,
            headers=server.headers,
            timeout=server.timeout,
        )
        router.register(backend)

    logger.info("Tool router ready with %d tools", len(router))
    return router


def build_index(cfg: Optional[Config] = None) -> ToolIndex:
    """Create the tool index from configuration (does not rebuild it)."""
    cfg = cfg or default_config
    store = QdrantVectorStore(
        url=cfg.index.qdrant_url,
        api_key=cfg.index.qdrant_api_key,
        search_timeout=cfg.index.search_timeout,
    )
    embedder = OpenAIEmbedder(
        model=cfg.embedding.model,
        base_url=cfg.embedding.base_url,
        api_key=cfg.embedding.api_key,
        query_prefix=cfg.embedding.query_prefix,
        document_prefix=cfg.embedding.document_prefix,
    )
    return ToolIndex(
        store=store,
        embedder=embedder,
        index_name=cfg.index.index_name,
        dimensions=cfg.embedding.dimensions,
        max_results=cfg.index.max_results,
        min_score=cfg.index.min_score,
        hnsw_m=cfg.index.hnsw_m,
        hnsw_ef_construct=cfg.index.hnsw_ef_construct,
    )


def build_inference_backend(cfg: Optional[Config] = None) -> OpenAIInferenceBackend:
    cfg = cfg or default_config
    return OpenAIInferenceBackend(
        base_url=cfg.inference.base_url,
        api_key=cfg.inference.api_key,
        temperature=cfg.inference.temperature,
        max_tokens=cfg.inference.max_tokens,
        timeout=cfg.inference.timeout,
    )


class ToolSearchApp:
    """Shared components plus a factory for per-conversation orchestrators."""

    def __init__(
        self,
        router: ToolRouter,
        index: ToolIndex,
        backend: InferenceBackend,
        cfg: Optional[Config] = None,
    ):
        self.router = router
        self.index = index
        self.backend = backend
        self.config = cfg or default_config

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None) -> "ToolSearchApp":
        cfg = cfg or default_config
        return cls(
            router=build_router(cfg),
            index=build_index(cfg),
            backend=build_inference_backend(cfg),
            cfg=cfg,
        )

    def rebuild_index(self) -> int:
        """Re-index every routed tool. Run once before serving conversations."""
        return self.index.rebuild(self.router.descriptors())

    def new_conversation(
        self,
        on_event: Optional[Callable[[TurnEvent], None]] = None,
        conversation_id: Optional[str] = None,
    ) -> ConversationOrchestrator:
        """Create an orchestrator with its own history and fallback cursor."""
        cfg = self.config
        client = ResilientInferenceClient(
            backend=self.backend,
            model_order=cfg.inference.models,
            max_retries=cfg.inference.max_retries,
        )
        tracing_context = TracingContext(conversation_id=conversation_id or uuid.uuid4().hex[:12])
        return ConversationOrchestrator(
            client=client,
            index=self.index,
            router=self.router,
            system_prompt=cfg.conversation.system_prompt,
            tool_call_delay=cfg.conversation.tool_call_delay,
            max_rounds=cfg.conversation.max_tool_rounds,
            on_event=on_event,
            tracing_context=tracing_context if tracing_context.enabled else None,
        )
