"""
Configuration management for toolsearch.

Loads all configuration from environment variables with sensible defaults
for local development.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Use the tools available to you when they "
    "help answer the user's request."
)


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass
class InferenceConfig:
    """Configuration for the conversational inference backend."""
    base_url: str = os.getenv("INFERENCE_BASE_URL", "http://localhost:8001/v1")
    api_key: str = os.getenv("INFERENCE_API_KEY", "not-needed")
    models: tuple[str, ...] = field(
        default_factory=lambda: _split_csv(
            os.getenv("INFERENCE_MODELS", "gpt-4o-mini,gpt-4o")
        )
    )
    max_retries: int = int(os.getenv("INFERENCE_MAX_RETRIES", "5"))
    temperature: float = float(os.getenv("INFERENCE_TEMPERATURE", "0.7"))
    max_tokens: int = int(os.getenv("INFERENCE_MAX_TOKENS", "2048"))
    timeout: float = float(os.getenv("INFERENCE_TIMEOUT", "120"))


@dataclass
class EmbeddingConfig:
    """Configuration for the embedding backend."""
    base_url: str = os.getenv("EMBEDDING_BASE_URL", "http://localhost:8002/v1")
    api_key: str = os.getenv("EMBEDDING_API_KEY", "not-needed")
    model: str = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
    dimensions: int = int(os.getenv("EMBEDDING_DIMENSIONS", "256"))
    query_prefix: str = os.getenv("EMBEDDING_QUERY_PREFIX", "")
    document_prefix: str = os.getenv("EMBEDDING_DOCUMENT_PREFIX", "")


@dataclass
class IndexConfig:
    """Configuration for the tool vector index."""
    qdrant_url: str = os.getenv("QDRANT_URL", ":memory:")
    qdrant_api_key: str = os.getenv("QDRANT_API_KEY", "")
    index_name: str = os.getenv("TOOL_INDEX_NAME", "tool-index")
    max_results: int = int(os.getenv("TOOL_SEARCH_MAX_RESULTS", "20"))
    min_score: float = float(os.getenv("TOOL_SEARCH_MIN_SCORE", "0.4"))
    hnsw_m: int = int(os.getenv("TOOL_INDEX_HNSW_M", "24"))
    hnsw_ef_construct: int = int(os.getenv("TOOL_INDEX_EF_CONSTRUCT", "128"))
    search_timeout: int = int(os.getenv("TOOL_SEARCH_TIMEOUT", "10"))


@dataclass
class ConversationConfig:
    """Configuration for the conversation loop."""
    system_prompt: str = os.getenv("SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT)
    tool_call_delay: float = float(os.getenv("TOOL_CALL_DELAY", "0"))
    max_tool_rounds: int = int(os.getenv("MAX_TOOL_ROUNDS", "25"))


@dataclass
class ToolServersConfig:
    """Configuration for tool-providing backends.

    Remote tool servers are configured via a YAML file.
    """
    config_path: str = os.getenv("TOOL_SERVERS_CONFIG_PATH", "")
    builtin_root: str = os.getenv("BUILTIN_TOOLS_ROOT", ".")
    builtin_enabled: bool = os.getenv("BUILTIN_TOOLS_ENABLED", "true").lower() == "true"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = os.getenv("LANGFUSE_PUBLIC_KEY", "")
    secret_key: str = os.getenv("LANGFUSE_SECRET_KEY", "")
    host: str = os.getenv("LANGFUSE_HOST", "")
    debug: bool = os.getenv("LANGFUSE_DEBUG", "false").lower() == "true"

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class Config:
    """Main configuration container."""
    inference: InferenceConfig
    embedding: EmbeddingConfig
    index: IndexConfig
    conversation: ConversationConfig
    tool_servers: ToolServersConfig
    langfuse: LangfuseConfig
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def get_config() -> Config:
    """Get the application configuration."""
    return Config(
        inference=InferenceConfig(),
        embedding=EmbeddingConfig(),
        index=IndexConfig(),
        conversation=ConversationConfig(),
        tool_servers=ToolServersConfig(),
        langfuse=LangfuseConfig(),
    )


# Global config instance
config = get_config()
