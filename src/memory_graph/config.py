"""
Runtime configuration for memory-graph.

All tunables are read from the environment (prefix ``MEMORY_GRAPH_``) or a
``.env`` file. Defaults reproduce the reference behaviour of the engine.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from memory_graph.models import ExpiryPolicy


class MemoryGraphSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MEMORY_GRAPH_", env_file=".env", extra="ignore"
    )

    # Storage
    database_url: str = "sqlite:///memory_graph.db"
    qdrant_host: Optional[str] = None
    qdrant_port: int = 6333
    qdrant_collection: str = "memories"
    redis_url: Optional[str] = None

    # LLM / embeddings
    llm_provider: str = "openai"
    llm_model: str = "gpt-4o-mini"
    llm_chat_model: str = "gpt-4o-mini"
    llm_base_url: Optional[str] = None
    llm_api_key: Optional[str] = None
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    secondary_conflict_classifier: str = Field(
        default="llm", description='Fallback conflict classifier: "llm" or "nli"'
    )

    # Ingestion
    max_content_length: int = 50_000
    default_retention_days: int = 30
    min_retention_days: int = 1
    max_retention_days: int = 3650
    contradiction_similarity_floor: float = 0.4
    contradiction_candidate_limit: int = 10
    supersede_confidence_threshold: float = 0.7

    # Relationship building. flag_confidence_threshold only marks candidates as
    # outdated and adds a contradicts edge; supersession uses the threshold above.
    link_similarity_floor: float = 0.5
    link_candidate_limit: int = 10
    flag_confidence_threshold: float = 0.6
    extends_similarity_threshold: float = 0.85
    inferred_strength: float = 0.6
    inferred_limit: int = 10

    # Search
    max_query_length: int = 10_000
    max_search_limit: int = 100

    # Question answering
    qa_search_limit: int = 5
    preference_keep_count: int = 2
    connected_excerpt_count: int = 3
    connected_excerpt_length: int = 150

    # Chat
    chat_context_limit: int = 5
    chat_context_messages: int = 3
    extract_insights: bool = True
    min_insight_length: int = 10

    # Oracle time budgets (seconds)
    embedding_timeout: float = 10.0
    classification_timeout: float = 10.0
    generation_timeout: float = 30.0

    # Lifecycle
    expiry_policy: ExpiryPolicy = "signal_only"

    # Rate limiting (0 disables)
    ingest_rate_limit: int = 0
    answer_rate_limit: int = 0
    chat_rate_limit: int = 0
    rate_limit_window_seconds: float = 60.0

    def clamp_retention(self, retention_days: Optional[int]) -> int:
        """Bound an owner's retention window, falling back to the default."""
        if retention_days is None:
            return self.default_retention_days
        return max(self.min_retention_days, min(self.max_retention_days, int(retention_days)))
