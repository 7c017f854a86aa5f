"""
memory-graph: per-owner memory knowledge graph with contradiction resolution,
relationship inference, temporal decay and grounded question answering.

Core components:
- ingestion: IngestionPipeline and the contradiction scan
- graph: RelationshipEngine and LifecycleManager
- retrieval: semantic search with 1-hop graph expansion
- qa: recency-biased, grounded question answering and memory-aware chat
- intelligence / embeddings: oracle protocols and LLM/embedding adapters
- storage: SQLAlchemy store and vector indexes
"""

__version__ = "0.1.0"

from memory_graph.config import MemoryGraphSettings
from memory_graph.exceptions import (
    AuthorizationError,
    EmbeddingError,
    MemoryGraphError,
    MemoryNotFoundError,
    OracleParseError,
    RateLimitExceeded,
    UpstreamError,
    UpstreamTimeout,
    ValidationError,
)
from memory_graph.factory import build_memory_service
from memory_graph.memory_service import MemoryGraphService
from memory_graph.models import (
    AnswerResult,
    ChatResult,
    EnrichedMemory,
    Insight,
    Entity,
    EntityMention,
    GraphView,
    Memory,
    MemoryStats,
    Relationship,
    RetrievalContext,
    ScoredMemory,
)

__all__ = [
    "__version__",
    # Models
    "Memory",
    "Relationship",
    "Entity",
    "EntityMention",
    "ScoredMemory",
    "ChatResult",
    "Insight",
    "EnrichedMemory",
    "RetrievalContext",
    "AnswerResult",
    "GraphView",
    "MemoryStats",
    # Errors
    "MemoryGraphError",
    "ValidationError",
    "UpstreamError",
    "UpstreamTimeout",
    "EmbeddingError",
    "OracleParseError",
    "AuthorizationError",
    "MemoryNotFoundError",
    "RateLimitExceeded",
    # Service
    "MemoryGraphSettings",
    "MemoryGraphService",
    "build_memory_service",
]
