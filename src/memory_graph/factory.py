"""Wire a MemoryGraphService from MemoryGraphSettings."""

import logging
from typing import Optional

from casual_llm import ModelConfig, Provider, create_provider
from sqlalchemy import create_engine

from memory_graph.config import MemoryGraphSettings
from memory_graph.embeddings import OpenAIEmbedding
from memory_graph.graph import LifecycleManager, RelationshipEngine
from memory_graph.ingestion import ContradictionScanner, IngestionPipeline
from memory_graph.intelligence import (
    LLMAnswerGenerator,
    LLMCategorizer,
    LLMConflictDetector,
    LLMContradictionReasoner,
    LLMEntityExtractor,
    LLMInsightExtractor,
    NLIConflictDetector,
    ReasoningOracle,
)
from memory_graph.locking import InMemoryOwnerLocks, RedisOwnerLocks
from memory_graph.memory_service import MemoryGraphService
from memory_graph.qa import ChatOrchestrator, QAOrchestrator
from memory_graph.ratelimit import InMemoryRateLimiter, RedisRateLimiter
from memory_graph.retrieval import RetrievalEngine
from memory_graph.storage import QdrantVectorIndex, SQLAlchemyMemoryStore, StoreVectorIndex

logger = logging.getLogger(__name__)

_PROVIDERS = {
    "openai": Provider.OPENAI,
    "ollama": Provider.OLLAMA,
}


def _model_config(settings: MemoryGraphSettings, model_name: str) -> ModelConfig:
    if settings.llm_provider not in _PROVIDERS:
        raise ValueError(
            f"Unknown LLM provider {settings.llm_provider!r}, expected one of {', '.join(_PROVIDERS)}"
        )
    return ModelConfig(
        name=model_name,
        provider=_PROVIDERS[settings.llm_provider],
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
    )


def _secondary_classifier(settings: MemoryGraphSettings, llm_provider) -> ReasoningOracle:
    if settings.secondary_conflict_classifier == "nli":
        return NLIConflictDetector()
    if settings.secondary_conflict_classifier == "llm":
        return LLMConflictDetector(llm_provider, settings.llm_model)
    raise ValueError(
        f"Unknown secondary conflict classifier {settings.secondary_conflict_classifier!r}"
    )


def build_memory_service(settings: Optional[MemoryGraphSettings] = None) -> MemoryGraphService:
    """
    Build a fully wired service.

    Uses Qdrant as the vector index when qdrant_host is set and Redis for owner
    locks and rate limits when redis_url is set; otherwise everything runs in
    process on top of the relational store.
    """
    settings = settings or MemoryGraphSettings()

    store = SQLAlchemyMemoryStore(create_engine(settings.database_url))
    store.create_tables()

    if settings.qdrant_host:
        index = QdrantVectorIndex(
            store,
            dimension=settings.embedding_dimensions,
            host=settings.qdrant_host,
            port=settings.qdrant_port,
            collection_name=settings.qdrant_collection,
        )
    else:
        index = StoreVectorIndex(store)

    if settings.redis_url:
        locks = RedisOwnerLocks.from_url(settings.redis_url)
        rate_limiter = RedisRateLimiter.from_url(
            settings.redis_url, window_seconds=settings.rate_limit_window_seconds
        )
    else:
        locks = InMemoryOwnerLocks()
        rate_limiter = InMemoryRateLimiter(window_seconds=settings.rate_limit_window_seconds)

    llm_provider = create_provider(_model_config(settings, settings.llm_model))
    chat_provider = create_provider(_model_config(settings, settings.llm_chat_model))

    embedder = OpenAIEmbedding(
        model=settings.embedding_model,
        api_key=settings.llm_api_key,
        dimensions=settings.embedding_dimensions,
        timeout=settings.embedding_timeout,
    )
    secondary = _secondary_classifier(settings, llm_provider)

    lifecycle = LifecycleManager(store, settings)
    relationships = RelationshipEngine(store, index, secondary, settings)
    scanner = ContradictionScanner(
        index,
        LLMContradictionReasoner(llm_provider, settings.llm_model),
        settings,
        fallback=secondary,
    )
    ingestion = IngestionPipeline(
        store=store,
        index=index,
        embedder=embedder,
        categorizer=LLMCategorizer(llm_provider),
        entity_extractor=LLMEntityExtractor(llm_provider),
        scanner=scanner,
        relationships=relationships,
        lifecycle=lifecycle,
        locks=locks,
        settings=settings,
    )
    retrieval = RetrievalEngine(store, index, embedder, lifecycle, settings)
    responder = LLMAnswerGenerator(chat_provider, settings.llm_chat_model)
    qa = QAOrchestrator(retrieval, responder, settings)
    chat = ChatOrchestrator(
        retrieval, responder, LLMInsightExtractor(llm_provider), ingestion, settings
    )

    logger.info(
        f"MemoryGraphService built: index={type(index).__name__} locks={type(locks).__name__} "
        f"llm={settings.llm_provider}/{settings.llm_model} secondary={secondary.name}"
    )
    return MemoryGraphService(
        store=store,
        index=index,
        ingestion=ingestion,
        relationships=relationships,
        lifecycle=lifecycle,
        retrieval=retrieval,
        qa=qa,
        chat=chat,
        locks=locks,
        rate_limiter=rate_limiter,
        settings=settings,
    )
