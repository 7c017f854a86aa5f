"""Shared fixtures: on-disk SQLite store, deterministic embeddings, mocked oracles."""

from typing import Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy import create_engine

from memory_graph.config import MemoryGraphSettings
from memory_graph.exceptions import EmbeddingError
from memory_graph.graph.lifecycle import LifecycleManager
from memory_graph.graph.relationships import RelationshipEngine
from memory_graph.ingestion.contradiction import ContradictionScanner
from memory_graph.ingestion.pipeline import IngestionPipeline
from memory_graph.locking import InMemoryOwnerLocks
from memory_graph.memory_service import MemoryGraphService
from memory_graph.models import ContradictionVerdict, MemoryClassification
from memory_graph.qa.chat import ChatOrchestrator
from memory_graph.qa.orchestrator import QAOrchestrator
from memory_graph.ratelimit import InMemoryRateLimiter
from memory_graph.retrieval.engine import RetrievalEngine
from memory_graph.storage.sqlalchemy import SQLAlchemyMemoryStore
from memory_graph.storage.vector.store_index import StoreVectorIndex

DEFAULT_VECTOR = [0.0, 0.0, 1.0]


class FakeEmbedding:
    """Deterministic embedder: texts map to fixed vectors, everything else to DEFAULT_VECTOR."""

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None):
        self.vectors = dict(vectors or {})

    @property
    def dimension(self) -> int:
        return 3

    @property
    def model_name(self) -> str:
        return "fake-embedding"

    async def embed_document(self, text: str) -> List[float]:
        if not text.strip():
            raise EmbeddingError("Cannot embed empty text", source="embedding")
        return list(self.vectors.get(text, DEFAULT_VECTOR))

    async def embed_query(self, text: str) -> List[float]:
        return await self.embed_document(text)


def verdict(contradicts: bool, confidence: float, method: str = "llm") -> ContradictionVerdict:
    return ContradictionVerdict(
        contradicts=contradicts, confidence=confidence, reason="test", method=method
    )


def make_oracle(name: str, result=None) -> Mock:
    oracle = Mock()
    oracle.name = name
    oracle.classify_contradiction = AsyncMock(return_value=result or verdict(False, 0.1))
    return oracle


@pytest.fixture
def settings(tmp_path):
    return MemoryGraphSettings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'memory_graph.db'}",
    )


@pytest.fixture
def store(settings):
    """Fresh store backed by an on-disk SQLite file per test."""
    memory_store = SQLAlchemyMemoryStore(create_engine(settings.database_url))
    memory_store.create_tables()
    return memory_store


@pytest.fixture
def index(store):
    return StoreVectorIndex(store)


@pytest.fixture
def embedder():
    return FakeEmbedding()


@pytest.fixture
def reasoner():
    """Primary contradiction oracle; never contradicts unless a test says so."""
    return make_oracle("llm_reasoner")


@pytest.fixture
def secondary():
    """Secondary conflict classifier used for fallback and flagging."""
    return make_oracle("llm_conflict_detector")


@pytest.fixture
def categorizer():
    oracle = Mock()
    oracle.classify = AsyncMock(
        return_value=MemoryClassification(category="preference", importance=0.6, tags=["test"])
    )
    return oracle


@pytest.fixture
def entity_extractor():
    oracle = Mock()
    oracle.extract = AsyncMock(return_value=[])
    return oracle


@pytest.fixture
def generator():
    oracle = Mock()
    oracle.complete = AsyncMock(return_value="You like oranges.")
    oracle.respond = AsyncMock(return_value="Noted, oranges it is.")
    return oracle


@pytest.fixture
def insight_extractor():
    oracle = Mock()
    oracle.extract_insights = AsyncMock(return_value=[])
    return oracle


@pytest.fixture
def locks():
    return InMemoryOwnerLocks()


@pytest.fixture
def lifecycle(store, settings):
    return LifecycleManager(store, settings)


@pytest.fixture
def relationships(store, index, secondary, settings):
    return RelationshipEngine(store, index, secondary, settings)


@pytest.fixture
def pipeline(
    store, index, embedder, categorizer, entity_extractor, reasoner, secondary,
    relationships, lifecycle, locks, settings,
):
    scanner = ContradictionScanner(index, reasoner, settings, fallback=secondary)
    return IngestionPipeline(
        store=store,
        index=index,
        embedder=embedder,
        categorizer=categorizer,
        entity_extractor=entity_extractor,
        scanner=scanner,
        relationships=relationships,
        lifecycle=lifecycle,
        locks=locks,
        settings=settings,
    )


@pytest.fixture
def retrieval(store, index, embedder, lifecycle, settings):
    return RetrievalEngine(store, index, embedder, lifecycle, settings)


@pytest.fixture
def qa(retrieval, generator, settings):
    return QAOrchestrator(retrieval, generator, settings)


@pytest.fixture
def chat(retrieval, generator, insight_extractor, pipeline, settings):
    return ChatOrchestrator(retrieval, generator, insight_extractor, pipeline, settings)


@pytest.fixture
def service(store, index, pipeline, relationships, lifecycle, retrieval, qa, chat, locks, settings):
    return MemoryGraphService(
        store=store,
        index=index,
        ingestion=pipeline,
        relationships=relationships,
        lifecycle=lifecycle,
        retrieval=retrieval,
        qa=qa,
        chat=chat,
        locks=locks,
        rate_limiter=InMemoryRateLimiter(window_seconds=settings.rate_limit_window_seconds),
        settings=settings,
    )
