"""
MemoryGraphService: the owner-scoped boundary of the engine.

Every operation takes the caller's owner id. Reads and writes of a single
memory check ownership in the store; mutations of the graph hold the owner's
lock. Transport layers (HTTP routes, CLIs) call this class and map
MemoryGraphError subclasses onto their own error responses.
"""

import logging
from datetime import datetime
from typing import List, Optional

from casual_llm import ChatMessage

from memory_graph.config import MemoryGraphSettings
from memory_graph.exceptions import ValidationError
from memory_graph.graph.lifecycle import LifecycleManager
from memory_graph.graph.relationships import RelationshipEngine
from memory_graph.ingestion.pipeline import IngestionPipeline
from memory_graph.locking import OwnerLocks
from memory_graph.models import (
    AnswerResult,
    ChatResult,
    GraphView,
    Memory,
    MemoryStats,
    Relationship,
    RetrievalContext,
    ScoredMemory,
)
from memory_graph.qa.chat import ChatOrchestrator
from memory_graph.qa.orchestrator import QAOrchestrator
from memory_graph.ratelimit import RateLimiter
from memory_graph.retrieval.engine import RetrievalEngine
from memory_graph.storage.protocols import MemoryStore, VectorIndex

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 1000


class MemoryGraphService:
    def __init__(
        self,
        store: MemoryStore,
        index: VectorIndex,
        ingestion: IngestionPipeline,
        relationships: RelationshipEngine,
        lifecycle: LifecycleManager,
        retrieval: RetrievalEngine,
        qa: QAOrchestrator,
        chat: ChatOrchestrator,
        locks: OwnerLocks,
        rate_limiter: RateLimiter,
        settings: MemoryGraphSettings,
    ):
        self.store = store
        self.index = index
        self.ingestion = ingestion
        self.relationships = relationships
        self.lifecycle = lifecycle
        self.retrieval = retrieval
        self.qa = qa
        self.chat_orchestrator = chat
        self.locks = locks
        self.rate_limiter = rate_limiter
        self.settings = settings

    # Core operations

    async def ingest(
        self,
        owner_id: str,
        content: str,
        source_url: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Memory:
        self.ingestion.validate(owner_id, content, category)
        await self.rate_limiter.check(owner_id, "ingest", self.settings.ingest_rate_limit)
        return await self.ingestion.ingest(owner_id, content, source_url, category)

    async def search(self, owner_id: str, query: str, limit: int = 10) -> List[ScoredMemory]:
        """
        Semantic search; every returned memory counts as an access.

        limit is clamped to [1, max_search_limit].
        """
        limit = max(1, min(self.settings.max_search_limit, limit))
        hits = await self.retrieval.search(owner_id, query, limit)

        now = datetime.now()
        return [
            ScoredMemory(
                memory=self.store.track_access(owner_id, hit.memory.id, now),
                similarity=hit.similarity,
            )
            for hit in hits
        ]

    async def search_with_context(
        self, owner_id: str, query: str, limit: int = 5
    ) -> RetrievalContext:
        return await self.retrieval.search_with_context(owner_id, query, limit)

    async def answer(self, owner_id: str, question: str) -> AnswerResult:
        await self.rate_limiter.check(owner_id, "answer", self.settings.answer_rate_limit)
        return await self.qa.answer(owner_id, question)

    async def chat(self, owner_id: str, history: List[ChatMessage], message: str) -> ChatResult:
        """Reply to message using owner_id's memories and store what the exchange reveals."""
        self.chat_orchestrator.validate(message)
        await self.rate_limiter.check(owner_id, "chat", self.settings.chat_rate_limit)
        return await self.chat_orchestrator.chat(owner_id, history, message)

    # Single-record operations

    def get_memory(self, owner_id: str, memory_id: str) -> Memory:
        """Direct lookup (archived memories included); counts as an access."""
        return self.store.track_access(owner_id, memory_id, datetime.now())

    def list_memories(self, owner_id: str, limit: int = 20) -> List[Memory]:
        limit = max(1, min(MAX_LIST_LIMIT, limit))
        return self.store.list_memories(owner_id, limit=limit, include_archived=True)

    async def delete_memory(self, owner_id: str, memory_id: str) -> bool:
        # Ownership is checked before anything is removed
        self.store.get_memory(owner_id, memory_id)

        async with self.locks.hold(owner_id):
            deleted = self.store.delete_memory(owner_id, memory_id)
            if deleted:
                await self._sync_index("remove", self.index.remove(owner_id, memory_id), memory_id)
        return deleted

    def update_importance(self, owner_id: str, memory_id: str, importance: float) -> Memory:
        return self.store.update_importance(owner_id, memory_id, importance)

    async def archive_memory(self, owner_id: str, memory_id: str, reason: str = "manual") -> Memory:
        async with self.locks.hold(owner_id):
            memory = self.lifecycle.archive(owner_id, memory_id, reason)
            await self._sync_index(
                "mark_archived", self.index.mark_archived(owner_id, memory_id), memory_id
            )
        return memory

    def supersession_chain(self, owner_id: str, memory_id: str) -> List[Memory]:
        return self.lifecycle.supersession_chain(owner_id, memory_id)

    async def relink(self, owner_id: str, memory_id: str) -> List[Relationship]:
        """Re-run relationship building for a stored, active memory."""
        memory = self.store.get_memory(owner_id, memory_id)
        if memory.is_archived:
            raise ValidationError(f"Memory {memory_id} is archived")

        async with self.locks.hold(owner_id):
            return await self.relationships.link(owner_id, memory, memory.embedding)

    # Owner-level operations

    def set_retention_days(self, owner_id: str, retention_days: int) -> None:
        if not self.settings.min_retention_days <= retention_days <= self.settings.max_retention_days:
            raise ValidationError(
                f"retention_days must be between {self.settings.min_retention_days} and "
                f"{self.settings.max_retention_days}, got {retention_days}"
            )
        self.store.set_retention_days(owner_id, retention_days)

    def graph(self, owner_id: str, memory_id: Optional[str] = None) -> GraphView:
        return self.retrieval.graph(owner_id, memory_id)

    def stats(self, owner_id: str) -> MemoryStats:
        return self.store.stats(owner_id)

    async def expire(self, owner_id: str, now: Optional[datetime] = None) -> List[Memory]:
        async with self.locks.hold(owner_id):
            archived = self.lifecycle.expire(owner_id, now)
            for memory in archived:
                await self._sync_index(
                    "mark_archived", self.index.mark_archived(owner_id, memory.id), memory.id
                )
        return archived

    async def reindex(self, owner_id: str) -> int:
        """Push every active memory of owner_id into the vector index."""
        memories = self.store.active_memories(owner_id)
        for memory in memories:
            await self.index.add(memory)
        logger.info(f"Reindexed {len(memories)} memories for owner {owner_id}")
        return len(memories)

    async def _sync_index(self, action: str, call, memory_id: str):
        try:
            await call
        except Exception as e:
            logger.error(
                f"Vector index {action} failed for memory {memory_id}: {type(e).__name__}: {e}",
                exc_info=True,
            )
