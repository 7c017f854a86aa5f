"""
Semantic retrieval with 1-hop graph expansion.

Search ranks the owner's active memories by cosine similarity with no floor.
Enrichment attaches each hit's relationships, the active memories on the
other end of them and a temporal annotation. Hits are expanded in rank order
and each memory is shown at most once: a connected memory is attached only to
the first hit that reaches it, and never to a hit already shown above.
"""

import logging
from datetime import datetime
from typing import List, Optional

from memory_graph.config import MemoryGraphSettings
from memory_graph.embeddings.protocol import EmbeddingProvider
from memory_graph.exceptions import ValidationError
from memory_graph.graph.lifecycle import LifecycleManager
from memory_graph.intelligence.calls import call_with_timeout
from memory_graph.models import (
    EnrichedMemory,
    GraphNode,
    GraphView,
    RetrievalContext,
    ScoredMemory,
)
from memory_graph.retrieval.annotations import graph_summary, temporal_context
from memory_graph.storage.protocols import MemoryStore, VectorIndex

logger = logging.getLogger(__name__)


class RetrievalEngine:
    def __init__(
        self,
        store: MemoryStore,
        index: VectorIndex,
        embedder: EmbeddingProvider,
        lifecycle: LifecycleManager,
        settings: MemoryGraphSettings,
    ):
        self.store = store
        self.index = index
        self.embedder = embedder
        self.lifecycle = lifecycle
        self.settings = settings

    async def search(self, owner_id: str, query: str, limit: int = 5) -> List[ScoredMemory]:
        """
        Rank the owner's active memories against query.

        Raises:
            ValidationError: If query is empty or too long
            UpstreamError: If embedding the query fails
        """
        if not query or not query.strip():
            raise ValidationError("Query must not be empty")
        if len(query) > self.settings.max_query_length:
            raise ValidationError(
                f"Query too long ({len(query)} > {self.settings.max_query_length} characters)"
            )
        if limit < 1:
            raise ValidationError(f"limit must be positive, got {limit}")

        vector = await call_with_timeout(
            self.embedder.embed_query(query.strip()), self.settings.embedding_timeout, "embedding"
        )
        hits = await self.index.top_k(owner_id, vector, limit)

        logger.debug(f"Search for owner {owner_id} returned {len(hits)} memories")
        return hits

    def enrich(
        self, owner_id: str, hits: List[ScoredMemory], now: Optional[datetime] = None
    ) -> List[EnrichedMemory]:
        retention_days = self.lifecycle.retention_for(owner_id)
        seen = set()
        enriched = []

        for hit in hits:
            seen.add(hit.memory.id)
            relationships = self.store.relationships_for(owner_id, hit.memory.id)

            new_ids = []
            for relationship in relationships:
                other_id = relationship.other_end(hit.memory.id)
                if other_id not in seen:
                    seen.add(other_id)
                    new_ids.append(other_id)
            connected = [
                memory
                for memory in self.store.get_memories(owner_id, new_ids)
                if not memory.is_archived
            ]

            enriched.append(
                EnrichedMemory(
                    memory=hit.memory,
                    similarity=hit.similarity,
                    freshness=self.lifecycle.freshness(hit.memory.created_at, retention_days, now),
                    relationships=relationships,
                    connected_memories=connected,
                    temporal_context=temporal_context(hit.memory, relationships, connected),
                )
            )

        return enriched

    async def search_with_context(
        self, owner_id: str, query: str, limit: int = 5
    ) -> RetrievalContext:
        hits = await self.search(owner_id, query, limit)
        if not hits:
            return RetrievalContext()

        enriched = self.enrich(owner_id, hits)
        return RetrievalContext(memories=enriched, graph_summary=graph_summary(enriched))

    def graph(
        self, owner_id: str, memory_id: Optional[str] = None, now: Optional[datetime] = None
    ) -> GraphView:
        """
        Active nodes and the edges among them.

        With memory_id, only that memory and its active 1-hop neighbours;
        an archived centre yields an empty view.
        """
        retention_days = self.lifecycle.retention_for(owner_id)

        if memory_id is None:
            memories = self.store.active_memories(owner_id)
        else:
            centre = self.store.get_memory(owner_id, memory_id)
            if centre.is_archived:
                return GraphView()
            neighbour_ids = [
                r.other_end(memory_id) for r in self.store.relationships_for(owner_id, memory_id)
            ]
            neighbours = [
                m for m in self.store.get_memories(owner_id, neighbour_ids) if not m.is_archived
            ]
            memories = [centre, *neighbours]

        nodes = [
            GraphNode(
                memory=memory,
                freshness=self.lifecycle.freshness(memory.created_at, retention_days, now),
            )
            for memory in memories
        ]
        edges = self.store.relationships_among(owner_id, [m.id for m in memories])
        if memory_id is not None:
            edges = [e for e in edges if memory_id in (e.source_id, e.target_id)]

        return GraphView(nodes=nodes, edges=edges)
