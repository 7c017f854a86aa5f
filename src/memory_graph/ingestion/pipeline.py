"""
Ingestion pipeline: raw text in, stored and linked Memory out.

Oracle calls (embedding, categorization, entity extraction) happen first and
outside any lock. The contradiction scan, relationship planning and the
single write transaction then run while holding the owner's lock, so two
ingestions for one owner can never both pass the contradiction check before
either commits. The write transaction contains no awaits: it either commits
the memory, its supersession, entities and edges together or nothing at all.
The vector index is updated before the lock is released.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from memory_graph.config import MemoryGraphSettings
from memory_graph.embeddings.protocol import EmbeddingProvider
from memory_graph.exceptions import EmbeddingError, ValidationError
from memory_graph.graph.lifecycle import SUPERSEDED, LifecycleManager, expires_at
from memory_graph.graph.relationships import RelationshipEngine
from memory_graph.ingestion.contradiction import ContradictionScanner
from memory_graph.intelligence.calls import call_with_timeout, truncate
from memory_graph.intelligence.protocols import CategorizationOracle, EntityExtractionOracle
from memory_graph.locking import OwnerLocks
from memory_graph.models import MEMORY_CATEGORIES, ExtractedEntity, Memory
from memory_graph.storage.protocols import MemoryStore, VectorIndex

logger = logging.getLogger(__name__)


class IngestionPipeline:
    def __init__(
        self,
        store: MemoryStore,
        index: VectorIndex,
        embedder: EmbeddingProvider,
        categorizer: CategorizationOracle,
        entity_extractor: EntityExtractionOracle,
        scanner: ContradictionScanner,
        relationships: RelationshipEngine,
        lifecycle: LifecycleManager,
        locks: OwnerLocks,
        settings: MemoryGraphSettings,
    ):
        self.store = store
        self.index = index
        self.embedder = embedder
        self.categorizer = categorizer
        self.entity_extractor = entity_extractor
        self.scanner = scanner
        self.relationships = relationships
        self.lifecycle = lifecycle
        self.locks = locks
        self.settings = settings

    def validate(self, owner_id: str, content: str, explicit_category: Optional[str] = None):
        if not owner_id:
            raise ValidationError("owner_id is required")
        if not content or not content.strip():
            raise ValidationError("Content must not be empty")
        if len(content) > self.settings.max_content_length:
            raise ValidationError(
                f"Content too long ({len(content)} > {self.settings.max_content_length} characters)"
            )
        if explicit_category is not None and explicit_category not in MEMORY_CATEGORIES:
            raise ValidationError(
                f"Unknown category {explicit_category!r}, expected one of {', '.join(MEMORY_CATEGORIES)}"
            )

    async def ingest(
        self,
        owner_id: str,
        content: str,
        source_url: Optional[str] = None,
        explicit_category: Optional[str] = None,
    ) -> Memory:
        """
        Store a new memory for owner_id.

        Args:
            owner_id: Owner of the memory
            content: Memory text (1 to max_content_length characters)
            source_url: Where the text was captured
            explicit_category: Overrides the categorizer's category

        Returns:
            The stored memory

        Raises:
            ValidationError: Empty or oversized content, unknown category
            UpstreamError: An oracle or the store failed (nothing was written)
            UpstreamTimeout: An oracle exhausted its time budget (nothing was written)
        """
        self.validate(owner_id, content, explicit_category)
        content = content.strip()

        embedding, classification, entities = await asyncio.gather(
            call_with_timeout(
                self.embedder.embed_document(content), self.settings.embedding_timeout, "embedding"
            ),
            call_with_timeout(
                self.categorizer.classify(content), self.settings.classification_timeout, "categorizer"
            ),
            call_with_timeout(
                self.entity_extractor.extract(content),
                self.settings.classification_timeout,
                "entity_extractor",
            ),
        )
        if not embedding:
            raise EmbeddingError("Embedding provider returned an empty vector", source="embedding")

        retention_days = self.lifecycle.retention_for(owner_id)

        async with self.locks.hold(owner_id):
            now = datetime.now()
            memory = Memory(
                owner_id=owner_id,
                content=content,
                embedding=embedding,
                category=explicit_category or classification.category,
                importance=classification.importance,
                tags=classification.tags,
                source_url=source_url,
                created_at=now,
                last_accessed=now,
                expires_at=expires_at(now, retention_days),
            )

            supersession = await self.scanner.scan(owner_id, content, embedding)
            superseded_id = supersession.target.id if supersession else None

            links = await self.relationships.plan(
                owner_id,
                memory,
                embedding,
                exclude_ids=[superseded_id] if superseded_id else None,
            )

            with self.store.transaction(owner_id) as tx:
                tx.add_memory(memory)

                if superseded_id:
                    self.lifecycle.archive(
                        owner_id,
                        superseded_id,
                        SUPERSEDED,
                        superseded_by=memory.id,
                        tx=tx,
                        now=now,
                    )

                self._store_entities(tx, memory, entities, now)
                relationships = self.relationships.apply(tx, memory, links)

            # An external index must see the commit before the next holder scans
            await self._sync_index(memory, superseded_id)

        logger.info(
            f"Ingested memory {memory.id} for owner {owner_id}: category={memory.category} "
            f"importance={memory.importance:.2f} entities={len(entities)} "
            f"relationships={len(relationships)}"
            f"{f' superseded={superseded_id}' if superseded_id else ''}"
        )
        return memory

    def _store_entities(self, tx, memory: Memory, entities: List[ExtractedEntity], now: datetime):
        for extracted in entities:
            if not extracted.value.strip():
                continue
            entity = tx.upsert_entity(extracted.type, extracted.value, now)
            tx.add_mention(entity.id, memory.id, extracted.context)

    async def _sync_index(self, memory: Memory, superseded_id: Optional[str]):
        # The store is the source of truth; a lagging external index is logged
        # and can be rebuilt with MemoryGraphService.reindex.
        try:
            await self.index.add(memory)
            if superseded_id:
                await self.index.mark_archived(memory.owner_id, superseded_id)
        except Exception as e:
            logger.error(
                f"Vector index out of sync for owner {memory.owner_id} after ingesting "
                f"{memory.id} ('{truncate(memory.content)}'): {type(e).__name__}: {e}",
                exc_info=True,
            )
