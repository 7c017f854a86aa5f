"""
Relationship building.

Every new memory is wired into the owner's graph two ways:

- Similarity edges: up to link_candidate_limit neighbours scoring above
  link_similarity_floor are checked by the secondary conflict classifier.
  A conflict at flag_confidence_threshold or above marks the neighbour
  outdated and adds a `contradicts` edge (strength = confidence); otherwise
  the edge is `extends` above extends_similarity_threshold, else `related_to`
  (strength = similarity).
- Inferred edges: memories sharing at least one entity get an `inferred`
  edge of fixed strength.

The flagging threshold is separate from the supersession threshold used
at ingestion. Flagging only annotates, supersession archives.

All edges point from the new memory to the existing one and are inserted
only if the (source, target, type) triple is absent.
"""

import logging
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from memory_graph.config import MemoryGraphSettings
from memory_graph.exceptions import UpstreamError
from memory_graph.intelligence.calls import call_with_timeout, truncate
from memory_graph.intelligence.protocols import ReasoningOracle
from memory_graph.models import Memory, Relationship, RelationshipType
from memory_graph.storage.protocols import MemoryStore, MemoryTransaction, VectorIndex

logger = logging.getLogger(__name__)


class PlannedLink(BaseModel):
    """A similarity edge decided before the write transaction opens."""

    target_id: str
    type: RelationshipType
    strength: float = Field(..., ge=0.0, le=1.0)
    similarity: float
    flags_outdated: bool = False


class RelationshipEngine:
    def __init__(
        self,
        store: MemoryStore,
        index: VectorIndex,
        conflict_classifier: Optional[ReasoningOracle],
        settings: MemoryGraphSettings,
    ):
        """
        Args:
            store: Relational store
            index: Vector index used to find neighbours
            conflict_classifier: Secondary classifier for the flagging pass
                (None disables flagging; every neighbour gets a similarity edge)
            settings: Thresholds and caps
        """
        self.store = store
        self.index = index
        self.conflict_classifier = conflict_classifier
        self.settings = settings

    async def plan(
        self,
        owner_id: str,
        memory: Memory,
        embedding: List[float],
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> List[PlannedLink]:
        """Find neighbours of memory and decide the edge type for each."""
        excluded = {memory.id, *(exclude_ids or ())}
        candidates = await self.index.top_k(
            owner_id,
            embedding,
            self.settings.link_candidate_limit,
            min_similarity=self.settings.link_similarity_floor,
            exclude_ids=excluded,
        )

        links = []
        for hit in candidates:
            if hit.memory.id in excluded:
                continue

            confidence = await self._conflict_confidence(owner_id, hit.memory, memory)
            if confidence is not None and confidence >= self.settings.flag_confidence_threshold:
                links.append(
                    PlannedLink(
                        target_id=hit.memory.id,
                        type="contradicts",
                        strength=confidence,
                        similarity=hit.similarity,
                        flags_outdated=True,
                    )
                )
            else:
                edge_type = (
                    "extends"
                    if hit.similarity > self.settings.extends_similarity_threshold
                    else "related_to"
                )
                links.append(
                    PlannedLink(
                        target_id=hit.memory.id,
                        type=edge_type,
                        strength=min(max(hit.similarity, 0.0), 1.0),
                        similarity=hit.similarity,
                    )
                )

            logger.debug(
                f"Link {memory.id} -> {hit.memory.id}: {links[-1].type} "
                f"(similarity={hit.similarity:.3f}, conflict={confidence})"
            )

        return links

    async def _conflict_confidence(
        self, owner_id: str, candidate: Memory, memory: Memory
    ) -> Optional[float]:
        """Conflict confidence, or None when the pair does not conflict or the check failed."""
        if self.conflict_classifier is None:
            return None

        try:
            verdict = await call_with_timeout(
                self.conflict_classifier.classify_contradiction(candidate.content, memory.content),
                self.settings.classification_timeout,
                self.conflict_classifier.name,
            )
        except UpstreamError as e:
            logger.warning(
                f"Conflict flagging failed, treating as non-conflicting: owner={owner_id} "
                f"candidate={candidate.id} existing='{truncate(candidate.content)}' "
                f"new='{truncate(memory.content)}' error={type(e).__name__}: {e}"
            )
            return None

        return verdict.confidence if verdict.contradicts else None

    def apply(
        self, tx: MemoryTransaction, memory: Memory, links: List[PlannedLink]
    ) -> List[Relationship]:
        """
        Write planned similarity edges and inferred entity edges.

        Must run after the memory's entity mentions are written in the same
        transaction, so co-occurrence sees them.

        Returns:
            Relationships actually inserted
        """
        inserted = []

        for link in links:
            if link.flags_outdated:
                tx.merge_metadata(link.target_id, {"outdated": True, "outdated_by": memory.id})
            relationship = self._relationship(tx, memory, link.target_id, link.type, link.strength)
            if relationship:
                inserted.append(relationship)

        for other_id in tx.cooccurring_memory_ids(memory.id, self.settings.inferred_limit):
            relationship = self._relationship(
                tx, memory, other_id, "inferred", self.settings.inferred_strength
            )
            if relationship:
                inserted.append(relationship)

        logger.info(
            f"Linked memory {memory.id}: {len(inserted)} relationships "
            f"({sum(1 for r in inserted if r.type == 'contradicts')} contradicts, "
            f"{sum(1 for r in inserted if r.type == 'inferred')} inferred)"
        )
        return inserted

    def _relationship(
        self,
        tx: MemoryTransaction,
        memory: Memory,
        target_id: str,
        edge_type: RelationshipType,
        strength: float,
    ) -> Optional[Relationship]:
        if target_id == memory.id:
            return None

        relationship = Relationship(
            owner_id=tx.owner_id,
            source_id=memory.id,
            target_id=target_id,
            type=edge_type,
            strength=strength,
        )
        return relationship if tx.add_relationship(relationship) else None

    async def link(self, owner_id: str, memory: Memory, embedding: List[float]) -> List[Relationship]:
        """Plan and write edges for an already stored memory in its own transaction."""
        links = await self.plan(owner_id, memory, embedding)
        with self.store.transaction(owner_id) as tx:
            stored = tx.get_memory(memory.id)
            return self.apply(tx, stored, links)
