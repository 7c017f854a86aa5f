"""
Store-backed vector index.

Scores the owner's active memories straight out of the relational store with
numpy cosine similarity. Suitable for tests, development and small graphs;
for larger deployments use the Qdrant index.
"""

import logging
from typing import Iterable, List, Optional

import numpy as np

from memory_graph.models import Memory, ScoredMemory
from memory_graph.storage.protocols import MemoryStore

logger = logging.getLogger(__name__)


def cosine_similarity(vec1: List[float], vec2: List[float]) -> float:
    """Cosine similarity between two vectors (0.0 when either is zero)."""
    a = np.asarray(vec1, dtype=float)
    b = np.asarray(vec2, dtype=float)
    if a.shape != b.shape:
        raise ValueError("Vectors must have the same length")

    magnitude = np.linalg.norm(a) * np.linalg.norm(b)
    if magnitude == 0:
        return 0.0
    return float(np.dot(a, b) / magnitude)


class StoreVectorIndex:
    """
    VectorIndex implementation that reads embeddings from a MemoryStore.

    Nothing is cached, so add/mark_archived/remove are no-ops: the store is
    already up to date once the ingestion transaction commits.
    """

    def __init__(self, store: MemoryStore):
        self.store = store
        logger.info("StoreVectorIndex initialized")

    async def top_k(
        self,
        owner_id: str,
        vector: List[float],
        k: int,
        min_similarity: Optional[float] = None,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> List[ScoredMemory]:
        excluded = set(exclude_ids or ())
        results = []

        for memory in self.store.active_memories(owner_id):
            if memory.id in excluded or not memory.embedding:
                continue
            if len(memory.embedding) != len(vector):
                logger.warning(
                    f"Skipping memory {memory.id}: embedding dimension "
                    f"{len(memory.embedding)} != {len(vector)}"
                )
                continue

            score = cosine_similarity(vector, memory.embedding)
            if min_similarity is not None and score <= min_similarity:
                continue
            results.append(ScoredMemory(memory=memory, similarity=score))

        # Highest score first; ties go to the newer memory
        results.sort(key=lambda hit: (hit.similarity, hit.memory.created_at), reverse=True)
        results = results[:k]

        logger.debug(
            f"{len(results)} similar memories for owner {owner_id} "
            f"(k={k}, min_similarity={min_similarity})"
        )
        return results

    async def add(self, memory: Memory) -> None:
        pass

    async def mark_archived(self, owner_id: str, memory_id: str) -> None:
        pass

    async def remove(self, owner_id: str, memory_id: str) -> None:
        pass
