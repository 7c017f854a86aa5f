"""
Storage protocol definitions for the memory graph.

The relational store is the source of truth for memories, relationships and
entities. Every read and write is scoped to an owner id. The vector index
answers similarity queries and may be the store itself or an external
vector database kept in step after each commit.
"""

from datetime import datetime
from typing import ContextManager, Iterable, List, Optional, Protocol

from memory_graph.models import (
    Entity,
    EntityMention,
    Memory,
    MemoryStats,
    Relationship,
    ScoredMemory,
)


class MemoryTransaction(Protocol):
    """
    Owner-scoped unit of work.

    Obtained from MemoryStore.transaction(); everything written through it is
    committed together or rolled back together.
    """

    owner_id: str

    def add_memory(self, memory: Memory) -> Memory:
        ...

    def get_memory(self, memory_id: str) -> Memory:
        """
        Raises:
            MemoryNotFoundError: If no memory has this id
            AuthorizationError: If the memory belongs to another owner
        """
        ...

    def archive_memory(
        self,
        memory_id: str,
        superseded_by: Optional[str],
        reason: str,
        archived_at: datetime,
    ) -> Memory:
        """Set is_archived/archived_at/superseded_by and merge archive_reason into metadata."""
        ...

    def merge_metadata(self, memory_id: str, updates: dict) -> Memory:
        ...

    def upsert_entity(self, entity_type: str, value: str, seen_at: datetime) -> Entity:
        """Insert, or bump mention_count/last_seen of, the (owner, type, normalized value) entity."""
        ...

    def add_mention(self, entity_id: str, memory_id: str, context: Optional[str]) -> EntityMention:
        ...

    def add_relationship(self, relationship: Relationship) -> bool:
        """
        Insert-if-absent on (source, target, type).

        Returns:
            True if a row was inserted, False if the triple already existed
        """
        ...

    def cooccurring_memory_ids(self, memory_id: str, limit: int) -> List[str]:
        """Active memories sharing at least one entity with memory_id."""
        ...


class MemoryStore(Protocol):
    """Relational persistence with owner-scoped row access on every table."""

    def transaction(self, owner_id: str) -> ContextManager[MemoryTransaction]:
        ...

    def get_memory(self, owner_id: str, memory_id: str) -> Memory:
        """
        Direct id lookup; returns archived memories too.

        Raises:
            MemoryNotFoundError: If no memory has this id
            AuthorizationError: If the memory belongs to another owner
        """
        ...

    def get_memories(self, owner_id: str, memory_ids: Iterable[str]) -> List[Memory]:
        """Fetch several memories of one owner; ids of other owners are silently skipped."""
        ...

    def list_memories(
        self, owner_id: str, limit: int = 20, include_archived: bool = True
    ) -> List[Memory]:
        ...

    def active_memories(self, owner_id: str) -> List[Memory]:
        ...

    def expired_memories(self, owner_id: str, now: datetime) -> List[Memory]:
        """Active memories whose expires_at has passed."""
        ...

    def relationships_for(self, owner_id: str, memory_id: str) -> List[Relationship]:
        """All edges touching memory_id, strongest first."""
        ...

    def relationships_among(self, owner_id: str, memory_ids: Iterable[str]) -> List[Relationship]:
        ...

    def mentions_for(self, owner_id: str, memory_id: str) -> List[EntityMention]:
        ...

    def entities(self, owner_id: str) -> List[Entity]:
        ...

    def delete_memory(self, owner_id: str, memory_id: str) -> bool:
        """Hard delete; cascades relationships and entity mentions."""
        ...

    def track_access(self, owner_id: str, memory_id: str, accessed_at: datetime) -> Memory:
        ...

    def update_importance(self, owner_id: str, memory_id: str, importance: float) -> Memory:
        ...

    def get_retention_days(self, owner_id: str) -> Optional[int]:
        ...

    def set_retention_days(self, owner_id: str, retention_days: int) -> None:
        ...

    def stats(self, owner_id: str) -> MemoryStats:
        ...


class VectorIndex(Protocol):
    """
    Similarity search over an owner's active memories.

    top_k never returns archived memories. add/mark_archived/remove keep an
    external index in step with the store after each commit.
    """

    async def top_k(
        self,
        owner_id: str,
        vector: List[float],
        k: int,
        min_similarity: Optional[float] = None,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> List[ScoredMemory]:
        """
        Args:
            owner_id: Only this owner's memories are considered
            vector: Query embedding
            k: Maximum number of results
            min_similarity: Results must score strictly above this (None = no floor)
            exclude_ids: Memory ids to leave out

        Returns:
            Results ordered by cosine similarity, highest first
        """
        ...

    async def add(self, memory: Memory) -> None:
        ...

    async def mark_archived(self, owner_id: str, memory_id: str) -> None:
        ...

    async def remove(self, owner_id: str, memory_id: str) -> None:
        ...
