"""
Memory lifecycle: freshness decay, expiry and archival.

Archival is a soft delete. An archived memory keeps its relationships and
mentions, stays readable by id, and never becomes active again. When a newer
memory supersedes it, superseded_by points forward to that memory; the
chain of pointers always ends at an active memory or a dead end and never
loops back on itself.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from memory_graph.config import MemoryGraphSettings
from memory_graph.exceptions import AuthorizationError, MemoryNotFoundError, ValidationError
from memory_graph.models import Memory
from memory_graph.storage.protocols import MemoryStore, MemoryTransaction

logger = logging.getLogger(__name__)

SUPERSEDED = "superseded"
EXPIRED = "expired"


def freshness(created_at: datetime, retention_days: int, now: Optional[datetime] = None) -> float:
    """
    Share of the retention window still remaining, clamped to [0, 1].

    freshness = clamp(1 - age_in_days / retention_days, 0, 1)
    """
    if retention_days <= 0:
        raise ValueError(f"retention_days must be positive, got {retention_days}")

    if now is None:
        now = datetime.now(created_at.tzinfo) if created_at.tzinfo else datetime.now()

    age_days = (now - created_at).total_seconds() / 86400
    return min(max(1.0 - age_days / retention_days, 0.0), 1.0)


def expires_at(created_at: datetime, retention_days: int) -> datetime:
    return created_at + timedelta(days=retention_days)


class LifecycleManager:
    def __init__(self, store: MemoryStore, settings: MemoryGraphSettings):
        self.store = store
        self.settings = settings

    def retention_for(self, owner_id: str) -> int:
        """Owner's retention window in days, defaulted and clamped."""
        return self.settings.clamp_retention(self.store.get_retention_days(owner_id))

    def freshness(
        self, created_at: datetime, retention_days: int, now: Optional[datetime] = None
    ) -> float:
        return freshness(created_at, retention_days, now)

    def archive(
        self,
        owner_id: str,
        memory_id: str,
        reason: str,
        superseded_by: Optional[str] = None,
        tx: Optional[MemoryTransaction] = None,
        now: Optional[datetime] = None,
    ) -> Memory:
        """
        Archive a memory owned by owner_id.

        Args:
            owner_id: Caller's owner id; the memory must belong to it
            memory_id: Memory to archive
            reason: Stored as metadata.archive_reason
            superseded_by: Id of the memory that replaces this one
            tx: Run inside an existing unit of work instead of opening one
            now: Archival timestamp (defaults to now)

        Returns:
            The archived memory (unchanged if it was already archived)

        Raises:
            MemoryNotFoundError: If either memory does not exist
            AuthorizationError: If either memory belongs to another owner
            ValidationError: If superseded_by would create a self-reference or a cycle
        """
        if tx is None:
            with self.store.transaction(owner_id) as own_tx:
                return self._archive(own_tx, memory_id, reason, superseded_by, now)
        if tx.owner_id != owner_id:
            raise AuthorizationError(owner_id, memory_id)
        return self._archive(tx, memory_id, reason, superseded_by, now)

    def _archive(
        self,
        tx: MemoryTransaction,
        memory_id: str,
        reason: str,
        superseded_by: Optional[str],
        now: Optional[datetime],
    ) -> Memory:
        memory = tx.get_memory(memory_id)
        if memory.is_archived:
            logger.info(
                f"Memory {memory_id} already archived "
                f"(reason={memory.metadata.get('archive_reason')}), leaving as is"
            )
            return memory

        if superseded_by is not None:
            self._check_successor(tx, memory_id, superseded_by)

        archived = tx.archive_memory(memory_id, superseded_by, reason, now or datetime.now())
        logger.info(
            f"Archived memory {memory_id} for owner {tx.owner_id} (reason={reason}"
            f"{f', superseded by {superseded_by}' if superseded_by else ''})"
        )
        return archived

    def _check_successor(self, tx: MemoryTransaction, memory_id: str, superseded_by: str):
        if superseded_by == memory_id:
            raise ValidationError(f"Memory {memory_id} cannot supersede itself")

        seen = {memory_id}
        current: Optional[str] = superseded_by
        while current is not None:
            if current in seen:
                raise ValidationError(
                    f"Superseding {memory_id} with {superseded_by} would create a cycle"
                )
            seen.add(current)
            current = tx.get_memory(current).superseded_by

    def supersession_chain(self, owner_id: str, memory_id: str) -> List[Memory]:
        """
        Follow superseded_by forward from memory_id.

        Returns:
            The memory itself followed by each successor, ending at the current one
        """
        chain = [self.store.get_memory(owner_id, memory_id)]
        seen = {memory_id}

        while chain[-1].superseded_by is not None:
            next_id = chain[-1].superseded_by
            if next_id in seen:
                logger.error(f"Supersession cycle detected at {next_id} for owner {owner_id}")
                break
            try:
                chain.append(self.store.get_memory(owner_id, next_id))
            except (MemoryNotFoundError, AuthorizationError) as e:
                logger.warning(f"Supersession chain of {memory_id} ends at {next_id}: {e}")
                break
            seen.add(next_id)

        return chain

    def expire(self, owner_id: str, now: Optional[datetime] = None) -> List[Memory]:
        """
        Apply the configured expiry policy to memories past expires_at.

        Under "signal_only" expired memories stay active and only their
        freshness reads 0. Under "archive" they are archived with reason "expired".

        Returns:
            Memories archived by this call
        """
        now = now or datetime.now()
        expired = self.store.expired_memories(owner_id, now)
        if not expired:
            return []

        if self.settings.expiry_policy == "signal_only":
            logger.debug(f"{len(expired)} expired memories left active for owner {owner_id}")
            return []

        with self.store.transaction(owner_id) as tx:
            archived = [self._archive(tx, memory.id, EXPIRED, None, now) for memory in expired]

        logger.info(f"Expired {len(archived)} memories for owner {owner_id}")
        return archived
