import logging
from typing import Iterable, List, Optional

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    HasIdCondition,
    MatchValue,
    PointStruct,
    VectorParams,
)

from memory_graph.exceptions import UpstreamError
from memory_graph.models import Memory, ScoredMemory
from memory_graph.storage.protocols import MemoryStore

logger = logging.getLogger(__name__)


class QdrantVectorIndex:
    """
    VectorIndex backed by a Qdrant collection.

    Points carry only owner_id/is_archived in their payload; hits are hydrated
    from the relational store, which stays the source of truth.
    """

    def __init__(
        self,
        store: MemoryStore,
        dimension: int,
        host: str = "localhost",
        port: int = 6333,
        collection_name: str = "memories",
        client: Optional[AsyncQdrantClient] = None,
    ):
        """
        Args:
            store: Relational store used to hydrate search hits
            dimension: Embedding dimension of the collection
            host: Qdrant host (default: localhost)
            port: Qdrant port (default: 6333)
            collection_name: Collection name (default: memories)
            client: Pre-built client (overrides host/port)
        """
        self.store = store
        self.dimension = dimension
        self.client = client or AsyncQdrantClient(host=host, port=port)
        self.collection_name = collection_name
        self._initialized = False

    async def _init_collection(self):
        if self._initialized:
            return
        if not await self.client.collection_exists(self.collection_name):
            await self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=VectorParams(size=self.dimension, distance=Distance.COSINE),
            )
            logger.info(f"Created Qdrant collection {self.collection_name} (size={self.dimension})")
        self._initialized = True

    async def top_k(
        self,
        owner_id: str,
        vector: List[float],
        k: int,
        min_similarity: Optional[float] = None,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> List[ScoredMemory]:
        await self._init_collection()

        must_not = []
        excluded = list(exclude_ids or ())
        if excluded:
            must_not.append(HasIdCondition(has_id=excluded))

        query_filter = Filter(
            must=[
                FieldCondition(key="owner_id", match=MatchValue(value=owner_id)),
                FieldCondition(key="is_archived", match=MatchValue(value=False)),
            ],
            must_not=must_not or None,
        )

        try:
            response = await self.client.query_points(
                collection_name=self.collection_name,
                query=vector,
                query_filter=query_filter,
                limit=k,
                score_threshold=min_similarity,
                with_payload=False,
            )
        except Exception as e:
            logger.error(f"Qdrant query failed for owner {owner_id}: {e}")
            raise UpstreamError(f"Vector index query failed: {e}", source="qdrant") from e

        # Qdrant's threshold is inclusive
        scores = {
            str(point.id): point.score
            for point in response.points
            if min_similarity is None or point.score > min_similarity
        }

        results = [
            ScoredMemory(memory=memory, similarity=scores[memory.id])
            for memory in self.store.get_memories(owner_id, scores.keys())
            if not memory.is_archived
        ]
        results.sort(key=lambda hit: (hit.similarity, hit.memory.created_at), reverse=True)

        logger.debug(f"{len(results)} hits for owner {owner_id} (k={k}, min_similarity={min_similarity})")
        return results

    async def add(self, memory: Memory) -> None:
        await self._init_collection()
        try:
            await self.client.upsert(
                collection_name=self.collection_name,
                points=[
                    PointStruct(
                        id=memory.id,
                        vector=memory.embedding,
                        payload={"owner_id": memory.owner_id, "is_archived": memory.is_archived},
                    )
                ],
            )
        except Exception as e:
            raise UpstreamError(f"Failed to index memory {memory.id}: {e}", source="qdrant") from e
        logger.debug(f"Indexed memory {memory.id}: '{memory.content[:50]}...'")

    async def mark_archived(self, owner_id: str, memory_id: str) -> None:
        await self._init_collection()
        try:
            await self.client.set_payload(
                collection_name=self.collection_name,
                payload={"is_archived": True},
                points=[memory_id],
            )
        except Exception as e:
            raise UpstreamError(f"Failed to archive memory {memory_id}: {e}", source="qdrant") from e
        logger.debug(f"Marked memory {memory_id} archived in index")

    async def remove(self, owner_id: str, memory_id: str) -> None:
        await self._init_collection()
        try:
            await self.client.delete(collection_name=self.collection_name, points_selector=[memory_id])
        except Exception as e:
            raise UpstreamError(f"Failed to remove memory {memory_id}: {e}", source="qdrant") from e
        logger.debug(f"Removed memory {memory_id} from index")
