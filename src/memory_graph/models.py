import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

MemoryCategory = Literal["fact", "event", "preference", "concept", "entity"]
RelationshipType = Literal["extends", "contradicts", "related_to", "inferred", "temporal", "causal"]
EntityType = Literal["person", "place", "organization", "concept", "date", "preference"]
ExpiryPolicy = Literal["signal_only", "archive"]

MEMORY_CATEGORIES = ("fact", "event", "preference", "concept", "entity")
ENTITY_TYPES = ("person", "place", "organization", "concept", "date", "preference")


def new_id() -> str:
    return str(uuid.uuid4())


class Memory(BaseModel):
    id: str = Field(default_factory=new_id)
    owner_id: str = Field(..., description="Owner of this memory (row-level isolation key)")
    content: str
    embedding: List[float] = Field(default_factory=list)
    category: MemoryCategory = "fact"
    importance: float = Field(default=0.5, ge=0.0, le=1.0)
    tags: List[str] = Field(default_factory=list)
    source_url: Optional[str] = None
    access_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)
    last_accessed: datetime = Field(default_factory=datetime.now)
    expires_at: Optional[datetime] = Field(
        default=None, description="created_at + the owner's retention window"
    )
    is_archived: bool = Field(default=False, description="Soft-deleted (never un-archived)")
    archived_at: Optional[datetime] = None
    superseded_by: Optional[str] = Field(
        default=None, description="ID of the memory whose arrival archived this one"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Open bag: outdated flag, archive_reason, ..."
    )

    @property
    def is_outdated(self) -> bool:
        return bool(self.metadata.get("outdated"))


class Relationship(BaseModel):
    """Typed, directed, weighted edge between two memories of one owner."""

    id: str = Field(default_factory=new_id)
    owner_id: str
    source_id: str
    target_id: str
    type: RelationshipType
    strength: float = Field(default=0.5, ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=datetime.now)

    def other_end(self, memory_id: str) -> str:
        return self.target_id if self.source_id == memory_id else self.source_id


class Entity(BaseModel):
    id: str = Field(default_factory=new_id)
    owner_id: str
    type: EntityType
    value: str
    normalized_value: str
    mention_count: int = Field(default=1, ge=1)
    first_seen: datetime = Field(default_factory=datetime.now)
    last_seen: datetime = Field(default_factory=datetime.now)


class EntityMention(BaseModel):
    id: str = Field(default_factory=new_id)
    entity_id: str
    memory_id: str
    context: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class ScoredMemory(BaseModel):
    """A memory returned by similarity search together with its cosine score."""

    memory: Memory
    similarity: float


class EnrichedMemory(BaseModel):
    """A search hit expanded with its 1-hop neighbourhood and a temporal annotation."""

    memory: Memory
    similarity: float
    freshness: float = Field(..., ge=0.0, le=1.0)
    relationships: List[Relationship] = Field(default_factory=list)
    connected_memories: List[Memory] = Field(default_factory=list)
    temporal_context: str = ""

    def relationship_to(self, other_id: str) -> Optional[Relationship]:
        for relationship in self.relationships:
            if other_id in (relationship.source_id, relationship.target_id):
                return relationship
        return None


class RetrievalContext(BaseModel):
    memories: List[EnrichedMemory] = Field(default_factory=list)
    graph_summary: str = ""


class UsedMemory(BaseModel):
    id: str
    content: str
    similarity: float
    temporal_context: str
    relationship_count: int


class AnswerResult(BaseModel):
    answer: str
    memories: List[UsedMemory] = Field(default_factory=list)
    graph_summary: str = ""


class GraphNode(BaseModel):
    memory: Memory
    freshness: float


class GraphView(BaseModel):
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[Relationship] = Field(default_factory=list)


class MemoryStats(BaseModel):
    total_memories: int = 0
    active_memories: int = 0
    archived_memories: int = 0
    total_relationships: int = 0
    total_entities: int = 0
    avg_importance: Optional[float] = None


# Oracle results


class MemoryClassification(BaseModel):
    category: MemoryCategory = Field(..., alias="type")
    importance: float = Field(..., ge=0.0, le=1.0)
    tags: List[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class ExtractedEntity(BaseModel):
    type: EntityType
    value: str = Field(..., min_length=1)
    context: Optional[str] = None


class ContradictionVerdict(BaseModel):
    contradicts: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str = ""
    method: str = Field(default="llm", description="Which classifier produced the verdict")


InsightType = Literal["fact", "preference", "goal", "event"]


class Insight(BaseModel):
    """Something worth remembering, pulled out of a conversation."""

    type: InsightType = "fact"
    content: str = Field(..., min_length=1)
    importance: float = Field(default=0.5, ge=0.0, le=1.0)


class ChatResult(BaseModel):
    response: str
    insights: List[Memory] = Field(
        default_factory=list, description="Memories ingested from the conversation"
    )
