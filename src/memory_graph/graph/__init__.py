from memory_graph.graph.lifecycle import LifecycleManager, expires_at, freshness
from memory_graph.graph.relationships import PlannedLink, RelationshipEngine

__all__ = ["LifecycleManager", "RelationshipEngine", "PlannedLink", "freshness", "expires_at"]
