from memory_graph.retrieval.annotations import graph_summary, temporal_context
from memory_graph.retrieval.engine import RetrievalEngine

__all__ = ["RetrievalEngine", "temporal_context", "graph_summary"]
