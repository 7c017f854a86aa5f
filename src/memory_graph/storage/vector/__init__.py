from memory_graph.storage.vector.qdrant import QdrantVectorIndex
from memory_graph.storage.vector.store_index import StoreVectorIndex, cosine_similarity

__all__ = ["StoreVectorIndex", "QdrantVectorIndex", "cosine_similarity"]
