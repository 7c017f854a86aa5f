"""
Storage for the memory graph.

The relational store (SQLAlchemy) is the source of truth for memories,
relationships and entities. Vector indexes answer similarity queries over an
owner's active memories; the store-backed index needs no extra service, the
Qdrant index keeps a separate collection in step after each commit.
"""

from memory_graph.storage.protocols import MemoryStore, MemoryTransaction, VectorIndex
from memory_graph.storage.sqlalchemy import SQLAlchemyMemoryStore, SQLAlchemyMemoryTransaction
from memory_graph.storage.vector import QdrantVectorIndex, StoreVectorIndex

__all__ = [
    "MemoryStore",
    "MemoryTransaction",
    "VectorIndex",
    "SQLAlchemyMemoryStore",
    "SQLAlchemyMemoryTransaction",
    "StoreVectorIndex",
    "QdrantVectorIndex",
]
