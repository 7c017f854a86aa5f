"""
Text embedding providers for memory-graph.

- OpenAIEmbedding: OpenAI API embeddings (default, 1536 dims)
- E5Embedding: local E5 models (requires the transformers extra)
"""

from memory_graph.embeddings.e5_embedding import E5Embedding
from memory_graph.embeddings.openai_embedding import OpenAIEmbedding
from memory_graph.embeddings.protocol import EmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "OpenAIEmbedding",
    "E5Embedding",
]
