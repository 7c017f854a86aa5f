"""
Embedding provider protocol.

Converts memory text and search queries into dense vectors for cosine
similarity search.
"""

from typing import List, Protocol

from typing_extensions import runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Protocol for text embedding providers.

    All implementations must:

    1. Return fixed-length vectors (length == dimension)
    2. Raise EmbeddingError on empty input or upstream failure
    3. Implement async methods

    Example:
        >>> embedder = OpenAIEmbedding()
        >>> vector = await embedder.embed_document("I like apples")
        >>> len(vector) == embedder.dimension
        True
    """

    @property
    def dimension(self) -> int:
        """Number of elements in each embedding vector."""
        ...

    @property
    def model_name(self) -> str:
        ...

    async def embed_document(self, text: str) -> List[float]:
        """
        Embed memory content to be stored.

        Raises:
            EmbeddingError: If text is empty or the upstream call fails
        """
        ...

    async def embed_query(self, text: str) -> List[float]:
        """
        Embed a search query.

        Raises:
            EmbeddingError: If text is empty or the upstream call fails
        """
        ...
