"""OpenAI embedding adapter for memory-graph."""

import logging
import os
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError

from memory_graph.exceptions import EmbeddingError

logger = logging.getLogger(__name__)

# Longer inputs are cut before they reach the API
MAX_INPUT_CHARS = 8000

_DEFAULT_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbedding:
    """
    Embedding adapter using OpenAI's embedding API.

    Also compatible with OpenAI-compatible endpoints (Azure, OpenRouter, etc.)
    through base_url.

    Example:
        >>> embedder = OpenAIEmbedding(model="text-embedding-3-small")
        >>> vector = await embedder.embed_document("I like pizza")
        >>> len(vector)
        1536
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
        timeout: float = 10.0,
        max_retries: int = 0,
    ):
        """
        Args:
            model: OpenAI model name
            api_key: OpenAI API key (None = use OPENAI_API_KEY env var)
            base_url: Custom endpoint (None = official OpenAI)
            dimensions: Output dimension (text-embedding-3-* only)
            timeout: Request timeout in seconds
            max_retries: Client-level retries (0 keeps the engine's single-attempt budget)
        """
        self._model = model
        self._dimensions = dimensions
        self._client = AsyncOpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )
        self._dimension = dimensions or _DEFAULT_DIMENSIONS.get(model, 1536)

        logger.info(f"OpenAI embedder initialized: {model} ({self._dimension} dimensions)")

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model

    async def _embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text", source="embedding")

        kwargs = {"model": self._model, "input": text[:MAX_INPUT_CHARS], "encoding_format": "float"}
        if self._dimensions is not None:
            kwargs["dimensions"] = self._dimensions

        try:
            response = await self._client.embeddings.create(**kwargs)
        except OpenAIError as e:
            logger.error(f"OpenAI embedding request failed: {type(e).__name__}: {e}")
            raise EmbeddingError(f"Failed to generate embedding: {e}", source="embedding") from e

        return list(response.data[0].embedding)

    async def embed_document(self, text: str) -> List[float]:
        """OpenAI makes no document/query distinction."""
        return await self._embed(text)

    async def embed_query(self, text: str) -> List[float]:
        return await self._embed(text)
