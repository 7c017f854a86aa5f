"""E5 embedding adapter for memory-graph."""

import asyncio
import logging
from typing import List, Optional

from memory_graph.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


class E5Embedding:
    """
    E5 model family embedding adapter (local, sentence-transformers).

    E5 models require "passage: " for stored documents and "query: " for
    search queries; the prefixes are added here.

    Supported E5 models:
    - intfloat/e5-base-v2 (768 dims) - Default
    - intfloat/e5-large-v2 (1024 dims)
    - intfloat/e5-small-v2 (384 dims)
    """

    def __init__(
        self,
        model_name: str = "intfloat/e5-base-v2",
        device: Optional[str] = None,
        normalize_embeddings: bool = True,
        cache_folder: Optional[str] = None,
    ):
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ImportError(
                "sentence-transformers is required for E5Embedding. "
                "Install with: pip install memory-graph[transformers]"
            ) from e

        self._model_name = model_name
        self._normalize = normalize_embeddings

        logger.info(f"Loading E5 model: {model_name}")
        self._model = SentenceTransformer(model_name, device=device, cache_folder=cache_folder)
        self._dimension = self._model.get_sentence_embedding_dimension()
        logger.info(f"Model loaded: {model_name} ({self._dimension} dimensions)")

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    async def _encode(self, text: str) -> List[float]:
        try:
            embedding = await asyncio.to_thread(
                self._model.encode,
                text,
                normalize_embeddings=self._normalize,
                show_progress_bar=False,
            )
        except Exception as e:
            raise EmbeddingError(f"E5 encoding failed: {e}", source="embedding") from e
        return embedding.tolist()

    async def embed_document(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text", source="embedding")
        return await self._encode(f"passage: {text}")

    async def embed_query(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text", source="embedding")
        return await self._encode(f"query: {text}")
