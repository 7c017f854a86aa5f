"""Tests for E5 embedding adapter."""

from unittest.mock import Mock, patch

import numpy as np
import pytest

from memory_graph.exceptions import EmbeddingError


@pytest.fixture
def mock_sentence_transformer():
    model = Mock()
    model.get_sentence_embedding_dimension = Mock(return_value=3)
    model.encode = Mock(return_value=np.array([0.6, 0.8, 0.0]))
    return model


@pytest.fixture
def e5_embedder(mock_sentence_transformer):
    pytest.importorskip("sentence_transformers")

    from memory_graph.embeddings import E5Embedding

    with patch("sentence_transformers.SentenceTransformer", return_value=mock_sentence_transformer):
        yield E5Embedding(model_name="intfloat/e5-small-v2")


def test_model_loading(e5_embedder):
    assert e5_embedder.model_name == "intfloat/e5-small-v2"
    assert e5_embedder.dimension == 3


@pytest.mark.asyncio
async def test_embed_document_prefix(e5_embedder, mock_sentence_transformer):
    vector = await e5_embedder.embed_document("I live in London")

    assert vector == [0.6, 0.8, 0.0]
    assert mock_sentence_transformer.encode.call_args.args[0] == "passage: I live in London"
    assert mock_sentence_transformer.encode.call_args.kwargs["normalize_embeddings"] is True


@pytest.mark.asyncio
async def test_embed_query_prefix(e5_embedder, mock_sentence_transformer):
    await e5_embedder.embed_query("Where do I live?")

    assert mock_sentence_transformer.encode.call_args.args[0] == "query: Where do I live?"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   "])
async def test_empty_text_raises(e5_embedder, text):
    with pytest.raises(EmbeddingError, match="Cannot embed empty text"):
        await e5_embedder.embed_document(text)
    with pytest.raises(EmbeddingError, match="Cannot embed empty text"):
        await e5_embedder.embed_query(text)


@pytest.mark.asyncio
async def test_encoding_failure_wrapped(e5_embedder, mock_sentence_transformer):
    mock_sentence_transformer.encode.side_effect = RuntimeError("CUDA out of memory")

    with pytest.raises(EmbeddingError):
        await e5_embedder.embed_document("I like pizza")
