"""
Tests for the ingestion pipeline.

Oracles are AsyncMocks; embeddings are fixed vectors so similarity between
statements is known exactly.
"""

import asyncio

import pytest

from memory_graph.exceptions import EmbeddingError, UpstreamError, UpstreamTimeout, ValidationError
from memory_graph.graph.relationships import RelationshipEngine
from memory_graph.ingestion.contradiction import ContradictionScanner
from memory_graph.ingestion.pipeline import IngestionPipeline
from memory_graph.models import ContradictionVerdict, ExtractedEntity
from memory_graph.storage.vector.store_index import StoreVectorIndex


def contradiction(contradicts: bool, confidence: float) -> ContradictionVerdict:
    return ContradictionVerdict(contradicts=contradicts, confidence=confidence, reason="test")


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   \n\t", "x" * 50_001])
async def test_invalid_content_rejected_before_io(pipeline, categorizer, content):
    with pytest.raises(ValidationError):
        await pipeline.ingest("user_a", content)

    categorizer.classify.assert_not_awaited()


@pytest.mark.asyncio
async def test_max_length_content_accepted(pipeline):
    memory = await pipeline.ingest("user_a", "x" * 50_000)
    assert len(memory.content) == 50_000


@pytest.mark.asyncio
async def test_unknown_category_rejected(pipeline):
    with pytest.raises(ValidationError):
        await pipeline.ingest("user_a", "I like apples", explicit_category="opinion")


@pytest.mark.asyncio
async def test_ingest_stores_memory(pipeline, store, categorizer):
    """Test the stored memory carries the classification and the retention window."""
    memory = await pipeline.ingest("user_a", "  I like apples  ", source_url="https://example.com")

    loaded = store.get_memory("user_a", memory.id)
    assert loaded.content == "I like apples"
    assert loaded.category == "preference"
    assert loaded.importance == 0.6
    assert loaded.tags == ["test"]
    assert loaded.source_url == "https://example.com"
    assert (loaded.expires_at - loaded.created_at).days == 30
    categorizer.classify.assert_awaited_once_with("I like apples")


@pytest.mark.asyncio
async def test_explicit_category_overrides_classifier(pipeline):
    memory = await pipeline.ingest("user_a", "Paris is in France", explicit_category="fact")
    assert memory.category == "fact"


@pytest.mark.asyncio
async def test_owner_retention_is_used(pipeline, store):
    store.set_retention_days("user_a", 7)

    memory = await pipeline.ingest("user_a", "I like apples")

    assert (memory.expires_at - memory.created_at).days == 7


@pytest.mark.asyncio
async def test_supersession_scenario(pipeline, store, embedder, reasoner):
    """Test "I like Coca-Cola" is archived by "I hate all cold drinks"."""
    embedder.vectors["I like Coca-Cola"] = [1.0, 0.0, 0.0]
    embedder.vectors["I hate all cold drinks"] = [0.8, 0.6, 0.0]

    first = await pipeline.ingest("user_a", "I like Coca-Cola")
    reasoner.classify_contradiction.return_value = contradiction(True, 0.8)
    second = await pipeline.ingest("user_a", "I hate all cold drinks")

    old = store.get_memory("user_a", first.id)
    assert old.is_archived is True
    assert old.superseded_by == second.id
    assert old.metadata["archive_reason"] == "superseded"
    assert store.get_memory("user_a", second.id).is_archived is False
    reasoner.classify_contradiction.assert_awaited_with("I like Coca-Cola", "I hate all cold drinks")


@pytest.mark.asyncio
async def test_compatible_statements_scenario(pipeline, store, embedder):
    """Test "I like apples" and "I like oranges" both stay active and get linked."""
    embedder.vectors["I like apples"] = [1.0, 0.0, 0.0]
    embedder.vectors["I like oranges"] = [0.9, 0.43589, 0.0]

    apples = await pipeline.ingest("user_a", "I like apples")
    oranges = await pipeline.ingest("user_a", "I like oranges")

    assert store.get_memory("user_a", apples.id).is_archived is False
    assert store.get_memory("user_a", oranges.id).is_archived is False

    relationships = store.relationships_for("user_a", apples.id)
    assert len(relationships) == 1
    assert relationships[0].type == "extends"
    assert relationships[0].source_id == oranges.id
    assert relationships[0].target_id == apples.id
    assert relationships[0].strength == pytest.approx(0.9, abs=1e-3)


@pytest.mark.asyncio
async def test_low_confidence_contradiction_does_not_archive(pipeline, store, embedder, reasoner):
    embedder.vectors["I like tea"] = [1.0, 0.0, 0.0]
    embedder.vectors["I am not sure about tea"] = [0.9, 0.43589, 0.0]

    first = await pipeline.ingest("user_a", "I like tea")
    reasoner.classify_contradiction.return_value = contradiction(True, 0.69)
    await pipeline.ingest("user_a", "I am not sure about tea")

    assert store.get_memory("user_a", first.id).is_archived is False


@pytest.mark.asyncio
async def test_first_contradicting_candidate_wins(pipeline, store, embedder, reasoner):
    """Test the scan stops at the first qualifying candidate in similarity order."""
    embedder.vectors["I live in London"] = [1.0, 0.0, 0.0]
    embedder.vectors["I live in Berlin"] = [0.6, 0.8, 0.0]
    embedder.vectors["I live in Paris"] = [0.9, 0.43589, 0.0]

    london = await pipeline.ingest("user_a", "I live in London")
    berlin = await pipeline.ingest("user_a", "I live in Berlin")

    reasoner.classify_contradiction.reset_mock()
    reasoner.classify_contradiction.return_value = contradiction(True, 0.75)
    await pipeline.ingest("user_a", "I live in Paris")

    # London (0.90) ranks above Berlin (0.89) and is the only one asked
    assert store.get_memory("user_a", london.id).is_archived is True
    assert store.get_memory("user_a", berlin.id).is_archived is False
    reasoner.classify_contradiction.assert_awaited_once_with("I live in London", "I live in Paris")


@pytest.mark.asyncio
async def test_contradiction_failure_degrades(pipeline, store, embedder, reasoner, secondary):
    """Test ingestion still succeeds, without archiving, when both classifiers fail."""
    embedder.vectors["I like Coca-Cola"] = [1.0, 0.0, 0.0]
    embedder.vectors["I hate all cold drinks"] = [0.8, 0.6, 0.0]
    first = await pipeline.ingest("user_a", "I like Coca-Cola")

    reasoner.classify_contradiction.side_effect = UpstreamTimeout("slow", source="llm_reasoner")
    secondary.classify_contradiction.side_effect = UpstreamError("down", source="llm_conflict_detector")
    second = await pipeline.ingest("user_a", "I hate all cold drinks")

    assert store.get_memory("user_a", first.id).is_archived is False
    assert store.get_memory("user_a", second.id).is_archived is False


@pytest.mark.asyncio
async def test_fallback_classifier_can_supersede(pipeline, store, embedder, reasoner, secondary):
    embedder.vectors["I like Coca-Cola"] = [1.0, 0.0, 0.0]
    embedder.vectors["I hate all cold drinks"] = [0.8, 0.6, 0.0]
    first = await pipeline.ingest("user_a", "I like Coca-Cola")

    reasoner.classify_contradiction.side_effect = UpstreamError("bad output", source="llm_reasoner")
    secondary.classify_contradiction.return_value = contradiction(True, 0.9)
    second = await pipeline.ingest("user_a", "I hate all cold drinks")

    assert store.get_memory("user_a", first.id).superseded_by == second.id


@pytest.mark.asyncio
async def test_embedding_failure_writes_nothing(pipeline, store, embedder):
    async def fail(text):
        raise EmbeddingError("quota exceeded", source="embedding")

    embedder.embed_document = fail

    with pytest.raises(EmbeddingError):
        await pipeline.ingest("user_a", "I like apples")

    assert store.stats("user_a").total_memories == 0


@pytest.mark.asyncio
async def test_oracle_timeout_aborts(pipeline, store, categorizer, settings):
    settings.classification_timeout = 0.01

    async def slow(text):
        await asyncio.sleep(1)

    categorizer.classify.side_effect = slow

    with pytest.raises(UpstreamTimeout):
        await pipeline.ingest("user_a", "I like apples")

    assert store.stats("user_a").total_memories == 0


@pytest.mark.asyncio
async def test_archival_failure_rolls_back_insert(pipeline, store, embedder, reasoner, lifecycle):
    """Test the new memory is not kept when archiving its target fails."""
    embedder.vectors["I like Coca-Cola"] = [1.0, 0.0, 0.0]
    embedder.vectors["I hate all cold drinks"] = [0.8, 0.6, 0.0]
    await pipeline.ingest("user_a", "I like Coca-Cola")

    reasoner.classify_contradiction.return_value = contradiction(True, 0.9)

    def broken_archive(*args, **kwargs):
        raise UpstreamError("disk full", source="store")

    lifecycle.archive = broken_archive

    with pytest.raises(UpstreamError):
        await pipeline.ingest("user_a", "I hate all cold drinks")

    assert store.stats("user_a").total_memories == 1


@pytest.mark.asyncio
async def test_entities_and_inferred_edges(pipeline, store, embedder, entity_extractor):
    embedder.vectors["I work at Google"] = [1.0, 0.0, 0.0]
    embedder.vectors["Google has a great cafeteria"] = [0.0, 1.0, 0.0]

    entity_extractor.extract.return_value = [
        ExtractedEntity(type="organization", value="Google", context="employer")
    ]
    first = await pipeline.ingest("user_a", "I work at Google")
    entity_extractor.extract.return_value = [
        ExtractedEntity(type="organization", value="google", context="company")
    ]
    second = await pipeline.ingest("user_a", "Google has a great cafeteria")

    entities = store.entities("user_a")
    assert len(entities) == 1
    assert entities[0].mention_count == 2
    assert len(store.mentions_for("user_a", first.id)) == 1

    relationships = store.relationships_for("user_a", first.id)
    assert [(r.type, r.source_id, r.strength) for r in relationships] == [
        ("inferred", second.id, 0.6)
    ]


@pytest.mark.asyncio
async def test_owners_are_isolated(pipeline, store, embedder, reasoner):
    """Test another owner's memories are never contradiction candidates."""
    embedder.vectors["I like Coca-Cola"] = [1.0, 0.0, 0.0]
    embedder.vectors["I hate all cold drinks"] = [0.8, 0.6, 0.0]
    theirs = await pipeline.ingest("user_b", "I like Coca-Cola")

    reasoner.classify_contradiction.return_value = contradiction(True, 0.95)
    await pipeline.ingest("user_a", "I hate all cold drinks")

    assert store.get_memory("user_b", theirs.id).is_archived is False
    assert store.relationships_for("user_b", theirs.id) == []


@pytest.mark.asyncio
async def test_concurrent_ingestion_is_serialized_per_owner(pipeline, store, embedder, reasoner):
    """Test two racing contradicting ingestions cannot both stay active."""
    embedder.vectors["I live in London"] = [1.0, 0.0, 0.0]
    embedder.vectors["I live in Paris"] = [0.9, 0.43589, 0.0]

    async def contradicts_after_yield(a, b):
        await asyncio.sleep(0.01)
        return contradiction(True, 0.9)

    reasoner.classify_contradiction.side_effect = contradicts_after_yield

    await asyncio.gather(
        pipeline.ingest("user_a", "I live in London"),
        pipeline.ingest("user_a", "I live in Paris"),
    )

    stats = store.stats("user_a")
    assert stats.total_memories == 2
    assert stats.active_memories == 1


class LaggingIndex(StoreVectorIndex):
    """External-style index: a memory is only searchable once add() has finished."""

    def __init__(self, store):
        super().__init__(store)
        self.visible = set()

    async def top_k(self, owner_id, vector, k, min_similarity=None, exclude_ids=None):
        hits = await super().top_k(owner_id, vector, k, min_similarity, exclude_ids)
        return [hit for hit in hits if hit.memory.id in self.visible]

    async def add(self, memory):
        await asyncio.sleep(0.05)
        self.visible.add(memory.id)

    async def mark_archived(self, owner_id, memory_id):
        self.visible.discard(memory_id)

    async def remove(self, owner_id, memory_id):
        self.visible.discard(memory_id)


@pytest.mark.asyncio
async def test_concurrent_ingestion_waits_for_index_sync(
    store, embedder, categorizer, entity_extractor, reasoner, secondary, lifecycle, locks, settings
):
    """Test the second ingestion scans only after the first is searchable."""
    index = LaggingIndex(store)
    lagging_pipeline = IngestionPipeline(
        store=store,
        index=index,
        embedder=embedder,
        categorizer=categorizer,
        entity_extractor=entity_extractor,
        scanner=ContradictionScanner(index, reasoner, settings, fallback=secondary),
        relationships=RelationshipEngine(store, index, secondary, settings),
        lifecycle=lifecycle,
        locks=locks,
        settings=settings,
    )
    embedder.vectors["I live in London"] = [1.0, 0.0, 0.0]
    embedder.vectors["I live in Paris"] = [0.9, 0.43589, 0.0]
    reasoner.classify_contradiction.return_value = contradiction(True, 0.9)

    await asyncio.gather(
        lagging_pipeline.ingest("user_a", "I live in London"),
        lagging_pipeline.ingest("user_a", "I live in Paris"),
    )

    stats = store.stats("user_a")
    assert stats.total_memories == 2
    assert stats.active_memories == 1
    assert reasoner.classify_contradiction.await_count == 1
    assert len(index.visible) == 1
