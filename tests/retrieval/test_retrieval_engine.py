"""Tests for search, enrichment and graph views."""

from datetime import datetime, timedelta

import pytest

from memory_graph.exceptions import AuthorizationError, ValidationError
from memory_graph.models import Memory, Relationship, ScoredMemory


def add(store, content, embedding, owner_id="user_a", **kwargs) -> Memory:
    memory = Memory(owner_id=owner_id, content=content, embedding=embedding, **kwargs)
    with store.transaction(owner_id) as tx:
        tx.add_memory(memory)
    return memory


def link(store, source, target, edge_type="related_to", strength=0.7, owner_id="user_a"):
    with store.transaction(owner_id) as tx:
        tx.add_relationship(
            Relationship(
                owner_id=owner_id,
                source_id=source.id,
                target_id=target.id,
                type=edge_type,
                strength=strength,
            )
        )


def archive(store, memory, owner_id="user_a"):
    with store.transaction(owner_id) as tx:
        tx.archive_memory(memory.id, None, "manual", datetime.now())


@pytest.mark.asyncio
async def test_search_ranks_without_floor(retrieval, store, embedder):
    embedder.vectors["drinks"] = [1.0, 0.0, 0.0]
    best = add(store, "I like cola", [1.0, 0.0, 0.0])
    unrelated = add(store, "My car is blue", [0.0, 1.0, 0.0])

    hits = await retrieval.search("user_a", "drinks", limit=5)

    assert [hit.memory.id for hit in hits] == [best.id, unrelated.id]
    assert hits[1].similarity == pytest.approx(0.0)


@pytest.mark.asyncio
async def test_search_excludes_archived(retrieval, store, embedder):
    """Test archived memories vanish from search but stay readable by id."""
    embedder.vectors["drinks"] = [1.0, 0.0, 0.0]
    archived = add(store, "I like Coca-Cola", [1.0, 0.0, 0.0])
    archive(store, archived)

    assert await retrieval.search("user_a", "drinks") == []
    assert store.get_memory("user_a", archived.id).is_archived is True


@pytest.mark.asyncio
async def test_search_owner_isolation(retrieval, store):
    add(store, "Their secret", [0.0, 0.0, 1.0], owner_id="user_b")

    assert await retrieval.search("user_a", "secret") == []


@pytest.mark.asyncio
async def test_search_rejects_empty_query(retrieval):
    with pytest.raises(ValidationError):
        await retrieval.search("user_a", "  ")


def test_enrich_collects_neighbourhood(retrieval, store):
    base = datetime(2024, 1, 1)
    hit = add(store, "I like oranges", [1.0, 0.0, 0.0], created_at=base + timedelta(days=1))
    older = add(store, "I like apples", [1.0, 0.0, 0.0], created_at=base)
    newer = add(store, "I like blood oranges", [1.0, 0.0, 0.0], created_at=base + timedelta(days=2))
    gone = add(store, "I like pears", [1.0, 0.0, 0.0], created_at=base)
    link(store, hit, older, "extends", 0.9)
    link(store, newer, hit, "related_to", 0.7)
    link(store, hit, gone, "related_to", 0.6)
    archive(store, gone)

    [enriched] = retrieval.enrich("user_a", [ScoredMemory(memory=hit, similarity=0.9)])

    assert len(enriched.relationships) == 3
    assert {m.id for m in enriched.connected_memories} == {older.id, newer.id}
    assert enriched.temporal_context == (
        "Created: 2024-01-02 00:00 | Extends/builds upon 1 related memory(ies) | "
        "Related to 2 other memory(ies) | 1 earlier memory(ies) exist | 1 later memory(ies) exist"
    )


def test_enrich_deduplicates_connected_memories(retrieval, store):
    """Test each memory is shown once: the lower-ranked hit repeats nothing."""
    first = add(store, "first", [1.0, 0.0, 0.0])
    second = add(store, "second", [1.0, 0.0, 0.0])
    shared = add(store, "shared", [1.0, 0.0, 0.0])
    link(store, first, shared)
    link(store, second, shared)
    link(store, first, second)

    enriched = retrieval.enrich(
        "user_a",
        [ScoredMemory(memory=first, similarity=0.9), ScoredMemory(memory=second, similarity=0.8)],
    )

    assert {m.id for m in enriched[0].connected_memories} == {shared.id, second.id}
    assert enriched[1].connected_memories == []


@pytest.mark.asyncio
async def test_search_with_context_summary(retrieval, store, embedder):
    embedder.vectors["london"] = [1.0, 0.0, 0.0]
    paris = add(store, "I live in Paris", [1.0, 0.0, 0.0])
    london = add(store, "I live in London", [0.9, 0.43589, 0.0], metadata={"outdated": True})
    link(store, paris, london, "contradicts", 0.9)

    context = await retrieval.search_with_context("user_a", "london")

    assert len(context.memories) == 2
    assert context.graph_summary == (
        "Found 2 relevant memories with 2 relationships. "
        "2 contradictions detected - using most recent information."
    )
    assert "OUTDATED" in context.memories[1].temporal_context


@pytest.mark.asyncio
async def test_search_with_context_empty(retrieval):
    context = await retrieval.search_with_context("user_a", "anything")

    assert context.memories == []
    assert context.graph_summary == ""


def test_graph_excludes_archived(retrieval, store):
    a = add(store, "a", [1.0, 0.0, 0.0])
    b = add(store, "b", [1.0, 0.0, 0.0])
    c = add(store, "c", [1.0, 0.0, 0.0])
    link(store, a, b)
    link(store, a, c)
    archive(store, c)

    view = retrieval.graph("user_a")

    assert {node.memory.id for node in view.nodes} == {a.id, b.id}
    assert [(e.source_id, e.target_id) for e in view.edges] == [(a.id, b.id)]
    assert all(node.freshness == pytest.approx(1.0, abs=0.01) for node in view.nodes)


def test_graph_around_memory(retrieval, store):
    a = add(store, "a", [1.0, 0.0, 0.0])
    b = add(store, "b", [1.0, 0.0, 0.0])
    add(store, "c", [1.0, 0.0, 0.0])
    link(store, a, b)

    view = retrieval.graph("user_a", memory_id=b.id)

    assert {node.memory.id for node in view.nodes} == {a.id, b.id}
    assert len(view.edges) == 1


def test_graph_other_owner(retrieval, store):
    theirs = add(store, "theirs", [1.0, 0.0, 0.0], owner_id="user_b")

    with pytest.raises(AuthorizationError):
        retrieval.graph("user_a", memory_id=theirs.id)
    assert retrieval.graph("user_a").nodes == []


@pytest.mark.asyncio
async def test_search_rejects_oversized_query(retrieval, settings):
    with pytest.raises(ValidationError):
        await retrieval.search("user_a", "x" * (settings.max_query_length + 1))
