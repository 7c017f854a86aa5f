"""Human-readable annotations attached to retrieved memories."""

from datetime import datetime
from typing import List

from memory_graph.models import EnrichedMemory, Memory, Relationship

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def temporal_context(
    memory: Memory, relationships: List[Relationship], connected: List[Memory]
) -> str:
    """
    Summarize a memory's place in the graph.

    Example:
        "Created: 2024-05-01 09:30 | CONTRADICTS 1 other memory(ies) | OUTDATED - superseded
        by newer information | 1 later memory(ies) exist"
    """
    parts = [f"Created: {format_timestamp(memory.created_at)}"]

    contradictions = sum(1 for r in relationships if r.type == "contradicts")
    extensions = sum(1 for r in relationships if r.type == "extends")
    related = sum(1 for r in relationships if r.type == "related_to")

    if contradictions:
        parts.append(f"CONTRADICTS {contradictions} other memory(ies)")
    if memory.is_outdated:
        parts.append("OUTDATED - superseded by newer information")
    if extensions:
        parts.append(f"Extends/builds upon {extensions} related memory(ies)")
    if related:
        parts.append(f"Related to {related} other memory(ies)")

    older = sum(1 for m in connected if m.created_at < memory.created_at)
    newer = sum(1 for m in connected if m.created_at > memory.created_at)
    if older:
        parts.append(f"{older} earlier memory(ies) exist")
    if newer:
        parts.append(f"{newer} later memory(ies) exist")

    return " | ".join(parts)


def graph_summary(enriched: List[EnrichedMemory]) -> str:
    if not enriched:
        return ""

    edge_types = [r.type for m in enriched for r in m.relationships]
    contradictions = edge_types.count("contradicts")
    extensions = edge_types.count("extends")

    parts = [f"Found {len(enriched)} relevant memories with {len(edge_types)} relationships."]
    if contradictions:
        parts.append(f"{contradictions} contradictions detected - using most recent information.")
    if extensions:
        parts.append(f"Information builds across {extensions} connected insights.")
    return " ".join(parts)
