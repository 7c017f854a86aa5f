"""
Grounded question answering over the memory graph.

Preference questions ("What is my favorite X?") only see the most recent
memories, trading recall for not surfacing contradictory historical
opinions. The generation oracle gets a bounded context block and a directive
forbidding anything outside it.
"""

import logging
from typing import List

from memory_graph.config import MemoryGraphSettings
from memory_graph.exceptions import ValidationError
from memory_graph.intelligence.calls import call_with_timeout
from memory_graph.intelligence.prompts import ANSWER_SYSTEM_DIRECTIVE, NO_INFORMATION_ANSWER
from memory_graph.intelligence.protocols import GenerationOracle
from memory_graph.models import AnswerResult, EnrichedMemory, UsedMemory
from memory_graph.retrieval.annotations import format_timestamp
from memory_graph.retrieval.engine import RetrievalEngine

logger = logging.getLogger(__name__)

PREFERENCE_KEYWORDS = ("favorite", "like", "prefer", "love", "hate", "dislike", "enjoy", "want")


def is_preference_question(question: str) -> bool:
    lowered = question.lower()
    return any(keyword in lowered for keyword in PREFERENCE_KEYWORDS)


class QAOrchestrator:
    def __init__(
        self,
        retrieval: RetrievalEngine,
        generator: GenerationOracle,
        settings: MemoryGraphSettings,
    ):
        self.retrieval = retrieval
        self.generator = generator
        self.settings = settings

    def select_memories(self, question: str, memories: List[EnrichedMemory]) -> List[EnrichedMemory]:
        if not is_preference_question(question):
            return memories

        recent = sorted(memories, key=lambda m: m.memory.created_at, reverse=True)
        selected = recent[: self.settings.preference_keep_count]
        logger.info(
            f"Preference question detected. Using {len(selected)} most recent memories "
            f"out of {len(memories)} total."
        )
        return selected

    def build_context(self, graph_summary: str, memories: List[EnrichedMemory]) -> str:
        parts = [f"GRAPH OVERVIEW:\n{graph_summary}\n"]

        for i, enriched in enumerate(memories, start=1):
            block = [
                f"\n[MEMORY {i}] (Relevance: {enriched.similarity * 100:.0f}%)",
                f"Content: {enriched.memory.content}",
                f"Context: {enriched.temporal_context}",
            ]

            excerpts = enriched.connected_memories[: self.settings.connected_excerpt_count]
            if excerpts:
                block.append("\nCONNECTED INFORMATION:")
                for connected in excerpts:
                    relationship = enriched.relationship_to(connected.id)
                    label = relationship.type if relationship else "related to"
                    excerpt = connected.content[: self.settings.connected_excerpt_length]
                    block.append(
                        f"  - [{label}] {excerpt}... ({format_timestamp(connected.created_at)})"
                    )

            if enriched.memory.is_outdated:
                block.append("\nNOTE: This information has been superseded by newer data (OUTDATED)")

            parts.append("\n".join(block))

        return "\n".join(parts)

    async def answer(self, owner_id: str, question: str) -> AnswerResult:
        """
        Answer question from the owner's active memories.

        Raises:
            ValidationError: If question is empty
            UpstreamError: If retrieval or generation fails
            UpstreamTimeout: If generation exhausts its time budget
        """
        if not question or not question.strip():
            raise ValidationError("Question must not be empty")

        context = await self.retrieval.search_with_context(
            owner_id, question, self.settings.qa_search_limit
        )
        if not context.memories:
            logger.info(f"No memories found for owner {owner_id}, returning fixed answer")
            return AnswerResult(answer=NO_INFORMATION_ANSWER)

        used = self.select_memories(question, context.memories)
        answer = await call_with_timeout(
            self.generator.complete(
                ANSWER_SYSTEM_DIRECTIVE, self.build_context(context.graph_summary, used), question
            ),
            self.settings.generation_timeout,
            "answer_generator",
        )

        logger.info(f"Answered question for owner {owner_id} using {len(used)} memories")
        return AnswerResult(
            answer=answer,
            memories=[
                UsedMemory(
                    id=m.memory.id,
                    content=m.memory.content,
                    similarity=m.similarity,
                    temporal_context=m.temporal_context,
                    relationship_count=len(m.relationships),
                )
                for m in used
            ],
            graph_summary=context.graph_summary,
        )
