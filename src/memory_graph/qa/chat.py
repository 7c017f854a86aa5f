"""
Chat with memory context.

A reply is generated with the owner's most relevant memories injected into the
system directive. Afterwards the exchange is mined for insights about the
user, and each one is ingested as a new memory through the regular pipeline,
so it is categorized, checked for contradictions and linked like any other.
"""

import logging
from typing import List

from casual_llm import AssistantMessage, ChatMessage, UserMessage

from memory_graph.config import MemoryGraphSettings
from memory_graph.exceptions import UpstreamError, ValidationError
from memory_graph.ingestion.pipeline import IngestionPipeline
from memory_graph.intelligence.calls import call_with_timeout, truncate
from memory_graph.intelligence.insight_extractor import message_text
from memory_graph.intelligence.prompts import CHAT_MEMORY_CONTEXT, CHAT_SYSTEM_DIRECTIVE
from memory_graph.intelligence.protocols import ConversationOracle, InsightExtractionOracle
from memory_graph.models import ChatResult, Memory
from memory_graph.retrieval.engine import RetrievalEngine

logger = logging.getLogger(__name__)


class ChatOrchestrator:
    def __init__(
        self,
        retrieval: RetrievalEngine,
        responder: ConversationOracle,
        insight_extractor: InsightExtractionOracle,
        ingestion: IngestionPipeline,
        settings: MemoryGraphSettings,
    ):
        self.retrieval = retrieval
        self.responder = responder
        self.insight_extractor = insight_extractor
        self.ingestion = ingestion
        self.settings = settings

    def validate(self, message: str):
        if not message or not message.strip():
            raise ValidationError("Message must not be empty")
        if len(message) > self.settings.max_content_length:
            raise ValidationError(
                f"Message too long ({len(message)} > {self.settings.max_content_length} characters)"
            )

    async def relevant_context(self, owner_id: str, conversation: List[ChatMessage]) -> str:
        """
        Memories matching the last few turns, formatted for the system directive.

        Returns:
            The formatted memories, or "" when the turns are empty or nothing matches
        """
        recent = conversation[-self.settings.chat_context_messages :]
        query = " ".join(message_text(message) for message in recent).strip()
        if not query:
            return ""

        # The newest text matters most when the turns are long
        query = query[-self.settings.max_query_length :]
        hits = await self.retrieval.search(owner_id, query, self.settings.chat_context_limit)

        return "\n\n".join(
            f"[Memory {i}, relevance: {hit.similarity * 100:.0f}%]\n{hit.memory.content}"
            for i, hit in enumerate(hits, 1)
        )

    async def respond(self, owner_id: str, history: List[ChatMessage], message: str) -> str:
        self.validate(message)

        context = await self.relevant_context(owner_id, [*history, UserMessage(content=message)])
        directive = CHAT_SYSTEM_DIRECTIVE
        if context:
            directive += CHAT_MEMORY_CONTEXT.format(context=context)

        return await call_with_timeout(
            self.responder.respond(directive, history, message),
            self.settings.generation_timeout,
            "chat_responder",
        )

    async def extract_insights(self, owner_id: str, conversation: List[ChatMessage]) -> List[Memory]:
        """
        Ingest the insights found in conversation.

        Best effort: an extraction failure or a rejected insight is logged and
        the remaining insights are still stored.

        Returns:
            The memories that were ingested
        """
        try:
            insights = await call_with_timeout(
                self.insight_extractor.extract_insights(conversation),
                self.settings.generation_timeout,
                "insight_extractor",
            )
        except UpstreamError as e:
            logger.error(
                f"Insight extraction failed for owner {owner_id} "
                f"({len(conversation)} messages): {type(e).__name__}: {e}"
            )
            return []

        stored = []
        for insight in insights:
            content = insight.content.strip()
            if len(content) <= self.settings.min_insight_length:
                logger.debug(f"Skipping short insight: '{content}'")
                continue

            try:
                memory = await self.ingestion.ingest(owner_id, content)
            except (ValidationError, UpstreamError) as e:
                logger.error(
                    f"Failed to store {insight.type} insight for owner {owner_id} "
                    f"'{truncate(content)}': {type(e).__name__}: {e}"
                )
                continue
            stored.append(memory)

        logger.info(
            f"Stored {len(stored)} of {len(insights)} insights for owner {owner_id}"
        )
        return stored

    async def chat(self, owner_id: str, history: List[ChatMessage], message: str) -> ChatResult:
        """
        Reply to message, then learn from the exchange.

        Args:
            owner_id: Owner whose memories are used and extended
            history: Earlier turns of the conversation
            message: The new user message

        Raises:
            ValidationError: If message is empty or too long
            UpstreamError: If generating the reply fails
        """
        response = await self.respond(owner_id, history, message)

        insights = []
        if self.settings.extract_insights:
            conversation = [
                *history,
                UserMessage(content=message),
                AssistantMessage(content=response),
            ]
            insights = await self.extract_insights(owner_id, conversation)

        return ChatResult(response=response, insights=insights)
