"""
Oracle protocols.

The engine treats text understanding and generation as black boxes. Any class
implementing these methods can be plugged in; no inheritance required.
"""

from typing import List, Protocol

from casual_llm import ChatMessage
from typing_extensions import runtime_checkable

from memory_graph.models import ContradictionVerdict, ExtractedEntity, Insight, MemoryClassification


@runtime_checkable
class ReasoningOracle(Protocol):
    """Classifies whether two statements contradict each other."""

    name: str

    async def classify_contradiction(self, statement_a: str, statement_b: str) -> ContradictionVerdict:
        """
        Args:
            statement_a: The older statement (already stored)
            statement_b: The new statement

        Raises:
            UpstreamError: On provider failure or malformed output
        """
        ...


@runtime_checkable
class CategorizationOracle(Protocol):
    async def classify(self, text: str) -> MemoryClassification:
        ...


@runtime_checkable
class EntityExtractionOracle(Protocol):
    async def extract(self, text: str) -> List[ExtractedEntity]:
        ...


@runtime_checkable
class GenerationOracle(Protocol):
    async def complete(self, system_directive: str, context: str, question: str) -> str:
        """
        Produce an answer for question using only context.

        Args:
            system_directive: Instructions; contains a {context} placeholder
            context: Assembled memory context
            question: The user's question
        """
        ...


@runtime_checkable
class ConversationOracle(Protocol):
    async def respond(
        self, system_directive: str, history: List[ChatMessage], message: str
    ) -> str:
        """Reply to message, following system_directive, after the earlier turns in history."""
        ...


@runtime_checkable
class InsightExtractionOracle(Protocol):
    async def extract_insights(self, conversation: List[ChatMessage]) -> List[Insight]:
        ...
