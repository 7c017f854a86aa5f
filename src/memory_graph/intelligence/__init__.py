"""
Text oracles: contradiction reasoning, conflict detection, categorization,
entity extraction, answer generation and insight extraction.
"""

from memory_graph.intelligence.answer_generator import LLMAnswerGenerator
from memory_graph.intelligence.calls import call_with_timeout
from memory_graph.intelligence.categorizer import LLMCategorizer
from memory_graph.intelligence.conflict_detector import LLMConflictDetector
from memory_graph.intelligence.contradiction_reasoner import (
    LLMContradictionReasoner,
    parse_contradiction_response,
)
from memory_graph.intelligence.entity_extractor import LLMEntityExtractor
from memory_graph.intelligence.insight_extractor import (
    LLMInsightExtractor,
    format_conversation,
    message_text,
)
from memory_graph.intelligence.nli_detector import NLIConflictDetector
from memory_graph.intelligence.protocols import (
    CategorizationOracle,
    ConversationOracle,
    EntityExtractionOracle,
    GenerationOracle,
    InsightExtractionOracle,
    ReasoningOracle,
)
from memory_graph.intelligence.sanitize import delimit, sanitize_statement

__all__ = [
    # Protocols
    "ReasoningOracle",
    "CategorizationOracle",
    "EntityExtractionOracle",
    "GenerationOracle",
    "ConversationOracle",
    "InsightExtractionOracle",
    # Implementations
    "LLMContradictionReasoner",
    "LLMConflictDetector",
    "NLIConflictDetector",
    "LLMCategorizer",
    "LLMEntityExtractor",
    "LLMAnswerGenerator",
    "LLMInsightExtractor",
    # Helpers
    "call_with_timeout",
    "parse_contradiction_response",
    "sanitize_statement",
    "delimit",
    "format_conversation",
    "message_text",
]
