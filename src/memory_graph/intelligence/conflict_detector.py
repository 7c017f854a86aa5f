"""
JSON conflict detector.

Secondary contradiction classifier. Used as the fallback when the primary
reasoner fails during ingestion, and as the informational classifier when
relationships are built.
"""

import logging

from casual_llm import LLMProvider, SystemMessage, UserMessage
from pydantic import BaseModel, Field

from memory_graph.intelligence.parsing import load_json_object, parse_model
from memory_graph.intelligence.prompts import (
    CONFLICT_DETECTION_SYSTEM_PROMPT,
    CONFLICT_DETECTION_USER_PROMPT,
)
from memory_graph.intelligence.sanitize import delimit
from memory_graph.models import ContradictionVerdict

logger = logging.getLogger(__name__)


class _ConflictResponse(BaseModel):
    has_conflict: bool = Field(..., alias="hasConflict")
    confidence: float = Field(..., ge=0.0, le=1.0)
    explanation: str = ""


class LLMConflictDetector:
    """ReasoningOracle that asks the LLM for a JSON verdict."""

    def __init__(self, llm_provider: LLMProvider, model_name: str):
        self.name = "llm_conflict_detector"
        self.llm_provider = llm_provider
        self.model_name = model_name

        logger.info(f"LLMConflictDetector initialized: model={model_name}")

    async def classify_contradiction(self, statement_a: str, statement_b: str) -> ContradictionVerdict:
        messages = [
            SystemMessage(content=CONFLICT_DETECTION_SYSTEM_PROMPT),
            UserMessage(
                content=CONFLICT_DETECTION_USER_PROMPT.format(
                    statement_a=delimit(statement_a), statement_b=delimit(statement_b)
                )
            ),
        ]
        response = await self.llm_provider.chat(
            messages=messages, response_format="json", temperature=0.2
        )

        data = load_json_object(response.content, self.name)
        parsed = parse_model(data, _ConflictResponse, self.name)

        return ContradictionVerdict(
            contradicts=parsed.has_conflict,
            confidence=parsed.confidence,
            reason=parsed.explanation,
            method="llm_json",
        )
