"""
LLM-based contradiction reasoning.

Primary classifier for supersession. Both statements are sanitized and
delimited, the prompt tells the model to ignore embedded instructions, and
the line-oriented answer is parsed into a typed ContradictionVerdict.
"""

import logging
import re

from casual_llm import LLMProvider, UserMessage

from memory_graph.exceptions import OracleParseError
from memory_graph.intelligence.calls import truncate
from memory_graph.intelligence.prompts import CONTRADICTION_REASONING_PROMPT
from memory_graph.intelligence.sanitize import delimit
from memory_graph.models import ContradictionVerdict

logger = logging.getLogger(__name__)

_CONTRADICTS_RE = re.compile(r"CONTRADICTS:\s*(YES|NO)\b", re.IGNORECASE)
_CONFIDENCE_RE = re.compile(r"CONFIDENCE:\s*([0-9]*\.?[0-9]+)")
_REASON_RE = re.compile(r"REASON:\s*(.+)", re.IGNORECASE)


def parse_contradiction_response(text: str) -> ContradictionVerdict:
    """
    Parse a CONTRADICTS/CONFIDENCE/REASON response.

    Raises:
        OracleParseError: If the verdict or confidence is missing or out of range
    """
    contradicts_match = _CONTRADICTS_RE.search(text)
    confidence_match = _CONFIDENCE_RE.search(text)
    if not contradicts_match or not confidence_match:
        raise OracleParseError(
            f"Malformed contradiction response: {truncate(text)!r}", source="contradiction_reasoner"
        )

    confidence = float(confidence_match.group(1))
    if not 0.0 <= confidence <= 1.0:
        raise OracleParseError(
            f"Contradiction confidence out of range: {confidence}", source="contradiction_reasoner"
        )

    reason_match = _REASON_RE.search(text)
    return ContradictionVerdict(
        contradicts=contradicts_match.group(1).upper() == "YES",
        confidence=confidence,
        reason=reason_match.group(1).strip() if reason_match else "",
        method="llm",
    )


class LLMContradictionReasoner:
    """
    Contradiction classifier backed by a chat LLM.

    Implements the ReasoningOracle protocol.
    """

    def __init__(self, llm_provider: LLMProvider, model_name: str, max_statement_length: int = 2000):
        """
        Args:
            llm_provider: casual-llm provider instance (OpenAI, Ollama, ...)
            model_name: Name of the model (for logging)
            max_statement_length: Statements are truncated to this many characters
        """
        self.name = "llm_reasoner"
        self.llm_provider = llm_provider
        self.model_name = model_name
        self.max_statement_length = max_statement_length
        self.call_count = 0
        self.failure_count = 0

        logger.info(f"LLMContradictionReasoner initialized: model={model_name}")

    async def classify_contradiction(self, statement_a: str, statement_b: str) -> ContradictionVerdict:
        prompt = CONTRADICTION_REASONING_PROMPT.format(
            statement_a=delimit(statement_a, self.max_statement_length),
            statement_b=delimit(statement_b, self.max_statement_length),
        )

        self.call_count += 1
        try:
            response = await self.llm_provider.chat(
                [UserMessage(content=prompt)],
                response_format="text",
                temperature=0.0,
                max_tokens=100,
            )
            verdict = parse_contradiction_response(response.content or "")
        except Exception:
            self.failure_count += 1
            raise

        logger.debug(
            f"Contradiction verdict: contradicts={verdict.contradicts} "
            f"confidence={verdict.confidence:.2f}\n"
            f"  A: {truncate(statement_a)}\n"
            f"  B: {truncate(statement_b)}\n"
            f"  Reason: {verdict.reason}"
        )
        return verdict

    def get_metrics(self) -> dict:
        return {
            "reasoner_call_count": self.call_count,
            "reasoner_failure_count": self.failure_count,
        }
