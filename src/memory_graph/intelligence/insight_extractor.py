"""LLM extraction of memorable insights from a conversation."""

import logging
from typing import List

from casual_llm import ChatMessage, LLMProvider, SystemMessage, UserMessage

from memory_graph.exceptions import OracleParseError
from memory_graph.intelligence.parsing import load_json_object, parse_model
from memory_graph.intelligence.prompts import INSIGHT_EXTRACTION_SYSTEM_PROMPT
from memory_graph.intelligence.sanitize import delimit
from memory_graph.models import Insight

logger = logging.getLogger(__name__)

INSIGHT_TYPES = ("fact", "preference", "goal", "event")


def message_text(message: ChatMessage) -> str:
    """Text of a chat message; image parts of multimodal content are dropped."""
    content = message.content
    if not content:
        return ""
    if isinstance(content, str):
        return content
    return " ".join(part.text for part in content if getattr(part, "type", None) == "text")


def format_conversation(conversation: List[ChatMessage]) -> str:
    return "\n".join(f"{message.role}: {message_text(message)}" for message in conversation)


class LLMInsightExtractor:
    """Extracts insights about the user from chat turns."""

    def __init__(self, llm_provider: LLMProvider, max_conversation_length: int = 16000):
        self.name = "insight_extractor"
        self.llm_provider = llm_provider
        self.max_conversation_length = max_conversation_length

    async def extract_insights(self, conversation: List[ChatMessage]) -> List[Insight]:
        messages = [
            SystemMessage(content=INSIGHT_EXTRACTION_SYSTEM_PROMPT),
            UserMessage(
                content=delimit(format_conversation(conversation), self.max_conversation_length)
            ),
        ]
        response = await self.llm_provider.chat(
            messages=messages, response_format="json", temperature=0.3
        )

        data = load_json_object(response.content, self.name)
        items = data.get("insights", [])
        if not isinstance(items, list):
            raise OracleParseError(f"{self.name} response has no 'insights' list", source=self.name)

        insights: List[Insight] = []
        for item in items:
            if not isinstance(item, dict):
                raise OracleParseError(f"{self.name} returned a non-object insight", source=self.name)
            insight_type = str(item.get("type") or "fact").strip().lower()
            if insight_type not in INSIGHT_TYPES:
                logger.debug(f"Unknown insight type {insight_type!r}, storing as fact")
                insight_type = "fact"
            insights.append(parse_model({**item, "type": insight_type}, Insight, self.name))

        logger.info(f"Extracted {len(insights)} insights from {len(conversation)} messages")
        return insights
