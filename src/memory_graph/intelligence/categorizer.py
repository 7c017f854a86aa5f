"""LLM memory categorization (category, importance, tags)."""

import logging

from casual_llm import LLMProvider, SystemMessage, UserMessage

from memory_graph.intelligence.parsing import load_json_object, parse_model
from memory_graph.intelligence.prompts import CATEGORIZATION_SYSTEM_PROMPT
from memory_graph.intelligence.sanitize import delimit
from memory_graph.models import MemoryClassification

logger = logging.getLogger(__name__)


class LLMCategorizer:
    def __init__(self, llm_provider: LLMProvider, max_text_length: int = 8000):
        self.name = "categorizer"
        self.llm_provider = llm_provider
        self.max_text_length = max_text_length

    async def classify(self, text: str) -> MemoryClassification:
        messages = [
            SystemMessage(content=CATEGORIZATION_SYSTEM_PROMPT),
            UserMessage(content=f"Categorize this memory:\n\n{delimit(text, self.max_text_length)}"),
        ]
        response = await self.llm_provider.chat(
            messages=messages, response_format="json", temperature=0.3
        )

        data = load_json_object(response.content, self.name)
        if isinstance(data.get("type"), str):
            data["type"] = data["type"].strip().lower()
        classification = parse_model(data, MemoryClassification, self.name)

        logger.debug(
            f"Categorized memory as {classification.category} "
            f"(importance={classification.importance:.2f}, tags={classification.tags})"
        )
        return classification
