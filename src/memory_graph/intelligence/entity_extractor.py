"""LLM named-entity extraction."""

import logging
from typing import List

from casual_llm import LLMProvider, SystemMessage, UserMessage

from memory_graph.exceptions import OracleParseError
from memory_graph.intelligence.parsing import load_json_object, parse_model
from memory_graph.intelligence.prompts import ENTITY_EXTRACTION_SYSTEM_PROMPT
from memory_graph.intelligence.sanitize import delimit
from memory_graph.models import ENTITY_TYPES, ExtractedEntity

logger = logging.getLogger(__name__)


class LLMEntityExtractor:
    def __init__(self, llm_provider: LLMProvider, max_text_length: int = 8000):
        self.name = "entity_extractor"
        self.llm_provider = llm_provider
        self.max_text_length = max_text_length

    async def extract(self, text: str) -> List[ExtractedEntity]:
        messages = [
            SystemMessage(content=ENTITY_EXTRACTION_SYSTEM_PROMPT),
            UserMessage(
                content=f"Extract entities from this text:\n\n{delimit(text, self.max_text_length)}"
            ),
        ]
        response = await self.llm_provider.chat(
            messages=messages, response_format="json", temperature=0.3
        )

        data = load_json_object(response.content, self.name)
        items = data.get("entities")
        if not isinstance(items, list):
            raise OracleParseError(f"{self.name} response has no 'entities' list", source=self.name)

        entities: List[ExtractedEntity] = []
        for item in items:
            if not isinstance(item, dict):
                raise OracleParseError(f"{self.name} returned a non-object entity", source=self.name)
            entity_type = str(item.get("type", "")).strip().lower()
            if entity_type not in ENTITY_TYPES:
                # Unknown types are dropped, the rest of the extraction is still usable
                logger.warning(f"Dropping entity with unsupported type {entity_type!r}")
                continue
            entities.append(parse_model({**item, "type": entity_type}, ExtractedEntity, self.name))

        logger.debug(f"Extracted {len(entities)} entities")
        return entities
