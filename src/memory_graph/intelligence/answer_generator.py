"""Grounded answer generation and memory-aware chat replies."""

import logging
from typing import List

from casual_llm import ChatMessage, LLMProvider, SystemMessage, UserMessage

from memory_graph.exceptions import OracleParseError

logger = logging.getLogger(__name__)


class LLMAnswerGenerator:
    """Implements both GenerationOracle and ConversationOracle."""

    def __init__(self, llm_provider: LLMProvider, model_name: str, temperature: float = 0.3):
        self.name = "answer_generator"
        self.llm_provider = llm_provider
        self.model_name = model_name
        self.temperature = temperature

    async def complete(self, system_directive: str, context: str, question: str) -> str:
        messages = [
            SystemMessage(content=system_directive.format(context=context)),
            UserMessage(content=question),
        ]
        return await self._generate(messages)

    async def respond(self, system_directive: str, history: List[ChatMessage], message: str) -> str:
        messages = [SystemMessage(content=system_directive), *history, UserMessage(content=message)]
        return await self._generate(messages)

    async def _generate(self, messages: List[ChatMessage]) -> str:
        response = await self.llm_provider.chat(
            messages=messages, response_format="text", temperature=self.temperature
        )
        if not response.content:
            raise OracleParseError(f"{self.name} returned an empty answer", source=self.name)
        return response.content
