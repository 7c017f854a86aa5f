"""
Contradiction scan for new memories.

Candidates come from the vector index in descending similarity. Each one is
put to the primary reasoning oracle; the first that contradicts the new
statement with enough confidence is superseded and the scan stops. When the
primary oracle fails on a candidate, the secondary classifier is tried once
for that candidate. When both fail, contradiction handling is skipped for the
whole ingestion.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel

from memory_graph.config import MemoryGraphSettings
from memory_graph.exceptions import UpstreamError
from memory_graph.intelligence.calls import call_with_timeout, truncate
from memory_graph.intelligence.protocols import ReasoningOracle
from memory_graph.models import ContradictionVerdict, Memory
from memory_graph.storage.protocols import VectorIndex

logger = logging.getLogger(__name__)


class Supersession(BaseModel):
    target: Memory
    similarity: float
    verdict: ContradictionVerdict


class ContradictionScanner:
    def __init__(
        self,
        index: VectorIndex,
        reasoner: ReasoningOracle,
        settings: MemoryGraphSettings,
        fallback: Optional[ReasoningOracle] = None,
    ):
        self.index = index
        self.reasoner = reasoner
        self.fallback = fallback
        self.settings = settings

    async def scan(self, owner_id: str, content: str, embedding: List[float]) -> Optional[Supersession]:
        """
        Returns:
            The memory to supersede, or None if nothing contradicts (or the oracles failed)
        """
        candidates = await self.index.top_k(
            owner_id,
            embedding,
            self.settings.contradiction_candidate_limit,
            min_similarity=self.settings.contradiction_similarity_floor,
        )
        logger.debug(f"Contradiction scan for owner {owner_id}: {len(candidates)} candidates")

        for hit in candidates:
            verdict = await self._classify(owner_id, hit.memory, content)
            if verdict is None:
                logger.warning(
                    f"Skipping contradiction handling for owner {owner_id}: "
                    f"all classifiers failed on candidate {hit.memory.id}"
                )
                return None

            if verdict.contradicts and verdict.confidence >= self.settings.supersede_confidence_threshold:
                logger.info(
                    f"Memory {hit.memory.id} will be superseded "
                    f"(confidence={verdict.confidence:.2f}, method={verdict.method}): {verdict.reason}"
                )
                return Supersession(target=hit.memory, similarity=hit.similarity, verdict=verdict)

        return None

    async def _classify(
        self, owner_id: str, candidate: Memory, content: str
    ) -> Optional[ContradictionVerdict]:
        try:
            return await self._ask(self.reasoner, candidate, content)
        except UpstreamError as primary_error:
            if self.fallback is None:
                self._log_failure(owner_id, candidate, content, self.reasoner.name, primary_error)
                return None
            logger.warning(
                f"{self.reasoner.name} failed on candidate {candidate.id} "
                f"({type(primary_error).__name__}: {primary_error}), trying {self.fallback.name}"
            )

        try:
            return await self._ask(self.fallback, candidate, content)
        except UpstreamError as fallback_error:
            self._log_failure(owner_id, candidate, content, self.fallback.name, fallback_error)
            return None

    async def _ask(self, oracle: ReasoningOracle, candidate: Memory, content: str) -> ContradictionVerdict:
        return await call_with_timeout(
            oracle.classify_contradiction(candidate.content, content),
            self.settings.classification_timeout,
            oracle.name,
        )

    @staticmethod
    def _log_failure(owner_id: str, candidate: Memory, content: str, source: str, error: Exception):
        logger.error(
            f"Contradiction check failed: owner={owner_id} candidate={candidate.id} "
            f"existing='{truncate(candidate.content)}' new='{truncate(content)}' "
            f"source={source} error={type(error).__name__}: {error}"
        )
