"""
NLI contradiction classifier using a DeBERTa-v3 cross-encoder.

Offline alternative to the LLM conflict detector. The cross-encoder scores
(contradiction, entailment, neutral) for a statement pair; the contradiction
probability is used as the verdict confidence.

The model is lazy-loaded on first use to avoid slowing down service startup.
"""

import asyncio
import logging
import threading
from typing import Dict, List, Literal, Optional, Tuple

import numpy as np

from memory_graph.models import ContradictionVerdict

logger = logging.getLogger(__name__)

NLILabel = Literal["contradiction", "entailment", "neutral"]
_LABELS: List[NLILabel] = ["contradiction", "entailment", "neutral"]
_CACHE_LIMIT = 1000


def softmax(logits) -> List[float]:
    values = np.asarray(logits, dtype=float)
    exp_values = np.exp(values - np.max(values))
    return (exp_values / exp_values.sum()).tolist()


class NLIConflictDetector:
    """ReasoningOracle backed by a sentence-transformers CrossEncoder."""

    def __init__(
        self,
        model_name: str = "cross-encoder/nli-deberta-v3-base",
        device: Optional[str] = None,
        enable_caching: bool = True,
    ):
        """
        Args:
            model_name: Hugging Face model name
            device: "cuda", "cpu", or None for auto-detect
            enable_caching: Cache predictions for repeated statement pairs
        """
        self.name = "nli_conflict_detector"
        self.model_name = model_name
        self.device = device
        self.enable_caching = enable_caching
        self._model = None
        self._cache: Dict[Tuple[str, str], Tuple[NLILabel, List[float]]] = {}
        # predict runs in worker threads
        self._load_lock = threading.Lock()
        self._cache_lock = threading.Lock()

        logger.info(
            f"NLIConflictDetector initialized (lazy-loading): "
            f"model={model_name}, device={device or 'auto'}"
        )

    def _load_model(self):
        if self._model is not None:
            return

        with self._load_lock:
            if self._model is None:
                self._model = self._create_model()

    def _create_model(self):
        try:
            from sentence_transformers import CrossEncoder
        except ImportError as e:
            raise ImportError(
                "sentence-transformers required for NLIConflictDetector. "
                "Install with: pip install memory-graph[transformers]"
            ) from e

        logger.info(f"Loading NLI model: {self.model_name}")
        return CrossEncoder(self.model_name, device=self.device)

    def predict(self, premise: str, hypothesis: str) -> Tuple[NLILabel, List[float]]:
        """
        Returns:
            (label, [contradiction, entailment, neutral] probabilities)
        """
        cache_key = (premise, hypothesis)
        if self.enable_caching:
            with self._cache_lock:
                cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

        self._load_model()
        logits = self._model.predict([(premise, hypothesis)])[0]
        scores = softmax(logits)
        label = _LABELS[scores.index(max(scores))]

        if self.enable_caching:
            with self._cache_lock:
                if len(self._cache) >= _CACHE_LIMIT:
                    # FIFO eviction of the oldest 20%
                    self._cache = dict(list(self._cache.items())[_CACHE_LIMIT // 5 :])
                self._cache[cache_key] = (label, scores)

        return label, scores

    async def classify_contradiction(self, statement_a: str, statement_b: str) -> ContradictionVerdict:
        label, scores = await asyncio.to_thread(self.predict, statement_a, statement_b)

        logger.debug(
            f"NLI prediction: {label} "
            f"(C={scores[0]:.3f}, E={scores[1]:.3f}, N={scores[2]:.3f})"
        )

        return ContradictionVerdict(
            contradicts=label == "contradiction",
            confidence=scores[0],
            reason=f"nli label={label}",
            method="nli",
        )
