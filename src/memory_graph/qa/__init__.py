from memory_graph.qa.chat import ChatOrchestrator
from memory_graph.qa.orchestrator import PREFERENCE_KEYWORDS, QAOrchestrator, is_preference_question

__all__ = ["QAOrchestrator", "ChatOrchestrator", "is_preference_question", "PREFERENCE_KEYWORDS"]
