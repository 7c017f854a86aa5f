"""
Exception hierarchy for memory-graph.

Every error raised by the engine derives from MemoryGraphError so callers at
the service boundary can map them onto their own transport (HTTP status codes,
CLI exit codes, etc.).
"""

from typing import Optional


class MemoryGraphError(Exception):
    """Base class for all memory-graph errors."""


class ValidationError(MemoryGraphError):
    """Bad input (empty or oversized content, out-of-range settings)."""


class UpstreamError(MemoryGraphError):
    """An oracle or the persistence layer failed."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class UpstreamTimeout(UpstreamError):
    """An oracle call exhausted its time budget."""


class EmbeddingError(UpstreamError):
    """The embedding provider rejected the input or failed upstream."""


class OracleParseError(UpstreamError):
    """An oracle returned output that does not match its typed result."""


class AuthorizationError(MemoryGraphError):
    """The operation targets a memory that is not owned by the caller."""

    def __init__(self, owner_id: str, memory_id: str):
        super().__init__(f"Memory {memory_id} is not owned by {owner_id}")
        self.owner_id = owner_id
        self.memory_id = memory_id


class MemoryNotFoundError(MemoryGraphError):
    """No memory exists with the given id."""

    def __init__(self, memory_id: str):
        super().__init__(f"Memory {memory_id} not found")
        self.memory_id = memory_id


class RateLimitExceeded(MemoryGraphError):
    """The owner exhausted the request budget for the current window."""

    def __init__(self, owner_id: str, action: str, retry_after: float):
        super().__init__(
            f"Rate limit exceeded for {owner_id} ({action}), retry after {retry_after:.0f}s"
        )
        self.owner_id = owner_id
        self.action = action
        self.retry_after = retry_after
