"""
Cache store contract and the in-memory backend.

Backends map (prompt, signature) to the generation list computed for that
prompt. Eviction is a backend concern; the invocation core only requires
that a lookup after an update with the same pair returns the stored value
until it is overwritten or the store is cleared.
"""

from abc import ABC, abstractmethod
from typing import Optional

import structlog

from completion_core.models.llm_models import Generation


logger = structlog.get_logger(__name__)


class BaseCache(ABC):
    """Abstract async cache of generation lists."""

    @abstractmethod
    async def lookup(self, prompt: str, signature: str) -> Optional[list[Generation]]:
        """
        Return the cached generations for a prompt, or None on a miss.

        Args:
            prompt: Raw prompt text
            signature: Cache signature of the effective invocation parameters
        """

    @abstractmethod
    async def update(self, prompt: str, signature: str, generations: list[Generation]) -> None:
        """Store generations for (prompt, signature), replacing any previous value."""

    @abstractmethod
    async def clear(self) -> None:
        """Drop every entry owned by this cache."""


class InMemoryCache(BaseCache):
    """Process-local cache backed by a dict. No eviction."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], list[Generation]] = {}

    async def lookup(self, prompt: str, signature: str) -> Optional[list[Generation]]:
        entry = self._entries.get((prompt, signature))
        if entry is None:
            return None
        return [generation.model_copy() for generation in entry]

    async def update(self, prompt: str, signature: str, generations: list[Generation]) -> None:
        self._entries[(prompt, signature)] = list(generations)

    async def clear(self) -> None:
        logger.debug("Clearing in-memory cache", entries=len(self._entries))
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
