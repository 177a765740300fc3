"""Recall pipeline: embed, search, rank, and bump access counters."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .embeddings import Embedder
from .models import MemoryFact, ScoredMemory, now_ms
from .scoring import DEFAULT_SCORING, ScoringConfig, score_memories
from .store import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class RecallOutcome:
    """Ranked memories surfaced for a query."""

    memories: list[ScoredMemory] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.memories)

    @property
    def top_score(self) -> float:
        return self.memories[0].final_score if self.memories else 0.0


class RecallPipeline:
    """Single-pass retrieval of the most relevant memories.

    Access-count updates are dispatched as background tasks and never awaited
    on the recall path; their failures are discarded.
    """

    def __init__(
        self,
        store: VectorStore,
        embedder: Embedder,
        scoring: ScoringConfig = DEFAULT_SCORING,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.scoring = scoring
        self._pending: set[asyncio.Task[None]] = set()

    async def recall(self, query: str, limit: int, min_score: float) -> RecallOutcome:
        """Find the memories most relevant to a query.

        Args:
            query: Natural language query.
            limit: Maximum number of memories to return.
            min_score: Similarity floor applied by the store.

        Returns:
            RecallOutcome with up to limit memories, best first.
        """
        vector = await self.embedder.embed(query)
        candidates = await self.store.search(vector, limit * 2, min_score)
        scored = score_memories(candidates, self.scoring)[:limit]

        for memory in scored:
            self._bump_access(memory.fact)

        return RecallOutcome(memories=scored)

    def _bump_access(self, fact: MemoryFact) -> None:
        """Schedule the access-count update without waiting for it."""
        task = asyncio.create_task(
            self.store.patch(
                fact.id,
                {"accessCount": fact.access_count + 1, "lastAccessed": now_ms()},
            )
        )
        self._pending.add(task)
        task.add_done_callback(self._on_bump_done)

    def _on_bump_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"Access count update failed: {error}")

    @property
    def pending_updates(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight access-count updates to settle."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
