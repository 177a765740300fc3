"""Near-duplicate detection and forget-by-query resolution."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import MemoryFact
from .store import VectorStore

DUPLICATE_THRESHOLD = 0.85

FORGET_SEARCH_LIMIT = 5
FORGET_MIN_SCORE = 0.5
FORGET_AUTO_DELETE_THRESHOLD = 0.9


@dataclass
class ForgetResolution:
    """Outcome of matching a forget query against stored facts.

    Attributes:
        target: The fact to delete automatically, if the match is unambiguous.
        candidates: All matches, for the caller to pick from by id.
    """

    target: MemoryFact | None = None
    candidates: list[tuple[MemoryFact, float]] = field(default_factory=list)


class Deduplicator:
    """Similarity checks against the store before writing or deleting."""

    def __init__(
        self,
        store: VectorStore,
        threshold: float = DUPLICATE_THRESHOLD,
    ) -> None:
        self.store = store
        self.threshold = threshold

    async def find_duplicate(self, vector: list[float]) -> MemoryFact | None:
        """Return an existing fact nearly identical to vector, if any."""
        matches = await self.store.search(vector, 1, self.threshold)
        if not matches:
            return None
        return matches[0][0]

    async def find_forget_candidates(
        self, vector: list[float]
    ) -> list[tuple[MemoryFact, float]]:
        """Search facts that a forget query may refer to."""
        return await self.store.search(vector, FORGET_SEARCH_LIMIT, FORGET_MIN_SCORE)

    @staticmethod
    def resolve_forget(candidates: list[tuple[MemoryFact, float]]) -> ForgetResolution:
        """Decide whether a forget query may delete without confirmation.

        Only a single candidate at or above FORGET_AUTO_DELETE_THRESHOLD is
        deleted automatically.
        """
        if len(candidates) == 1 and candidates[0][1] >= FORGET_AUTO_DELETE_THRESHOLD:
            return ForgetResolution(target=candidates[0][0], candidates=candidates)
        return ForgetResolution(candidates=candidates)
