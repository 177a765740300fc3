"""Composite ranking of vector search results.

The final score is a weighted sum of four signals:

- vector similarity reported by the store
- importance assigned when the fact was created
- recency, decaying linearly to 0 over ``decay_days``
- access frequency, saturating logarithmically at 10 recalls

Weights are deliberately not normalized; they are contribution ceilings that
can be tuned independently and need not sum to 1.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from .models import MemoryFact, ScoredMemory, now_ms

MS_PER_DAY = 1000 * 60 * 60 * 24
DEFAULT_DECAY_DAYS = 365

_LOG10_11 = math.log10(11)


@dataclass(frozen=True)
class ScoringConfig:
    """Weights and decay horizon for the composite score."""

    decay_days: float = DEFAULT_DECAY_DAYS
    vector_weight: float = 0.35
    importance_weight: float = 0.30
    recency_weight: float = 0.20
    access_weight: float = 0.15

    def __post_init__(self) -> None:
        if self.decay_days <= 0:
            raise ValueError("decay_days must be positive")


DEFAULT_SCORING = ScoringConfig()


def recency_boost(created_at: float, decay_days: float, now: float) -> float:
    """Linear recency boost: 1.0 at creation, 0.0 at decay_days and beyond.

    Creation times in the future count as brand new.

    Args:
        created_at: Creation time in epoch milliseconds.
        decay_days: Age in days at which the boost reaches 0.
        now: Reference time in epoch milliseconds.
    """
    days_since = (now - created_at) / MS_PER_DAY
    return min(1.0, max(0.0, 1 - days_since / decay_days))


def access_boost(access_count: int) -> float:
    """Logarithmic access boost: 0 for none, ~0.29 for 1, ~0.75 for 5, 1.0 at 10."""
    if access_count <= 0:
        return 0.0
    return min(1.0, math.log10(access_count + 1) / _LOG10_11)


def score_memory(
    fact: MemoryFact,
    vector_score: float,
    config: ScoringConfig = DEFAULT_SCORING,
    now: float | None = None,
) -> ScoredMemory:
    """Compute the composite score of a single search result."""
    if now is None:
        now = now_ms()

    recency = recency_boost(fact.created_at, config.decay_days, now)
    access = access_boost(fact.access_count)

    final_score = (
        config.vector_weight * vector_score
        + config.importance_weight * fact.importance
        + config.recency_weight * recency
        + config.access_weight * access
    )
    return ScoredMemory(fact=fact, vector_score=vector_score, final_score=final_score)


def score_memories(
    results: Iterable[tuple[MemoryFact, float]],
    config: ScoringConfig = DEFAULT_SCORING,
    now: float | None = None,
) -> list[ScoredMemory]:
    """Score and rank vector search results.

    Pure function: no I/O and the input facts are not modified.

    Args:
        results: (fact, vector_score) pairs as returned by the store.
        config: Weights and decay horizon.
        now: Reference time in epoch milliseconds, defaults to the wall clock.

    Returns:
        Scored memories sorted by final score, highest first. Ties fall back
        to the higher vector score, then to input order.
    """
    if now is None:
        now = now_ms()

    scored = [score_memory(fact, vector_score, config, now) for fact, vector_score in results]
    scored.sort(key=lambda s: (s.final_score, s.vector_score), reverse=True)
    return scored
