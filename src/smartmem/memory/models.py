"""Data models for the memory system."""

from __future__ import annotations

import math
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

VALID_CATEGORIES: tuple[str, ...] = (
    "preference",
    "decision",
    "entity",
    "fact",
    "event",
    "lesson",
)

DEFAULT_CATEGORY = "fact"
DEFAULT_IMPORTANCE = 0.7


def coerce_category(value: Any) -> str:
    """Return value if it is a known category, else the default one."""
    if isinstance(value, str) and value in VALID_CATEGORIES:
        return value
    return DEFAULT_CATEGORY


def round_importance(value: float) -> float:
    """Round an importance value to 2 decimals, halves up."""
    return math.floor(value * 100 + 0.5) / 100


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def new_fact_id() -> str:
    """Generate a fresh fact id."""
    return str(uuid.uuid4())


@dataclass
class MemoryFact:
    """A single stored unit of long-term memory.

    Attributes:
        id: Unique identifier shared with the fact's vector.
        text: Human-readable fact.
        category: One of VALID_CATEGORIES.
        importance: Value in [0, 1], rounded to 2 decimals.
        session_key: Provenance tag ('auto' or 'manual').
        agent_id: Agent that created the memory.
        created_at: Creation time in epoch milliseconds.
        access_count: Times the fact was surfaced by recall.
        last_accessed: Epoch milliseconds of the latest surfacing, 0 if never.
    """

    text: str
    category: str = DEFAULT_CATEGORY
    importance: float = DEFAULT_IMPORTANCE
    session_key: str = "manual"
    agent_id: str = "unknown"
    id: str = field(default_factory=new_fact_id)
    created_at: int = field(default_factory=now_ms)
    access_count: int = 0
    last_accessed: int = 0

    def to_payload(self) -> dict[str, Any]:
        """Convert to the metadata payload stored next to the vector."""
        return {
            "text": self.text,
            "category": self.category,
            "importance": self.importance,
            "sessionKey": self.session_key,
            "agentId": self.agent_id,
            "createdAt": self.created_at,
            "accessCount": self.access_count,
            "lastAccessed": self.last_accessed,
        }

    @classmethod
    def from_payload(cls, fact_id: str, payload: dict[str, Any]) -> MemoryFact:
        """Build a fact from a stored payload."""
        return cls(
            id=str(fact_id),
            text=payload.get("text", ""),
            category=payload.get("category", DEFAULT_CATEGORY),
            importance=payload.get("importance", 0.0),
            session_key=payload.get("sessionKey", ""),
            agent_id=payload.get("agentId") or "unknown",
            created_at=payload.get("createdAt", 0),
            access_count=payload.get("accessCount") or 0,
            last_accessed=payload.get("lastAccessed") or 0,
        )


@dataclass(frozen=True)
class ExtractedFact:
    """A validated candidate fact coming out of the sanitizer."""

    text: str
    category: str
    importance: float


@dataclass(frozen=True)
class ScoredMemory:
    """A fact ranked by the scoring engine.

    Attributes:
        fact: The stored fact.
        vector_score: Cosine similarity reported by the store.
        final_score: Composite ranking score. Never persisted.
    """

    fact: MemoryFact
    vector_score: float
    final_score: float
