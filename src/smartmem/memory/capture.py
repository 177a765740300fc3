"""Capture pipeline: filter, extract, sanitize, deduplicate, and store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .dedup import Deduplicator
from .embeddings import Embedder
from .extractor import Extractor
from .models import (
    DEFAULT_CATEGORY,
    DEFAULT_IMPORTANCE,
    MemoryFact,
    coerce_category,
    round_importance,
)
from .safety import looks_like_injection, should_skip_capture
from .sanitizer import MAX_FACT_LENGTH, MIN_FACT_LENGTH
from .store import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class StoreOutcome:
    """Result of a manual store request.

    Attributes:
        action: 'created', 'duplicate' or 'rejected'.
        fact: The new fact when created, the existing one when duplicate.
        reason: Why the request was rejected.
    """

    action: str
    fact: MemoryFact | None = None
    reason: str | None = None


def collect_user_texts(messages: list[Any]) -> list[str]:
    """Collect the text of user-authored messages.

    Content may be a plain string or a list of content blocks, in which case
    only blocks of type 'text' contribute. Other roles are ignored.
    """
    texts: list[str] = []
    for msg in messages:
        if not isinstance(msg, dict) or msg.get("role") != "user":
            continue

        content = msg.get("content")
        if isinstance(content, str):
            texts.append(content)
        elif isinstance(content, list):
            for block in content:
                if (
                    isinstance(block, dict)
                    and block.get("type") == "text"
                    and isinstance(block.get("text"), str)
                ):
                    texts.append(block["text"])
    return texts


class CapturePipeline:
    """Turns conversation turns and manual requests into stored facts."""

    def __init__(
        self,
        store: VectorStore,
        embedder: Embedder,
        extractor: Extractor | None = None,
        max_per_turn: int = 5,
        deduplicator: Deduplicator | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            store: The vector store facts are written to.
            embedder: Embedder for fact texts.
            extractor: Fact extractor for automatic capture.
            max_per_turn: Maximum candidates considered per turn.
            deduplicator: Duplicate checker, built on store if None.
        """
        self.store = store
        self.embedder = embedder
        self.extractor = extractor
        self.max_per_turn = max_per_turn
        self.dedup = deduplicator or Deduplicator(store)

    async def capture(self, messages: list[Any]) -> list[MemoryFact]:
        """Extract and store new facts from a finished turn.

        Never raises: failures are logged and the turn contributes nothing.

        Args:
            messages: The full message list of the turn.

        Returns:
            The facts that were stored.
        """
        if self.extractor is None:
            return []

        capturable = [t for t in collect_user_texts(messages) if not should_skip_capture(t)]
        if not capturable:
            return []

        stored: list[MemoryFact] = []
        try:
            candidates = await self.extractor.extract(capturable)

            for candidate in candidates[: self.max_per_turn]:
                vector = await self.embedder.embed(candidate.text)
                if await self.dedup.find_duplicate(vector) is not None:
                    continue

                fact = MemoryFact(
                    text=candidate.text,
                    category=candidate.category,
                    importance=candidate.importance,
                    session_key="auto",
                )
                await self.store.upsert(fact, vector)
                stored.append(fact)
        except Exception as e:
            logger.warning(f"Memory capture failed: {e}")

        return stored

    async def store_manual(
        self,
        text: str,
        importance: float = DEFAULT_IMPORTANCE,
        category: str = DEFAULT_CATEGORY,
    ) -> StoreOutcome:
        """Store a fact requested explicitly by the user or the agent.

        Collaborator errors propagate to the caller.

        Args:
            text: The fact to remember.
            importance: Importance in [0, 1], clamped if outside.
            category: Fact category, coerced to the allow-list.

        Returns:
            StoreOutcome describing what happened.
        """
        if looks_like_injection(text):
            return StoreOutcome(action="rejected", reason="prompt_injection")

        if not MIN_FACT_LENGTH <= len(text) <= MAX_FACT_LENGTH:
            return StoreOutcome(action="rejected", reason="invalid_length")

        vector = await self.embedder.embed(text)

        existing = await self.dedup.find_duplicate(vector)
        if existing is not None:
            return StoreOutcome(action="duplicate", fact=existing)

        fact = MemoryFact(
            text=text,
            category=coerce_category(category),
            importance=round_importance(min(1.0, max(0.0, float(importance)))),
            session_key="manual",
        )
        await self.store.upsert(fact, vector)
        return StoreOutcome(action="created", fact=fact)
