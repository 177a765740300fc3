"""Memory manager for orchestrating recall, capture and deletion."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from groq import AsyncGroq
from openai import AsyncOpenAI

from ..events import BEFORE_TURN, TURN_END, BeforeTurnEvent, EventBus, TurnEndEvent
from ..logging import JSONLLogger, get_logger
from .capture import CapturePipeline, StoreOutcome
from .dedup import Deduplicator
from .embeddings import Embedder, OpenAIEmbedder
from .extractor import Extractor, FactExtractor
from .models import DEFAULT_CATEGORY, DEFAULT_IMPORTANCE, MemoryFact
from .recall import RecallOutcome, RecallPipeline
from .safety import format_memories_for_context, to_percent
from .store import QdrantStore, VectorStore

if TYPE_CHECKING:
    from ..config import MemoryConfig

logger = logging.getLogger(__name__)

MIN_RECALL_PROMPT_LENGTH = 5


@dataclass
class ForgetOutcome:
    """Result of a forget request.

    Attributes:
        action: 'deleted', 'not_found', 'candidates' or 'missing_param'.
        fact_id: Id of the deleted fact.
        fact: The deleted fact, when it was resolved from a query.
        candidates: Possible matches when the query was ambiguous.
    """

    action: str
    fact_id: str | None = None
    fact: MemoryFact | None = None
    candidates: list[tuple[MemoryFact, float]] = field(default_factory=list)


class MemoryManager:
    """Orchestrates memory operations: recall, capture, store and forget.

    This is the main interface for the memory system. It owns the store,
    embedder and extractor, initializes the store lazily, and provides the
    handlers the host runtime calls around each turn.
    """

    def __init__(
        self,
        config: MemoryConfig,
        store: VectorStore,
        embedder: Embedder,
        extractor: Extractor | None = None,
        event_logger: JSONLLogger | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            config: Immutable memory configuration.
            store: Vector store holding the facts.
            embedder: Embedding provider.
            extractor: Optional extractor for automatic capture.
            event_logger: JSONL event logger, the global one if None.
        """
        self.config = config
        self.store = store
        self.embedder = embedder
        self.extractor = extractor
        self.events = event_logger or get_logger()

        self.dedup = Deduplicator(store)
        self.recall_pipeline = RecallPipeline(store, embedder, config.scoring)
        self.capture_pipeline = CapturePipeline(
            store,
            embedder,
            extractor,
            max_per_turn=config.capture_max_per_turn,
            deduplicator=self.dedup,
        )

        self._initialized = False
        self._init_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: MemoryConfig) -> MemoryManager:
        """Build a manager with the Qdrant, OpenAI and Groq collaborators."""
        store = QdrantStore(
            url=config.qdrant.url,
            collection=config.qdrant.collection,
            api_key=config.qdrant.api_key,
            timeout=config.qdrant.timeout,
        )
        embedder = OpenAIEmbedder(
            AsyncOpenAI(api_key=config.embedding.api_key),
            model=config.embedding.model,
        )
        extractor = FactExtractor(
            AsyncGroq(api_key=config.extraction.api_key),
            model=config.extraction.model,
        )
        return cls(config, store, embedder, extractor)

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def ensure_initialized(self) -> None:
        """Create the store namespace once per process."""
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            await self.store.ensure_namespace(self.embedder.dimension)
            self._initialized = True

    def register(self, bus: EventBus) -> None:
        """Subscribe the automatic recall and capture handlers."""
        if self.config.auto_recall:
            bus.on(BEFORE_TURN, self.on_before_turn)
        if self.config.auto_capture:
            bus.on(TURN_END, self.on_turn_end)

    def start(self) -> None:
        """Log service start."""
        logger.info(
            f"smartmem: started (qdrant: {self.config.qdrant.url}/{self.config.qdrant.collection}, "
            f"embed: {self.config.embedding.model}, extract: {self.config.extraction.model}, "
            f"autoRecall: {self.config.auto_recall}, autoCapture: {self.config.auto_capture})"
        )
        self.events.log("memory_service", state="started")

    async def stop(self) -> None:
        """Wait for pending bookkeeping and release the store."""
        await self.recall_pipeline.drain()
        await self.store.close()
        logger.info("smartmem: stopped")
        self.events.log("memory_service", state="stopped")

    async def recall(self, query: str, limit: int | None = None) -> RecallOutcome:
        """Manual recall. Collaborator errors propagate to the caller."""
        await self.ensure_initialized()
        start = time.time()
        outcome = await self.recall_pipeline.recall(
            query, limit or self.config.recall_limit, self.config.recall_min_score
        )
        self.events.log_recall(
            query,
            len(outcome.memories),
            automatic=False,
            top_score=outcome.top_score if outcome.found else None,
            duration_ms=(time.time() - start) * 1000,
        )
        return outcome

    async def store_fact(
        self,
        text: str,
        importance: float = DEFAULT_IMPORTANCE,
        category: str = DEFAULT_CATEGORY,
    ) -> StoreOutcome:
        """Manual store with injection and duplicate checks."""
        await self.ensure_initialized()
        outcome = await self.capture_pipeline.store_manual(text, importance, category)
        self.events.log_store(
            outcome.action,
            fact_id=outcome.fact.id if outcome.fact else None,
            reason=outcome.reason,
        )
        return outcome

    async def forget(
        self, fact_id: str | None = None, query: str | None = None
    ) -> ForgetOutcome:
        """Delete a fact by id, or by query when the match is unambiguous.

        Args:
            fact_id: Id of the fact to delete. Takes precedence over query.
            query: Natural language description of the fact.

        Returns:
            ForgetOutcome describing what happened.
        """
        await self.ensure_initialized()

        if fact_id:
            await self.store.delete(fact_id)
            self.events.log_forget("deleted", fact_id=fact_id)
            return ForgetOutcome(action="deleted", fact_id=fact_id)

        if not query:
            return ForgetOutcome(action="missing_param")

        vector = await self.embedder.embed(query)
        candidates = await self.dedup.find_forget_candidates(vector)
        if not candidates:
            self.events.log_forget("not_found", count=0)
            return ForgetOutcome(action="not_found")

        resolution = self.dedup.resolve_forget(candidates)
        if resolution.target is not None:
            await self.store.delete(resolution.target.id)
            self.events.log_forget("deleted", fact_id=resolution.target.id)
            return ForgetOutcome(
                action="deleted",
                fact_id=resolution.target.id,
                fact=resolution.target,
                candidates=candidates,
            )

        self.events.log_forget("candidates", count=len(candidates))
        return ForgetOutcome(action="candidates", candidates=candidates)

    async def count(self) -> int:
        """Number of stored facts."""
        await self.ensure_initialized()
        return await self.store.count()

    async def on_before_turn(self, event: BeforeTurnEvent) -> str | None:
        """Automatic recall: return a memory block to prepend, if any.

        Never raises; a failed recall injects nothing.
        """
        if not event.prompt or len(event.prompt) < MIN_RECALL_PROMPT_LENGTH:
            return None

        try:
            await self.ensure_initialized()
            start = time.time()
            outcome = await self.recall_pipeline.recall(
                event.prompt,
                self.config.recall_limit,
                self.config.auto_recall_min_score,
            )
        except Exception as e:
            logger.warning(f"smartmem: recall failed: {e}")
            return None

        self.events.log_recall(
            event.prompt,
            len(outcome.memories),
            automatic=True,
            top_score=outcome.top_score if outcome.found else None,
            duration_ms=(time.time() - start) * 1000,
        )
        if not outcome.found:
            return None

        logger.info(
            f"smartmem: injecting {len(outcome.memories)} memories "
            f"(top score: {to_percent(outcome.top_score)}%)"
        )
        return format_memories_for_context(outcome.memories)

    async def on_turn_end(self, event: TurnEndEvent) -> list[MemoryFact]:
        """Automatic capture after a successful turn. Never raises."""
        if not event.success or not event.messages:
            return []

        try:
            await self.ensure_initialized()
        except Exception as e:
            logger.warning(f"smartmem: capture failed: {e}")
            return []

        stored = await self.capture_pipeline.capture(event.messages)
        if stored:
            logger.info(f"smartmem: auto-captured {len(stored)} facts")
            self.events.log_capture(len(stored))
        return stored
