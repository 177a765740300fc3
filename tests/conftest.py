"""Shared fixtures: in-memory vector store, keyword embedder, scripted extractor."""

import math
from pathlib import Path
from typing import Any, Callable

import pytest

from smartmem.logging import JSONLLogger, configure_logger, reset_logger
from smartmem.memory.models import ExtractedFact, MemoryFact
from smartmem.memory.store import StoreError

KEYWORDS = ("coffee", "tea", "python", "typescript", "dog", "berlin", "vim", "rust")


class FakeVectorStore:
    """VectorStore keeping points in a dict and ranking by cosine similarity."""

    def __init__(self) -> None:
        self.points: dict[str, tuple[MemoryFact, list[float]]] = {}
        self.patches: list[tuple[str, dict[str, Any]]] = []
        self.deleted: list[str] = []
        self.namespace_calls = 0
        self.dimension: int | None = None
        self.closed = False
        self.failing: set[str] = set()

    def _check(self, method: str) -> None:
        if method in self.failing:
            raise StoreError(f"{method} unavailable")

    async def ensure_namespace(self, dimension: int) -> None:
        self._check("ensure_namespace")
        self.namespace_calls += 1
        self.dimension = dimension

    async def upsert(self, fact: MemoryFact, vector: list[float]) -> None:
        self._check("upsert")
        self.points[fact.id] = (fact, list(vector))

    async def search(
        self, vector: list[float], limit: int, min_score: float
    ) -> list[tuple[MemoryFact, float]]:
        self._check("search")
        hits = []
        for fact, stored in self.points.values():
            score = cosine(vector, stored)
            if score >= min_score:
                hits.append((fact, score))
        hits.sort(key=lambda hit: hit[1], reverse=True)
        return hits[:limit]

    async def patch(self, fact_id: str, payload: dict[str, Any]) -> None:
        self._check("patch")
        self.patches.append((fact_id, payload))
        if fact_id in self.points:
            fact, vector = self.points[fact_id]
            merged = {**fact.to_payload(), **payload}
            self.points[fact_id] = (MemoryFact.from_payload(fact_id, merged), vector)

    async def delete(self, fact_id: str) -> None:
        self._check("delete")
        self.deleted.append(fact_id)
        self.points.pop(fact_id, None)

    async def count(self) -> int:
        self._check("count")
        return len(self.points)

    async def close(self) -> None:
        self.closed = True

    def facts(self) -> list[MemoryFact]:
        return [fact for fact, _ in self.points.values()]


class KeywordEmbedder:
    """Embedder with one dimension per known keyword.

    Texts sharing the same keywords get identical vectors. Explicit vectors
    can be assigned per text with ``vectors``.
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = dict(vectors or {})
        self.calls: list[str] = []

    @property
    def dimension(self) -> int:
        return len(KEYWORDS)

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.vectors:
            return list(self.vectors[text])
        lowered = text.lower()
        return [1.0 if keyword in lowered else 0.0 for keyword in KEYWORDS]


class ScriptedExtractor:
    """Extractor returning a fixed list of facts, or raising."""

    def __init__(self, facts: list[ExtractedFact] | None = None, error: Exception | None = None) -> None:
        self.facts = facts or []
        self.error = error
        self.calls: list[list[str]] = []

    async def extract(self, texts: list[str]) -> list[ExtractedFact]:
        self.calls.append(list(texts))
        if self.error is not None:
            raise self.error
        return list(self.facts)


def cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


def keyword_vector(*keywords: str) -> list[float]:
    return [1.0 if keyword in keywords else 0.0 for keyword in KEYWORDS]


@pytest.fixture(autouse=True)
def event_log(tmp_path: Path) -> JSONLLogger:
    """Send JSONL events to a temporary directory."""
    logger = configure_logger(log_dir=tmp_path / "logs")
    yield logger
    reset_logger()


@pytest.fixture
def fake_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def make_extractor() -> Callable[..., ScriptedExtractor]:
    return ScriptedExtractor


@pytest.fixture
def vector() -> Callable[..., list[float]]:
    return keyword_vector
