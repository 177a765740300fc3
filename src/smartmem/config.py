"""Configuration loader.

Loads memory configuration from ~/.smartmem/config.json, overlays API keys and
endpoints from the environment, and returns an immutable MemoryConfig that is
built once at start-up and passed to every component.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .memory.embeddings import DEFAULT_EMBEDDING_MODEL, get_embedding_dimension
from .memory.extractor import DEFAULT_EXTRACTION_MODEL
from .memory.scoring import DEFAULT_DECAY_DAYS, ScoringConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".smartmem" / "config.json"


class ConfigError(ValueError):
    """Raised when a configuration value is out of range."""


@dataclass(frozen=True)
class QdrantConfig:
    """Connection settings for the Qdrant vector store."""

    url: str = "http://localhost:6333"
    collection: str = "smartmem"
    api_key: str | None = None
    timeout: float = 10.0


@dataclass(frozen=True)
class EmbeddingConfig:
    """Embedding provider settings."""

    api_key: str | None = None
    model: str = DEFAULT_EMBEDDING_MODEL

    @property
    def dimension(self) -> int:
        return get_embedding_dimension(self.model)


@dataclass(frozen=True)
class ExtractionConfig:
    """Fact extraction LLM settings."""

    api_key: str | None = None
    model: str = DEFAULT_EXTRACTION_MODEL


@dataclass(frozen=True)
class MemoryConfig:
    """Configuration for the memory system.

    Attributes:
        qdrant: Vector store connection.
        embedding: Embedding provider.
        extraction: Fact extraction LLM.
        scoring: Ranking weights and decay horizon.
        auto_capture: Capture facts after each successful turn.
        auto_recall: Inject relevant memories before each turn.
        recall_limit: Memories returned by recall.
        capture_max_per_turn: Candidate facts considered per turn.
        decay_days: Age at which the recency boost reaches 0. Setting it here
            or on scoring is equivalent; setting both to different values
            raises ConfigError.
        recall_min_score: Similarity floor for manual recall.
        auto_recall_min_score: Similarity floor for automatic recall.
    """

    qdrant: QdrantConfig = field(default_factory=QdrantConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    auto_capture: bool = True
    auto_recall: bool = True
    recall_limit: int = 5
    capture_max_per_turn: int = 5
    decay_days: float = DEFAULT_DECAY_DAYS
    recall_min_score: float = 0.25
    auto_recall_min_score: float = 0.3

    def __post_init__(self) -> None:
        """Validate ranges and reconcile the two decay_days settings."""
        if self.recall_limit < 1:
            raise ConfigError("recall_limit must be at least 1")
        if self.capture_max_per_turn < 0:
            raise ConfigError("capture_max_per_turn must not be negative")
        if self.decay_days <= 0:
            raise ConfigError("decay_days must be positive")

        if self.scoring.decay_days == self.decay_days:
            return
        if self.decay_days == DEFAULT_DECAY_DAYS:
            object.__setattr__(self, "decay_days", self.scoring.decay_days)
        elif self.scoring.decay_days == DEFAULT_DECAY_DAYS:
            object.__setattr__(self, "scoring", replace(self.scoring, decay_days=self.decay_days))
        else:
            raise ConfigError(
                f"decay_days ({self.decay_days}) conflicts with "
                f"scoring.decay_days ({self.scoring.decay_days})"
            )


def load_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> MemoryConfig:
    """Load MemoryConfig from a JSON file and the environment.

    The config file should have this structure (every key optional):
    ```json
    {
      "qdrant": {"url": "http://localhost:6333", "collection": "smartmem"},
      "embedding": {"model": "text-embedding-3-small"},
      "extraction": {"model": "llama-3.1-70b-versatile"},
      "autoCapture": true,
      "autoRecall": true,
      "recallLimit": 5,
      "captureMaxPerTurn": 5,
      "decayDays": 365,
      "scoring": {"vector": 0.35, "importance": 0.3, "recency": 0.2, "access": 0.15}
    }
    ```

    Args:
        config_path: Path to config file. Uses DEFAULT_CONFIG_PATH if None.
        env: Environment mapping. Uses os.environ if None.

    Returns:
        MemoryConfig instance with loaded values.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    env = os.environ if env is None else env

    data: dict[str, Any] = {}
    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
    else:
        try:
            with open(path, "r") as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                data = loaded
            else:
                logger.warning("Config in %s is not an object. Using defaults.", path)
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON in %s: %s. Using defaults.", path, e)
        except OSError as e:
            logger.warning("Cannot read %s: %s. Using defaults.", path, e)

    return _parse_config(data, env)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    return value if isinstance(value, dict) else {}


def _get(data: dict[str, Any], key: str, types: type | tuple[type, ...], default: Any) -> Any:
    """Read a value, falling back to default when missing or wrongly typed."""
    value = data.get(key, default)
    # bool is an int subclass; only accept it where a bool is expected
    if isinstance(value, bool) and types is not bool:
        return default
    return value if isinstance(value, types) else default


def _parse_config(data: dict[str, Any], env: Mapping[str, str]) -> MemoryConfig:
    """Parse config dictionary and environment into MemoryConfig."""
    qdrant_data = _section(data, "qdrant")
    embedding_data = _section(data, "embedding")
    extraction_data = _section(data, "extraction")
    scoring_data = _section(data, "scoring")

    defaults = MemoryConfig()
    number = (int, float)

    qdrant = QdrantConfig(
        url=env.get("QDRANT_URL") or _get(qdrant_data, "url", str, defaults.qdrant.url),
        collection=_get(qdrant_data, "collection", str, defaults.qdrant.collection),
        api_key=env.get("QDRANT_API_KEY") or _get(qdrant_data, "apiKey", str, None),
        timeout=_get(qdrant_data, "timeout", number, defaults.qdrant.timeout),
    )
    embedding = EmbeddingConfig(
        api_key=env.get("OPENAI_API_KEY") or _get(embedding_data, "apiKey", str, None),
        model=env.get("SMARTMEM_EMBEDDING_MODEL")
        or _get(embedding_data, "model", str, defaults.embedding.model),
    )
    extraction = ExtractionConfig(
        api_key=env.get("GROQ_API_KEY") or _get(extraction_data, "apiKey", str, None),
        model=env.get("SMARTMEM_EXTRACTION_MODEL")
        or _get(extraction_data, "model", str, defaults.extraction.model),
    )

    decay_days = _get(data, "decayDays", number, defaults.decay_days)
    scoring = ScoringConfig(
        vector_weight=_get(scoring_data, "vector", number, defaults.scoring.vector_weight),
        importance_weight=_get(
            scoring_data, "importance", number, defaults.scoring.importance_weight
        ),
        recency_weight=_get(scoring_data, "recency", number, defaults.scoring.recency_weight),
        access_weight=_get(scoring_data, "access", number, defaults.scoring.access_weight),
    )

    return MemoryConfig(
        qdrant=qdrant,
        embedding=embedding,
        extraction=extraction,
        scoring=scoring,
        auto_capture=_get(data, "autoCapture", bool, defaults.auto_capture),
        auto_recall=_get(data, "autoRecall", bool, defaults.auto_recall),
        recall_limit=_get(data, "recallLimit", int, defaults.recall_limit),
        capture_max_per_turn=_get(
            data, "captureMaxPerTurn", int, defaults.capture_max_per_turn
        ),
        decay_days=decay_days,
        recall_min_score=_get(data, "recallMinScore", number, defaults.recall_min_score),
        auto_recall_min_score=_get(
            data, "autoRecallMinScore", number, defaults.auto_recall_min_score
        ),
    )
