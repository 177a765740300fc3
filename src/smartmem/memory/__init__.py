"""Long-term memory: vector storage, ranked recall and automatic capture."""

from .capture import CapturePipeline, StoreOutcome
from .dedup import Deduplicator
from .embeddings import OpenAIEmbedder
from .extractor import FactExtractor
from .manager import ForgetOutcome, MemoryManager
from .models import ExtractedFact, MemoryFact, ScoredMemory
from .recall import RecallOutcome, RecallPipeline
from .scoring import DEFAULT_SCORING, ScoringConfig, score_memories
from .store import QdrantStore, StoreError, VectorStore
from .tools import ForgetTool, RecallTool, StoreTool

__all__ = [
    "CapturePipeline",
    "DEFAULT_SCORING",
    "Deduplicator",
    "ExtractedFact",
    "FactExtractor",
    "ForgetOutcome",
    "ForgetTool",
    "MemoryFact",
    "MemoryManager",
    "OpenAIEmbedder",
    "QdrantStore",
    "RecallOutcome",
    "RecallPipeline",
    "RecallTool",
    "ScoredMemory",
    "ScoringConfig",
    "StoreError",
    "StoreOutcome",
    "StoreTool",
    "VectorStore",
    "score_memories",
]
