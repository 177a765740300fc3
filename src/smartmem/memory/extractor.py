"""Fact extraction from conversations using LLM."""

import logging
from typing import Protocol

from groq import AsyncGroq

from .models import ExtractedFact
from .sanitizer import parse_extraction_output, sanitize

logger = logging.getLogger(__name__)

DEFAULT_EXTRACTION_MODEL = "llama-3.1-70b-versatile"

EXTRACTION_PROMPT = """You are a memory extraction system. Extract ONLY durable facts worth remembering months from now.

Rules:
- Extract: preferences, personal info, key relationships, technical decisions with lasting impact, lessons learned
- SKIP: operational details (deployments, commits, builds), transient events, progress updates, things that won't matter in a month
- Each fact must be self-contained and concise (one sentence)
- Be VERY selective: fewer high-quality facts beat many low-quality ones
- Importance scoring: 0.9-1.0 = life-changing, 0.7-0.8 = important preference/decision, 0.5-0.6 = useful context, 0.3-0.4 = nice to know
- Most facts should score 0.5-0.7. Reserve 0.9+ for truly critical info.
- Categorize: preference, decision, entity, fact, event, lesson
- If nothing is worth remembering long-term, return []

Output JSON array: [{"text": "...", "category": "...", "importance": 0.0}]"""


class Extractor(Protocol):
    """Turns user messages into candidate facts."""

    async def extract(self, texts: list[str]) -> list[ExtractedFact]: ...


class FactExtractor:
    """Extracts facts from user messages using LLM."""

    def __init__(
        self,
        llm_client: AsyncGroq,
        model: str = DEFAULT_EXTRACTION_MODEL,
        max_tokens: int = 1000,
    ) -> None:
        """Initialize the extractor.

        Args:
            llm_client: The Groq client for LLM calls.
            model: The model to use for extraction.
            max_tokens: Completion budget for the extraction response.
        """
        self.client = llm_client
        self.model = model
        self.max_tokens = max_tokens

    async def extract(self, texts: list[str]) -> list[ExtractedFact]:
        """Extract facts from user messages.

        Args:
            texts: Raw user message texts, already filtered for capture.

        Returns:
            Validated facts, empty if none found or on error.
        """
        if not texts:
            return []

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                temperature=0,
                max_tokens=self.max_tokens,
                messages=[
                    {"role": "system", "content": EXTRACTION_PROMPT},
                    {"role": "user", "content": self._format_messages(texts)},
                ],
            )
            content = response.choices[0].message.content or ""
        except Exception as e:
            logger.warning(f"Fact extraction failed: {e}")
            return []

        return sanitize(parse_extraction_output(content))

    def _format_messages(self, texts: list[str]) -> str:
        """Number the messages for the prompt."""
        return "\n".join(f"[{i}] {text}" for i, text in enumerate(texts, start=1))
