"""Validation of fact extraction output.

LLM output goes through two stages: ``parse_extraction_output`` turns raw text
into a loosely-typed list and never raises, then ``sanitize`` keeps only the
elements that form valid ``ExtractedFact`` values.
"""

import json
import logging
import re
from numbers import Real
from typing import Any

from .models import ExtractedFact, coerce_category, round_importance

logger = logging.getLogger(__name__)

MIN_FACT_LENGTH = 5
MAX_FACT_LENGTH = 500

# Meta-commentary the extractor sometimes emits instead of an empty list
META_PATTERNS = [
    re.compile(r"no (important|notable|significant|durable)", re.IGNORECASE),
    re.compile(r"nothing (worth|to) remember", re.IGNORECASE),
]

_FENCE_OPEN = re.compile(r"^```(?:json)?\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")


def parse_extraction_output(content: str | None) -> list[Any]:
    """Parse the raw extractor response into a list of candidates.

    Args:
        content: Raw LLM response, possibly wrapped in a markdown code block.

    Returns:
        The parsed JSON array, or empty list if content is empty, invalid
        JSON, or not an array.
    """
    if not content or not content.strip():
        return []

    json_str = _FENCE_OPEN.sub("", content.strip())
    json_str = _FENCE_CLOSE.sub("", json_str)

    try:
        data = json.loads(json_str)
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning(f"Failed to parse extraction response: {e}")
        return []

    if not isinstance(data, list):
        logger.warning("Invalid extraction response: expected a JSON array")
        return []

    return data


def _is_meta_text(text: str) -> bool:
    return any(pattern.search(text) for pattern in META_PATTERNS)


def _valid_importance(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return 0 < value <= 1


def sanitize(raw: Any) -> list[ExtractedFact]:
    """Keep only well-formed candidates and normalize them.

    Args:
        raw: Output of parse_extraction_output, or anything else.

    Returns:
        Validated facts with importance rounded to 2 decimals and category
        coerced to the allow-list.
    """
    if not isinstance(raw, list):
        return []

    facts = []
    for item in raw:
        if not isinstance(item, dict):
            continue

        text = item.get("text")
        importance = item.get("importance")

        if not isinstance(text, str):
            continue
        if not MIN_FACT_LENGTH <= len(text) <= MAX_FACT_LENGTH:
            continue
        if not _valid_importance(importance):
            continue
        if _is_meta_text(text):
            continue

        facts.append(
            ExtractedFact(
                text=text,
                category=coerce_category(item.get("category")),
                importance=round_importance(float(importance)),
            )
        )

    return facts
