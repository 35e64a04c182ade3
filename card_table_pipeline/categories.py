# card_table_pipeline/categories.py

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Optional

from .config_behavior import (
    CATEGORY_PHRASES,
    TRADEMARK_GLYPHS,
    TRAVEL_KEYWORDS,
    TRAVEL_PLATFORMS,
    TRAVEL_SUBCATEGORIES,
)

logger = logging.getLogger(__name__)

_PURCHASE_WORD = re.compile(r"\bpurchases?\b")
# Needles must start on a word boundary: "gas" must not fire inside "vegas".
_PHRASE_PATTERNS = [(re.compile(r"\b" + re.escape(needle)), tag) for needle, tag in CATEGORY_PHRASES]
_EDGE_PUNCTUATION = " \t\n.,;:!?()[]\"'-*"


@dataclass(frozen=True)
class NormalizedCategory:
    category: str
    platform: Optional[str] = None


def _strip_glyphs(text: str) -> str:
    return text.translate({ord(ch): None for ch in TRADEMARK_GLYPHS})


def _detect_travel(phrase: str) -> NormalizedCategory:
    """
    Travel branch: a named booking portal wins, then the most specific
    sub-keyword, then plain "travel".
    """
    for needle, display_name in TRAVEL_PLATFORMS:
        if needle in phrase:
            return NormalizedCategory(category="travel", platform=display_name)

    for needle, tag in TRAVEL_SUBCATEGORIES:
        if needle in phrase:
            return NormalizedCategory(category=tag)

    return NormalizedCategory(category="travel")


def _residue(phrase: str) -> str:
    cleaned = _PURCHASE_WORD.sub(" ", phrase)
    cleaned = " ".join(cleaned.split())
    return cleaned.strip(_EDGE_PUNCTUATION)


def normalize(raw_category: str) -> NormalizedCategory:
    """
    Map a noisy category phrase ("Chase Travel℠ purchases", "U.S. supermarkets")
    onto the reward taxonomy.

    Order of checks:
    1. Travel keywords -> platform detection / travel sub-tags
    2. CATEGORY_PHRASES table, matched from a word start (first match wins)
    3. Fallback: the phrase itself with "purchase(s)" removed
    """
    phrase = _strip_glyphs(raw_category or "").lower()

    if any(kw in phrase for kw in TRAVEL_KEYWORDS):
        return _detect_travel(phrase)

    for pattern, tag in _PHRASE_PATTERNS:
        if pattern.search(phrase):
            return NormalizedCategory(category=tag)

    residue = _residue(phrase)
    logger.debug("No taxonomy match for %r, using %r", raw_category, residue)
    return NormalizedCategory(category=residue)
