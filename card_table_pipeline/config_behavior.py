# card_table_pipeline/config_behavior.py
"""
Central configuration for card_table_pipeline. This file contains all tunable lists, keywords, and lookup tables
used by rows.py, categories.py, offer_parser.py and llm_parser.py.

Config is organized into three sections:
1. ROW CONFIG       -> controls table-row extraction
2. CATEGORY CONFIG  -> reward-category taxonomy and travel platforms
3. OFFER CONFIG     -> intro-offer noise phrases, benefits, and LLM prompts

Ordering matters in several tables below: lookups are first-match-wins.
"""

from __future__ import annotations
from typing import List, Tuple


# ======================================================================
# ============================== ROW CONFIG =============================
# ======================================================================

# Attribute-tagged element that carries the card name in column 0
ROW_NAME_SELECTOR: str = '[data-testid*="summary-table-card-name"]'

# Inline elements tried (in document order) when the tagged element is absent
ROW_NAME_FALLBACK_TAGS: List[str] = ["a", "span", "strong", "b"]

# Text the page renders while a row is still hydrating
ROW_NAME_PLACEHOLDERS: List[str] = ["ref: <Node>"]

# Minimum number of <td> cells for a row to be considered a card row
ROW_MIN_CELLS: int = 5

# Semantic column positions
COL_NAME: int = 0
COL_RATING: int = 1
COL_ANNUAL_FEE: int = 2
COL_REWARDS: int = 3
COL_INTRO_OFFER: int = 4


# ======================================================================
# ============================ CATEGORY CONFIG ==========================
# ======================================================================

TAXONOMY: List[str] = [
    "restaurants",
    "groceries",
    "gas",
    "drugstore",
    "streaming",
    "transit",
    "general",
    "travel",
    "hotels",
    "flights",
    "rental-cars",
    "vacation-rentals",
]

# Any of these sends a phrase down the travel branch
TRAVEL_KEYWORDS: List[str] = [
    "travel",
    "flight",
    "hotel",
    "rental car",
    "vacation rental",
]

# Issuer-branded booking portals: lowercase needle -> display name.
# Longer needles first ("capital one travel" before "one travel" style overlaps).
TRAVEL_PLATFORMS: List[Tuple[str, str]] = [
    ("chase travel", "Chase Travel"),
    ("chase ultimate rewards", "Chase Travel"),
    ("capital one travel", "Capital One Travel"),
    ("american express travel", "American Express Travel"),
    ("amex travel", "Amex Travel"),
    ("citi travel", "Citi Travel"),
    ("bank of america travel center", "Bank of America Travel Center"),
    ("wells fargo rewards", "Wells Fargo Rewards"),
    ("u.s. bank travel center", "U.S. Bank Travel Center"),
    ("us bank travel center", "U.S. Bank Travel Center"),
    ("discover travel", "Discover Travel"),
    ("expedia", "Expedia"),
    ("booking.com", "Booking.com"),
]

# Travel sub-keyword -> tag, in priority order
TRAVEL_SUBCATEGORIES: List[Tuple[str, str]] = [
    ("hotel", "hotels"),
    ("flight", "flights"),
    ("airfare", "flights"),
    ("rental car", "rental-cars"),
    ("vacation rental", "vacation-rentals"),
]

# Phrase -> tag, matched from the start of a word, first match wins.
# Fuller phrases sit ahead of phrases they contain ("gas stations" before "gas").
CATEGORY_PHRASES: List[Tuple[str, str]] = [
    ("dining", "restaurants"),
    ("restaurant", "restaurants"),
    ("takeout", "restaurants"),
    ("food delivery", "restaurants"),
    ("online grocery", "groceries"),
    ("grocery stores", "groceries"),
    ("grocery", "groceries"),
    ("groceries", "groceries"),
    ("supermarkets", "groceries"),
    ("wholesale clubs", "groceries"),
    ("gas stations", "gas"),
    ("gas and ev charging", "gas"),
    ("ev charging", "gas"),
    ("gas", "gas"),
    ("fuel", "gas"),
    ("drugstore", "drugstore"),
    ("drug stores", "drugstore"),
    ("pharmacies", "drugstore"),
    ("streaming", "streaming"),
    ("transit", "transit"),
    ("rideshare", "transit"),
    ("commuting", "transit"),
    ("all other purchases", "general"),
    ("other purchases", "general"),
    ("all other eligible purchases", "general"),
    ("every purchase", "general"),
    ("all purchases", "general"),
    ("everything else", "general"),
]

# Glyphs removed from phrases and platform names before matching
TRADEMARK_GLYPHS: str = "℠™®"


# ======================================================================
# ============================== OFFER CONFIG ===========================
# ======================================================================

# Marketing filler removed from intro-offer text before amount extraction
INTRO_NOISE_PHRASES: List[str] = [
    "find out your offer",
    "as high as",
]

# Checked by substring containment; every hit is recorded
BENEFIT_KEYWORDS: List[str] = [
    "no annual fee",
    "no foreign transaction fees",
    "free",
    "statement credit",
    "credit",
]

# Model-assisted rewards parsing
LLM_SYSTEM_PROMPT: str = (
    "You are a data extraction expert. Extract credit card rewards information "
    "and return ONLY valid JSON."
)

LLM_REWARDS_PROMPT: str = """
Parse the following credit card rewards text and extract structured reward information.
Return ONLY a valid JSON object with this exact structure:

{{
  "categories": [
    {{
      "category": "groceries",
      "rate": "5%",
      "currency": "percent" | "points" | "miles",
      "platform": string | null,
      "rawCategory": "grocery stores"
    }}
  ]
}}

Rules:
- Extract ALL reward categories mentioned
- Categories should be one of ({taxonomy})
- Use lowercase for category names
- Keep rate as it appears (e.g. "5%", "3x", "2")
- For platform names, use proper capitalization (e.g., "Chase Travel", not "chase travel")
- Remove special characters like ℠, ™, ® from platform names
- Set platform to null if not specified
- For "all other purchases" use category: "general"

Credit card rewards text:
"{text}"
"""
