# card_table_pipeline/rows.py

from __future__ import annotations
import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from .config_behavior import (
    COL_ANNUAL_FEE,
    COL_INTRO_OFFER,
    COL_NAME,
    COL_RATING,
    COL_REWARDS,
    ROW_MIN_CELLS,
    ROW_NAME_FALLBACK_TAGS,
    ROW_NAME_PLACEHOLDERS,
    ROW_NAME_SELECTOR,
)
from .models import CandidateCard, CardImage

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def _clean_text(tag: Optional[Tag]) -> str:
    """
    Collapse all whitespace runs in a tag's text to single spaces.
    """
    if tag is None:
        return ""
    return " ".join(tag.get_text(" ").split())


def _extract_name(cell: Tag, name_selector: str) -> Optional[str]:
    """
    Pick the card name from column 0:
    1. The attribute-tagged name element
    2. The first inline element with text
    3. The raw cell text
    """
    candidates = []

    tagged = cell.select_one(name_selector)
    if tagged is not None:
        candidates.append(_clean_text(tagged))
    else:
        for el in cell.find_all(ROW_NAME_FALLBACK_TAGS):
            text = _clean_text(el)
            if text:
                candidates.append(text)
                break
        candidates.append(_clean_text(cell))

    for name in candidates:
        if name and name not in ROW_NAME_PLACEHOLDERS:
            return name
    return None


def _image_filename(name: Optional[str], row_index: int) -> str:
    if name:
        return f"{_NON_ALNUM.sub('_', name).lower()}.jpg"
    return f"card_{row_index + 1}.jpg"


def _extract_image(row: Tag, name: Optional[str], row_index: int) -> Optional[CardImage]:
    img = row.find("img")
    if img is None:
        return None
    src = img.get("src") or img.get("data-src")
    if not src:
        return None
    return CardImage(src=src, alt=img.get("alt") or "", filename=_image_filename(name, row_index))


def _row_to_candidate(row: Tag, row_index: int, name_selector: str) -> Optional[CandidateCard]:
    cells = row.find_all("td")
    if len(cells) < ROW_MIN_CELLS:
        logger.debug("Row %d: skipped, only %d cells", row_index, len(cells))
        return None

    name = _extract_name(cells[COL_NAME], name_selector)
    if not name:
        logger.debug("Row %d: skipped, no card name", row_index)
        return None

    rating = _clean_text(cells[COL_RATING])[:3] or None
    annual_fee = _clean_text(cells[COL_ANNUAL_FEE])[1:] or None

    rewards_cell = cells[COL_REWARDS]
    intro_cell = cells[COL_INTRO_OFFER]
    rewards_text = _clean_text(rewards_cell) or None
    intro_offer_text = _clean_text(intro_cell) or None

    # Only names + (fee or rewards) make a usable card.
    if annual_fee is None and not rewards_text:
        logger.debug("Row %d: skipped %r, no annual fee or rewards", row_index, name)
        return None

    return CandidateCard(
        name=name,
        row_index=row_index,
        rating=rating,
        annual_fee=annual_fee,
        rewards_text=rewards_text,
        intro_offer_text=intro_offer_text,
        has_rewards_tooltip=rewards_cell.find("button") is not None,
        has_intro_tooltip=intro_cell.find("button") is not None,
        image=_extract_image(row, name, row_index),
    )


def extract_rows(
    html: str,
    table_body_selector: str = "tbody",
    name_selector: str = ROW_NAME_SELECTOR,
) -> List[CandidateCard]:
    """
    Convert a rendered comparison-table page (HTML snapshot) into
    CandidateCards.

    - Only the first element matching table_body_selector is read
    - row_index is the row's position among that body's <tr> elements, which
      is the same index the tooltip harvester uses against the live page
    - Malformed, placeholder, and data-less rows are skipped
    """
    soup = BeautifulSoup(html, "lxml")
    body = soup.select_one(table_body_selector)
    if body is None:
        logger.warning("No table body matching %r found", table_body_selector)
        return []

    cards: List[CandidateCard] = []
    rows = body.find_all("tr")
    for row_index, row in enumerate(rows):
        card = _row_to_candidate(row, row_index, name_selector)
        if card is not None:
            logger.debug("Row %d: processing card %r", row_index, card.name)
            cards.append(card)

    logger.info("Extracted %d candidate card(s) from %d row(s)", len(cards), len(rows))
    return cards


class RowExtractor:
    """
    Reads the current page snapshot from a session and hands it to
    extract_rows(). Re-running against an unchanged page gives the same cards.
    """

    def __init__(self, table_body_selector: str = "tbody", name_selector: str = ROW_NAME_SELECTOR) -> None:
        self.table_body_selector = table_body_selector
        self.name_selector = name_selector

    async def extract(self, session) -> List[CandidateCard]:
        html = await session.content()
        return extract_rows(html, self.table_body_selector, self.name_selector)
