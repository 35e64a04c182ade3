# card_table_pipeline/dedupe.py

from __future__ import annotations
from typing import List, Sequence, Set

from .models import FinalCard


def dedupe(cards: Sequence[FinalCard]) -> List[FinalCard]:
    """
    Collapse cards sharing (name, annual_fee, rewards_text).

    The earliest row wins; cards with equal row_index keep their input order
    (sorted() is stable).
    """
    seen: Set[tuple] = set()
    deduped: List[FinalCard] = []

    for card in sorted(cards, key=lambda c: c.row_index):
        key = card.identity_key()
        if key in seen:
            continue
        seen.add(key)
        deduped.append(card)

    return deduped
