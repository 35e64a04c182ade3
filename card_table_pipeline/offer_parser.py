# card_table_pipeline/offer_parser.py

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Tuple, Union

from .categories import normalize
from .config_behavior import BENEFIT_KEYWORDS, INTRO_NOISE_PHRASES
from .models import IntroOffer, RewardCategory, RewardSet

logger = logging.getLogger(__name__)


class OfferTextParser(Protocol):
    """
    Contract shared by the deterministic and model-assisted strategies.
    Both must return an empty result for None/empty input and never raise
    on unparseable text.
    """

    def parse_rewards(self, text: Optional[str]) -> RewardSet:
        ...

    def parse_intro_offer(self, text: Optional[str]) -> IntroOffer:
        ...


# --- Reward rate templates --------------------------------------------------

_NUM = r"\d+(?:\.\d+)?"

# Up to three program-name words before a points/miles unit ("Membership Rewards points").
_BRAND_WORDS = r"(?:(?!(?:on|at|for)\b)[a-z][\w℠™®]*\s+){0,3}?"

# Category phrase: stops before the next clause boundary. A "." only ends the
# phrase when it follows a non-capital and precedes whitespace/end, so
# "U.S. supermarkets" survives.
_CATEGORY = (
    r"(?!(?:on\s+)?up\s+to\b)"
    r"(?P<category>(?:[^.;,!()]|(?<=(?-i:[A-Z]))\.|\.(?=\S))+?)"
    r"(?=\s*(?:\(|,|;|!|(?<!(?-i:[A-Z]))\.(?:\s|$)|\b(?:on\s+)?up\s+to\b|\band\b|$))"
)


@dataclass(frozen=True)
class _RateTemplate:
    name: str
    pattern: "re.Pattern[str]"
    rate: Callable[["re.Match[str]"], str]
    currency: Callable[["re.Match[str]"], str]


def _unit_currency(match: "re.Match[str]") -> str:
    unit = (match.groupdict().get("unit") or "").lower()
    return "miles" if unit.startswith("mile") else "points"


# Template order is the tie-break for matches starting at the same offset.
RATE_TEMPLATES: List[_RateTemplate] = [
    _RateTemplate(
        name="percent_cash_back",
        pattern=re.compile(
            rf"(?P<rate>{_NUM}%)\s+(?:cash\s*back|cash\s+rewards|back)\s+(?:on|at|for)\s+{_CATEGORY}",
            re.IGNORECASE,
        ),
        rate=lambda m: m.group("rate"),
        currency=lambda m: "percent",
    ),
    _RateTemplate(
        name="percent_on",
        pattern=re.compile(rf"(?P<rate>{_NUM}%)\s+(?:on|at)\s+{_CATEGORY}", re.IGNORECASE),
        rate=lambda m: m.group("rate"),
        currency=lambda m: "percent",
    ),
    _RateTemplate(
        name="multiplier",
        pattern=re.compile(
            rf"(?P<rate>{_NUM})\s*x\s+(?:(?:total\s+)?{_BRAND_WORDS}(?P<unit>points|miles)\s+)?"
            rf"(?:per\s+(?:dollar|\$1)\s+(?:spent\s+)?)?(?:on|at|for)\s+{_CATEGORY}",
            re.IGNORECASE,
        ),
        rate=lambda m: f"{m.group('rate')}x",
        currency=_unit_currency,
    ),
    _RateTemplate(
        name="per_dollar",
        pattern=re.compile(
            rf"(?P<rate>{_NUM})\s+(?P<unit>points?|miles?)\s+(?:per|for\s+every|on\s+every)\s+"
            rf"(?:dollar|\$1)\s+(?:spent\s+)?(?:on|at)\s+{_CATEGORY}",
            re.IGNORECASE,
        ),
        rate=lambda m: m.group("rate"),
        currency=_unit_currency,
    ),
]


# --- Intro offer patterns ---------------------------------------------------

_AMOUNT = r"(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"

_NOT_AVAILABLE = re.compile(r"^\s*n\s*/?\s*a\s*$", re.IGNORECASE)
_CASHBACK_MATCH = re.compile(r"cash\s*back\s*match", re.IGNORECASE)
_MONEY = re.compile(rf"\$\s?{_AMOUNT}")
_POINTS = re.compile(rf"{_AMOUNT}\s*(?:bonus\s+)?(points|miles)\b", re.IGNORECASE)
_SPEND = re.compile(
    rf"spend(?:ing)?\s+(?:at\s+least\s+|over\s+)?\$\s?{_AMOUNT}"
    rf"|\$\s?{_AMOUNT}\s+(?:or\s+more\s+)?(?:in|on)\s+(?:eligible\s+|net\s+)?purchases",
    re.IGNORECASE,
)
_TIME_LIMIT = re.compile(r"\b(?:within|in)\s+(?:the\s+)?(?:first\s+)?(\d+)\s+months?\b", re.IGNORECASE)
_APR_INTRO_PERIOD = re.compile(
    r"0%\s+(?:intro(?:ductory)?\s+)?APR(?:\s+on\s+[a-z\s]+?)?\s+for\s+(?:the\s+first\s+)?\d+\s+"
    r"(?:months|billing\s+cycles)",
    re.IGNORECASE,
)
_APR = re.compile(
    r"\d+(?:\.\d+)?%(?:\s*-\s*\d+(?:\.\d+)?%)?\s+(?:intro(?:ductory)?\s+|variable\s+)?APR",
    re.IGNORECASE,
)


def _to_number(raw: str) -> Union[int, float]:
    value = float(raw.replace(",", ""))
    return int(value) if value.is_integer() else value


def _remove_noise(text: str) -> str:
    cleaned = _CASHBACK_MATCH.sub("", text)
    for phrase in INTRO_NOISE_PHRASES:
        cleaned = re.sub(re.escape(phrase), "", cleaned, flags=re.IGNORECASE)
    return " ".join(cleaned.split())


def _in_spans(pos: int, spans: List[Tuple[int, int]]) -> bool:
    return any(start <= pos < end for start, end in spans)


class RegexOfferParser:
    """
    Deterministic strategy: ordered regular-expression templates plus the
    category taxonomy. Produces a best-effort superset; the same text may
    yield overlapping reward entries.
    """

    def parse_rewards(self, text: Optional[str]) -> RewardSet:
        rewards = RewardSet()
        if not text or not text.strip():
            return rewards

        found = []
        for order, template in enumerate(RATE_TEMPLATES):
            for match in template.pattern.finditer(text):
                found.append((match.start(), order, template, match))

        found.sort(key=lambda item: (item[0], item[1]))

        for _, _, template, match in found:
            raw_category = match.group("category").strip()
            if not raw_category:
                continue
            normalized = normalize(raw_category)
            rewards.categories.append(
                RewardCategory(
                    category=normalized.category,
                    rate=template.rate(match),
                    currency=template.currency(match),
                    platform=normalized.platform,
                    raw_category=raw_category,
                )
            )

        logger.debug("Parsed %d reward categories from %d chars", len(rewards.categories), len(text))
        return rewards

    def parse_intro_offer(self, text: Optional[str]) -> IntroOffer:
        offer = IntroOffer()
        if not text or not text.strip():
            return offer

        if _NOT_AVAILABLE.match(text):
            return offer

        if _CASHBACK_MATCH.search(text):
            return IntroOffer(bonus_amount="match", currency="cashback")

        cleaned = _remove_noise(text)

        # Spend requirement first: its dollar amount must not count toward the bonus.
        spend_spans: List[Tuple[int, int]] = []
        for match in _SPEND.finditer(cleaned):
            spend_spans.append(match.span())
            if offer.spend_requirement is None:
                offer.spend_requirement = _to_number(match.group(1) or match.group(2))

        dollars = [
            _to_number(m.group(1))
            for m in _MONEY.finditer(cleaned)
            if not _in_spans(m.start(), spend_spans)
        ]
        if dollars:
            total = sum(dollars)
            offer.bonus_amount = int(total) if float(total).is_integer() else total
            offer.currency = "dollars"
        else:
            points = _POINTS.search(cleaned)
            if points:
                offer.bonus_amount = _to_number(points.group(1))
                offer.currency = points.group(2).lower()

        time_limit = _TIME_LIMIT.search(cleaned)
        if time_limit:
            offer.time_limit = f"{time_limit.group(1)} months"

        apr = _APR_INTRO_PERIOD.search(cleaned) or _APR.search(cleaned)
        if apr:
            offer.apr_info = apr.group(0)

        lowered = cleaned.lower()
        for keyword in BENEFIT_KEYWORDS:
            if keyword in lowered:
                offer.add_benefit(keyword)

        return offer
