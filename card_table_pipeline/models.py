# card_table_pipeline/models.py

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class CardImage:
    src: str
    alt: str
    filename: str

    def to_serializable_dict(self) -> Dict[str, Any]:
        return {"src": self.src, "alt": self.alt, "filename": self.filename}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CardImage":
        return cls(src=d["src"], alt=d.get("alt", ""), filename=d["filename"])


@dataclass(frozen=True)
class CandidateCard:
    """
    A single comparison-table row as it was read off the page, before any
    tooltip harvesting or text parsing.
    """

    # 1. Identity
    name: str
    row_index: int

    # 2. Visible cell values
    rating: Optional[str] = None         # leading score only, e.g. "4.5"
    annual_fee: Optional[str] = None     # currency symbol stripped, e.g. "95"
    rewards_text: Optional[str] = None
    intro_offer_text: Optional[str] = None

    # 3. Hidden disclosure triggers present in the cells
    has_rewards_tooltip: bool = False
    has_intro_tooltip: bool = False

    # 4. Card art
    image: Optional[CardImage] = None

    def to_serializable_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rating": self.rating,
            "annualFee": self.annual_fee,
            "rewardsText": self.rewards_text,
            "hasRewardsTooltip": self.has_rewards_tooltip,
            "introOfferText": self.intro_offer_text,
            "hasIntroTooltip": self.has_intro_tooltip,
            "image": self.image.to_serializable_dict() if self.image else None,
            "rowIndex": self.row_index,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CandidateCard":
        image = d.get("image")
        return cls(
            name=d["name"],
            row_index=d["rowIndex"],
            rating=d.get("rating"),
            annual_fee=d.get("annualFee"),
            rewards_text=d.get("rewardsText"),
            intro_offer_text=d.get("introOfferText"),
            has_rewards_tooltip=bool(d.get("hasRewardsTooltip", False)),
            has_intro_tooltip=bool(d.get("hasIntroTooltip", False)),
            image=CardImage.from_dict(image) if image else None,
        )


@dataclass
class RewardCategory:
    category: str                   # taxonomy tag, or the cleaned phrase when nothing matched
    rate: str                       # "2%", "3x", "2"
    currency: str                   # "percent" | "points" | "miles"
    platform: Optional[str] = None  # e.g. "Chase Travel"
    raw_category: str = ""

    def to_serializable_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "rate": self.rate,
            "currency": self.currency,
            "platform": self.platform,
            "rawCategory": self.raw_category,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RewardCategory":
        return cls(
            category=d["category"],
            rate=d["rate"],
            currency=d["currency"],
            platform=d.get("platform"),
            raw_category=d.get("rawCategory", ""),
        )


@dataclass
class RewardSet:
    # Source-text order. Overlapping entries from different templates are kept.
    categories: List[RewardCategory] = field(default_factory=list)

    def to_serializable_dict(self) -> Dict[str, Any]:
        return {"categories": [c.to_serializable_dict() for c in self.categories]}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RewardSet":
        return cls(categories=[RewardCategory.from_dict(c) for c in d.get("categories", [])])


@dataclass
class IntroOffer:
    """
    Sign-up bonus terms. Every field is independently optional: None means
    "not stated", never zero.
    """

    bonus_amount: Union[int, float, str, None] = None
    currency: Optional[str] = None  # "dollars" | "points" | "miles" | "cashback"
    spend_requirement: Union[int, float, None] = None
    time_limit: Optional[str] = None  # e.g. "3 months"
    apr_info: Optional[str] = None
    additional_benefits: List[str] = field(default_factory=list)

    def add_benefit(self, benefit: str) -> None:
        if benefit not in self.additional_benefits:
            self.additional_benefits.append(benefit)

    def to_serializable_dict(self) -> Dict[str, Any]:
        return {
            "bonusAmount": self.bonus_amount,
            "currency": self.currency,
            "spendRequirement": self.spend_requirement,
            "timeLimit": self.time_limit,
            "aprInfo": self.apr_info,
            "additionalBenefits": list(self.additional_benefits),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "IntroOffer":
        return cls(
            bonus_amount=d.get("bonusAmount"),
            currency=d.get("currency"),
            spend_requirement=d.get("spendRequirement"),
            time_limit=d.get("timeLimit"),
            apr_info=d.get("aprInfo"),
            additional_benefits=list(d.get("additionalBenefits", [])),
        )


@dataclass
class DetailedRewards:
    raw: str
    parsed: RewardSet

    def to_serializable_dict(self) -> Dict[str, Any]:
        return {"raw": self.raw, "parsed": self.parsed.to_serializable_dict()}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetailedRewards":
        return cls(raw=d["raw"], parsed=RewardSet.from_dict(d.get("parsed", {})))


@dataclass
class DetailedIntroOffer:
    raw: str
    parsed: IntroOffer

    def to_serializable_dict(self) -> Dict[str, Any]:
        return {"raw": self.raw, "parsed": self.parsed.to_serializable_dict()}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetailedIntroOffer":
        return cls(raw=d["raw"], parsed=IntroOffer.from_dict(d.get("parsed", {})))


@dataclass
class FinalCard:
    """
    A CandidateCard plus whatever the tooltip and parse stages could attach.
    Missing enrichment is left as None rather than filled with empty values.
    """

    candidate: CandidateCard
    intro_offer: Optional[IntroOffer] = None
    detailed_rewards: Optional[DetailedRewards] = None
    detailed_intro_offer: Optional[DetailedIntroOffer] = None

    @property
    def name(self) -> str:
        return self.candidate.name

    @property
    def row_index(self) -> int:
        return self.candidate.row_index

    def identity_key(self) -> tuple:
        c = self.candidate
        return (c.name, c.annual_fee, c.rewards_text)

    def to_serializable_dict(self) -> Dict[str, Any]:
        d = self.candidate.to_serializable_dict()
        if self.intro_offer is not None:
            d["introOffer"] = self.intro_offer.to_serializable_dict()
        if self.detailed_rewards is not None:
            d["detailedRewards"] = self.detailed_rewards.to_serializable_dict()
        if self.detailed_intro_offer is not None:
            d["detailedIntroOffer"] = self.detailed_intro_offer.to_serializable_dict()
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FinalCard":
        intro = d.get("introOffer")
        rewards = d.get("detailedRewards")
        detailed_intro = d.get("detailedIntroOffer")
        return cls(
            candidate=CandidateCard.from_dict(d),
            intro_offer=IntroOffer.from_dict(intro) if intro is not None else None,
            detailed_rewards=DetailedRewards.from_dict(rewards) if rewards is not None else None,
            detailed_intro_offer=(
                DetailedIntroOffer.from_dict(detailed_intro) if detailed_intro is not None else None
            ),
        )


@dataclass
class ExtractionReport:
    """
    Successful outcome of one scrape attempt.
    """

    url: str
    credit_cards: List[FinalCard]
    timestamp: datetime
    total_cards_found: int = 0

    def __post_init__(self) -> None:
        # Derive the count from the deduplicated list unless given explicitly.
        if self.total_cards_found == 0 and self.credit_cards:
            self.total_cards_found = len(self.credit_cards)

    def to_serializable_dict(self) -> Dict[str, Any]:
        """
        Convert the report into a JSON-serializable dict
        """
        return {
            "url": self.url,
            "creditCards": [c.to_serializable_dict() for c in self.credit_cards],
            "totalCardsFound": self.total_cards_found,
            "timestamp": self.timestamp.isoformat(),  # ISO 8601
        }


@dataclass
class ExtractionFailure:
    """
    Failed outcome of one scrape attempt, returned as data instead of raised.
    """

    url: Optional[str]
    error: str
    error_message: str
    timestamp: datetime

    def to_serializable_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "error": self.error,
            "errorMessage": self.error_message,
            "timestamp": self.timestamp.isoformat(),
        }


ExtractionResult = Union[ExtractionReport, ExtractionFailure]


def result_from_dict(d: Dict[str, Any]) -> ExtractionResult:
    """
    Rebuild an ExtractionReport or ExtractionFailure from its serialized form.
    The presence of an "error" key selects the failure variant.
    """
    timestamp = datetime.fromisoformat(d["timestamp"])
    if "error" in d:
        return ExtractionFailure(
            url=d.get("url"),
            error=d["error"],
            error_message=d.get("errorMessage", ""),
            timestamp=timestamp,
        )
    return ExtractionReport(
        url=d["url"],
        credit_cards=[FinalCard.from_dict(c) for c in d.get("creditCards", [])],
        timestamp=timestamp,
        total_cards_found=d.get("totalCardsFound", 0),
    )
