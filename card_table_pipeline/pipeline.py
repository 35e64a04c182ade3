# card_table_pipeline/pipeline.py

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from .dedupe import dedupe
from .llm_parser import OllamaRewardsParser
from .models import (
    CandidateCard,
    DetailedIntroOffer,
    DetailedRewards,
    ExtractionFailure,
    ExtractionReport,
    ExtractionResult,
    FinalCard,
)
from .offer_parser import OfferTextParser, RegexOfferParser
from .rows import RowExtractor
from .session import ScrapeConfig
from .tooltips import TooltipHarvester

logger = logging.getLogger(__name__)

SCRAPE_ERROR = "Failed to scrape credit card section"

PARSER_STRATEGIES = ("regex", "llm")


def build_offer_parser(strategy: str = "regex") -> OfferTextParser:
    """
    Select the offer-text parsing strategy at configuration time.
    """
    if strategy == "regex":
        return RegexOfferParser()
    if strategy == "llm":
        return OllamaRewardsParser()
    raise ValueError(f"Unknown parser strategy {strategy!r}; expected one of {PARSER_STRATEGIES}")


class PipelineState(Enum):
    IDLE = "idle"
    SESSION_OPEN = "session_open"
    ROWS_EXTRACTED = "rows_extracted"
    TOOLTIPS_HARVESTED = "tooltips_harvested"
    PARSED = "parsed"
    DEDUPLICATED = "deduplicated"
    DONE = "done"
    FAILED = "failed"


@dataclass
class _Harvested:
    """
    A candidate plus the raw tooltip text collected for it (if any).
    """

    card: CandidateCard
    rewards_raw: Optional[str] = None
    intro_raw: Optional[str] = None


class ExtractionPipeline:
    """
    Drives one scrape attempt over a PageSession (opened on demand):

        navigate -> rows -> tooltips -> parse -> dedupe -> report

    run() never raises for session or row-extraction problems; it returns an
    ExtractionFailure instead. Per-card tooltip and parse problems only drop
    the affected field.
    """

    def __init__(
        self,
        session,
        config: ScrapeConfig,
        parser: Optional[OfferTextParser] = None,
        row_extractor: Optional[RowExtractor] = None,
        harvester: Optional[TooltipHarvester] = None,
    ) -> None:
        self.session = session
        self.config = config
        self.parser = parser or RegexOfferParser()
        self.row_extractor = row_extractor or RowExtractor(table_body_selector=config.table_body_selector)
        self.harvester = harvester or TooltipHarvester(
            table_body_selector=config.table_body_selector,
            tooltip_selector=config.tooltip_selector,
            wait_ms=config.tooltip_wait_ms,
        )
        self.state = PipelineState.IDLE
        self.history: List[PipelineState] = [PipelineState.IDLE]

    def _transition(self, state: PipelineState) -> None:
        logger.debug("Pipeline %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    # -------- Stages -----------------------------------------------------

    async def _harvest_tooltips(self, cards: List[CandidateCard]) -> List[_Harvested]:
        harvested: List[_Harvested] = []

        # Strictly one card at a time: tooltips share page-global open/close state.
        for card in cards:
            item = _Harvested(card=card)
            try:
                item.rewards_raw = await self.harvester.harvest_rewards(self.session, card)
            except Exception as e:
                logger.warning("Failed to extract rewards tooltip for %s: %s", card.name, e)
            try:
                item.intro_raw = await self.harvester.harvest_intro(self.session, card)
            except Exception as e:
                logger.warning("Failed to extract intro tooltip for %s: %s", card.name, e)
            harvested.append(item)

        return harvested

    async def _parse_card(self, item: _Harvested) -> FinalCard:
        """
        Parser calls run in a worker thread: the model-assisted strategy makes a
        blocking HTTP request that must not stall the browser session.
        """
        final = FinalCard(candidate=item.card)
        name = item.card.name

        if item.card.intro_offer_text:
            try:
                final.intro_offer = await asyncio.to_thread(
                    self.parser.parse_intro_offer, item.card.intro_offer_text
                )
            except Exception as e:
                logger.warning("Failed to parse intro offer for %s: %s", name, e)

        if item.rewards_raw:
            try:
                parsed_rewards = await asyncio.to_thread(self.parser.parse_rewards, item.rewards_raw)
                final.detailed_rewards = DetailedRewards(raw=item.rewards_raw, parsed=parsed_rewards)
            except Exception as e:
                logger.warning("Failed to parse rewards tooltip for %s: %s", name, e)

        if item.intro_raw:
            try:
                parsed_intro = await asyncio.to_thread(self.parser.parse_intro_offer, item.intro_raw)
                final.detailed_intro_offer = DetailedIntroOffer(raw=item.intro_raw, parsed=parsed_intro)
            except Exception as e:
                logger.warning("Failed to parse intro tooltip for %s: %s", name, e)

        return final

    # -------- Entry point -----------------------------------------------

    async def run(self, url: Optional[str] = None) -> ExtractionResult:
        """
        Scrape url (default: config.url) and return a report or a failure.
        """
        target = url or self.config.url

        try:
            if not self.session.is_open:
                await self.session.open()
            await self.session.navigate(target)
            self._transition(PipelineState.SESSION_OPEN)

            cards = await self.row_extractor.extract(self.session)
            self._transition(PipelineState.ROWS_EXTRACTED)
            page_url = self.session.url
        except Exception as e:
            logger.error("Error scraping credit card section at %s: %s", target, e, exc_info=True)
            self._transition(PipelineState.FAILED)
            return ExtractionFailure(
                url=target,
                error=SCRAPE_ERROR,
                error_message=str(e),
                timestamp=datetime.now(timezone.utc),
            )

        harvested = await self._harvest_tooltips(cards)
        self._transition(PipelineState.TOOLTIPS_HARVESTED)

        final_cards = [await self._parse_card(item) for item in harvested]
        self._transition(PipelineState.PARSED)

        final_cards = dedupe(final_cards)
        self._transition(PipelineState.DEDUPLICATED)

        report = ExtractionReport(
            url=page_url,
            credit_cards=final_cards,
            total_cards_found=len(final_cards),
            timestamp=datetime.now(timezone.utc),
        )
        self._transition(PipelineState.DONE)

        logger.info("Scrape of %s finished: %d card(s)", page_url, report.total_cards_found)
        return report
