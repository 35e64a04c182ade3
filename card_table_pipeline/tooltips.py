# card_table_pipeline/tooltips.py

from __future__ import annotations
import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError

from .config_behavior import COL_INTRO_OFFER, COL_REWARDS
from .models import CandidateCard
from .session import SessionError

logger = logging.getLogger(__name__)


class TooltipHarvester:
    """
    Reveals disclosure text hidden behind a tooltip button.

    Each harvest is click -> fixed wait -> read -> Escape. Tooltip visibility
    is page-global, so harvests must be awaited one at a time.
    """

    def __init__(
        self,
        table_body_selector: str = "tbody",
        tooltip_selector: str = ".MuiTooltip-tooltip",
        wait_ms: int = 1000,
    ) -> None:
        self.table_body_selector = table_body_selector
        self.tooltip_selector = tooltip_selector
        self.wait_ms = wait_ms

    async def harvest(self, session, row_index: int, column_index: int) -> Optional[str]:
        """
        Return the stripped tooltip text for one cell, or None when the
        trigger is missing, the tooltip never shows, or the page errors.
        """
        try:
            row = session.locate(self.table_body_selector).first.locator("tr").nth(row_index)
            trigger = row.locator("td").nth(column_index).locator("button").first
            if await trigger.count() == 0:
                logger.debug("No tooltip trigger at row=%d col=%d", row_index, column_index)
                return None

            await trigger.click()
            try:
                await session.wait(self.wait_ms)
                tooltip = session.locate(self.tooltip_selector).first
                if await tooltip.count() == 0 or not await tooltip.is_visible():
                    logger.debug("Tooltip not visible at row=%d col=%d", row_index, column_index)
                    return None
                text = await tooltip.text_content()
            finally:
                await session.press("Escape")

            text = text.strip() if text else ""
            return text or None

        except (PlaywrightError, SessionError) as e:
            logger.warning("Error harvesting tooltip at row=%d col=%d: %s", row_index, column_index, e)
            return None

    async def harvest_rewards(self, session, card: CandidateCard) -> Optional[str]:
        if not card.has_rewards_tooltip:
            return None
        return await self.harvest(session, card.row_index, COL_REWARDS)

    async def harvest_intro(self, session, card: CandidateCard) -> Optional[str]:
        if not card.has_intro_tooltip:
            return None
        return await self.harvest(session, card.row_index, COL_INTRO_OFFER)
