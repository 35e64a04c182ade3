# card_table_pipeline/llm_parser.py

from __future__ import annotations
import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Union

import requests
from pydantic import BaseModel, Field, ValidationError

from .categories import normalize
from .config_behavior import LLM_REWARDS_PROMPT, LLM_SYSTEM_PROMPT, TAXONOMY
from .models import IntroOffer, RewardCategory, RewardSet
from .offer_parser import RegexOfferParser

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_CURRENCIES = {"percent", "points", "miles"}


# Pydantic models for structured outputs
class LLMRewardCategory(BaseModel):
    """One reward line as returned by the model"""
    category: str = Field(description="Taxonomy tag, lowercase")
    rate: Union[str, int, float] = Field(description="Rate token as written, e.g. 5%, 3x, 2")
    currency: str = Field(default="percent", description="percent, points or miles")
    platform: Optional[str] = Field(default=None, description="Booking platform if any")
    rawCategory: Optional[str] = Field(default=None, description="Category phrase from the source text")


class LLMRewardsResponse(BaseModel):
    """Structured output for rewards parsing"""
    categories: List[LLMRewardCategory]


class OllamaRewardsParser:
    """
    Model-assisted strategy: send the raw tooltip text to a local Ollama
    server and read back a RewardSet-shaped JSON object.

    Any transport error, non-JSON reply or schema mismatch yields an empty
    RewardSet. Intro offers are handled by the deterministic parser.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: float = 120.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        param host: Ollama base URL (default: $OLLAMA_HOST or http://localhost:11434)
        param model: Model tag (default: $OLLAMA_MODEL or qwen2.5:7b)
        param timeout_seconds: Per-request timeout
        param session: Optional requests.Session to reuse
        """
        self.host = (host or os.getenv("OLLAMA_HOST", "http://localhost:11434")).rstrip("/")
        self.model = model or os.getenv("OLLAMA_MODEL", "qwen2.5:7b")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self._fallback = RegexOfferParser()

    def _build_prompt(self, text: str) -> str:
        return LLM_REWARDS_PROMPT.format(taxonomy=", ".join(TAXONOMY), text=text)

    def _chat(self, text: str) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": LLM_SYSTEM_PROMPT},
                {"role": "user", "content": self._build_prompt(text)},
            ],
            "stream": False,
            "format": "json",
        }
        resp = self.session.post(f"{self.host}/api/chat", json=payload, timeout=self.timeout_seconds)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict) or not isinstance(data.get("message"), dict):
            return ""
        return str(data["message"].get("content", "")).strip()

    def _to_reward_set(self, response: LLMRewardsResponse) -> RewardSet:
        rewards = RewardSet()
        for item in response.categories:
            category = item.category.strip().lower()
            platform = item.platform
            raw_category = item.rawCategory or item.category
            if category not in TAXONOMY:
                normalized = normalize(raw_category)
                category = normalized.category
                platform = platform or normalized.platform
            currency = item.currency.strip().lower()
            if currency not in _CURRENCIES:
                # "cashback" and friends are percentages on this schema
                currency = "percent"
            rewards.categories.append(
                RewardCategory(
                    category=category,
                    rate=str(item.rate).strip(),
                    currency=currency,
                    platform=platform,
                    raw_category=raw_category,
                )
            )
        return rewards

    def parse_rewards(self, text: Optional[str]) -> RewardSet:
        if not text or not text.strip():
            return RewardSet()

        try:
            content = self._chat(text)
        except (requests.RequestException, ValueError) as e:
            logger.warning("Ollama request failed (%s): %s", self.model, e)
            return RewardSet()

        match = _JSON_OBJECT.search(content)
        if not match:
            logger.warning("No JSON found in model response: %r", content[:200])
            return RewardSet()

        try:
            response = LLMRewardsResponse.model_validate(json.loads(match.group(0)))
        except (ValueError, ValidationError) as e:
            logger.warning("Invalid model response structure: %s", e)
            return RewardSet()

        rewards = self._to_reward_set(response)
        logger.debug("Model returned %d reward categories", len(rewards.categories))
        return rewards

    def parse_intro_offer(self, text: Optional[str]) -> IntroOffer:
        return self._fallback.parse_intro_offer(text)
