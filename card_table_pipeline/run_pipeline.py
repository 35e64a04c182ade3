#!/usr/bin/env python
"""
End-to-end runner for the page → rows → tooltips → parse → dedupe → JSON pipeline.

Usage examples:

    # Use the NerdWallet profile (defined in config_runtime_profiles.py)
    python -m card_table_pipeline.run_pipeline --profile nerdwallet

    # Deterministic parsing only, custom output path
    python -m card_table_pipeline.run_pipeline --profile nerdwallet \
        --parser regex \
        --output data/cc_regex.json

    # Dry run: scrape, print a per-card summary, no JSON written
    python -m card_table_pipeline.run_pipeline --profile nerdwallet --dry-run

    # No profile: scrape a comparison table directly, keep a screenshot and the card art
    python -m card_table_pipeline.run_pipeline \
        --url https://www.nerdwallet.com/m/credit-cards/excellent-credit-cards \
        --screenshot data/page.png \
        --download-images data/images
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from playwright.async_api import Error as PlaywrightError

from card_table_pipeline.config_runtime_profiles import SCRAPE_PROFILES
from card_table_pipeline.images import ImageDownloader
from card_table_pipeline.models import ExtractionFailure, ExtractionReport, ExtractionResult
from card_table_pipeline.pipeline import PARSER_STRATEGIES, ExtractionPipeline, build_offer_parser
from card_table_pipeline.session import PageSession, ScrapeConfig, SessionError
from card_table_pipeline.writer import write_report_json

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """
    Parse command-line arguments for the pipeline runner.

    Two modes:
      - Profile mode: --profile <name>
      - Direct URL mode: --url <page_url>

    Exactly one of --profile or --url is required.
    """
    parser = argparse.ArgumentParser(
        description="Scrape a credit-card comparison table into structured JSON using a profile or a direct URL."
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--profile",
        choices=sorted(SCRAPE_PROFILES.keys()),
        help="Name of the scrape profile to use (defined in config_runtime_profiles.py).",
    )
    group.add_argument(
        "--url",
        type=str,
        help="Comparison-table page to scrape when not using a profile.",
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help=(
            "Output JSON file path. "
            "If not provided: for profiles, may use profile['default_output']; "
            "otherwise falls back to data/cc.json."
        ),
    )

    parser.add_argument(
        "--parser",
        choices=PARSER_STRATEGIES,
        default=None,
        help="Offer-text parsing strategy. Default: profile['parser'], else regex.",
    )

    parser.add_argument(
        "--navigation-timeout-ms",
        type=int,
        default=None,
        help="Optional override for the page-load timeout (both profile and URL modes).",
    )

    parser.add_argument(
        "--screenshot",
        type=str,
        default=None,
        help="Save a full-page screenshot to this path after the scrape.",
    )

    parser.add_argument(
        "--download-images",
        type=str,
        default=None,
        metavar="DIR",
        help="Download card art into this directory after a successful scrape.",
    )

    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless.",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode: print a per-card summary to the console and do NOT write a JSON file.",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO.",
    )

    return parser.parse_args(argv)


def build_scrape_config(args: argparse.Namespace, profile: Optional[dict] = None) -> ScrapeConfig:
    """
    Construct a ScrapeConfig from the selected profile (if any) plus CLI overrides.
    """
    profile = profile or {}
    url = args.url or profile.get("url")
    if not url:
        raise ValueError("A URL is required (use --url or a profile with 'url').")

    config = ScrapeConfig(
        url=url,
        table_body_selector=profile.get("table_body_selector", "tbody"),
        tooltip_selector=profile.get("tooltip_selector", ".MuiTooltip-tooltip"),
        navigation_timeout_ms=profile.get("navigation_timeout_ms", 60000),
        settle_ms=profile.get("settle_ms", 3000),
        tooltip_wait_ms=profile.get("tooltip_wait_ms", 1000),
        headless=not args.headed,
    )
    if args.navigation_timeout_ms is not None:
        config.navigation_timeout_ms = args.navigation_timeout_ms

    logger.info(
        "Scrape config: url=%s, table=%s, tooltip=%s, timeout=%sms, settle=%sms, tooltip_wait=%sms",
        config.url,
        config.table_body_selector,
        config.tooltip_selector,
        config.navigation_timeout_ms,
        config.settle_ms,
        config.tooltip_wait_ms,
    )
    return config


def _resolve_output_path(args: argparse.Namespace, profile: Optional[dict] = None) -> Path:
    """
    Decide the output path priority:
      1) If --output is provided, use that.
      2) Else if profile has 'default_output', use that.
      3) Else fallback to 'data/cc.json'.
    """
    if args.output:
        return Path(args.output)

    if profile is not None and "default_output" in profile:
        return Path(profile["default_output"])

    return Path("data/cc.json")


def print_summary(result: ExtractionResult) -> None:
    """
    Dry-run output: one block per card.
    """
    if isinstance(result, ExtractionFailure):
        print(f"\nScrape failed: {result.error} ({result.error_message})\n")
        return

    for card in result.credit_cards:
        c = card.candidate
        print("\n-----------------------------")
        print(f"    Row:          {c.row_index}")
        print(f"    Name:         {c.name}")
        print(f"    Rating:       {c.rating}")
        print(f"    Annual fee:   {c.annual_fee}")
        print(f"    Rewards:      {c.rewards_text}")
        print(f"    Intro offer:  {c.intro_offer_text}")
        if card.detailed_rewards:
            tags = [f"{r.rate} {r.category}" for r in card.detailed_rewards.parsed.categories]
            print(f"    Reward tags:  {tags}")
        if card.detailed_intro_offer:
            print(f"    Intro terms:  {card.detailed_intro_offer.parsed.to_serializable_dict()}")
        print("-----------------------------\n")

    print(f"{result.total_cards_found} card(s) from {result.url}")


async def _save_screenshot(session: PageSession, screenshot_path: str) -> None:
    """
    Best-effort screenshot: a failure here must not discard the scrape result.
    """
    try:
        Path(screenshot_path).parent.mkdir(parents=True, exist_ok=True)
        await session.screenshot(path=screenshot_path)
        logger.info("Saved screenshot to %s", screenshot_path)
    except (PlaywrightError, SessionError, OSError) as e:
        logger.warning("Failed to save screenshot to %s: %s", screenshot_path, e)


async def scrape(
    config: ScrapeConfig,
    parser_strategy: str,
    screenshot_path: Optional[str] = None,
) -> ExtractionResult:
    """
    Run the pipeline once over a fresh browser session and always close the browser.
    The pipeline opens the session itself so launch failures become a failure report.
    """
    session = PageSession(config)
    try:
        pipeline = ExtractionPipeline(
            session=session,
            config=config,
            parser=build_offer_parser(parser_strategy),
        )
        result = await pipeline.run()

        if screenshot_path and session.is_open:
            await _save_screenshot(session, screenshot_path)
    finally:
        await session.close()

    return result


def main(argv: Optional[list] = None) -> None:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    profile = None
    if args.profile:
        logger.info("Starting pipeline in PROFILE mode: profile=%s", args.profile)
        profile = SCRAPE_PROFILES[args.profile]
    else:
        logger.info("Starting pipeline in URL mode: url=%s", args.url)

    config = build_scrape_config(args, profile)
    parser_strategy = args.parser or (profile or {}).get("parser", "regex")
    output_path = _resolve_output_path(args, profile)

    result = asyncio.run(scrape(config, parser_strategy, screenshot_path=args.screenshot))

    if args.dry_run:
        print_summary(result)
        logger.info("Dry run complete. No output file written.")
        return

    output_file = write_report_json(result, output_path)

    if isinstance(result, ExtractionFailure):
        logger.error("Scrape failed (%s); failure report written to %s", result.error_message, output_file)
        return

    if args.download_images and isinstance(result, ExtractionReport):
        downloads = ImageDownloader().download_report_images(result, args.download_images)
        saved = sum(1 for d in downloads if d.path is not None)
        logger.info("Downloaded %d/%d card image(s) to %s", saved, len(downloads), args.download_images)

    logger.info(
        "Pipeline completed. Wrote %d card(s) to %s (parser=%s).",
        result.total_cards_found,
        output_file,
        parser_strategy,
    )


if __name__ == "__main__":
    main()
