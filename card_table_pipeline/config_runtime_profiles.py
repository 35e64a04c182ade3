# card_table_pipeline/config_runtime_profiles.py
"""
Scrape profiles:
Define site-specific page settings.
Used by run_pipeline.py to construct ScrapeConfig.
"""

SCRAPE_PROFILES = {
    "nerdwallet": {
        "url": "https://www.nerdwallet.com/m/credit-cards/excellent-credit-cards",
        "table_body_selector": "tbody",
        "tooltip_selector": ".MuiTooltip-tooltip",
        "navigation_timeout_ms": 60000,
        "settle_ms": 3000,
        "tooltip_wait_ms": 1000,
        "parser": "llm",
        "default_output": "data/cc.json",
    },

    # Add more profiles here...
}
