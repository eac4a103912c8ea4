# settings.py
"""
Service configuration, loaded from environment variables (prefix ``GE_``)
or a local ``.env`` file.
"""

from __future__ import annotations

from typing import Dict, Literal

from pydantic import Field
from pydantic_settings import BaseSettings

# Items tracked out of the box (OSRS Wiki item ids)
DEFAULT_TRACKED_ITEMS: Dict[int, str] = {
    4819: "Mithril nails",
    536: "Dragon bones",
    1333: "Rune scimitar",
    560: "Death rune",
    565: "Blood rune",
    2: "Cannonball",
    385: "Shark",
}


class Settings(BaseSettings):
    # --- Prices API ---
    api_base_url: str = Field(
        default="https://prices.runescape.wiki/api/v1/osrs",
        description="Base URL of the OSRS Wiki real-time prices API",
    )
    user_agent: str = Field(
        default="GE-Price-Dashboard - price history service",
        description="The wiki blocks default client user agents",
    )
    request_timeout: float = Field(default=10.0, description="Per-request timeout (s)")
    quote_source: Literal["wiki", "simulated"] = Field(default="wiki")
    simulated_seed: int = Field(default=123)

    # --- Refresh / history ---
    refresh_interval: float = Field(default=30.0, gt=0, description="Seconds between cycles")
    max_points: int = Field(default=2880, gt=0, description="Observations kept per item")
    auto_refresh: bool = Field(default=True)

    tracked_items: Dict[int, str] = Field(default_factory=lambda: dict(DEFAULT_TRACKED_ITEMS))

    # --- Server ---
    log_level: str = Field(default="INFO")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8001)

    model_config = {
        "env_prefix": "GE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }
