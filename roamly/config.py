"""Runtime configuration and logging helpers."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(handler)
    level = os.getenv("ROAMLY_LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.propagate = False
    return logger


def _float_env(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _origins_env(key: str) -> List[str]:
    raw = os.getenv(key) or "*"
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


@dataclass
class Settings:
    fetch_timeout: float = 8.0
    user_agent: str = DEFAULT_USER_AGENT
    search_endpoint: str = "https://html.duckduckgo.com/html/"
    weather_endpoint: str = "https://wttr.in"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    default_location: str = "New York"
    unfurl_cache_ttl: float = 600.0
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            fetch_timeout=_float_env("ROAMLY_FETCH_TIMEOUT", 8.0),
            user_agent=os.getenv("ROAMLY_USER_AGENT") or DEFAULT_USER_AGENT,
            search_endpoint=os.getenv("ROAMLY_SEARCH_ENDPOINT") or "https://html.duckduckgo.com/html/",
            weather_endpoint=os.getenv("ROAMLY_WEATHER_ENDPOINT") or "https://wttr.in",
            allowed_origins=_origins_env("ROAMLY_ALLOWED_ORIGINS"),
            default_location=os.getenv("ROAMLY_DEFAULT_LOCATION") or "New York",
            unfurl_cache_ttl=_float_env("ROAMLY_UNFURL_CACHE_TTL", 600.0),
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_key=os.getenv("SUPABASE_KEY") or os.getenv("SUPABASE_ANON_KEY") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("ROAMLY_OPENAI_MODEL") or "gpt-4o-mini",
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
