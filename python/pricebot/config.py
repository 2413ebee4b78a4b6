from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


DEFAULT_BASE_URL = "https://diravena.com"
DEFAULT_LISTING_PATHS = (
    "/",
    "/collections/mais-vendidos",
    "/collections/mais-vendidos?page=2",
    "/collections/mais-vendidos?page=3",
)
DEFAULT_USER_AGENT = "Mozilla/5.0; StarmindBot/1.1"


def env_int(name: str, default: int, *, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if min_value is not None:
        value = max(min_value, value)
    if max_value is not None:
        value = min(max_value, value)
    return value


def env_float(name: str, default: float, *, min_value: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw not in {"0", "false", "False", "no", "off"}


def env_list(name: str) -> List[str]:
    raw = os.getenv(name) or ""
    return [item.strip() for item in raw.split(",") if item.strip()]


def default_listing_urls(base_url: str) -> Tuple[str, ...]:
    base = base_url.rstrip("/")
    return tuple(f"{base}{path}" for path in DEFAULT_LISTING_PATHS)


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    listing_urls: Tuple[str, ...] = field(default_factory=lambda: default_listing_urls(DEFAULT_BASE_URL))
    max_age_sec: float = 3600.0
    detail_batch_size: int = 6
    fetch_timeout_ms: int = 15000
    render: bool = False
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    max_question_length: int = 300
    rate_limit_per_minute: int = 30


def load_settings() -> Settings:
    base_url = (os.getenv("STORE_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
    listing_urls = tuple(env_list("LISTING_URLS")) or default_listing_urls(base_url)
    return Settings(
        base_url=base_url,
        listing_urls=listing_urls,
        max_age_sec=env_float("CATALOG_MAX_AGE_SEC", 3600.0, min_value=0.0),
        detail_batch_size=env_int("DETAIL_BATCH_SIZE", 6, min_value=1, max_value=16),
        fetch_timeout_ms=env_int("FETCH_TIMEOUT_MS", 15000, min_value=1000, max_value=60000),
        render=env_flag("PLAYWRIGHT_RENDER", False),
        headless=env_flag("PLAYWRIGHT_HEADLESS", True),
        user_agent=os.getenv("FETCH_USER_AGENT") or DEFAULT_USER_AGENT,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL") or "gpt-4o-mini",
        max_question_length=env_int("MAX_QUESTION_LENGTH", 300, min_value=10, max_value=2000),
        rate_limit_per_minute=env_int("RATE_LIMIT_PER_MINUTE", 30, min_value=0, max_value=600),
    )
