# core/config.py
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # general
    ENV: Literal["local", "dev", "staging", "prod"] = "local"
    APP_NAME: str = "solactivity"

    # "mock" is only for local/frontend work; responses are tagged source="mock"
    ACTIVITY_PROVIDER: Literal["helius", "mock"] = "helius"
    MOCK_TOKEN_ADDRESSES: list[str] = []

    # Helius (enhanced transactions API + Solana JSON-RPC)
    HELIUS_API_KEY: str | None = None
    HELIUS_API_BASE_URL: AnyHttpUrl = "https://api.helius.xyz"
    HELIUS_RPC_URL: AnyHttpUrl = "https://mainnet.helius-rpc.com"

    # market data
    JUPITER_PRICE_URL: AnyHttpUrl = "https://api.jup.ag/price/v2"

    # upstream call policy
    DATA_SOURCE_TIMEOUT_SECONDS: float = 8.0
    DATA_SOURCE_MAX_ATTEMPTS: int = 3
    DATA_SOURCE_BACKOFF_SECONDS: float = 0.5
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # history paging
    HISTORY_PAGE_LIMIT: int = 100
    MAX_HISTORY_PAGES: int = 50
    MAX_SIGNATURE_PAGES: int = 20

    # bucketing guardrails
    MAX_BUCKETS: int = 2000
    MAX_RANGE_DAYS: int = 3650
    SECONDS_MAX_SPAN_DAYS: int = 7
    MINUTES_MAX_SPAN_DAYS: int = 30

    ACCOUNT_KIND_CACHE_TTL_SECONDS: float = 3600.0

    # logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
