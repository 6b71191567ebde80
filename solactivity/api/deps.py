# api/deps.py
from __future__ import annotations

from functools import lru_cache

from core.config import get_settings
from services.activity_provider import ActivityDataProvider
from services.activity_service import ActivityService
from services.helius_activity_provider import HeliusActivityProvider
from services.kind_cache import AccountKindCache
from services.mock_activity_provider import MockActivityProvider


@lru_cache
def get_activity_provider() -> ActivityDataProvider:
    settings = get_settings()
    if settings.ACTIVITY_PROVIDER == "mock":
        return MockActivityProvider(token_addresses=settings.MOCK_TOKEN_ADDRESSES)
    return HeliusActivityProvider(settings=settings)


@lru_cache
def get_kind_cache() -> AccountKindCache:
    return AccountKindCache(ttl=get_settings().ACCOUNT_KIND_CACHE_TTL_SECONDS)


def get_activity_service() -> ActivityService:
    return ActivityService(
        provider=get_activity_provider(),
        settings=get_settings(),
        kind_cache=get_kind_cache(),
    )


async def close_activity_provider() -> None:
    if not get_activity_provider.cache_info().currsize:
        return
    provider = get_activity_provider()
    get_activity_provider.cache_clear()
    await provider.aclose()
