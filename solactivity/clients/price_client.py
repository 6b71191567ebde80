# clients/price_client.py
"""
Jupiter Price API client.

Only the SOL/USD price is needed: trade legs are valued through their SOL side.
"""
from __future__ import annotations

import httpx

from clients.retry import RetryableClient, RetryConfig
from core.config import Settings, get_settings
from core.errors import DataSourceUnavailable

SOL_MINT = "So11111111111111111111111111111111111111112"


class JupiterPriceClient:
    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._url = str(settings.JUPITER_PRICE_URL)
        self._http = RetryableClient(
            httpx.AsyncClient(timeout=settings.DATA_SOURCE_TIMEOUT_SECONDS, transport=transport),
            RetryConfig(
                max_attempts=settings.DATA_SOURCE_MAX_ATTEMPTS,
                base_delay=settings.DATA_SOURCE_BACKOFF_SECONDS,
            ),
            source="jupiter",
        )

    async def get_prices(self, mints: list[str]) -> dict[str, float]:
        """Batch fetch USD prices; mints Jupiter does not know are left out."""
        if not mints:
            return {}

        resp = await self._http.get(self._url, params={"ids": ",".join(mints)})
        try:
            data = resp.json()
        except ValueError as exc:
            raise DataSourceUnavailable("jupiter: response is not JSON") from exc
        if not isinstance(data, dict):
            raise DataSourceUnavailable("jupiter: unexpected response format")

        results: dict[str, float] = {}
        for mint in mints:
            token_data = (data.get("data") or {}).get(mint) or {}
            price = token_data.get("price")
            if price is None:
                continue
            try:
                results[mint] = float(price)
            except (TypeError, ValueError):
                continue
        return results

    async def get_sol_price(self) -> float | None:
        prices = await self.get_prices([SOL_MINT])
        price = prices.get(SOL_MINT)
        return price if price and price > 0 else None

    async def aclose(self) -> None:
        await self._http.aclose()
