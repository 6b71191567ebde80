# clients/helius_client.py
from __future__ import annotations

from typing import Any

import httpx

from clients.retry import RetryableClient, RetryConfig
from core.config import Settings, get_settings
from core.errors import DataSourceUnavailable


class HeliusClient:
    """
    Thin wrapper around Helius: Solana JSON-RPC plus the enhanced
    transactions API (parsed swaps / transfers per address).

    Only this file changes when the upstream schema changes.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_settings()
        if not settings.HELIUS_API_KEY:
            raise RuntimeError("HELIUS_API_KEY must be set when using the helius provider")

        self._api_key = settings.HELIUS_API_KEY
        self._rpc_url = str(settings.HELIUS_RPC_URL)
        self._http = RetryableClient(
            httpx.AsyncClient(
                base_url=str(settings.HELIUS_API_BASE_URL),
                timeout=settings.DATA_SOURCE_TIMEOUT_SECONDS,
                transport=transport,
            ),
            RetryConfig(
                max_attempts=settings.DATA_SOURCE_MAX_ATTEMPTS,
                base_delay=settings.DATA_SOURCE_BACKOFF_SECONDS,
            ),
            source="helius",
        )

    async def rpc(self, method: str, params: Any) -> Any:
        resp = await self._http.post(
            self._rpc_url,
            params={"api-key": self._api_key},
            json={"jsonrpc": "2.0", "id": "solactivity", "method": method, "params": params},
        )
        try:
            data = resp.json()
        except ValueError as exc:
            raise DataSourceUnavailable(f"helius {method}: response is not JSON") from exc

        if not isinstance(data, dict):
            raise DataSourceUnavailable(f"helius {method}: unexpected response format")
        if data.get("error"):
            raise DataSourceUnavailable(f"helius {method}: {data['error']}")
        return data.get("result")

    async def get_account_info(self, address: str) -> dict[str, Any] | None:
        result = await self.rpc("getAccountInfo", [address, {"encoding": "jsonParsed"}])
        if not isinstance(result, dict):
            return None
        return result.get("value")

    async def get_signatures(
        self,
        address: str,
        before: str | None = None,
        limit: int = 1000,
    ) -> list[dict[str, Any]]:
        options: dict[str, Any] = {"limit": limit}
        if before:
            options["before"] = before
        result = await self.rpc("getSignaturesForAddress", [address, options])
        if not isinstance(result, list):
            raise DataSourceUnavailable("helius getSignaturesForAddress: unexpected response format")
        return result

    async def get_enhanced_transactions(
        self,
        address: str,
        before: str | None = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"api-key": self._api_key, "limit": limit}
        if before:
            params["before"] = before

        resp = await self._http.get(f"/v0/addresses/{address}/transactions", params=params)
        try:
            items = resp.json()
        except ValueError as exc:
            raise DataSourceUnavailable("helius transactions: response is not JSON") from exc

        if not isinstance(items, list):
            raise DataSourceUnavailable("helius transactions: unexpected response format")
        return items

    async def get_asset_batch(self, ids: list[str]) -> list[dict[str, Any]]:
        """DAS getAssetBatch: token metadata (name, symbol) for up to 1000 mints."""
        if not ids:
            return []
        result = await self.rpc("getAssetBatch", {"ids": ids})
        if not isinstance(result, list):
            raise DataSourceUnavailable("helius getAssetBatch: unexpected response format")
        return [asset for asset in result if isinstance(asset, dict)]

    async def aclose(self) -> None:
        await self._http.aclose()
