# services/helius_activity_provider.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from clients.helius_client import HeliusClient
from clients.price_client import JupiterPriceClient
from core.config import Settings, get_settings
from core.errors import DataSourceError
from core.logger import get_logger
from models.activity import AddressKind
from services.activity_provider import ActivityDataProvider, HistoryGap, TransactionHistory

logger = get_logger("helius_provider")

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PeQh8tmUWd6Lc5"
SIGNATURE_PAGE_LIMIT = 1000


def _tx_time(tx: dict[str, Any]) -> datetime | None:
    raw = tx.get("timestamp")
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return datetime.fromtimestamp(float(raw), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


class HeliusActivityProvider(ActivityDataProvider):
    """
    Pulls activity from Helius and prices from Jupiter.

    History is paged newest -> oldest. If a page fails after retries we keep
    what we have and report the uncovered range as a gap; if the very first
    page fails the error propagates.
    """

    name = "helius"

    def __init__(
        self,
        client: HeliusClient | None = None,
        prices: JupiterPriceClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client or HeliusClient(self._settings)
        self._prices = prices or JupiterPriceClient(self._settings)

    async def get_account_kind(self, address: str) -> AddressKind | None:
        info = await self._client.get_account_info(address)
        if not info:
            return None

        owner = info.get("owner")
        data = info.get("data")
        parsed_type = None
        if isinstance(data, dict):
            parsed_type = (data.get("parsed") or {}).get("type")

        if owner in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID) and parsed_type == "mint":
            return "token"
        return "wallet"

    async def get_first_activity(self, address: str) -> datetime | None:
        before: str | None = None
        oldest: datetime | None = None

        for _ in range(self._settings.MAX_SIGNATURE_PAGES):
            page = await self._client.get_signatures(
                address, before=before, limit=SIGNATURE_PAGE_LIMIT
            )
            if not page:
                return oldest
            for entry in page:
                block_time = entry.get("blockTime")
                if block_time is not None:
                    oldest = datetime.fromtimestamp(block_time, tz=timezone.utc)
            if len(page) < SIGNATURE_PAGE_LIMIT:
                return oldest
            before = page[-1].get("signature")

        logger.warning(
            "Signature page limit reached, first activity is approximate",
            address=address,
            pages=self._settings.MAX_SIGNATURE_PAGES,
        )
        return oldest

    async def get_transactions(
        self,
        address: str,
        start: datetime,
        end: datetime,
    ) -> TransactionHistory:
        history = TransactionHistory()
        before: str | None = None
        oldest_seen = end
        limit = self._settings.HISTORY_PAGE_LIMIT

        for page_number in range(self._settings.MAX_HISTORY_PAGES):
            try:
                page = await self._client.get_enhanced_transactions(
                    address, before=before, limit=limit
                )
            except DataSourceError as exc:
                if page_number == 0:
                    raise
                logger.warning(
                    "History paging stopped early",
                    address=address,
                    page=page_number,
                    error=exc.message,
                )
                if oldest_seen > start:
                    history.gaps.append(HistoryGap(start=start, end=oldest_seen, reason=exc.message))
                return history

            if not page:
                return history

            for tx in page:
                history.transactions.append(tx)
                tx_time = _tx_time(tx)
                if tx_time is not None and tx_time < oldest_seen:
                    oldest_seen = tx_time

            if oldest_seen < start or len(page) < limit:
                return history
            before = page[-1].get("signature")
            if not before:
                return history

        if oldest_seen > start:
            reason = (
                f"history page limit ({self._settings.MAX_HISTORY_PAGES} pages) reached "
                f"before the window start"
            )
            logger.warning("History page limit reached", address=address)
            history.gaps.append(HistoryGap(start=start, end=oldest_seen, reason=reason))
        return history

    async def get_token_symbols(self, mints: list[str]) -> dict[str, str]:
        symbols: dict[str, str] = {}
        for asset in await self._client.get_asset_batch(mints):
            metadata = (asset.get("content") or {}).get("metadata") or {}
            symbol = metadata.get("symbol")
            if asset.get("id") and symbol:
                symbols[asset["id"]] = symbol
        return symbols

    async def get_sol_price_usd(self) -> float | None:
        return await self._prices.get_sol_price()

    async def aclose(self) -> None:
        await self._client.aclose()
        await self._prices.aclose()
