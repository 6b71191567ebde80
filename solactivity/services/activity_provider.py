# services/activity_provider.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from models.activity import AddressKind


@dataclass(frozen=True)
class HistoryGap:
    """A time range the data source could not cover."""

    start: datetime
    end: datetime
    reason: str


@dataclass
class TransactionHistory:
    # Helius "enhanced transaction" shaped dicts, newest first or any order
    transactions: list[dict[str, Any]] = field(default_factory=list)
    gaps: list[HistoryGap] = field(default_factory=list)


class ActivityDataProvider(Protocol):
    """
    Abstraction around the source of on-chain activity.

    The activity service only talks to this interface, never directly to HTTP.
    Implementations raise DataSourceTimeout / DataSourceUnavailable when they
    cannot return anything at all, and report partial coverage through
    TransactionHistory.gaps otherwise.
    """

    name: str

    async def get_account_kind(self, address: str) -> AddressKind | None:
        """Authoritative wallet/token lookup; None when the account is unknown."""
        ...

    async def get_first_activity(self, address: str) -> datetime | None:
        ...

    async def get_transactions(
        self,
        address: str,
        start: datetime,
        end: datetime,
    ) -> TransactionHistory:
        ...

    async def get_token_symbols(self, mints: list[str]) -> dict[str, str]:
        """Best-effort mint -> ticker; unknown mints are left out."""
        ...

    async def get_sol_price_usd(self) -> float | None:
        ...

    async def aclose(self) -> None:
        """Release pooled connections; called once at shutdown."""
        ...
