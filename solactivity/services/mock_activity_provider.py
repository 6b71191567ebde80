# services/mock_activity_provider.py
from __future__ import annotations

import hashlib
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from models.activity import AddressKind
from services.activity_provider import ActivityDataProvider, TransactionHistory
from services.address_classifier import BASE58_ALPHABET

LAMPORTS_PER_SOL = 1_000_000_000

MOCK_TOKENS: dict[str, str] = {
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": "BONK",
    "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm": "WIF",
    "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr": "POPCAT",
    "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN": "JUP",
}


def base58_encode(data: bytes) -> str:
    number = int.from_bytes(data, "big")
    encoded = ""
    while number:
        number, remainder = divmod(number, 58)
        encoded = BASE58_ALPHABET[remainder] + encoded
    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return "1" * leading_zeros + encoded


def _seeded(*parts: Any) -> random.Random:
    digest = hashlib.sha256(":".join(str(part) for part in parts).encode()).digest()
    return random.Random(int.from_bytes(digest[:8], "big"))


def _signature(*parts: Any) -> str:
    return base58_encode(hashlib.sha512(":".join(str(part) for part in parts).encode()).digest())


def _pubkey(*parts: Any) -> str:
    return base58_encode(hashlib.sha256(":".join(str(part) for part in parts).encode()).digest())


class MockActivityProvider(ActivityDataProvider):
    """
    Deterministic synthetic activity for local and frontend work.

    Same address and window always give the same transactions, shaped like
    Helius enhanced transactions so the real ledger code runs on them.
    Responses built from it are tagged ``source="mock"``.
    """

    name = "mock"

    def __init__(self, token_addresses: Iterable[str] = (), sol_price_usd: float = 150.0) -> None:
        self._tokens = {**MOCK_TOKENS, **{address: "MOCK" for address in token_addresses}}
        self._sol_price = sol_price_usd

    async def get_account_kind(self, address: str) -> AddressKind | None:
        return "token" if address in self._tokens else "wallet"

    async def get_first_activity(self, address: str) -> datetime | None:
        rng = _seeded("first", address)
        return datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(
            days=rng.randrange(365), seconds=rng.randrange(86_400)
        )

    async def get_transactions(
        self,
        address: str,
        start: datetime,
        end: datetime,
    ) -> TransactionHistory:
        kind = await self.get_account_kind(address)
        history = TransactionHistory()

        hour = start.replace(minute=0, second=0, microsecond=0)
        while hour < end:
            rng = _seeded("hour", address, int(hour.timestamp()))
            for index in range(rng.choice([0, 0, 0, 1, 1, 2, 3, 5])):
                ts = hour + timedelta(seconds=rng.randrange(3600))
                if start <= ts < end:
                    history.transactions.append(self._swap(address, kind, hour, index, ts, rng))
            hour += timedelta(hours=1)

        history.transactions.sort(key=lambda tx: tx["timestamp"], reverse=True)
        return history

    def _swap(
        self,
        address: str,
        kind: AddressKind | None,
        hour: datetime,
        index: int,
        ts: datetime,
        rng: random.Random,
    ) -> dict[str, Any]:
        if kind == "token":
            mint = address
            trader = _pubkey("trader", address, rng.randrange(25))
        else:
            mint = rng.choice(sorted(MOCK_TOKENS))
            trader = address

        lamports = rng.randrange(LAMPORTS_PER_SOL // 20, 5 * LAMPORTS_PER_SOL)
        token_leg = {
            "userAccount": trader,
            "mint": mint,
            "rawTokenAmount": {"tokenAmount": str(rng.randrange(10_000, 50_000_000_000)), "decimals": 6},
        }
        native_leg = {"account": trader, "amount": str(lamports)}
        if rng.random() < 0.55:
            swap = {"nativeInput": native_leg, "tokenOutputs": [token_leg], "tokenInputs": []}
        else:
            swap = {"nativeOutput": native_leg, "tokenInputs": [token_leg], "tokenOutputs": []}

        return {
            "signature": _signature(address, int(hour.timestamp()), index),
            "timestamp": int(ts.timestamp()),
            "type": "SWAP",
            "source": "MOCK",
            "feePayer": trader,
            "events": {"swap": swap},
        }

    async def get_token_symbols(self, mints: list[str]) -> dict[str, str]:
        return {mint: self._tokens[mint] for mint in mints if mint in self._tokens}

    async def get_sol_price_usd(self) -> float | None:
        return self._sol_price

    async def aclose(self) -> None:
        return None
