"""Shared fixtures for activity API tests."""

import asyncio
import hashlib
import sys
from datetime import datetime, timezone
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

import pytest

from core.config import Settings
from services.activity_provider import TransactionHistory
from services.mock_activity_provider import base58_encode

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

TOKEN = "TokenXYZabcdefghijkmnopqrstuvwxyzABCDEFGHJK"
WALLET = "WALLETabcdefghijkmnopqrstuvwxyzABCDEFGHJKLM"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
WIF = "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm"


def pubkey(seed) -> str:
    return base58_encode(hashlib.sha256(f"pubkey:{seed}".encode()).digest())


def signature(seed) -> str:
    return base58_encode(hashlib.sha512(f"sig:{seed}".encode()).digest())


def swap_tx(owner, mint, action, ts, token_amount=1_000_000_000, lamports=1_000_000_000,
            seed=None, decimals=6):
    """A Helius enhanced transaction with one decoded swap."""
    leg = {
        "userAccount": owner,
        "mint": mint,
        "rawTokenAmount": {"tokenAmount": str(token_amount), "decimals": decimals},
    }
    native = {"account": owner, "amount": str(lamports)}
    if action == "buy":
        swap = {"nativeInput": native, "tokenOutputs": [leg], "tokenInputs": []}
    else:
        swap = {"nativeOutput": native, "tokenInputs": [leg], "tokenOutputs": []}
    return {
        "signature": signature(seed if seed is not None else (owner, mint, action, ts)),
        "timestamp": int(ts.timestamp()),
        "type": "SWAP",
        "feePayer": owner,
        "events": {"swap": swap},
    }


class FakeProvider:
    """In-memory ActivityDataProvider."""

    name = "fake"

    def __init__(
        self,
        kind="wallet",
        transactions=(),
        first_activity=None,
        gaps=(),
        sol_price=100.0,
        symbols=None,
        fail_with=None,
        delay=0.0,
    ):
        self.kind = kind
        self.transactions = list(transactions)
        self.first_activity = first_activity
        self.gaps = list(gaps)
        self.sol_price = sol_price
        self.symbols = symbols or {}
        self.fail_with = fail_with
        self.delay = delay
        self.calls = []
        self.lookups = []

    async def get_account_kind(self, address):
        self.lookups.append(("kind", address))
        return self.kind

    async def get_first_activity(self, address):
        self.lookups.append(("first_activity", address))
        return self.first_activity

    async def get_transactions(self, address, start, end):
        self.calls.append((address, start, end))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        return TransactionHistory(transactions=list(self.transactions), gaps=list(self.gaps))

    async def get_token_symbols(self, mints):
        return {mint: self.symbols[mint] for mint in mints if mint in self.symbols}

    async def get_sol_price_usd(self):
        return self.sol_price


@pytest.fixture
def settings():
    return Settings(
        HELIUS_API_KEY="test-key",
        DATA_SOURCE_BACKOFF_SECONDS=0.0,
        DATA_SOURCE_MAX_ATTEMPTS=3,
        REQUEST_TIMEOUT_SECONDS=5.0,
    )


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def make_swap():
    return swap_tx
