from datetime import timedelta

import pytest

from conftest import NOW, TOKEN, WALLET
from services.activity_service import ActivityService
from services.ledger import build_ledger
from services.mock_activity_provider import MOCK_TOKENS, MockActivityProvider


@pytest.mark.asyncio
async def test_mock_history_is_deterministic():
    provider = MockActivityProvider()
    start = NOW - timedelta(days=2)
    one = await provider.get_transactions(WALLET, start, NOW)
    two = await MockActivityProvider().get_transactions(WALLET, start, NOW)
    assert one.transactions == two.transactions
    assert one.gaps == []


@pytest.mark.asyncio
async def test_mock_transactions_parse_cleanly():
    provider = MockActivityProvider()
    history = await provider.get_transactions(WALLET, NOW - timedelta(days=3), NOW)
    records = build_ledger(WALLET, "wallet", history.transactions, 150.0)

    assert len(records) == len(history.transactions)
    assert {r.token_address for r in records} <= set(MOCK_TOKENS)
    assert all(r.owner_address == WALLET for r in records)


@pytest.mark.asyncio
async def test_configured_mock_token_is_classified_as_token(settings):
    provider = MockActivityProvider(token_addresses=[TOKEN])
    response = await ActivityService(provider, settings).get_activity(TOKEN, "hours", -2, now=NOW)

    assert response.type == "token"
    assert response.source == "mock"
    records = [r for b in response.data_points for r in b.transaction_details]
    assert records
    assert {r.token_address for r in records} == {TOKEN}
    assert len({r.counterparty_address for r in records}) > 1
