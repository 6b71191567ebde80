import logging
from datetime import timedelta

import pytest

from conftest import BONK, NOW, TOKEN, WALLET, WIF, pubkey, swap_tx
from core.errors import (
    DataSourceTimeout,
    DataSourceUnavailable,
    EmptyRange,
    InvalidAddress,
    RangeTooLarge,
)
from services.activity_provider import HistoryGap
from services.activity_service import ActivityService


def _token_history(first):
    return [
        swap_tx(pubkey(i % 5), TOKEN, "buy" if i % 3 else "sell", first + timedelta(hours=i, minutes=7))
        for i in range(0, 168, 3)
    ]


@pytest.mark.asyncio
async def test_token_hours_week_from_first_activity(make_provider, settings):
    first = NOW - timedelta(days=40)
    provider = make_provider(kind="token", transactions=_token_history(first), first_activity=first)
    service = ActivityService(provider, settings)

    response = await service.get_activity(TOKEN, "hours", "7", now=NOW)

    assert response.type == "token"
    assert response.range == 7
    assert response.range_description == "First 7 days since first activity"
    assert len(response.data_points) == 168
    assert response.timespan.start == first
    records = [r for b in response.data_points for r in b.transaction_details]
    assert len(records) == 56
    assert all(r.token_address == TOKEN for r in records)
    assert len({r.counterparty_address for r in records}) == 5
    assert provider.calls == [(TOKEN, first, first + timedelta(days=7))]


@pytest.mark.asyncio
async def test_wallet_records_share_owner_and_vary_token(make_provider, settings):
    txs = [
        swap_tx(WALLET, BONK, "buy", NOW - timedelta(hours=5)),
        swap_tx(WALLET, WIF, "buy", NOW - timedelta(hours=3)),
        swap_tx(WALLET, BONK, "sell", NOW - timedelta(hours=1)),
    ]
    provider = make_provider(kind="wallet", transactions=txs, symbols={BONK: "BONK"})
    response = await ActivityService(provider, settings).get_activity(WALLET, "hours", -1, now=NOW)

    records = [r for b in response.data_points for r in b.transaction_details]
    assert response.type == "wallet"
    assert all(r.owner_address == WALLET for r in records)
    assert {r.token_address for r in records} == {BONK, WIF}
    assert {r.token_symbol for r in records if r.token_address == BONK} == {"BONK"}


@pytest.mark.asyncio
async def test_total_activity_matches_bucket_counts(make_provider, settings):
    first = NOW - timedelta(days=10)
    provider = make_provider(kind="token", transactions=_token_history(first), first_activity=first)
    response = await ActivityService(provider, settings).get_activity(TOKEN, "days", 7, now=NOW)

    assert response.total_activity == sum(b.transaction_count for b in response.data_points)
    assert response.summary.total_activity == response.total_activity
    assert response.summary.total_periods == 7


@pytest.mark.asyncio
async def test_same_request_same_snapshot_is_identical(make_provider, settings):
    first = NOW - timedelta(days=10)
    provider = make_provider(kind="token", transactions=_token_history(first), first_activity=first)
    service = ActivityService(provider, settings)

    one = await service.get_activity(TOKEN, "hours", 7, now=NOW)
    two = await service.get_activity(TOKEN, "hours", 7, now=NOW)
    assert one.model_dump(mode="json", by_alias=True)["dataPoints"] == two.model_dump(
        mode="json", by_alias=True
    )["dataPoints"]


@pytest.mark.asyncio
async def test_quiet_window_is_zero_not_error(make_provider, settings):
    response = await ActivityService(make_provider(), settings).get_activity(WALLET, "hours", -1, now=NOW)
    assert response.total_activity == 0
    assert response.summary.quiet_periods == 24
    assert response.partial is False


@pytest.mark.asyncio
async def test_history_gap_produces_partial_result(make_provider, settings):
    gap = HistoryGap(start=NOW - timedelta(days=1), end=NOW - timedelta(hours=20), reason="rate limited")
    provider = make_provider(gaps=[gap])
    response = await ActivityService(provider, settings).get_activity(WALLET, "hours", -1, now=NOW)

    assert response.partial is True
    partial = [b for b in response.data_points if b.partial]
    assert len(partial) == 5
    assert [w.code for w in response.warnings] == ["DataSourceUnavailable"] * 5


@pytest.mark.asyncio
async def test_low_confidence_and_missing_price_are_reported(make_provider, settings):
    provider = make_provider(kind=None, sol_price=None)
    response = await ActivityService(provider, settings).get_activity(WALLET, "days", -2, now=NOW)

    codes = {w.code for w in response.warnings}
    assert {"LowConfidenceClassification", "PriceUnavailable"} <= codes
    assert response.classification.confidence == "low"


@pytest.mark.asyncio
async def test_positive_range_without_history_anchors_at_now(make_provider, settings):
    response = await ActivityService(make_provider(), settings).get_activity(WALLET, "days", 3, now=NOW)
    assert response.timespan.end == NOW
    assert "NoFirstActivity" in {w.code for w in response.warnings}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "address,granularity,range_raw,error",
    [
        ("abc", "hours", "7", InvalidAddress),
        (WALLET, "hours", "0", EmptyRange),
        (WALLET, "seconds", "-8", RangeTooLarge),
        (WALLET, "days", "-1000000", RangeTooLarge),
        (WALLET, "days", "1000000000", RangeTooLarge),
        (WALLET, "days", "-99999999999", RangeTooLarge),
    ],
)
async def test_validation_errors(make_provider, settings, address, granularity, range_raw, error):
    provider = make_provider()
    with pytest.raises(error):
        await ActivityService(provider, settings).get_activity(address, granularity, range_raw, now=NOW)
    assert provider.calls == []
    assert provider.lookups == []


@pytest.mark.asyncio
async def test_upstream_failure_propagates(make_provider, settings):
    provider = make_provider(fail_with=DataSourceUnavailable("helius down"))
    with pytest.raises(DataSourceUnavailable):
        await ActivityService(provider, settings).get_activity(WALLET, "hours", -1, now=NOW)


@pytest.mark.asyncio
async def test_slow_upstream_times_out(make_provider, settings):
    settings.REQUEST_TIMEOUT_SECONDS = 0.05
    provider = make_provider(delay=1.0)
    with pytest.raises(DataSourceTimeout):
        await ActivityService(provider, settings).get_activity(WALLET, "hours", -1, now=NOW)


@pytest.mark.asyncio
async def test_log_lines_carry_the_request_address(make_provider, settings, caplog):
    provider = make_provider()
    with caplog.at_level(logging.INFO, logger="activity_service"):
        await ActivityService(provider, settings).get_activity(WALLET, "hours", -1, now=NOW)

    built = [r for r in caplog.records if r.getMessage() == "Activity built"]
    assert built
    assert built[0].extra_data["address"] == WALLET
    assert built[0].extra_data["granularity"] == "hours"
