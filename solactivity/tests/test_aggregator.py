from datetime import timedelta

from conftest import BONK, NOW, WALLET, swap_tx
from services.activity_provider import HistoryGap
from services.aggregator import aggregate_buckets, bucket_bounds
from services.granularity import resolve_window
from services.ledger import build_ledger


def _window(granularity="hours", range_days=-1):
    return resolve_window(granularity, range_days, now=NOW)


def test_empty_history_gives_zero_buckets():
    window = _window()
    buckets, warnings = aggregate_buckets(window, [])

    assert len(buckets) == 24
    assert warnings == []
    for bucket in buckets:
        assert bucket.transaction_count == 0
        assert bucket.volume == 0
        assert bucket.transaction_details == []
        assert bucket.partial is False


def test_records_land_in_their_interval():
    window = _window()
    txs = [
        swap_tx(WALLET, BONK, "buy", window.start + timedelta(minutes=5)),
        swap_tx(WALLET, BONK, "sell", window.start + timedelta(minutes=50)),
        swap_tx(WALLET, BONK, "buy", window.start + timedelta(hours=3, minutes=1)),
    ]
    records = build_ledger(WALLET, "wallet", txs, 100.0)
    buckets, _ = aggregate_buckets(window, records)

    assert [b.transaction_count for b in buckets[:4]] == [2, 0, 0, 1]
    assert buckets[0].volume == 200.0
    assert buckets[0].transaction_details[0].action == "buy"
    assert sum(b.transaction_count for b in buckets) == 3


def test_records_outside_window_are_ignored():
    window = _window()
    txs = [
        swap_tx(WALLET, BONK, "buy", window.start - timedelta(seconds=1)),
        swap_tx(WALLET, BONK, "buy", window.end),
    ]
    buckets, _ = aggregate_buckets(window, build_ledger(WALLET, "wallet", txs, 100.0))
    assert sum(b.transaction_count for b in buckets) == 0


def test_buckets_are_ascending_and_last_one_is_clipped():
    window = resolve_window("weeks", -10, now=NOW)
    bounds = bucket_bounds(window)
    assert len(bounds) == 2
    assert bounds[0][0] == window.start
    assert bounds[-1][1] == window.end
    assert bounds[-1][1] - bounds[-1][0] == timedelta(days=3)

    buckets, _ = aggregate_buckets(window, [])
    assert [b.timestamp for b in buckets] == sorted(b.timestamp for b in buckets)


def test_gaps_mark_buckets_partial_with_warnings():
    window = _window()
    gap = HistoryGap(
        start=window.start,
        end=window.start + timedelta(hours=2, minutes=30),
        reason="helius unavailable after 3 attempts",
    )
    buckets, warnings = aggregate_buckets(window, [], [gap])

    assert [b.partial for b in buckets[:4]] == [True, True, True, False]
    assert len(warnings) == 3
    assert warnings[0].timestamp == window.start
    assert warnings[0].code == "DataSourceUnavailable"
    assert "helius" in warnings[0].message
