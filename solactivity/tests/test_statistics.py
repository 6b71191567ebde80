from datetime import timedelta

from conftest import NOW
from models.activity import ActivityBucket
from services.statistics import activity_level, summarize


def _buckets(counts, partial=()):
    return [
        ActivityBucket(
            timestamp=NOW + timedelta(hours=i),
            transaction_count=count,
            volume=0.0,
            profit_loss=0.0,
            partial=i in partial,
        )
        for i, count in enumerate(counts)
    ]


def test_histogram_bin_edges():
    assert [activity_level(c) for c in (0, 1, 5, 6, 20, 21, 500)] == [
        "none", "low", "low", "medium", "medium", "high", "high",
    ]


def test_summary_figures():
    summary = summarize(_buckets([0, 3, 0, 12, 25, 1]))

    assert summary.total_periods == 6
    assert summary.total_activity == 41
    assert summary.peak_activity == 25
    assert summary.quiet_periods == 2
    assert summary.average_activity == 6.83
    dist = summary.activity_distribution
    assert (dist.none, dist.low, dist.medium, dist.high) == (2, 2, 1, 1)


def test_average_skips_partial_buckets():
    summary = summarize(_buckets([4, 0, 8], partial={1}))
    assert summary.average_activity == 6.0
    assert summary.total_activity == 12


def test_empty_series():
    summary = summarize([])
    assert summary.total_periods == 0
    assert summary.average_activity == 0.0
    assert summary.peak_activity == 0


def test_summary_is_deterministic():
    buckets = _buckets([1, 2, 3])
    assert summarize(buckets) == summarize(list(buckets))
