# services/statistics.py
from __future__ import annotations

from typing import Sequence

from models.activity import ActivityBucket, ActivityDistribution, ActivitySummary

LOW_MAX = 5
MEDIUM_MAX = 20


def activity_level(count: int) -> str:
    if count == 0:
        return "none"
    if count <= LOW_MAX:
        return "low"
    if count <= MEDIUM_MAX:
        return "medium"
    return "high"


def summarize(buckets: Sequence[ActivityBucket]) -> ActivitySummary:
    """Peak/average/idle statistics over a bucket series.

    The average skips partial buckets: their counts are lower bounds.
    """
    counts = [bucket.transaction_count for bucket in buckets]
    complete = [bucket.transaction_count for bucket in buckets if not bucket.partial]

    histogram = {"high": 0, "medium": 0, "low": 0, "none": 0}
    for count in counts:
        histogram[activity_level(count)] += 1

    return ActivitySummary(
        total_periods=len(counts),
        total_activity=sum(counts),
        average_activity=round(sum(complete) / len(complete), 2) if complete else 0.0,
        peak_activity=max(counts, default=0),
        quiet_periods=histogram["none"],
        activity_distribution=ActivityDistribution(**histogram),
    )
