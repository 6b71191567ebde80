# services/aggregator.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from models.activity import ActivityBucket, BucketWarning, TimeWindow, TransactionRecord
from services.activity_provider import HistoryGap


def bucket_bounds(window: TimeWindow) -> list[tuple[datetime, datetime]]:
    """[start, end) of every interval; the last one is clipped to window.end."""
    step = timedelta(seconds=window.interval_seconds)
    bounds = []
    for index in range(window.bucket_count):
        start = window.start + step * index
        bounds.append((start, min(start + step, window.end)))
    return bounds


def _overlaps(start: datetime, end: datetime, gap: HistoryGap) -> bool:
    return gap.start < end and gap.end >= start


def aggregate_buckets(
    window: TimeWindow,
    records: Iterable[TransactionRecord],
    gaps: Iterable[HistoryGap] = (),
) -> tuple[list[ActivityBucket], list[BucketWarning]]:
    """
    One ActivityBucket per interval of ``window``.

    Records are assigned by their offset from window.start; records outside
    the window are ignored. Any bucket touching a history gap is marked
    partial and gets a warning, so missing data is never reported as zero.
    """
    bounds = bucket_bounds(window)
    slots: list[list[TransactionRecord]] = [[] for _ in bounds]

    for record in records:
        if record.timestamp < window.start or record.timestamp >= window.end:
            continue
        index = int((record.timestamp - window.start).total_seconds() // window.interval_seconds)
        if 0 <= index < len(slots):
            slots[index].append(record)

    gaps = list(gaps)
    buckets: list[ActivityBucket] = []
    warnings: list[BucketWarning] = []

    for (start, end), details in zip(bounds, slots):
        details.sort(key=lambda record: (record.timestamp, record.signature))
        hit = [gap for gap in gaps if _overlaps(start, end, gap)]
        for gap in hit:
            warnings.append(
                BucketWarning(
                    timestamp=start,
                    code="DataSourceUnavailable",
                    message=gap.reason,
                )
            )
        buckets.append(
            ActivityBucket(
                timestamp=start,
                transaction_count=len(details),
                volume=round(sum(record.volume_usd for record in details), 6),
                profit_loss=round(sum(record.profit_loss for record in details), 6),
                partial=bool(hit),
                transaction_details=details,
            )
        )

    return buckets, warnings
