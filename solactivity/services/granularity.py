# services/granularity.py
"""
Turns (granularity, signed day range) into a concrete TimeWindow.

``range > 0`` counts days forward from the address's first observed activity,
``range < 0`` counts days back from now. The window span is always
``abs(range)`` days; only the anchor changes with the sign.
"""
from __future__ import annotations

import math
import re
from datetime import datetime, timedelta

from core.errors import EmptyRange, InvalidGranularity, InvalidRange, RangeTooLarge
from models.activity import GranularityLiteral, TimeWindow

DAY_SECONDS = 86_400

_GRANULARITY_TO_SECONDS: dict[GranularityLiteral, int] = {
    "seconds": 1,
    "minutes": 60,
    "hours": 60 * 60,
    "days": DAY_SECONDS,
    "weeks": 7 * DAY_SECONDS,
    "months": 30 * DAY_SECONDS,
    "ALL": DAY_SECONDS,
}

# Coarsening order used when a request would exceed the bucket cap.
_LADDER: list[GranularityLiteral] = ["seconds", "minutes", "hours", "days", "weeks", "months"]

_INT_RE = re.compile(r"^[+-]?\d+$")


def interval_seconds(granularity: GranularityLiteral) -> int:
    return _GRANULARITY_TO_SECONDS[granularity]


def parse_granularity(raw: str) -> GranularityLiteral:
    value = (raw or "").strip()
    if value.upper() == "ALL":
        return "ALL"
    value = value.lower()
    if value in _GRANULARITY_TO_SECONDS:
        return value  # type: ignore[return-value]
    allowed = ", ".join(_GRANULARITY_TO_SECONDS)
    raise InvalidGranularity(f"Unknown granularity {raw!r}; expected one of {allowed}")


def parse_range(raw: str | int) -> int:
    if isinstance(raw, bool):
        raise InvalidRange(f"Range must be an integer number of days, got {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not _INT_RE.match(text):
            raise InvalidRange(f"Range must be a finite integer number of days, got {raw!r}")
        value = int(text)
    if value == 0:
        raise EmptyRange("Range must be non-zero: use N for the first N days, -N for the last N days")
    return value


def check_span(
    granularity: GranularityLiteral,
    range_days: int,
    *,
    max_range_days: int = 3650,
    seconds_max_span_days: int = 7,
    minutes_max_span_days: int = 30,
) -> int:
    """Span in days for a parsed range; raises RangeTooLarge before any date math."""
    span_days = abs(range_days)
    if span_days > max_range_days:
        raise RangeTooLarge(f"Range supports at most {max_range_days} days, requested {span_days}")

    caps = {"seconds": seconds_max_span_days, "minutes": minutes_max_span_days}
    cap = caps.get(granularity)
    if cap is not None and span_days > cap:
        raise RangeTooLarge(
            f"{granularity} granularity supports at most {cap} days, requested {span_days}"
        )
    return span_days


def resolve_window(
    granularity: GranularityLiteral,
    range_days: int,
    *,
    now: datetime,
    first_activity_at: datetime | None = None,
    max_buckets: int = 2000,
    max_range_days: int = 3650,
    seconds_max_span_days: int = 7,
    minutes_max_span_days: int = 30,
) -> TimeWindow:
    if range_days == 0:
        raise EmptyRange("Range must be non-zero")

    span_days = check_span(
        granularity,
        range_days,
        max_range_days=max_range_days,
        seconds_max_span_days=seconds_max_span_days,
        minutes_max_span_days=minutes_max_span_days,
    )

    span = timedelta(days=span_days)
    if range_days > 0 and first_activity_at is not None:
        start = first_activity_at
        end = start + span
    else:
        end = now
        start = end - span

    effective, step = _fit_interval(granularity, int(span.total_seconds()), max_buckets)
    bucket_count = math.ceil(span.total_seconds() / step)

    return TimeWindow(
        start=start,
        end=end,
        granularity=granularity,
        effective_granularity=effective,
        interval_seconds=step,
        bucket_count=bucket_count,
        downsampled=step != interval_seconds(granularity),
    )


def _fit_interval(
    granularity: GranularityLiteral,
    span_seconds: int,
    max_buckets: int,
) -> tuple[GranularityLiteral, int]:
    step = interval_seconds(granularity)
    if math.ceil(span_seconds / step) <= max_buckets:
        return granularity, step

    rung = "days" if granularity == "ALL" else granularity
    for candidate in _LADDER[_LADDER.index(rung) + 1:]:
        step = interval_seconds(candidate)
        if math.ceil(span_seconds / step) <= max_buckets:
            return candidate, step

    # Past months: widen the month interval until it fits
    factor = math.ceil(span_seconds / (interval_seconds("months") * max_buckets))
    return "months", interval_seconds("months") * factor


def describe_range(range_days: int) -> str:
    days = abs(range_days)
    unit = "day" if days == 1 else "days"
    if range_days > 0:
        return f"First {days} {unit} since first activity"
    return f"Last {days} {unit}"
