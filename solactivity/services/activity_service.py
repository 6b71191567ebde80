# services/activity_service.py
from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from core.config import Settings, get_settings
from core.errors import DataSourceError, DataSourceTimeout
from core.logger import get_logger
from models.activity import ActivityResponse, BucketWarning
from services.activity_provider import ActivityDataProvider
from services.address_classifier import classify_address, validate_address
from services.aggregator import aggregate_buckets
from services.granularity import (
    check_span,
    describe_range,
    parse_granularity,
    parse_range,
    resolve_window,
)
from services.kind_cache import AccountKindCache
from services.ledger import apply_token_symbols, build_ledger
from services.statistics import summarize

logger = get_logger("activity_service")


class ActivityService:
    """
    Builds the activity time series for one address.

    Stateless per request; the provider (HTTP connection pools) and the
    account-kind cache are the only things shared between requests.
    """

    def __init__(
        self,
        provider: ActivityDataProvider,
        settings: Settings | None = None,
        kind_cache: AccountKindCache | None = None,
    ) -> None:
        self._provider = provider
        self._settings = settings or get_settings()
        self._kind_cache = kind_cache

    async def get_activity(
        self,
        address: str,
        granularity: str,
        range_raw: str | int,
        now: datetime | None = None,
    ) -> ActivityResponse:
        # Validation first, so bad input never waits on upstream calls
        address = validate_address(address)
        resolved_granularity = parse_granularity(granularity)
        range_days = parse_range(range_raw)
        check_span(
            resolved_granularity,
            range_days,
            max_range_days=self._settings.MAX_RANGE_DAYS,
            seconds_max_span_days=self._settings.SECONDS_MAX_SPAN_DAYS,
            minutes_max_span_days=self._settings.MINUTES_MAX_SPAN_DAYS,
        )

        try:
            return await asyncio.wait_for(
                self._build(address, resolved_granularity, range_days, now),
                timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError as exc:
            logger.with_context(address=address).error(
                "Activity request timed out",
                timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
            )
            raise DataSourceTimeout(
                f"Activity for {address} not ready within "
                f"{self._settings.REQUEST_TIMEOUT_SECONDS:g}s"
            ) from exc

    async def _build(self, address, granularity, range_days, now) -> ActivityResponse:
        settings = self._settings
        now = now or datetime.now(timezone.utc)
        log = logger.with_context(address=address, granularity=granularity)
        warnings: list[BucketWarning] = []

        classification = await classify_address(address, self._provider, self._kind_cache)
        if classification.confidence == "low":
            warnings.append(
                BucketWarning(
                    code="LowConfidenceClassification",
                    message="Account type could not be confirmed on chain; treated as wallet",
                )
            )

        first_activity = None
        if range_days > 0:
            first_activity = await self._provider.get_first_activity(address)
            if first_activity is None:
                warnings.append(
                    BucketWarning(
                        code="NoFirstActivity",
                        message="No activity found for this address; window anchored at now",
                    )
                )

        window = resolve_window(
            granularity,
            range_days,
            now=now,
            first_activity_at=first_activity,
            max_buckets=settings.MAX_BUCKETS,
            max_range_days=settings.MAX_RANGE_DAYS,
            seconds_max_span_days=settings.SECONDS_MAX_SPAN_DAYS,
            minutes_max_span_days=settings.MINUTES_MAX_SPAN_DAYS,
        )

        history = await self._provider.get_transactions(address, window.start, window.end)

        try:
            sol_price = await self._provider.get_sol_price_usd()
        except DataSourceError as exc:
            log.warning("SOL price unavailable", error=exc.message)
            sol_price = None
        if sol_price is None:
            warnings.append(
                BucketWarning(
                    code="PriceUnavailable",
                    message="SOL/USD price unavailable; volume, price and P&L are reported as 0",
                )
            )

        records = build_ledger(address, classification.kind, history.transactions, sol_price)
        mints = sorted({record.token_address for record in records})
        if mints:
            try:
                symbols = await self._provider.get_token_symbols(mints)
            except DataSourceError as exc:
                log.warning("Token metadata unavailable", error=exc.message)
            else:
                records = apply_token_symbols(records, symbols)

        buckets, bucket_warnings = aggregate_buckets(window, records, history.gaps)
        warnings.extend(bucket_warnings)
        summary = summarize(buckets)

        log.info(
            "Activity built",
            kind=classification.kind,
            effective_granularity=window.effective_granularity,
            buckets=len(buckets),
            transactions=summary.total_activity,
            gaps=len(history.gaps),
        )

        return ActivityResponse(
            address=address,
            type=classification.kind,
            classification=classification,
            granularity=granularity,
            range=range_days,
            range_description=describe_range(range_days),
            data_points=buckets,
            total_activity=summary.total_activity,
            summary=summary,
            timespan=window,
            partial=any(bucket.partial for bucket in buckets),
            warnings=warnings,
            source=self._provider.name,
            generated_at=now,
        )
