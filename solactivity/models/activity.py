# models/activity.py
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

GranularityLiteral = Literal["seconds", "minutes", "hours", "days", "weeks", "months", "ALL"]
AddressKind = Literal["wallet", "token"]
TradeAction = Literal["buy", "sell"]


class CamelModel(BaseModel):
    """Serializes with camelCase keys; accepts either form on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionRecord(CamelModel):
    """
    One atomic trade, seen from the queried address.

    For a wallet query ``owner_address`` is the wallet and ``token_address``
    varies. For a token query ``token_address`` is the mint and
    ``counterparty_address`` is the wallet on the other side.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    timestamp: datetime
    action: TradeAction
    token_symbol: str
    token_address: str
    owner_address: str
    counterparty_address: str | None = None
    amount: float = Field(..., ge=0)
    price_usd: float = Field(..., ge=0)
    volume_usd: float = Field(..., ge=0)
    signature: str
    profit_loss: float = 0.0


class ActivityBucket(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    timestamp: datetime = Field(..., description="Start of the interval in UTC")
    transaction_count: int = Field(..., ge=0)
    volume: float = Field(..., ge=0)
    profit_loss: float
    partial: bool = False
    transaction_details: list[TransactionRecord] = Field(default_factory=list)


class ActivityDistribution(CamelModel):
    high: int = 0
    medium: int = 0
    low: int = 0
    none: int = 0


class ActivitySummary(CamelModel):
    total_periods: int
    total_activity: int
    average_activity: float
    peak_activity: int
    quiet_periods: int
    activity_distribution: ActivityDistribution


class TimeWindow(CamelModel):
    start: datetime
    end: datetime
    granularity: GranularityLiteral
    effective_granularity: GranularityLiteral
    interval_seconds: int = Field(..., gt=0)
    bucket_count: int = Field(..., ge=1)
    downsampled: bool = False


class AddressClassification(CamelModel):
    kind: AddressKind
    confidence: Literal["high", "low"]
    source: Literal["rpc", "cache", "heuristic"]


class BucketWarning(CamelModel):
    """A bucket (or the whole request, when timestamp is None) that is incomplete."""

    timestamp: datetime | None = None
    code: str
    message: str


class ActivityResponse(CamelModel):
    """
    Response body for GET /api/{address}/activity/{granularity}/days/{range}
    """

    address: str
    type: AddressKind
    classification: AddressClassification
    granularity: GranularityLiteral
    range: int
    range_description: str
    data_points: list[ActivityBucket]
    total_activity: int
    summary: ActivitySummary
    timespan: TimeWindow
    partial: bool = False
    warnings: list[BucketWarning] = Field(default_factory=list)
    source: str
    generated_at: datetime


class ErrorResponse(BaseModel):
    error: str
    message: str
