"""Shared data models.

Upstream payloads (pairs, market snapshots) are parsed with pydantic so that
shape problems surface as validation errors at the client boundary. Values
computed in-process (candles, indicator snapshots, alerts) are plain
dataclasses.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _blank_to_none(value: Any) -> Any:
    """Upstream APIs send "" for unknown numbers; treat it as absent."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


OptionalFloat = Annotated[float | None, BeforeValidator(_blank_to_none)]


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Candle:
    """One OHLCV sample. ``timestamp`` is the bucket open time in epoch ms."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TokenInfo(_UpstreamModel):
    """Identity of one side of a pair."""

    address: str = ""
    symbol: str = ""
    name: str = ""


class Liquidity(_UpstreamModel):
    usd: OptionalFloat = None
    base: OptionalFloat = None
    quote: OptionalFloat = None


class PeriodBuckets(_UpstreamModel):
    """Per-window values (volume or price change) keyed m5/h1/h6/h24."""

    m5: OptionalFloat = None
    h1: OptionalFloat = None
    h6: OptionalFloat = None
    h24: OptionalFloat = None


class PairSnapshot(_UpstreamModel):
    """Normalized trading-pair record, stored in the ``pairs`` collection.

    Field aliases follow the aggregator's camelCase payload so that a stored
    document and a fresh upstream payload have the same shape.
    """

    pair_address: str = Field(alias="pairAddress")
    chain_id: str = Field(default="", alias="chainId")
    dex_id: str = Field(default="", alias="dexId")
    url: str = ""
    base_token: TokenInfo = Field(alias="baseToken")
    quote_token: TokenInfo = Field(alias="quoteToken")
    price_native: OptionalFloat = Field(default=None, alias="priceNative")
    price_usd: OptionalFloat = Field(default=None, alias="priceUsd")
    liquidity: Liquidity | None = None
    volume: PeriodBuckets = Field(default_factory=PeriodBuckets)
    price_change: PeriodBuckets = Field(
        default_factory=PeriodBuckets, alias="priceChange"
    )
    fdv: OptionalFloat = None
    market_cap: OptionalFloat = Field(default=None, alias="marketCap")
    pair_created_at: int | None = Field(default=None, alias="pairCreatedAt")
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")

    def to_document(self, exclude_none: bool = False) -> dict[str, Any]:
        """Serialize to the stored JSON document (camelCase, ISO datetimes)."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=exclude_none)


class MarketData(_UpstreamModel):
    """One row of the OKX DEX batched price endpoint."""

    token_contract_address: str = Field(alias="tokenContractAddress")
    chain_index: str = Field(default="", alias="chainIndex")
    market_cap: OptionalFloat = Field(default=None, alias="marketCap")
    price: OptionalFloat = None
    price_change_5m: OptionalFloat = Field(default=None, alias="priceChange5M")
    price_change_1h: OptionalFloat = Field(default=None, alias="priceChange1H")
    price_change_4h: OptionalFloat = Field(default=None, alias="priceChange4H")
    price_change_24h: OptionalFloat = Field(default=None, alias="priceChange24H")
    volume_5m: OptionalFloat = Field(default=None, alias="volume5M")
    volume_1h: OptionalFloat = Field(default=None, alias="volume1H")
    volume_4h: OptionalFloat = Field(default=None, alias="volume4H")
    volume_24h: OptionalFloat = Field(default=None, alias="volume24H")
    time: str = ""


@dataclass
class IndicatorSnapshot:
    """RSI state for one tracked token, stored in ``rsi_data`` by token address."""

    token_address: str
    symbol: str
    pair_address: str
    rsi_short: float | None
    rsi_long: float | None
    short_bar: str
    long_bar: str
    short_candles: list[Candle] = field(default_factory=list)
    long_candles: list[Candle] = field(default_factory=list)
    price_change: dict[str, float | None] = field(default_factory=dict)
    market_cap: float | None = None
    last_updated: datetime = field(default_factory=utcnow)

    def to_document(self) -> dict[str, Any]:
        return {
            "tokenAddress": self.token_address,
            "symbol": self.symbol,
            "pairAddress": self.pair_address,
            "rsiShort": self.rsi_short,
            "rsiLong": self.rsi_long,
            "shortBar": self.short_bar,
            "longBar": self.long_bar,
            "shortCandles": [c.to_dict() for c in self.short_candles],
            "longCandles": [c.to_dict() for c in self.long_candles],
            "priceChange": dict(self.price_change),
            "marketCap": self.market_cap,
            "lastUpdated": self.last_updated.isoformat(),
        }


@dataclass(frozen=True)
class AlertEvent:
    """Transient oversold alert, consumed by the notification channels."""

    symbol: str
    action: str
    rsi_short: float
    rsi_long: float
    market_cap: str  # already formatted for display, e.g. "$2.31M"
    token_address: str


@dataclass
class Subscriber:
    """Email subscriber record from the ``mails`` collection (read-only)."""

    email: str
    status: str

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Subscriber":
        return cls(
            email=str(document.get("email", "")),
            status=str(document.get("status", "")),
        )


@dataclass
class NotifyResult:
    """Outcome of one notification channel send. Never raised, only logged."""

    ok: bool
    skipped: bool = False
    error: str | None = None
    delivered: int = 0

    @classmethod
    def skip(cls, reason: str) -> "NotifyResult":
        return cls(ok=True, skipped=True, error=reason)


@dataclass
class JobResult:
    """Outcome of one polling-loop tick.

    ``success`` is False only for loop-level failures; per-item failures are
    counted in ``failed`` and still yield a successful tick.
    """

    success: bool
    message: str = ""
    error: str | None = None
    updated: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
