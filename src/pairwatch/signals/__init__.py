"""Indicator engine -- candle aggregation, RSI and the alert predicate. No I/O."""

from pairwatch.signals.alert import alert_fires, build_alert, format_market_cap
from pairwatch.signals.candles import aggregate, closes
from pairwatch.signals.rsi import calculate_rsi

__all__ = [
    "aggregate",
    "alert_fires",
    "build_alert",
    "calculate_rsi",
    "closes",
    "format_market_cap",
]
