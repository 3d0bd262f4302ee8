"""Oversold alert predicate and alert construction."""

from pairwatch.models import AlertEvent, IndicatorSnapshot

BUY_ACTION = "BUY"


def alert_fires(
    rsi_short: float,
    rsi_long: float,
    upper: float = 30.0,
    lower: float = 10.0,
) -> bool:
    """Return True when both windows are oversold and the long RSI is not collapsed.

    A long-window RSI below ``lower`` usually means the token is being dumped
    rather than dipping, so it does not fire.
    """
    return rsi_long < upper and rsi_long >= lower and rsi_short < upper


def format_market_cap(value: float | None) -> str:
    """Format a USD market cap compactly: $1.23B, $4.56M, $7.89K, $12.34."""
    if value is None:
        return "N/A"
    for threshold, suffix in ((1e9, "B"), (1e6, "M"), (1e3, "K")):
        if abs(value) >= threshold:
            return f"${value / threshold:.2f}{suffix}"
    return f"${value:.2f}"


def build_alert(snapshot: IndicatorSnapshot) -> AlertEvent:
    """Build a BUY alert from a snapshot whose RSIs are both present."""
    if snapshot.rsi_short is None or snapshot.rsi_long is None:
        raise ValueError(f"snapshot for {snapshot.token_address} lacks RSI values")
    return AlertEvent(
        symbol=snapshot.symbol,
        action=BUY_ACTION,
        rsi_short=snapshot.rsi_short,
        rsi_long=snapshot.rsi_long,
        market_cap=format_market_cap(snapshot.market_cap),
        token_address=snapshot.token_address,
    )
