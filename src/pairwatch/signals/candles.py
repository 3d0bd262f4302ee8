"""Candle aggregation into coarser time frames.

Used to derive 1H candles from 5m candles in-process, which saves a second
upstream round-trip per token on every indicator refresh.
"""

from pairwatch.models import Candle


def aggregate(candles: list[Candle], factor: int) -> list[Candle]:
    """Group ``factor`` consecutive candles into one coarser candle.

    Groups are aligned to the most recent end of the series: a leading
    remainder of ``len(candles) % factor`` candles that cannot fill a whole
    group is discarded, so the newest coarse candle always covers the newest
    ``factor`` fine candles.

    Each aggregated candle takes timestamp and open from the first member,
    close from the last, the max of highs, the min of lows and the sum of
    volumes.

    Args:
        candles: Fine-grained candles in ascending time order.
        factor: Number of fine candles per coarse candle (e.g. 12 for 5m -> 1H).

    Returns:
        Aggregated candles in ascending order; empty if fewer than ``factor``
        candles were given.
    """
    if factor < 1:
        raise ValueError(f"aggregation factor must be positive, got {factor}")
    if len(candles) < factor:
        return []

    start = len(candles) % factor
    aggregated: list[Candle] = []
    for i in range(start, len(candles), factor):
        chunk = candles[i : i + factor]
        aggregated.append(
            Candle(
                timestamp=chunk[0].timestamp,
                open=chunk[0].open,
                high=max(c.high for c in chunk),
                low=min(c.low for c in chunk),
                close=chunk[-1].close,
                volume=sum(c.volume for c in chunk),
            )
        )
    return aggregated


def closes(candles: list[Candle]) -> list[float]:
    """Close prices of a candle series, order preserved."""
    return [c.close for c in candles]
