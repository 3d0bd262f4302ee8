"""Tests for candle aggregation."""

import pytest

from pairwatch.models import Candle
from pairwatch.signals.candles import aggregate, closes


def _candle(ts: int, o: float, h: float, l: float, c: float, v: float) -> Candle:
    return Candle(timestamp=ts, open=o, high=h, low=l, close=c, volume=v)


class TestAggregate:
    """Grouping fine candles into coarse ones."""

    def test_drops_leading_remainder(self) -> None:
        """7 candles with factor 3: the oldest one is discarded, 2 groups remain."""
        candles = [_candle(i, i, i + 1, i - 1, i + 0.5, 1.0) for i in range(7)]
        result = aggregate(candles, 3)
        assert len(result) == 2
        assert result[0].timestamp == 1
        assert result[1].timestamp == 4

    def test_ohlcv_rules(self) -> None:
        candles = [
            _candle(100, 10, 12, 9, 11, 5),
            _candle(200, 11, 15, 10, 14, 7),
            _candle(300, 14, 14, 8, 9, 3),
        ]
        [bar] = aggregate(candles, 3)
        assert bar == Candle(timestamp=100, open=10, high=15, low=8, close=9, volume=15)

    def test_fewer_than_factor_returns_empty(self) -> None:
        candles = [_candle(i, 1, 1, 1, 1, 1) for i in range(11)]
        assert aggregate(candles, 12) == []

    def test_exact_multiple_keeps_everything(self) -> None:
        candles = [_candle(i, 1, 1, 1, 1, 1) for i in range(24)]
        result = aggregate(candles, 12)
        assert [c.timestamp for c in result] == [0, 12]

    def test_factor_one_is_identity(self) -> None:
        candles = [_candle(i, i, i, i, i, i) for i in range(5)]
        assert aggregate(candles, 1) == candles

    def test_invalid_factor_raises(self) -> None:
        with pytest.raises(ValueError):
            aggregate([], 0)

    def test_default_limit_yields_24_hourly_bars(self) -> None:
        """299 five-minute candles aggregate to 24 hourly ones (11 dropped)."""
        candles = [_candle(i, 1, 1, 1, 1, 1) for i in range(299)]
        result = aggregate(candles, 12)
        assert len(result) == 24
        assert result[0].timestamp == 11


class TestCloses:
    def test_preserves_order(self) -> None:
        candles = [_candle(i, 0, 0, 0, float(c), 0) for i, c in enumerate([3, 1, 2])]
        assert closes(candles) == [3.0, 1.0, 2.0]
