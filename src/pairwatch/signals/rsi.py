"""Relative Strength Index with Wilder smoothing.

Alert thresholds downstream are tuned against this exact recurrence, so the
seed (simple mean of the first ``period`` deltas) and the smoothing step must
not be swapped for a different RSI variant.
"""


def calculate_rsi(close_prices: list[float], period: int = 14) -> float | None:
    """Compute RSI over an ascending series of close prices.

    Algorithm:
        1. Deltas between consecutive closes.
        2. Seed avg_gain / avg_loss with the simple mean of the first
           ``period`` deltas (losses as positive magnitudes).
        3. For every later delta:
           avg = (avg * (period - 1) + current) / period
           applied to both gain and loss (one of them is zero each step).
        4. RSI = 100 - 100 / (1 + avg_gain / avg_loss); exactly 100.0 when
           avg_loss is zero.

    Args:
        close_prices: Close prices ordered oldest first.
        period: Lookback window.

    Returns:
        RSI in [0, 100], or None when fewer than ``period + 1`` prices are
        available.
    """
    if period < 1:
        raise ValueError(f"RSI period must be positive, got {period}")
    if len(close_prices) < period + 1:
        return None

    deltas = [
        close_prices[i] - close_prices[i - 1] for i in range(1, len(close_prices))
    ]

    gains = 0.0
    losses = 0.0
    for delta in deltas[:period]:
        if delta > 0:
            gains += delta
        else:
            losses -= delta

    avg_gain = gains / period
    avg_loss = losses / period

    for delta in deltas[period:]:
        gain = delta if delta > 0 else 0.0
        loss = -delta if delta < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))
