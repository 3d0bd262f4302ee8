"""Indicator refresh: per tracked token, candles -> RSI -> snapshot -> alert.

Tokens are processed strictly one after another with a throttle between
upstream calls. A failure on one token is logged and counted; the batch
carries on with the next token. Missing credentials abort the whole cycle.
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from pairwatch.config import IndicatorSettings
from pairwatch.data.store import RecordStore
from pairwatch.exceptions import ConfigurationError
from pairwatch.logging import get_logger
from pairwatch.models import IndicatorSnapshot, JobResult, TokenInfo
from pairwatch.notify.dispatcher import NotificationDispatcher
from pairwatch.signals import aggregate, alert_fires, build_alert, calculate_rsi, closes
from pairwatch.venues.listing import collect_tracked_tokens
from pairwatch.venues.okx_client import OkxMarketClient

logger = get_logger(__name__)


class IndicatorRefreshJob:
    """Recomputes short/long RSI for every tracked token.

    Args:
        market: OKX candle source.
        store: Document store (reads pairs, writes rsi_data).
        dispatcher: Receives alerts; delivery happens off this loop.
        settings: RSI windows and alert thresholds.
        native_address: Native wrapped mint, used to pick the tracked side.
        throttle: Seconds slept between upstream calls.
    """

    name = "indicator_refresh"

    def __init__(
        self,
        market: OkxMarketClient,
        store: RecordStore,
        dispatcher: NotificationDispatcher,
        settings: IndicatorSettings,
        native_address: str,
        throttle: float = 1.0,
    ) -> None:
        self._market = market
        self._store = store
        self._dispatcher = dispatcher
        self._settings = settings
        self._native_address = native_address
        self._throttle = throttle
        self.alerts_raised = 0

    async def run_once(self) -> JobResult:
        pairs = await self._store.get_pairs()
        if not pairs:
            return JobResult(
                success=True, message="No pairs in database to process for RSI update."
            )

        targets, skipped = collect_tracked_tokens(pairs, self._native_address)
        logger.info("indicator_refresh_started", tokens=len(targets), skipped=len(skipped))

        updated = 0
        failed = 0
        for index, (token, pair) in enumerate(targets):
            if index:
                await asyncio.sleep(self._throttle)
            try:
                await self.refresh_token(token, pair)
            except (asyncio.CancelledError, ConfigurationError):
                raise
            except Exception as e:
                failed += 1
                logger.error(
                    "indicator_refresh_failed",
                    token=token.address,
                    symbol=token.symbol,
                    error=str(e),
                )
                continue
            updated += 1

        message = (
            f"RSI update complete. Updated: {updated}, "
            f"Failed: {failed}, Skipped: {len(skipped)}."
        )
        logger.info("indicator_refresh_complete", updated=updated, failed=failed)
        return JobResult(
            success=True,
            message=message,
            updated=updated,
            failed=failed,
            skipped=len(skipped),
        )

    async def refresh_token(
        self, token: TokenInfo, pair: Mapping[str, Any]
    ) -> IndicatorSnapshot:
        """Fetch, compute and persist the indicator snapshot for one token."""
        s = self._settings
        short_candles = await self._market.fetch_candles(
            token.address, s.short_bar, s.candle_limit
        )
        if s.derive_long_window:
            long_candles = aggregate(short_candles, s.aggregation_factor)
        else:
            await asyncio.sleep(self._throttle)
            long_candles = await self._market.fetch_candles(
                token.address, s.long_bar, s.candle_limit
            )

        snapshot = IndicatorSnapshot(
            token_address=token.address,
            symbol=token.symbol,
            pair_address=str(pair.get("_id") or pair.get("pairAddress") or ""),
            rsi_short=calculate_rsi(closes(short_candles), s.rsi_period),
            rsi_long=calculate_rsi(closes(long_candles), s.rsi_period),
            short_bar=s.short_bar,
            long_bar=s.long_bar,
            short_candles=short_candles,
            long_candles=long_candles,
            price_change=dict(pair.get("priceChange") or {}),
            market_cap=pair.get("marketCap"),
        )
        await self._store.upsert_indicator(snapshot)
        logger.debug(
            "indicator_snapshot_saved",
            token=token.address,
            rsi_short=snapshot.rsi_short,
            rsi_long=snapshot.rsi_long,
        )

        if (
            snapshot.rsi_short is not None
            and snapshot.rsi_long is not None
            and alert_fires(
                snapshot.rsi_short, snapshot.rsi_long, s.alert_upper, s.alert_lower
            )
        ):
            alert = build_alert(snapshot)
            self.alerts_raised += 1
            logger.info(
                "rsi_alert_triggered",
                symbol=alert.symbol,
                rsi_short=round(alert.rsi_short, 2),
                rsi_long=round(alert.rsi_long, 2),
            )
            self._dispatcher.dispatch(alert)

        return snapshot
