"""Market cap refresh: tracked tokens in batches -> OKX price endpoint -> pairs.

The price endpoint takes a list of tokens, so tokens are sent in batches of
``batch_size`` with a throttle between batches. A failing batch counts every
token in it as failed and the next batch proceeds. Missing credentials abort
the whole cycle.
"""

import asyncio

from pairwatch.data.store import RecordStore
from pairwatch.exceptions import ConfigurationError
from pairwatch.logging import get_logger
from pairwatch.models import JobResult
from pairwatch.venues.listing import collect_tracked_tokens
from pairwatch.venues.okx_client import OkxMarketClient

logger = get_logger(__name__)


class MarketCapRefreshJob:
    """Writes the latest ``marketCap`` onto every pair that trades a tracked token."""

    name = "market_cap_refresh"

    def __init__(
        self,
        market: OkxMarketClient,
        store: RecordStore,
        native_address: str,
        batch_size: int = 10,
        throttle: float = 1.0,
    ) -> None:
        self._market = market
        self._store = store
        self._native_address = native_address
        self._batch_size = max(1, batch_size)
        self._throttle = throttle

    async def run_once(self) -> JobResult:
        pairs = await self._store.get_pairs()
        targets, skipped = collect_tracked_tokens(pairs, self._native_address)
        addresses = [token.address for token, _ in targets]
        if not addresses:
            return JobResult(
                success=True,
                message="No pairs in database to process for market cap update.",
            )

        updated = 0
        failed = 0
        for batch_number, start in enumerate(range(0, len(addresses), self._batch_size)):
            if batch_number:
                await asyncio.sleep(self._throttle)
            batch = addresses[start : start + self._batch_size]
            try:
                snapshots = await self._market.fetch_market_snapshot(batch)
                for snapshot in snapshots:
                    if snapshot.market_cap is None:
                        continue
                    result = await self._store.set_market_cap(
                        snapshot.token_contract_address, snapshot.market_cap
                    )
                    updated += result.modified
            except (asyncio.CancelledError, ConfigurationError):
                raise
            except Exception as e:
                failed += len(batch)
                logger.error(
                    "market_cap_batch_failed",
                    batch=batch_number + 1,
                    size=len(batch),
                    error=str(e),
                )

        message = (
            "Market cap update complete. "
            f"Successfully updated: {updated}, Failed to process: {failed}."
        )
        logger.info("market_cap_refresh_complete", updated=updated, failed=failed)
        return JobResult(
            success=True,
            message=message,
            updated=updated,
            failed=failed,
            skipped=len(skipped),
        )
