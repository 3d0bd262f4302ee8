"""Pair metadata refresh: stored pair ids -> DexScreener -> merge-update."""

import asyncio

from pairwatch.data.store import RecordStore
from pairwatch.logging import get_logger
from pairwatch.models import JobResult, utcnow
from pairwatch.venues.dexscreener_client import DexScreenerClient

logger = get_logger(__name__)


class PairMetadataRefreshJob:
    """Merges fresh aggregator metadata into every stored pair.

    Merge (not replace) keeps fields written by other loops, such as the
    market cap refresh, when the aggregator payload omits them.
    """

    name = "pair_metadata_refresh"

    def __init__(
        self,
        pairs: DexScreenerClient,
        store: RecordStore,
        throttle: float = 1.0,
    ) -> None:
        self._pairs = pairs
        self._store = store
        self._throttle = throttle

    async def run_once(self) -> JobResult:
        addresses = await self._store.list_pair_addresses()
        if not addresses:
            return JobResult(
                success=True,
                message="No pairs in database to process for pair data update.",
            )

        logger.info("pair_metadata_refresh_started", pairs=len(addresses))
        updated = 0
        failed = 0
        for index, address in enumerate(addresses):
            if index:
                await asyncio.sleep(self._throttle)
            try:
                pair = await self._pairs.fetch_pair(address)
                if pair is None:
                    failed += 1
                    continue
                result = await self._store.merge_pair(
                    pair.model_copy(
                        update={"pair_address": address, "last_updated": utcnow()}
                    )
                )
                if result.modified or result.upserted:
                    updated += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                failed += 1
                logger.error("pair_metadata_refresh_failed", pair=address, error=str(e))

        message = (
            "Pair data update complete. "
            f"Successfully updated: {updated}, Failed to process: {failed}."
        )
        logger.info("pair_metadata_refresh_complete", updated=updated, failed=failed)
        return JobResult(success=True, message=message, updated=updated, failed=failed)
