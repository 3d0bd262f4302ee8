"""Pair ingestion: listing endpoint -> tracked-pair filter -> replace-upsert."""

from pairwatch.config import PairSourceSettings
from pairwatch.data.store import RecordStore
from pairwatch.logging import get_logger
from pairwatch.models import JobResult, utcnow
from pairwatch.venues.listing import ListingClient, select_tracked_pairs

logger = get_logger(__name__)


class PairIngestionJob:
    """Pulls the configured listing and overwrites each tracked pair wholesale.

    Writes are keyed by pair address with replace semantics, so replaying the
    same payload leaves the same set of stored pairs.
    """

    name = "pair_ingestion"

    def __init__(
        self,
        listing: ListingClient,
        store: RecordStore,
        settings: PairSourceSettings,
    ) -> None:
        self._listing = listing
        self._store = store
        self._settings = settings

    async def run_once(self) -> JobResult:
        payload = await self._listing.fetch_listing(self._settings.listing_url)
        pairs = select_tracked_pairs(
            payload, self._settings.native_address, self._settings.stable_addresses
        )
        if not pairs:
            logger.info("no_matching_pairs")
            return JobResult(
                success=True,
                message="No matching pairs found in API response. Nothing to do.",
            )

        now = utcnow()
        result = await self._store.upsert_pairs(
            p.model_copy(update={"last_updated": now}) for p in pairs
        )
        logger.info(
            "pairs_ingested",
            count=len(pairs),
            upserted=result.upserted,
            modified=result.modified,
        )
        return JobResult(
            success=True,
            message=(
                f"Successfully processed {len(pairs)} pairs. "
                f"Upserted: {result.upserted}, Modified: {result.modified}."
            ),
            updated=result.upserted + result.modified,
        )
