"""DexScreener pair lookup (unsigned).

``GET /latest/dex/pairs/{chain}/{pairAddress}`` answers ``{"pair": null}``
for unknown pairs; that is a normal "not found", not an error.
"""

import httpx
from pydantic import ValidationError

from pairwatch.config import PairSourceSettings
from pairwatch.exceptions import DataShapeError
from pairwatch.logging import get_logger
from pairwatch.models import PairSnapshot
from pairwatch.venues.base import HttpVenueClient

logger = get_logger(__name__)


class DexScreenerClient(HttpVenueClient):
    """Pair Data Client backed by the DexScreener public API."""

    service_name = "dexscreener"

    def __init__(
        self, settings: PairSourceSettings, client: httpx.AsyncClient | None = None
    ) -> None:
        super().__init__(settings.aggregator_base_url, settings.request_timeout, client)
        self._chain_id = settings.chain_id

    async def fetch_pair(self, pair_address: str) -> PairSnapshot | None:
        """Fetch current metadata for one pair, or None if DexScreener does not know it."""
        response = await self._request(
            "GET", f"/latest/dex/pairs/{self._chain_id}/{pair_address}"
        )
        payload = self._decode_json(response)
        if not isinstance(payload, dict):
            raise DataShapeError(
                f"dexscreener returned a non-object body for {pair_address}"
            )

        raw_pair = payload.get("pair")
        if not raw_pair:
            logger.warning("dexscreener_pair_not_found", pair=pair_address)
            return None

        try:
            return PairSnapshot.model_validate(raw_pair)
        except ValidationError as e:
            raise DataShapeError(
                f"dexscreener pair {pair_address} has unexpected shape: {e}"
            ) from e
