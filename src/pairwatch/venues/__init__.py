"""External venue clients -- OKX DEX market data, DexScreener pairs, listing source."""

from pairwatch.venues.dexscreener_client import DexScreenerClient
from pairwatch.venues.listing import (
    ListingClient,
    collect_tracked_tokens,
    resolve_tracked_token,
    select_tracked_pairs,
)
from pairwatch.venues.okx_client import OkxMarketClient

__all__ = [
    "DexScreenerClient",
    "ListingClient",
    "OkxMarketClient",
    "collect_tracked_tokens",
    "resolve_tracked_token",
    "select_tracked_pairs",
]
