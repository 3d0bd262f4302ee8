"""Listing endpoint fetch and tracked-pair selection.

A pair is tracked when it is token-vs-native or token-vs-stable: the quote
token must be the native wrapped mint or a listed stable, and the base token
must not be the native wrapped mint (native-vs-native is never tracked).
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from pairwatch.exceptions import DataShapeError
from pairwatch.logging import get_logger
from pairwatch.models import PairSnapshot, TokenInfo
from pairwatch.venues.base import HttpVenueClient

logger = get_logger(__name__)


class ListingClient(HttpVenueClient):
    """Fetches the raw listing payload from a configured screener URL."""

    service_name = "listing"

    async def fetch_listing(self, url: str) -> Any:
        if not url.startswith(("http://", "https://")):
            raise DataShapeError(f"listing url is not an http(s) URL: {url!r}")
        response = await self._request("GET", url)
        return self._decode_json(response)


def _listing_entries(payload: Any) -> list:
    """Extract the entry list from a bare array or a ``{pairs|data: [...]}`` object."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in ("pairs", "data"):
            entries = payload.get(key)
            if isinstance(entries, list):
                return entries
    raise DataShapeError(
        f"listing payload has no pair array (got {type(payload).__name__})"
    )


def select_tracked_pairs(
    payload: Any,
    native_address: str,
    stable_addresses: Iterable[str],
) -> list[PairSnapshot]:
    """Filter a listing payload down to the pairs worth tracking.

    Entries without a pair address, carrying an ``error`` marker, quoted in
    anything other than native/stable, or based on the native mint are
    dropped. Entries that fail to parse are logged and skipped.
    """
    allowed_quotes = {native_address, *stable_addresses}
    selected: list[PairSnapshot] = []
    seen: set[str] = set()

    for entry in _listing_entries(payload):
        if not isinstance(entry, Mapping):
            continue
        if not entry.get("pairAddress") or entry.get("error"):
            continue

        quote_address = (entry.get("quoteToken") or {}).get("address")
        base_address = (entry.get("baseToken") or {}).get("address")
        if quote_address not in allowed_quotes or base_address == native_address:
            continue

        try:
            pair = PairSnapshot.model_validate(entry)
        except ValidationError as e:
            logger.warning(
                "listing_entry_invalid", pair=entry.get("pairAddress"), error=str(e)
            )
            continue

        if pair.pair_address in seen:
            continue
        seen.add(pair.pair_address)
        selected.append(pair)

    return selected


def resolve_tracked_token(
    pair_document: Mapping[str, Any], native_address: str
) -> TokenInfo | None:
    """Return the non-native side of a stored pair, or None if it has no address.

    Uses the quote token when the base token is the native wrapped mint, the
    base token otherwise.
    """
    base = pair_document.get("baseToken") or {}
    quote = pair_document.get("quoteToken") or {}
    side = quote if base.get("address") == native_address else base
    if not isinstance(side, Mapping) or not side.get("address"):
        return None
    return TokenInfo(
        address=str(side["address"]),
        symbol=str(side.get("symbol") or ""),
        name=str(side.get("name") or ""),
    )


def collect_tracked_tokens(
    pair_documents: Iterable[Mapping[str, Any]], native_address: str
) -> tuple[list[tuple[TokenInfo, Mapping[str, Any]]], list[str]]:
    """Resolve each stored pair to its tracked token, one entry per token.

    A token quoted against both native and a stable appears once, paired with
    the first pair document that referenced it.

    Returns:
        (targets, skipped) where targets is a list of (token, pair document)
        and skipped lists the ids of pairs with no usable token.
    """
    targets: list[tuple[TokenInfo, Mapping[str, Any]]] = []
    skipped: list[str] = []
    seen: set[str] = set()
    for document in pair_documents:
        token = resolve_tracked_token(document, native_address)
        if token is None:
            pair_id = str(document.get("_id") or document.get("pairAddress") or "")
            logger.warning("pair_without_tracked_token", pair=pair_id)
            skipped.append(pair_id)
            continue
        if token.address in seen:
            continue
        seen.add(token.address)
        targets.append((token, document))
    return targets, skipped
