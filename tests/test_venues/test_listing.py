"""Tests for listing fetch, tracked-pair selection and token resolution."""

import httpx
import pytest
from conftest import BONK, SOL, USDC, WIF, make_pair

from pairwatch.exceptions import DataShapeError
from pairwatch.venues.listing import (
    ListingClient,
    collect_tracked_tokens,
    resolve_tracked_token,
    select_tracked_pairs,
)


class TestSelectTrackedPairs:
    """Token-vs-native and token-vs-stable pairs only."""

    def test_keeps_native_and_stable_quotes(self) -> None:
        payload = [
            make_pair("P1", base=BONK, quote=SOL),
            make_pair("P2", base=WIF, quote=USDC, base_symbol="WIF", quote_symbol="USDC"),
        ]
        result = select_tracked_pairs(payload, SOL, [USDC])
        assert [p.pair_address for p in result] == ["P1", "P2"]

    def test_drops_other_quotes_and_native_base(self) -> None:
        payload = [
            make_pair("P1", base=BONK, quote=WIF),
            make_pair("P2", base=SOL, quote=USDC),
        ]
        assert select_tracked_pairs(payload, SOL, [USDC]) == []

    def test_drops_error_and_addressless_entries(self) -> None:
        no_address = make_pair("P2")
        no_address["pairAddress"] = ""
        payload = [make_pair("P1", error="rate limited"), no_address, "junk"]
        assert select_tracked_pairs(payload, SOL, [USDC]) == []

    def test_deduplicates_by_pair_address(self) -> None:
        payload = [make_pair("P1"), make_pair("P1")]
        assert len(select_tracked_pairs(payload, SOL, [USDC])) == 1

    def test_skips_unparseable_entry(self) -> None:
        bad = make_pair("P1")
        bad["pairCreatedAt"] = "not-a-number"
        payload = [bad, make_pair("P2")]
        assert [p.pair_address for p in select_tracked_pairs(payload, SOL, [USDC])] == ["P2"]

    def test_accepts_wrapped_payload(self) -> None:
        assert len(select_tracked_pairs({"pairs": [make_pair("P1")]}, SOL, [])) == 1
        assert len(select_tracked_pairs({"data": [make_pair("P1")]}, SOL, [])) == 1

    def test_rejects_payload_without_array(self) -> None:
        with pytest.raises(DataShapeError):
            select_tracked_pairs({"message": "nope"}, SOL, [USDC])


class TestResolveTrackedToken:
    def test_uses_base_when_base_is_not_native(self) -> None:
        token = resolve_tracked_token(make_pair("P1", base=BONK, quote=SOL), SOL)
        assert token is not None
        assert token.address == BONK
        assert token.symbol == "BONK"

    def test_uses_quote_when_base_is_native(self) -> None:
        doc = make_pair("P1", base=SOL, quote=WIF, base_symbol="SOL", quote_symbol="WIF")
        token = resolve_tracked_token(doc, SOL)
        assert token is not None
        assert token.address == WIF

    def test_returns_none_without_address(self) -> None:
        doc = make_pair("P1")
        doc["baseToken"] = {"symbol": "???"}
        assert resolve_tracked_token(doc, SOL) is None


class TestCollectTrackedTokens:
    def test_dedupes_tokens_and_reports_skipped(self) -> None:
        broken = {"_id": "P3", "baseToken": {}, "quoteToken": {"address": SOL}}
        docs = [
            {"_id": "P1", **make_pair("P1", base=BONK, quote=SOL)},
            {"_id": "P2", **make_pair("P2", base=BONK, quote=USDC)},
            broken,
        ]
        targets, skipped = collect_tracked_tokens(docs, SOL)
        assert [(t.address, d["_id"]) for t, d in targets] == [(BONK, "P1")]
        assert skipped == ["P3"]


class TestListingClient:
    @pytest.mark.asyncio
    async def test_fetches_absolute_url(self, mock_http) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json=[make_pair("P1")])

        client = ListingClient(client=mock_http(handler))
        payload = await client.fetch_listing("https://listing.test/dex?x=1")
        assert captured[0].url == "https://listing.test/dex?x=1"
        assert payload[0]["pairAddress"] == "P1"

    @pytest.mark.asyncio
    async def test_rejects_non_http_url(self, mock_http) -> None:
        client = ListingClient(client=mock_http(lambda request: httpx.Response(200)))
        with pytest.raises(DataShapeError):
            await client.fetch_listing("YOUR_LISTING_URL")
