"""Tests for PairMetadataRefreshJob."""

from unittest.mock import AsyncMock

import pytest
from conftest import BONK, make_pair

from pairwatch.data import RecordStore
from pairwatch.exceptions import UpstreamHttpError
from pairwatch.jobs.metadata import PairMetadataRefreshJob
from pairwatch.models import PairSnapshot


async def _seed(store: RecordStore, *addresses: str) -> None:
    await store.upsert_pairs(
        PairSnapshot.model_validate(make_pair(a, priceUsd="0.1")) for a in addresses
    )


class TestPairMetadataRefreshJob:
    @pytest.mark.asyncio
    async def test_merges_fresh_metadata(self, store: RecordStore) -> None:
        await _seed(store, "P1")
        await store.set_market_cap(BONK, 7e6)
        client = AsyncMock()
        client.fetch_pair = AsyncMock(
            return_value=PairSnapshot.model_validate(make_pair("P1", priceUsd="0.2"))
        )

        result = await PairMetadataRefreshJob(client, store, throttle=0).run_once()

        assert result.updated == 1
        assert result.failed == 0
        [doc] = await store.get_pairs()
        assert doc["priceUsd"] == 0.2
        assert doc["marketCap"] == 7e6
        assert doc["lastUpdated"] is not None

    @pytest.mark.asyncio
    async def test_not_found_and_errors_are_isolated(self, store) -> None:
        await _seed(store, "P1", "P2", "P3")

        async def fetch(address: str):
            if address == "P1":
                return None
            if address == "P2":
                raise UpstreamHttpError("dexscreener", 500, "oops")
            return PairSnapshot.model_validate(make_pair(address, priceUsd="9"))

        client = AsyncMock()
        client.fetch_pair = AsyncMock(side_effect=fetch)

        result = await PairMetadataRefreshJob(client, store, throttle=0).run_once()

        assert result.success is True
        assert result.updated == 1
        assert result.failed == 2
        assert [c.args[0] for c in client.fetch_pair.await_args_list] == ["P1", "P2", "P3"]
        prices = {d["_id"]: d["priceUsd"] for d in await store.get_pairs()}
        assert prices == {"P1": 0.1, "P2": 0.1, "P3": 9.0}

    @pytest.mark.asyncio
    async def test_empty_store_is_success(self, store) -> None:
        client = AsyncMock()
        result = await PairMetadataRefreshJob(client, store, throttle=0).run_once()
        assert result.success is True
        client.fetch_pair.assert_not_called()
