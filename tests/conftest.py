"""Shared test fixtures for pairwatch."""

from collections.abc import AsyncIterator, Callable

import httpx
import pytest
import pytest_asyncio

from pairwatch.config import (
    AppSettings,
    EmailSettings,
    OkxSettings,
    PairSourceSettings,
    StoreSettings,
    TelegramSettings,
)
from pairwatch.data import DocumentDatabase, RecordStore
from pairwatch.models import Candle

SOL = "So11111111111111111111111111111111111111112"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
WIF = "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm"


def make_pair(
    pair_address: str,
    base: str = BONK,
    quote: str = SOL,
    base_symbol: str = "BONK",
    quote_symbol: str = "SOL",
    **extra: object,
) -> dict:
    """Build a listing/aggregator-shaped pair payload."""
    return {
        "chainId": "solana",
        "dexId": "raydium",
        "url": f"https://dexscreener.com/solana/{pair_address}",
        "pairAddress": pair_address,
        "baseToken": {"address": base, "name": base_symbol.title(), "symbol": base_symbol},
        "quoteToken": {"address": quote, "name": quote_symbol.title(), "symbol": quote_symbol},
        "priceNative": "0.0000001",
        "priceUsd": "0.00002",
        "volume": {"h24": 1500000.0, "h6": 300000.0, "h1": 50000.0, "m5": 4000.0},
        "priceChange": {"m5": -1.2, "h1": -3.4, "h6": 2.0, "h24": 5.5},
        "liquidity": {"usd": 900000.0, "base": 1.0, "quote": 2.0},
        "fdv": 2500000.0,
        **extra,
    }


def make_candles(closes: list[float], start_ts: int = 1_700_000_000_000) -> list[Candle]:
    """Ascending 5m candles whose close follows ``closes``."""
    return [
        Candle(
            timestamp=start_ts + i * 300_000,
            open=c,
            high=c + 1,
            low=c - 1,
            close=c,
            volume=10.0,
        )
        for i, c in enumerate(closes)
    ]


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults and dummy credentials."""
    return AppSettings(
        log_level="DEBUG",
        store=StoreSettings(path=":memory:"),
        okx=OkxSettings(
            api_key="test-api-key",  # type: ignore[arg-type]
            secret_key="test-secret-key",  # type: ignore[arg-type]
            passphrase="test-passphrase",  # type: ignore[arg-type]
            base_url="https://okx.test",
        ),
        pairs=PairSourceSettings(
            listing_url="https://listing.test/dex",
            aggregator_base_url="https://dexscreener.test",
        ),
        telegram=TelegramSettings(
            notifications_enabled=True,
            bot_token="123:test-token",  # type: ignore[arg-type]
            chat_id="-1001",
            api_base_url="https://telegram.test",
        ),
        email=EmailSettings(
            api_key="re_test_key",  # type: ignore[arg-type]
            from_address="Signals <signals@example.com>",
            api_base_url="https://resend.test",
        ),
    )


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an httpx.AsyncClient served by a request handler."""

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _factory


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncIterator[DocumentDatabase]:
    """Connected document database in a temporary file."""
    db = DocumentDatabase(str(tmp_path / "pairwatch.db"))
    await db.connect()
    try:
        yield db
    finally:
        await db.close()


@pytest.fixture
def store(database: DocumentDatabase) -> RecordStore:
    return RecordStore(database)
