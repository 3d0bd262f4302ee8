"""Entry point for the pairwatch service.

Wires all components together, optionally embeds the FastAPI read API, and
starts the scheduler. When the API is enabled (default), the loops and the
API share a single asyncio event loop via uvicorn's programmatic API and
FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown: loops finish their in-flight
iteration, queued notifications drain, then the store closes.

Component wiring order (in _build_components):
1. DocumentDatabase + RecordStore
2. HTTP clients (listing, DexScreener, OKX)
3. Notification channels + NotificationDispatcher
4. Jobs (ingestion, indicators, metadata, market cap)
5. PollingLoops + Scheduler
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from pairwatch.config import AppSettings, is_configured
from pairwatch.data import DocumentDatabase, RecordStore
from pairwatch.jobs import (
    IndicatorRefreshJob,
    MarketCapRefreshJob,
    PairIngestionJob,
    PairMetadataRefreshJob,
)
from pairwatch.logging import get_logger, setup_logging
from pairwatch.notify import EmailNotifier, NotificationDispatcher, TelegramNotifier
from pairwatch.scheduler import PollingLoop, Scheduler
from pairwatch.venues import DexScreenerClient, ListingClient, OkxMarketClient


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all service components from settings.

    Note: Does NOT connect the database or start anything -- that happens in
    the lifespan (API mode) or run() (headless mode).

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("pairwatch.main")

    # 1. Store
    database = DocumentDatabase(settings.store.path)
    store = RecordStore(database)

    # 2. Upstream clients
    listing = ListingClient(timeout=settings.pairs.request_timeout)
    pair_client = DexScreenerClient(settings.pairs)
    market_client = OkxMarketClient(settings.okx)

    if not is_configured(settings.okx.api_key):
        logger.warning(
            "okx_credentials_missing",
            note="Indicator and market cap loops will skip until "
            "OKX_API_KEY, OKX_SECRET_KEY and OKX_PASSPHRASE are set.",
        )
    if not is_configured(settings.pairs.listing_url):
        logger.warning("listing_url_missing", note="Pair ingestion will fail until set.")

    # 3. Notifications
    ind = settings.indicator
    telegram = TelegramNotifier(settings.telegram)
    email = EmailNotifier(
        settings.email, store, short_bar=ind.short_bar, long_bar=ind.long_bar
    )
    dispatcher = NotificationDispatcher(
        telegram=telegram, email=email, short_bar=ind.short_bar, long_bar=ind.long_bar
    )

    # 4. Jobs
    sched = settings.scheduler
    native = settings.pairs.native_address
    ingestion = PairIngestionJob(listing, store, settings.pairs)
    indicators = IndicatorRefreshJob(
        market_client, store, dispatcher, ind, native, sched.request_throttle
    )
    metadata = PairMetadataRefreshJob(pair_client, store, sched.request_throttle)
    market_cap = MarketCapRefreshJob(
        market_client,
        store,
        native,
        batch_size=sched.market_cap_batch_size,
        throttle=sched.request_throttle,
    )

    # 5. Loops
    loops = [
        PollingLoop(
            ingestion.name, sched.pair_ingestion_interval, ingestion.run_once, guarded=False
        ),
        PollingLoop(indicators.name, sched.indicator_refresh_interval, indicators.run_once),
        PollingLoop(metadata.name, sched.metadata_refresh_interval, metadata.run_once),
    ]
    if sched.market_cap_enabled:
        loops.append(
            PollingLoop(
                market_cap.name, sched.market_cap_refresh_interval, market_cap.run_once
            )
        )
    scheduler = Scheduler(loops)

    return {
        "database": database,
        "store": store,
        "clients": [listing, pair_client, market_client, telegram, email],
        "dispatcher": dispatcher,
        "scheduler": scheduler,
    }


async def _startup(components: dict[str, Any]) -> None:
    await components["database"].connect()
    await components["dispatcher"].start()
    await components["scheduler"].start()


async def _shutdown(components: dict[str, Any]) -> None:
    """Stop loops first, then drain notifications, then release resources."""
    await components["scheduler"].stop()
    await components["dispatcher"].stop()
    for client in components["clients"]:
        await client.close()
    await components["database"].close()


def _setup_signal_handlers(scheduler: Scheduler) -> None:
    """Register SIGINT/SIGTERM to stop the scheduler gracefully.

    The handler only flags the loops; run() then awaits them and shuts down.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("pairwatch.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        scheduler.request_stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the scheduler inside the API process.

    On startup: exposes components on app.state, connects the store, starts
    the notification worker and the loops.

    On shutdown: stops the loops, drains notifications, closes clients and
    the store.
    """
    logger = get_logger("pairwatch.main")
    components = app.state.components

    app.state.database = components["database"]
    app.state.store = components["store"]
    app.state.dispatcher = components["dispatcher"]
    app.state.scheduler = components["scheduler"]

    await _startup(components)
    logger.info("lifespan_started")

    yield

    await _shutdown(components)
    logger.info("pairwatch_stopped")


async def run() -> None:
    """Run the service.

    When the API is enabled (API_ENABLED=true, the default) uvicorn serves the
    app and the lifespan owns component startup/shutdown; uvicorn handles the
    signals. Otherwise the loops run headless until SIGINT/SIGTERM.
    """
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("pairwatch.main")

    components = _build_components(settings)

    if settings.api.enabled:
        from pairwatch.api.app import create_api_app

        app = create_api_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info("starting_with_api", host=settings.api.host, port=settings.api.port)

        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        logger.info("starting_without_api")
        try:
            await _startup(components)
            _setup_signal_handlers(components["scheduler"])
            await components["scheduler"].wait()
        finally:
            await _shutdown(components)
            logger.info("pairwatch_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
