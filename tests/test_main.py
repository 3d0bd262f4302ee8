"""Tests for component wiring in main."""

import asyncio
import signal
from unittest.mock import MagicMock

import pytest

from pairwatch.config import SchedulerSettings
from pairwatch.main import _build_components, _setup_signal_handlers
from pairwatch.scheduler import Scheduler


class TestBuildComponents:
    def test_wires_all_loops(self, mock_settings) -> None:
        components = _build_components(mock_settings)

        scheduler: Scheduler = components["scheduler"]
        loops = {loop.name: loop for loop in scheduler.loops}
        assert set(loops) == {
            "pair_ingestion",
            "indicator_refresh",
            "pair_metadata_refresh",
            "market_cap_refresh",
        }
        assert loops["pair_ingestion"].guarded is False
        assert loops["pair_ingestion"].interval == 15.0
        assert loops["indicator_refresh"].guarded is True
        assert components["database"].is_connected is False

    def test_market_cap_loop_can_be_disabled(self, mock_settings) -> None:
        mock_settings.scheduler = SchedulerSettings(market_cap_enabled=False)
        components = _build_components(mock_settings)
        names = [loop.name for loop in components["scheduler"].loops]
        assert "market_cap_refresh" not in names

    @pytest.mark.asyncio
    async def test_clients_close_cleanly(self, mock_settings) -> None:
        components = _build_components(mock_settings)
        for client in components["clients"]:
            await client.close()


class TestSignalHandlers:
    @pytest.mark.asyncio
    async def test_signal_requests_scheduler_stop(self, monkeypatch) -> None:
        registered = {}
        loop = asyncio.get_running_loop()
        monkeypatch.setattr(
            loop,
            "add_signal_handler",
            lambda sig, callback: registered.update({sig: callback}),
        )
        scheduler = MagicMock()

        _setup_signal_handlers(scheduler)

        assert set(registered) == {signal.SIGINT, signal.SIGTERM}
        registered[signal.SIGTERM]()
        scheduler.request_stop.assert_called_once_with()
