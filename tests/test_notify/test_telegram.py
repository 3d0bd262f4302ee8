"""Tests for the Telegram channel."""

import json

import httpx
import pytest

from pairwatch.config import TelegramSettings
from pairwatch.models import AlertEvent
from pairwatch.notify.telegram import TelegramNotifier, format_alert_message

ALERT = AlertEvent(
    symbol="BONK",
    action="BUY",
    rsi_short=22.456,
    rsi_long=18.0,
    market_cap="$4.50M",
    token_address="Mint111",
)


class TestFormatAlertMessage:
    def test_contains_fields(self) -> None:
        text = format_alert_message(ALERT, "5m", "1H")
        assert "*BONK*" in text
        assert "*BUY*" in text
        assert "RSI (1H): `18.00`" in text
        assert "RSI (5m): `22.46`" in text
        assert "MC: `$4.50M`" in text
        assert "CA: `Mint111`" in text


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_posts_markdown_message(self, mock_settings, mock_http) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"ok": True})

        notifier = TelegramNotifier(mock_settings.telegram, mock_http(handler))
        result = await notifier.send("hello")

        assert result.ok is True
        assert result.skipped is False
        assert result.delivered == 1
        request = captured[0]
        assert request.url.path == "/bot123:test-token/sendMessage"
        assert json.loads(request.content) == {
            "chat_id": "-1001",
            "text": "hello",
            "parse_mode": "Markdown",
        }

    @pytest.mark.asyncio
    async def test_disabled_skips_without_request(self, mock_http) -> None:
        calls: list[httpx.Request] = []
        settings = TelegramSettings(
            notifications_enabled=False,
            bot_token="123:token",  # type: ignore[arg-type]
            chat_id="1",
        )
        notifier = TelegramNotifier(
            settings, mock_http(lambda r: calls.append(r) or httpx.Response(200))
        )
        result = await notifier.send("hello")
        assert result.ok is True
        assert result.skipped is True
        assert calls == []

    @pytest.mark.asyncio
    async def test_unconfigured_skips(self, mock_http) -> None:
        settings = TelegramSettings(
            notifications_enabled=True,
            bot_token="YOUR_BOT_TOKEN",  # type: ignore[arg-type]
            chat_id="1",
        )
        notifier = TelegramNotifier(settings, mock_http(lambda r: httpx.Response(200)))
        result = await notifier.send("hello")
        assert result.skipped is True
        assert "not configured" in (result.error or "")

    @pytest.mark.asyncio
    async def test_api_failure_is_returned_not_raised(
        self, mock_settings, mock_http
    ) -> None:
        notifier = TelegramNotifier(
            mock_settings.telegram,
            mock_http(lambda r: httpx.Response(400, json={"ok": False})),
        )
        result = await notifier.send("hello")
        assert result.ok is False
        assert result.error == "telegram API error (status 400)"
        assert "test-token" not in result.error
