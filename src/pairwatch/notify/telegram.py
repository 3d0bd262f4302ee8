"""Telegram bot channel: posts one Markdown message to a configured chat."""

import httpx

from pairwatch.config import TelegramSettings, is_configured
from pairwatch.exceptions import UpstreamHttpError
from pairwatch.logging import get_logger
from pairwatch.models import AlertEvent, NotifyResult
from pairwatch.venues.base import HttpVenueClient

logger = get_logger(__name__)


def format_alert_message(alert: AlertEvent, short_bar: str = "5m", long_bar: str = "1H") -> str:
    """Render an alert as a Telegram Markdown message."""
    return (
        "🔔 *RSI Alert* 🔔\n\n"
        f"Token: *{alert.symbol}*\n"
        f"Action: *{alert.action}*\n"
        f"RSI ({long_bar}): `{alert.rsi_long:.2f}`\n"
        f"RSI ({short_bar}): `{alert.rsi_short:.2f}`\n"
        f"MC: `{alert.market_cap}`\n"
        f"CA: `{alert.token_address}`"
    )


class TelegramNotifier(HttpVenueClient):
    """Sends chat messages through the Bot API ``sendMessage`` method.

    Disabled or unconfigured channels skip silently; delivery failures are
    returned as ``NotifyResult(ok=False)`` rather than raised.
    """

    service_name = "telegram"

    def __init__(
        self, settings: TelegramSettings, client: httpx.AsyncClient | None = None
    ) -> None:
        super().__init__(settings.api_base_url, 10.0, client)
        self._settings = settings

    @property
    def is_enabled(self) -> bool:
        return (
            self._settings.notifications_enabled
            and is_configured(self._settings.bot_token)
            and is_configured(self._settings.chat_id)
        )

    async def send(self, text: str) -> NotifyResult:
        if not self._settings.notifications_enabled:
            return NotifyResult.skip("telegram notifications disabled")
        if not self.is_enabled:
            logger.debug("telegram_not_configured")
            return NotifyResult.skip("telegram bot token or chat id not configured")

        token = self._settings.bot_token.get_secret_value()
        try:
            await self._request(
                "POST",
                f"/bot{token}/sendMessage",
                json={
                    "chat_id": self._settings.chat_id,
                    "text": text,
                    "parse_mode": "Markdown",
                },
            )
        except UpstreamHttpError as e:
            # The URL embeds the bot token; log the status only.
            return NotifyResult(ok=False, error=f"telegram API error (status {e.status})")

        logger.info("telegram_alert_sent", chat_id=self._settings.chat_id)
        return NotifyResult(ok=True, delivered=1)
