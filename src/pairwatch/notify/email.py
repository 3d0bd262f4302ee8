"""Batched email channel via the Resend API.

One alert renders one HTML body, sent to every active subscriber in a single
``POST /emails/batch`` call to keep round-trips and rate-limit exposure low.
"""

from functools import lru_cache

import httpx
from jinja2 import Environment, PackageLoader, select_autoescape

from pairwatch.config import EmailSettings, is_configured
from pairwatch.data.store import RecordStore
from pairwatch.exceptions import UpstreamHttpError
from pairwatch.logging import get_logger
from pairwatch.models import AlertEvent, NotifyResult
from pairwatch.venues.base import HttpVenueClient

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def _templates() -> Environment:
    return Environment(
        loader=PackageLoader("pairwatch.notify", "templates"),
        autoescape=select_autoescape(["html"]),
    )


def render_alert_email(
    alert: AlertEvent,
    token_link_base: str,
    short_bar: str = "5m",
    long_bar: str = "1H",
) -> tuple[str, str]:
    """Return (subject, html) for an alert."""
    subject = f"🔔 RSI Alert: Buy Signal for {alert.symbol}"
    html = _templates().get_template("buy_signal.html").render(
        alert=alert,
        short_bar=short_bar,
        long_bar=long_bar,
        token_link=f"{token_link_base}{alert.token_address}",
    )
    return subject, html


class EmailNotifier(HttpVenueClient):
    """Sends alert emails to the active subscriber roster."""

    service_name = "resend"

    def __init__(
        self,
        settings: EmailSettings,
        store: RecordStore,
        client: httpx.AsyncClient | None = None,
        short_bar: str = "5m",
        long_bar: str = "1H",
    ) -> None:
        super().__init__(settings.api_base_url, 15.0, client)
        self._settings = settings
        self._store = store
        self._short_bar = short_bar
        self._long_bar = long_bar

    @property
    def is_enabled(self) -> bool:
        return is_configured(self._settings.api_key)

    async def send(self, alert: AlertEvent) -> NotifyResult:
        if not self.is_enabled:
            logger.debug("email_not_configured")
            return NotifyResult.skip("resend API key not configured")

        subscribers = await self._store.get_active_subscribers()
        if not subscribers:
            logger.info("no_active_subscribers", symbol=alert.symbol)
            return NotifyResult.skip("no active subscribers")

        subject, html = render_alert_email(
            alert, self._settings.token_link_base, self._short_bar, self._long_bar
        )
        batch = [
            {
                "from": self._settings.from_address,
                "to": subscriber.email,
                "subject": subject,
                "html": html,
            }
            for subscriber in subscribers
        ]

        try:
            await self._request(
                "POST",
                "/emails/batch",
                headers={
                    "Authorization": f"Bearer {self._settings.api_key.get_secret_value()}"
                },
                json=batch,
            )
        except UpstreamHttpError as e:
            return NotifyResult(ok=False, error=str(e))

        logger.info("alert_emails_queued", symbol=alert.symbol, recipients=len(batch))
        return NotifyResult(ok=True, delivered=len(batch))
