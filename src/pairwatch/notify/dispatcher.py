"""Best-effort alert fan-out to the chat and email channels.

The indicator loop hands alerts to ``dispatch()``, which only enqueues; a
background worker drains the queue and performs the sends. Delivery latency
and delivery failures therefore never reach the loop that raised the alert.
"""

import asyncio
from collections.abc import Awaitable

from pairwatch.logging import get_logger
from pairwatch.models import AlertEvent, NotifyResult
from pairwatch.notify.email import EmailNotifier
from pairwatch.notify.telegram import TelegramNotifier, format_alert_message

logger = get_logger(__name__)


class NotificationDispatcher:
    """Queue-backed notification fan-out.

    Args:
        telegram: Chat channel, or None when not wired.
        email: Email channel, or None when not wired.
        short_bar: Label of the short RSI window used in messages.
        long_bar: Label of the long RSI window used in messages.
        drain_timeout: Seconds stop() waits for queued alerts to go out.
    """

    def __init__(
        self,
        telegram: TelegramNotifier | None = None,
        email: EmailNotifier | None = None,
        short_bar: str = "5m",
        long_bar: str = "1H",
        drain_timeout: float = 30.0,
    ) -> None:
        self._telegram = telegram
        self._email = email
        self._short_bar = short_bar
        self._long_bar = long_bar
        self._drain_timeout = drain_timeout
        self._queue: asyncio.Queue[AlertEvent] = asyncio.Queue()
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._detached: set[asyncio.Task] = set()  # type: ignore[type-arg]
        self.dispatched = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Start the background delivery worker."""
        if self._running:
            logger.warning("notification_dispatcher_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._worker())
        logger.info("notification_dispatcher_started")

    async def stop(self) -> None:
        """Drain queued alerts (bounded by drain_timeout), then stop the worker."""
        self._running = False
        if self._task is not None:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=self._drain_timeout)
            except asyncio.TimeoutError:
                logger.warning("notification_drain_timeout", pending=self.pending)
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._detached:
            await asyncio.gather(*self._detached, return_exceptions=True)
        logger.info("notification_dispatcher_stopped")

    def dispatch(self, alert: AlertEvent) -> None:
        """Hand an alert off for delivery without waiting for it.

        Without a running worker the send runs as a detached task instead.
        """
        self.dispatched += 1
        if self._running:
            self._queue.put_nowait(alert)
            return
        task = asyncio.create_task(self.send(alert))
        self._detached.add(task)
        task.add_done_callback(self._detached.discard)

    async def send(self, alert: AlertEvent) -> dict[str, NotifyResult]:
        """Deliver one alert on every wired channel. Never raises."""
        results: dict[str, NotifyResult] = {}

        if self._telegram is not None:
            message = format_alert_message(alert, self._short_bar, self._long_bar)
            results["telegram"] = await self._guarded("telegram", self._telegram.send(message))
        if self._email is not None:
            results["email"] = await self._guarded("email", self._email.send(alert))

        for channel, result in results.items():
            if result.skipped:
                logger.debug("notification_skipped", channel=channel, reason=result.error)
            elif result.ok:
                logger.info(
                    "notification_sent",
                    channel=channel,
                    symbol=alert.symbol,
                    delivered=result.delivered,
                )
            else:
                logger.error(
                    "notification_failed",
                    channel=channel,
                    symbol=alert.symbol,
                    error=result.error,
                )
        return results

    async def _guarded(
        self, channel: str, send: Awaitable[NotifyResult]
    ) -> NotifyResult:
        try:
            return await send
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("notification_channel_error", channel=channel, exc_info=True)
            return NotifyResult(ok=False, error=str(e))

    async def _worker(self) -> None:
        while True:
            alert = await self._queue.get()
            try:
                await self.send(alert)
            finally:
                self._queue.task_done()
