"""Independently scheduled polling loops sharing one stop signal.

Guarded loops fire their body on a fixed timer as a background task. While a
body is still in flight the next tick is dropped (no queue, no backlog) and a
``loop_tick_skipped`` warning is the only effect. The unguarded loop simply
runs its body and then sleeps for its interval.

Stopping sets the shared event: sleeping loops wake immediately, in-flight
bodies are awaited rather than cancelled, so no external call is interrupted
midway.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from pairwatch.exceptions import ConfigurationError
from pairwatch.logging import get_logger, loop_context
from pairwatch.models import JobResult, utcnow

logger = get_logger(__name__)

LoopBody = Callable[[], Awaitable[JobResult]]


async def _sleep_unless_stopped(stop: asyncio.Event, seconds: float) -> None:
    """Sleep for ``seconds`` or until ``stop`` is set, whichever comes first."""
    try:
        await asyncio.wait_for(stop.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


class PollingLoop:
    """One named loop around a job body.

    Args:
        name: Loop name, bound into the log context as ``loop``.
        interval: Seconds between ticks (guarded) or between runs (unguarded).
        body: Coroutine function returning a JobResult.
        guarded: Skip a tick while the previous body is still running.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        body: LoopBody,
        guarded: bool = True,
    ) -> None:
        self.name = name
        self.interval = interval
        self.guarded = guarded
        self._body = body
        self._running = False
        self._inflight: asyncio.Task | None = None  # type: ignore[type-arg]
        self.ticks = 0
        self.skipped = 0
        self.failures = 0
        self.last_result: JobResult | None = None
        self.last_run_at: datetime | None = None

    @property
    def running(self) -> bool:
        """True while a body is in flight."""
        return self._running

    def fire(self) -> asyncio.Task | None:  # type: ignore[type-arg]
        """Start one body in the background unless one is already running.

        Returns:
            The started task, or None when the tick was skipped.
        """
        if self._running:
            self.skipped += 1
            logger.warning("loop_tick_skipped", loop=self.name, skipped=self.skipped)
            return None
        self._running = True
        self._inflight = asyncio.create_task(self.execute())
        return self._inflight

    async def execute(self) -> JobResult:
        """Run the body once, converting any failure into a failed JobResult."""
        self._running = True
        self.ticks += 1
        self.last_run_at = utcnow()
        with loop_context(self.name, self.ticks):
            try:
                result = await self._body()
            except ConfigurationError as e:
                logger.warning("loop_not_configured", error=str(e))
                result = JobResult(
                    success=False, message="Skipped: not configured.", error=str(e)
                )
            except Exception as e:
                logger.error("loop_tick_failed", error=str(e), exc_info=True)
                result = JobResult(success=False, message="Tick failed.", error=str(e))
            finally:
                self._running = False

            if not result.success:
                self.failures += 1
            self.last_result = result
            logger.debug("loop_tick_complete", success=result.success, message=result.message)
        return result

    async def run(self, stop: asyncio.Event) -> None:
        """Loop until ``stop`` is set, then wait for any in-flight body."""
        logger.info(
            "loop_started", loop=self.name, interval=self.interval, guarded=self.guarded
        )
        while not stop.is_set():
            if self.guarded:
                self.fire()
            else:
                await self.execute()
            if stop.is_set():
                break
            await _sleep_unless_stopped(stop, self.interval)

        if self._inflight is not None and not self._inflight.done():
            logger.info("loop_draining", loop=self.name)
            await self._inflight
        logger.info("loop_stopped", loop=self.name, ticks=self.ticks)

    def get_status(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "interval": self.interval,
            "guarded": self.guarded,
            "running": self._running,
            "ticks": self.ticks,
            "skipped": self.skipped,
            "failures": self.failures,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }


class Scheduler:
    """Starts every PollingLoop as its own task and stops them together.

    Starting is idempotent: a second ``start()`` on a started scheduler logs
    a warning and changes nothing.
    """

    def __init__(self, loops: list[PollingLoop]) -> None:
        self._loops = loops
        self._stop = asyncio.Event()
        self._tasks: list[asyncio.Task] = []  # type: ignore[type-arg]
        self._started = False
        self._started_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self._started

    @property
    def loops(self) -> list[PollingLoop]:
        return list(self._loops)

    async def start(self) -> None:
        if self._started:
            logger.warning("scheduler_already_started")
            return
        self._started = True
        self._started_at = utcnow()
        self._stop.clear()
        self._tasks = [
            asyncio.create_task(loop.run(self._stop), name=f"loop:{loop.name}")
            for loop in self._loops
        ]
        logger.info("scheduler_started", loops=[loop.name for loop in self._loops])

    async def stop(self) -> None:
        """Signal every loop to stop and wait for in-flight bodies to finish."""
        if not self._started:
            return
        logger.info("scheduler_stopping")
        self._stop.set()
        await asyncio.gather(*self._tasks)
        self._tasks = []
        self._started = False
        logger.info("scheduler_stopped")

    def request_stop(self) -> None:
        """Ask every loop to exit after its current tick; safe from signal handlers."""
        self._stop.set()

    async def wait(self) -> None:
        """Block until every loop task has exited after a stop request."""
        if self._tasks:
            await asyncio.gather(*self._tasks)
        await self._stop.wait()

    def get_status(self) -> dict[str, Any]:
        return {
            "running": self._started,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "loops": [loop.get_status() for loop in self._loops],
        }
