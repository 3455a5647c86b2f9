"""Connection-health monitor.

The monitor polls `/api/health_check` on a fixed period and keeps a single
`HealthState`. It is meant to run for the lifetime of the process, so no
failure inside a tick may escape: transport errors become DOWN, listener
errors are logged.

Scheduling rules:
- the first tick fires as soon as `start()` runs;
- ticks are spawned, not awaited, so a slow probe never delays the next one;
- overlapping ticks are allowed and the last one to complete wins.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Callable

from core.domain.errors import TransportError
from core.domain.models import Endpoint, HealthState
from core.interfaces.transport import Transport

logger = logging.getLogger(__name__)

HealthListener = Callable[[HealthState], None]

HEALTHY_MARKER = "true"


def interpret_probe(data: str) -> HealthState:
    """Only the exact string "true" means the host is healthy."""

    return HealthState.UP if data == HEALTHY_MARKER else HealthState.DOWN


class HealthMonitor:
    def __init__(self, transport: Transport, *, interval_seconds: float = 1.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._transport = transport
        self._interval = interval_seconds
        self._state = HealthState.UNKNOWN
        self._listeners: list[HealthListener] = []
        self._timer: asyncio.Task[None] | None = None
        self._ticks: set[asyncio.Task[HealthState]] = set()

    @property
    def state(self) -> HealthState:
        return self._state

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def subscribe(self, listener: HealthListener) -> Callable[[], None]:
        """Register a callback for state changes; returns an unsubscribe function."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def tick(self) -> HealthState:
        """Probe once and apply the resulting transition."""

        try:
            envelope = await self._transport.fetch_json(Endpoint.HEALTH_CHECK)
        except TransportError as exc:
            logger.debug("health probe failed: %s", exc)
            new_state = HealthState.DOWN
        else:
            new_state = interpret_probe(envelope.data)

        self._apply(new_state)
        return new_state

    def _apply(self, new_state: HealthState) -> None:
        if new_state is self._state:
            return
        logger.info("host health %s -> %s", self._state.value, new_state.value)
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("health listener %r failed", listener)

    def start(self) -> None:
        """Start polling on the running event loop. No-op if already running."""

        if self.running:
            return
        self._timer = asyncio.get_running_loop().create_task(self._run(), name="health-monitor")

    async def _run(self) -> None:
        while True:
            task = asyncio.create_task(self.tick())
            self._ticks.add(task)
            task.add_done_callback(self._tick_done)
            await asyncio.sleep(self._interval)

    def _tick_done(self, task: asyncio.Task[HealthState]) -> None:
        self._ticks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("health tick crashed: %r", exc)

    async def stop(self) -> None:
        """Cancel the timer and any in-flight ticks."""

        pending: list[asyncio.Task] = list(self._ticks)
        if self._timer is not None:
            pending.append(self._timer)
            self._timer = None
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._ticks.clear()

    async def __aenter__(self) -> "HealthMonitor":
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()
