from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .errors import (
    ConfigurationError,
    ContainerUnhealthyError,
    HealthTimeoutError,
    ObservationError,
    PollCancelledError,
)
from .models import (
    DEFAULT_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    Healthy,
    HealthStatus,
    Outcome,
    PollRequest,
    TimedOut,
    Unhealthy,
)
from .observer import HealthObserver, Observer

__all__ = ["resolve", "wait_for_health"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

Logger = logging.Logger | logging.LoggerAdapter


class _PollLoop:
    """State of one poll sequence: counters and start time."""

    def __init__(
        self,
        request: PollRequest,
        observer: Observer,
        log: Logger,
        cancel_event: asyncio.Event | None,
        clock: Callable[[], float],
    ):
        self.request = request
        self.observer = observer
        self.log = log
        self.cancel_event = cancel_event
        self.clock = clock
        self.attempts = 0
        self.started = clock()

    def elapsed(self) -> float:
        return self.clock() - self.started

    # --------------------------------------------------------------------- #
    # Cancellation
    # --------------------------------------------------------------------- #
    def _cancelled(self) -> PollCancelledError:
        return PollCancelledError(self.request.container, self.elapsed(), self.attempts)

    async def _until_cancelled(self, aw: Awaitable[T]) -> T:
        """Await ``aw`` unless the cancel event fires first."""
        if self.cancel_event is None:
            return await aw
        if self.cancel_event.is_set():
            if asyncio.iscoroutine(aw):
                aw.close()
            raise self._cancelled()

        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self.cancel_event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        if task.cancelled():
            raise self._cancelled()
        return task.result()

    # --------------------------------------------------------------------- #
    # Iterations
    # --------------------------------------------------------------------- #
    async def _observe(self) -> HealthStatus | None:
        """Observe once; ``None`` means the observation itself failed."""
        container = self.request.container
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise self._cancelled()
        self.attempts += 1
        try:
            record = await self._until_cancelled(self.observer(container))
        except ObservationError as e:
            self.log.warning("Could not inspect container %s: %s", container, e)
            return None

        self.log.debug(
            "Container %s health is %s (attempt %d/%d, failing streak %d)",
            container,
            record.status.value,
            self.attempts,
            self.request.max_retries,
            record.failing_streak,
        )
        return record.status

    def _settle(self, outcome: Outcome) -> Healthy:
        if isinstance(outcome, Healthy):
            self.log.info(outcome.message)
            return outcome
        self.log.warning(outcome.message)
        if isinstance(outcome, Unhealthy):
            raise ContainerUnhealthyError(outcome)
        raise HealthTimeoutError(outcome)

    async def run(self) -> Healthy:
        request = self.request
        self.log.info("Waiting for container %s to be healthy", request.container)

        for i in range(request.max_retries):
            status = await self._observe()

            if status is not None and status.is_terminal:
                terminal = Healthy if status is HealthStatus.HEALTHY else Unhealthy
                return self._settle(terminal(request.container, self.elapsed()))

            if i == request.max_retries - 1:
                break
            if status is None:
                self.log.info("Will retry in %ss", request.delay_seconds)
            await self._until_cancelled(asyncio.sleep(request.delay_seconds))

        return self._settle(TimedOut(request.container, self.elapsed(), self.attempts))



async def resolve(
    request: PollRequest,
    *,
    observer: Observer | None = None,
    log: Logger | None = None,
    cancel_event: asyncio.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> Healthy:
    """Poll until the container is healthy.

    Returns the :class:`Healthy` outcome. Raises :class:`ContainerUnhealthyError`
    as soon as the runtime reports ``unhealthy`` and :class:`HealthTimeoutError`
    once ``request.max_retries`` observations have passed without a terminal
    status. Failed observations are logged and retried, never treated as
    unhealthy.

    Setting ``cancel_event`` aborts the in-flight observation or delay and
    raises :class:`PollCancelledError`.
    """
    if not request.container:
        raise ConfigurationError("container must be specified")

    loop = _PollLoop(
        request,
        observer or HealthObserver(),
        log or logger,
        cancel_event,
        clock,
    )
    return await loop.run()


def wait_for_health(
    container: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    delay_ms: int = DEFAULT_DELAY_MS,
    *,
    runtime: str = "docker",
    observer: Observer | None = None,
    log: Logger | None = None,
) -> Healthy:
    """Blocking wrapper around :func:`resolve`."""
    request = PollRequest(container=container, max_retries=max_retries, delay_ms=delay_ms)
    return asyncio.run(
        resolve(request, observer=observer or HealthObserver(runtime), log=log)
    )
