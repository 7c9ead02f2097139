from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import TimedOut, Unhealthy

__all__ = [
    "ConfigurationError",
    "ContainerUnhealthyError",
    "HealthTimeoutError",
    "HealthWaitError",
    "ObservationError",
    "PollCancelledError",
]


class HealthWaitError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(HealthWaitError, ValueError):
    """Invalid request or environment. Raised before any observation."""


class ObservationError(HealthWaitError):
    """A single ``inspect`` call failed or returned unusable output.

    Never escapes the poll loop; it only costs one attempt.
    """

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        output: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output
        self.stderr = stderr


class ContainerUnhealthyError(HealthWaitError):
    """The runtime reported ``unhealthy``."""

    def __init__(self, outcome: Unhealthy) -> None:
        super().__init__(outcome.message)
        self.outcome = outcome


class HealthTimeoutError(HealthWaitError, TimeoutError):
    """Retry budget exhausted without a terminal status."""

    def __init__(self, outcome: TimedOut) -> None:
        super().__init__(outcome.message)
        self.outcome = outcome


class PollCancelledError(HealthWaitError):
    """The poll was aborted through its cancellation event."""

    def __init__(self, container: str, elapsed_seconds: float, attempts: int) -> None:
        super().__init__(
            f"Waiting for container {container} was cancelled after "
            f"{attempts} attempts (took {elapsed_seconds:.3f}s)"
        )
        self.container = container
        self.elapsed_seconds = elapsed_seconds
        self.attempts = attempts
