from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import ConfigurationError

__all__ = [
    "DEFAULT_DELAY_MS",
    "DEFAULT_MAX_RETRIES",
    "HealthLogEntry",
    "HealthRecord",
    "HealthStatus",
    "Healthy",
    "Outcome",
    "PollRequest",
    "TimedOut",
    "Unhealthy",
]

DEFAULT_MAX_RETRIES = 100
DEFAULT_DELAY_MS = 2000


class HealthStatus(str, Enum):
    """Health categories reported by the container runtime."""

    STARTING = "starting"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"  # unrecognised value or no health check

    @classmethod
    def from_raw(cls, value: Any) -> HealthStatus:
        """Map a raw ``Status`` value; matching is exact, as the runtime emits it."""
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (HealthStatus.HEALTHY, HealthStatus.UNHEALTHY)


@dataclass(frozen=True)
class HealthLogEntry:
    """One past health check run, as kept by the runtime."""

    start: str
    end: str
    exit_code: int
    output: str

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> HealthLogEntry:
        return cls(
            start=str(raw.get("Start", "")),
            end=str(raw.get("End", "")),
            exit_code=int(raw.get("ExitCode", 0)),
            output=str(raw.get("Output", "")),
        )


@dataclass(frozen=True)
class HealthRecord:
    """Snapshot of ``.State.Health`` for one container.

    Only ``status`` drives the poll loop. ``failing_streak`` and ``log`` are
    kept for diagnostics.
    """

    status: HealthStatus
    failing_streak: int = 0
    log: tuple[HealthLogEntry, ...] = ()

    @classmethod
    def from_json(cls, raw: Any) -> HealthRecord:
        """Build a record from decoded ``inspect`` output.

        ``null`` (container without a HEALTHCHECK) and any other non-object
        literal produce an ``UNKNOWN`` record instead of failing.
        """
        if not isinstance(raw, dict):
            return cls(status=HealthStatus.UNKNOWN)

        streak = raw.get("FailingStreak") or 0
        entries = raw.get("Log") or []
        return cls(
            status=HealthStatus.from_raw(raw.get("Status")),
            failing_streak=max(int(streak), 0),
            log=tuple(HealthLogEntry.from_json(e) for e in entries if isinstance(e, dict)),
        )


@dataclass(frozen=True)
class PollRequest:
    """Parameters of one poll sequence.

    - ``container`` → name or ID handed to ``<runtime> inspect`` untouched
    - ``max_retries`` → upper bound on observations
    - ``delay_ms`` → fixed wait between observations
    """

    container: str
    max_retries: int = DEFAULT_MAX_RETRIES
    delay_ms: int = DEFAULT_DELAY_MS

    def __post_init__(self) -> None:
        if not self.container:
            raise ConfigurationError("container must be specified")
        for name in ("max_retries", "delay_ms"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000


# --------------------------------------------------------------------------- #
# Outcomes
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class Healthy:
    container: str
    elapsed_seconds: float

    @property
    def message(self) -> str:
        return f"Container {self.container} is healthy (took {self.elapsed_seconds:.3f}s)"


@dataclass(frozen=True)
class Unhealthy:
    container: str
    elapsed_seconds: float

    @property
    def message(self) -> str:
        return f"Container {self.container} is unhealthy (took {self.elapsed_seconds:.3f}s)"


@dataclass(frozen=True)
class TimedOut:
    container: str
    elapsed_seconds: float
    attempts: int

    @property
    def message(self) -> str:
        return (
            f"Container {self.container} did not become healthy after "
            f"{self.attempts} attempts (took {self.elapsed_seconds:.3f}s)"
        )


Outcome = Healthy | Unhealthy | TimedOut
