from importlib.metadata import PackageNotFoundError, version

from .core import resolve, wait_for_health
from .errors import (
    ConfigurationError,
    ContainerUnhealthyError,
    HealthTimeoutError,
    HealthWaitError,
    ObservationError,
    PollCancelledError,
)
from .models import HealthRecord, HealthStatus, Healthy, PollRequest, TimedOut, Unhealthy
from .observer import HealthObserver

try:
    __version__ = version("container-health-wait")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "ConfigurationError",
    "ContainerUnhealthyError",
    "HealthObserver",
    "HealthRecord",
    "HealthStatus",
    "HealthTimeoutError",
    "HealthWaitError",
    "Healthy",
    "ObservationError",
    "PollCancelledError",
    "PollRequest",
    "TimedOut",
    "Unhealthy",
    "__version__",
    "resolve",
    "wait_for_health",
]
