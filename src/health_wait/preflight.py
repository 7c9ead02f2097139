from __future__ import annotations

import shutil
from collections.abc import Callable

from .errors import ConfigurationError
from .helpers import SUPPORTED_RUNTIMES

Check = Callable[[str], None]


# --------------------------------------------------------------------------- #
# Individual checks
# --------------------------------------------------------------------------- #
def _check_runtime_supported(runtime: str) -> None:
    if runtime not in SUPPORTED_RUNTIMES:
        raise ConfigurationError(
            f"Unsupported container runtime {runtime!r}\n"
            f"Choose one of: {', '.join(SUPPORTED_RUNTIMES)}"
        )


def _check_runtime_in_path(runtime: str) -> None:
    if not shutil.which(runtime):
        raise ConfigurationError(
            f"'{runtime}' not found in PATH\n"
            "Install it or pass --runtime to pick another container runtime"
        )


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #
CHECKS: list[Check] = [
    _check_runtime_supported,
    _check_runtime_in_path,
]


def run_preflight_checks(runtime: str = "docker", custom_checks: list[Check] | None = None) -> None:
    """Make sure ``runtime`` can be inspected before polling starts."""
    all_checks = CHECKS + (custom_checks or [])
    for check in all_checks:
        try:
            check(runtime)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(str(e)) from e
