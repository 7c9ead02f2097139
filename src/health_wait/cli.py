from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from typing import NoReturn

from .core import resolve
from .errors import ConfigurationError, HealthWaitError, PollCancelledError
from .helpers import SUPPORTED_RUNTIMES
from .models import DEFAULT_DELAY_MS, DEFAULT_MAX_RETRIES, Healthy, PollRequest
from .observer import HealthObserver
from .preflight import run_preflight_checks

logger = logging.getLogger(__name__)

EXIT_CANCELLED = 130


# --------------------------------------------------------------------------- #
# Pretty failure printer
# --------------------------------------------------------------------------- #
def _fail(msg: str, code: int = 1) -> None:
    header = "=" * 70
    print(f"\n{header}\n[ERROR] {msg}\n{header}\n", file=sys.stderr)  # noqa: T201
    sys.exit(code)


# --------------------------------------------------------------------------- #
# Argument handling
# --------------------------------------------------------------------------- #
class _ArgumentParser(argparse.ArgumentParser):
    """Report usage errors as configuration errors instead of exiting with 2."""

    def error(self, message: str) -> NoReturn:
        raise ConfigurationError(f"{message}\n{self.format_usage().strip()}")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="health-wait",
        description="Wait until a container's HEALTHCHECK reports healthy.",
    )
    # Numbers are kept as strings so bad values surface as configuration errors.
    parser.add_argument("container", nargs="?", default="", help="Container name or ID.")
    parser.add_argument(
        "max_retries",
        nargs="?",
        default=None,
        help=f"Observations before giving up (default {DEFAULT_MAX_RETRIES}).",
    )
    parser.add_argument(
        "ms_between_retries",
        nargs="?",
        default=None,
        help=f"Milliseconds between observations (default {DEFAULT_DELAY_MS}).",
    )
    parser.add_argument(
        "--runtime",
        default="docker",
        help=f"Container runtime CLI, one of {', '.join(SUPPORTED_RUNTIMES)} (default docker).",
    )
    parser.add_argument("--skip-preflight", action="store_true", help="Skip environment checks.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every observation.")
    return parser


def _parse_positive_int(value: str | None, name: str, default: int) -> int:
    if value is None:
        return default
    try:
        number = int(value.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}") from None
    if number <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    return number


def build_request(
    container: str, max_retries: str | None = None, ms_between_retries: str | None = None
) -> PollRequest:
    """Validate raw command-line values into a :class:`PollRequest`."""
    return PollRequest(
        container=container,
        max_retries=_parse_positive_int(max_retries, "maxRetries", DEFAULT_MAX_RETRIES),
        delay_ms=_parse_positive_int(ms_between_retries, "msBetweenRetries", DEFAULT_DELAY_MS),
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# --------------------------------------------------------------------------- #
# Entry point
# --------------------------------------------------------------------------- #
async def _run(request: PollRequest, runtime: str) -> Healthy:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, cancel_event.set)
    try:
        return await resolve(request, observer=HealthObserver(runtime), cancel_event=cancel_event)
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)


def main(argv: list[str] | None = None) -> None:
    """Run ``health-wait <container> [maxRetries] [msBetweenRetries]``."""
    try:
        args = _build_parser().parse_args(argv)
        _configure_logging(args.verbose)
        request = build_request(args.container, args.max_retries, args.ms_between_retries)
        if not args.skip_preflight:
            run_preflight_checks(args.runtime)
        outcome = asyncio.run(_run(request, args.runtime))
    except PollCancelledError as e:
        _fail(str(e), code=EXIT_CANCELLED)
    except HealthWaitError as e:
        logger.debug("Poll failed", exc_info=True)
        _fail(str(e))
    else:
        print(outcome.message)  # noqa: T201


if __name__ == "__main__":
    main()
