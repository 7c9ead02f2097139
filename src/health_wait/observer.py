from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from .errors import ConfigurationError, ObservationError
from .helpers import get_runtime_exe, strip_wrapping_quotes
from .models import HealthRecord

__all__ = ["HEALTH_FORMAT", "HealthObserver", "Observer", "ProcessResult", "parse_health"]

logger = logging.getLogger(__name__)

# Quotes are part of the template and come back around the JSON.
HEALTH_FORMAT = "--format='{{json .State.Health}}'"

Observer = Callable[[str], Awaitable[HealthRecord]]


@dataclass(frozen=True)
class ProcessResult:
    """Completed ``inspect`` process."""

    returncode: int
    stdout: str
    stderr: str


def parse_health(output: str) -> HealthRecord:
    """Decode ``inspect`` stdout into a :class:`HealthRecord`."""
    line = next((ln.strip() for ln in output.splitlines() if ln.strip()), "")
    if not line:
        raise ObservationError("inspect returned no output", output=output)

    payload = strip_wrapping_quotes(line)
    try:
        raw = json.loads(payload)
        return HealthRecord.from_json(raw)
    except (TypeError, ValueError) as e:
        raise ObservationError(f"Could not parse health output: {e}", output=output) from e


class HealthObserver:
    """Query a container runtime once per call for a container's health."""

    _runtime_exes: dict[str, str] = {}

    def __init__(self, runtime: str = "docker"):
        """Initialize an observer bound to ``runtime`` (``docker`` or ``podman``)."""
        self.runtime = runtime

    # --------------------------------------------------------------------- #
    # Runtime executable
    # --------------------------------------------------------------------- #
    def _get_runtime(self) -> str:
        if self.runtime not in HealthObserver._runtime_exes:
            try:
                exe = get_runtime_exe(self.runtime)
            except RuntimeError as e:
                raise ConfigurationError(str(e)) from e
            HealthObserver._runtime_exes[self.runtime] = exe
        return HealthObserver._runtime_exes[self.runtime]

    def _build_inspect_cmd(self, container: str) -> list[str]:
        return [self._get_runtime(), "inspect", HEALTH_FORMAT, container]

    # --------------------------------------------------------------------- #
    # Process handling
    # --------------------------------------------------------------------- #
    async def _run(self, cmd: list[str]) -> ProcessResult:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ObservationError(f"Failed to run {cmd[0]}: {e}") from e

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise

        return ProcessResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )

    async def observe(self, container: str) -> HealthRecord:
        """Run ``<runtime> inspect`` once and return the parsed health record."""
        cmd = self._build_inspect_cmd(container)
        logger.debug("Running %s", " ".join(cmd))
        result = await self._run(cmd)

        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise ObservationError(
                stderr or f"{self.runtime} inspect exited with status {result.returncode}",
                returncode=result.returncode,
                output=result.stdout,
                stderr=stderr,
            )

        return parse_health(result.stdout)

    async def __call__(self, container: str) -> HealthRecord:
        return await self.observe(container)

    def __repr__(self) -> str:
        """Return a string representation of the observer."""
        return f"<HealthObserver runtime={self.runtime}>"
