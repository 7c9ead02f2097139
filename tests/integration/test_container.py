from __future__ import annotations

import shutil
import subprocess
import uuid
from collections.abc import Callable, Generator

import pytest

from health_wait import (
    ContainerUnhealthyError,
    Healthy,
    HealthObserver,
    HealthStatus,
    HealthTimeoutError,
    PollRequest,
    resolve,
)

RUNTIME = "docker" if shutil.which("docker") else "podman"
IMAGE = "docker.io/library/alpine"
TEST_CONTAINER_PREFIX = "health-wait-integration-test"

StartContainer = Callable[[str | None], str]


def _runtime_available() -> bool:
    exe = shutil.which(RUNTIME)
    if not exe:
        return False
    result = subprocess.run([exe, "info"], capture_output=True, check=False)  # noqa: S603
    return result.returncode == 0


pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not _runtime_available(), reason=f"{RUNTIME} daemon not available"),
]


def _start(health_cmd: str | None) -> str:
    name = f"{TEST_CONTAINER_PREFIX}-{uuid.uuid4().hex[:8]}"
    cmd = [RUNTIME, "run", "-d", "--name", name]
    if health_cmd:
        cmd += ["--health-cmd", health_cmd, "--health-interval", "1s", "--health-retries", "1"]
    cmd += [IMAGE, "sleep", "120"]
    subprocess.run(cmd, capture_output=True, check=True)  # noqa: S603
    return name


@pytest.fixture
def container_factory() -> Generator[StartContainer, None, None]:
    """Start containers and remove them after the test."""
    names: list[str] = []

    def factory(health_cmd: str | None) -> str:
        name = _start(health_cmd)
        names.append(name)
        return name

    yield factory
    for name in names:
        subprocess.run([RUNTIME, "rm", "-f", name], capture_output=True, check=False)  # noqa: S603


async def test_waits_until_healthy(container_factory: StartContainer) -> None:
    name = container_factory("true")
    outcome = await resolve(
        PollRequest(container=name, max_retries=30, delay_ms=500),
        observer=HealthObserver(RUNTIME),
    )
    assert isinstance(outcome, Healthy)


async def test_fails_fast_when_unhealthy(container_factory: StartContainer) -> None:
    name = container_factory("false")
    with pytest.raises(ContainerUnhealthyError):
        await resolve(
            PollRequest(container=name, max_retries=30, delay_ms=500),
            observer=HealthObserver(RUNTIME),
        )


async def test_container_without_healthcheck(container_factory: StartContainer) -> None:
    name = container_factory(None)
    record = await HealthObserver(RUNTIME).observe(name)
    assert record.status is HealthStatus.UNKNOWN


async def test_missing_container_times_out() -> None:
    name = f"{TEST_CONTAINER_PREFIX}-missing-{uuid.uuid4().hex[:8]}"
    with pytest.raises(HealthTimeoutError) as exc_info:
        await resolve(
            PollRequest(container=name, max_retries=2, delay_ms=10),
            observer=HealthObserver(RUNTIME),
        )
    assert exc_info.value.outcome.attempts == 2
