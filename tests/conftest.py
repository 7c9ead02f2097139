from __future__ import annotations

from collections.abc import Callable, Generator, Iterable

import pytest

from health_wait import HealthObserver, HealthRecord, HealthStatus

# An observer step is either a status string or an exception to raise.
Step = str | Exception


class ScriptedObserver:
    """Observer returning a fixed sequence of results, repeating the last one."""

    def __init__(self, steps: Iterable[Step]):
        self.steps = list(steps)
        self.calls: list[str] = []

    async def __call__(self, container: str) -> HealthRecord:
        self.calls.append(container)
        step = self.steps[min(len(self.calls), len(self.steps)) - 1]
        if isinstance(step, Exception):
            raise step
        return HealthRecord(status=HealthStatus.from_raw(step))


@pytest.fixture
def scripted_observer() -> Callable[..., ScriptedObserver]:
    """Build a :class:`ScriptedObserver` from status strings and exceptions."""

    def factory(*steps: Step) -> ScriptedObserver:
        return ScriptedObserver(steps)

    return factory


@pytest.fixture(autouse=True)
def clear_runtime_cache() -> Generator[None, None, None]:
    """Forget resolved runtime executables between tests."""
    HealthObserver._runtime_exes.clear()
    yield
    HealthObserver._runtime_exes.clear()
