"""
Shared fakes for driving the runner without a browser or server.
"""

from pathlib import Path

import pytest

from uibench.targets.base import Target, BuildFailure
from uibench.benchmark.runner import RunnerSettings


class FakeLifecycle:
    """Server lifecycle double that records calls."""

    def __init__(self, fail_build=False):
        self.fail_build = fail_build
        self.calls = []

    async def build(self, target):
        self.calls.append(("build", target.name))
        if self.fail_build:
            raise BuildFailure(f"[{target.name}] build exited with code 1")

    async def start(self, target):
        self.calls.append(("start", target.name))
        return object()

    async def await_ready(self, target, timeout_ms, handle=None):
        self.calls.append(("await_ready", target.name))

    async def stop(self, handle):
        self.calls.append(("stop", None))


class FakeSession:
    """
    Browser session double.

    render_results / dom_counts are consumed one per render attempt; the
    last entry repeats once the list is exhausted. bulk_results and
    churn_results work the same way.
    """

    def __init__(
        self,
        render_results=None,
        dom_counts=None,
        bulk_results=None,
        churn_results=None,
    ):
        self.render_results = list(render_results or [{"10": 1.0, "100": 2.0}])
        self.dom_counts = list(dom_counts or [100])
        self.bulk_results = list(bulk_results or [{"rows": 10000, "updates": 1000, "total_ms": 50.0, "avg_ms": 0.05}])
        self.churn_results = list(churn_results or [{"components": 1000, "cycles": 100, "total_ms": 80.0, "avg_cycle_ms": 0.8}])

        self.invocations = []
        self.reloads = 0
        self.opened = None
        self.closed = False
        self._counters = {"render": 0, "dom": 0, "bulk": 0, "churn": 0}

    def _next(self, key, values):
        index = min(self._counters[key], len(values) - 1)
        self._counters[key] += 1
        return values[index]

    async def open(self, url, timeout_ms=None):
        self.opened = url

    async def await_api_ready(self, timeout_ms=None):
        pass

    async def reload(self, timeout_ms=None, api_timeout_ms=None):
        self.reloads += 1

    async def invoke(self, entry_point, args=None):
        self.invocations.append((entry_point, args))
        if entry_point == "runRenderBenchmark":
            return self._next("render", self.render_results)
        if entry_point == "runBulkUpdates":
            return self._next("bulk", self.bulk_results)
        if entry_point == "runMountUnmount":
            return self._next("churn", self.churn_results)
        return None

    async def dom_row_count(self, selector):
        return self._next("dom", self.dom_counts)

    async def close(self):
        self.closed = True

    def calls_to(self, entry_point):
        return [args for name, args in self.invocations if name == entry_point]


@pytest.fixture
def fast_settings():
    """Runner settings without pauses."""
    return RunnerSettings(retry_pause=0, cooldown=0, server_timeout_ms=1000)


@pytest.fixture
def make_target(tmp_path):
    def _make(name="react", port=4173):
        return Target(
            name=name,
            working_directory=Path(tmp_path),
            port=port,
            build_command=("npm", "run", "build"),
            start_command=("npm", "run", "preview"),
        )
    return _make
