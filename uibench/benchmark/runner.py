"""
Benchmark runner for executing scripted UI tests against one target.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Callable, Tuple
from dataclasses import dataclass, field

from ..config import Config
from ..targets.base import Target, InvalidResultShape, ValidationMismatch
from ..targets.browser import BrowserSession, PageApi
from ..targets.server import ServerLifecycle
from .metrics import TargetStats, aggregate, is_valid_sample
from .retry import RetryPolicy, run_with_retry

logger = logging.getLogger(__name__)


def _optional_number(value: Any) -> Optional[float]:
    return float(value) if is_valid_sample(value) else None


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if is_valid_sample(value) else None


def _extract_total(payload: Any, kind: str) -> float:
    """
    Pull the total timing out of a bulk/churn payload.

    ``total_ms`` is the canonical field; ``total`` and a bare number are
    accepted for pages written against the older contract.
    """
    if isinstance(payload, Mapping):
        if "total_ms" in payload:
            total = payload["total_ms"]
        else:
            total = payload.get("total")
    else:
        total = payload

    if not is_valid_sample(total):
        raise InvalidResultShape(f"{kind} result has no valid total_ms: {payload!r}")
    return float(total)


@dataclass(frozen=True)
class BulkResult:
    """Result of the bulk-update test."""
    total_ms: float
    rows_count: Optional[int] = None
    updates_count: Optional[int] = None
    avg_ms: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "BulkResult":
        """
        Validate and normalize a page payload.

        Raises:
            InvalidResultShape: If the payload carries no usable total
        """
        total = _extract_total(payload, "bulk")
        fields = payload if isinstance(payload, Mapping) else {}
        return cls(
            total_ms=total,
            rows_count=_optional_int(fields.get("rows")),
            updates_count=_optional_int(fields.get("updates")),
            avg_ms=_optional_number(fields.get("avg_ms")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": self.rows_count,
            "updates": self.updates_count,
            "total_ms": self.total_ms,
            "avg_ms": self.avg_ms,
        }


@dataclass(frozen=True)
class ChurnResult:
    """Result of the mount/unmount churn test."""
    total_ms: float
    components: Optional[int] = None
    cycles: Optional[int] = None
    avg_cycle_ms: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ChurnResult":
        """
        Validate and normalize a page payload.

        Raises:
            InvalidResultShape: If the payload carries no usable total
        """
        total = _extract_total(payload, "churn")
        fields = payload if isinstance(payload, Mapping) else {}
        return cls(
            total_ms=total,
            components=_optional_int(fields.get("components")),
            cycles=_optional_int(fields.get("cycles")),
            avg_cycle_ms=_optional_number(fields.get("avg_cycle_ms")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "components": self.components,
            "cycles": self.cycles,
            "total_ms": self.total_ms,
            "avg_cycle_ms": self.avg_cycle_ms,
        }


def parse_render_samples(payload: Any) -> Optional[Dict[int, Optional[float]]]:
    """
    Normalize a render payload to {size: ms}.

    Returns None when the payload is not a mapping. Keys that are not row
    counts are dropped; unusable timings become None.
    """
    if not isinstance(payload, Mapping):
        return None

    samples: Dict[int, Optional[float]] = {}
    for key, value in payload.items():
        try:
            size = int(key)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring render key {key!r}")
            continue
        samples[size] = _optional_number(value)
    return dict(sorted(samples.items()))


@dataclass(frozen=True)
class IterationResult:
    """One execution of the three tests against one target."""
    index: int
    render_samples: Dict[int, Optional[float]] = field(default_factory=dict)
    bulk: Optional[BulkResult] = None
    churn: Optional[ChurnResult] = None


@dataclass(frozen=True)
class TargetReport:
    """Raw history and aggregated statistics for one target."""
    target: str
    iterations: int
    timestamp: str
    raw: Tuple[IterationResult, ...] = ()
    stats: TargetStats = field(default_factory=TargetStats)
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.error is None

    @classmethod
    def unavailable(cls, target: str, iterations: int, error: str) -> "TargetReport":
        """Report for a target that failed before any iteration ran."""
        return cls(
            target=target,
            iterations=iterations,
            timestamp=datetime.now(timezone.utc).isoformat(),
            error=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            "framework": self.target,
            "iterations": self.iterations,
            "timestamp": self.timestamp,
            "raw": {
                "render": [
                    {str(size): ms for size, ms in r.render_samples.items()}
                    for r in self.raw
                ],
                "bulk": [r.bulk.to_dict() if r.bulk else None for r in self.raw],
                "churn": [r.churn.to_dict() if r.churn else None for r in self.raw],
            },
            "stats": self.stats.to_dict(),
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetReport":
        raw = data.get("raw") or {}
        render_runs = raw.get("render") or []
        bulk_runs = raw.get("bulk") or []
        churn_runs = raw.get("churn") or []

        history = []
        for index, render in enumerate(render_runs):
            bulk = bulk_runs[index] if index < len(bulk_runs) else None
            churn = churn_runs[index] if index < len(churn_runs) else None
            history.append(IterationResult(
                index=index,
                render_samples=parse_render_samples(render) or {},
                bulk=BulkResult.from_payload(bulk) if bulk else None,
                churn=ChurnResult.from_payload(churn) if churn else None,
            ))

        return cls(
            target=data["framework"],
            iterations=int(data.get("iterations", len(history))),
            timestamp=data.get("timestamp", ""),
            raw=tuple(history),
            stats=TargetStats.from_dict(data.get("stats")),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class RunnerSettings:
    """Timeouts, retry budget and fixed test parameters for a target run."""
    server_timeout_ms: int = 180000
    navigation_timeout_ms: int = 120000
    api_timeout_ms: int = 60000
    max_attempts: int = 3
    retry_pause: float = 0.5
    cooldown: float = 0.3
    bulk_rows: int = 10000
    bulk_updates: int = 1000
    churn_components: int = 1000
    churn_cycles: int = 100
    row_selector: str = "table tbody"
    host: str = "localhost"

    @classmethod
    def from_config(cls) -> "RunnerSettings":
        return cls(
            server_timeout_ms=Config.SERVER_TIMEOUT_MS,
            navigation_timeout_ms=Config.NAVIGATION_TIMEOUT_MS,
            api_timeout_ms=Config.API_TIMEOUT_MS,
            max_attempts=Config.MAX_ATTEMPTS,
            retry_pause=Config.RETRY_PAUSE,
            cooldown=Config.COOLDOWN,
            bulk_rows=Config.BULK_ROWS,
            bulk_updates=Config.BULK_UPDATES,
            churn_components=Config.CHURN_COMPONENTS,
            churn_cycles=Config.CHURN_CYCLES,
            row_selector=Config.ROW_SELECTOR,
            host=Config.SERVER_HOST,
        )


class BenchmarkRunner:
    """
    Executes the scripted benchmark against one target.

    Features:
        - Build, serve and tear down the target server
        - Fresh page load per iteration
        - Render results cross-checked against the DOM row count
        - Bounded retries; degraded results are kept, never abort the run

    Example:
        runner = BenchmarkRunner(get_target("react"))
        report = await runner.run(iterations=5)
    """

    def __init__(
        self,
        target: Target,
        settings: Optional[RunnerSettings] = None,
        lifecycle: Optional[ServerLifecycle] = None,
        session_factory: Optional[Callable[[], BrowserSession]] = None,
        api: Optional[PageApi] = None,
        output_dir: Optional[Path] = None,
    ):
        """
        Initialize benchmark runner.

        Args:
            target: Target to benchmark
            settings: Runner settings (default: from Config)
            lifecycle: Server lifecycle manager
            session_factory: Callable creating a browser session
            api: Entry point names exposed by the page
            output_dir: Directory for the per-target JSON file (None: don't persist)
        """
        self.target = target
        self.settings = settings or RunnerSettings.from_config()
        self.api = api or PageApi()
        self.lifecycle = lifecycle or ServerLifecycle(
            host=self.settings.host,
            probe_interval=Config.PROBE_INTERVAL,
        )
        self.session_factory = session_factory or self._default_session
        self.output_dir = output_dir

        # Callbacks
        self._on_iteration: Optional[Callable[[int, int], None]] = None

    def _default_session(self) -> BrowserSession:
        return BrowserSession(
            api=self.api,
            headless=Config.HEADLESS,
            navigation_timeout_ms=self.settings.navigation_timeout_ms,
            api_timeout_ms=self.settings.api_timeout_ms,
        )

    def on_iteration(self, callback: Callable[[int, int], None]) -> "BenchmarkRunner":
        """
        Set iteration callback.

        Args:
            callback: Function(completed, total) called after each iteration
        """
        self._on_iteration = callback
        return self

    async def run(self, iterations: int) -> TargetReport:
        """
        Run the benchmark.

        Args:
            iterations: Number of iterations

        Returns:
            TargetReport with raw history and statistics

        Raises:
            TargetUnavailable: If the target cannot be built, served or loaded
        """
        if iterations < 1:
            raise ValueError("iterations must be at least 1")

        name = self.target.name
        settings = self.settings

        await self.lifecycle.build(self.target)
        handle = await self.lifecycle.start(self.target)
        try:
            await self.lifecycle.await_ready(self.target, settings.server_timeout_ms, handle)

            session = self.session_factory()
            try:
                await session.open(self.target.url(settings.host), settings.navigation_timeout_ms)
                await session.await_api_ready(settings.api_timeout_ms)

                logger.info(f"[{name}] running {iterations} iterations")
                history = await self._run_iterations(session, iterations)
            finally:
                await session.close()
        finally:
            await self.lifecycle.stop(handle)

        report = TargetReport(
            target=name,
            iterations=iterations,
            timestamp=datetime.now(timezone.utc).isoformat(),
            raw=tuple(history),
            stats=aggregate(name, history),
        )

        if self.output_dir is not None:
            self._persist(report)

        return report

    async def _run_iterations(self, session: BrowserSession, iterations: int) -> List[IterationResult]:
        """Run every iteration sequentially on the shared page."""
        name = self.target.name
        history: List[IterationResult] = []

        for index in range(iterations):
            logger.info(f"[{name}] iteration {index + 1}/{iterations} starting")

            # Fresh page state for every iteration
            await session.reload(self.settings.navigation_timeout_ms, self.settings.api_timeout_ms)

            render = await self._render_test(session, index)
            bulk = await self._bulk_test(session, index)
            churn = await self._churn_test(session, index)

            history.append(IterationResult(
                index=index,
                render_samples=render,
                bulk=bulk,
                churn=churn,
            ))

            if self._on_iteration:
                self._on_iteration(index + 1, iterations)

            await asyncio.sleep(self.settings.cooldown)

        return history

    def _policy(self, accept_on_exhaustion: bool) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.settings.max_attempts,
            pause=self.settings.retry_pause,
            accept_on_exhaustion=accept_on_exhaustion,
        )

    async def _render_test(self, session: BrowserSession, index: int) -> Dict[int, Optional[float]]:
        """
        Run the render sweep and validate it against the DOM.

        The largest reported size must match the number of rendered rows.
        After the last failed attempt the raw result is kept anyway.
        """
        label = f"[{self.target.name}] iteration {index + 1} render"

        async def call():
            return parse_render_samples(await session.invoke(self.api.render))

        async def validate(samples):
            if samples is None:
                raise InvalidResultShape("render returned no size mapping")
            if not samples:
                logger.warning(f"{label}: no sizes returned, accepting as-is")
                return samples

            expected = max(samples)
            actual = await session.dom_row_count(self.settings.row_selector)
            if actual != expected:
                raise ValidationMismatch(f"actual={actual} expected={expected}")

            logger.info(f"{label}: validated {actual} rows")
            return samples

        outcome = await run_with_retry(call, validate, self._policy(True), label)
        return outcome.value or {}

    async def _bulk_test(self, session: BrowserSession, index: int) -> Optional[BulkResult]:
        """Run the bulk-update test; None if no valid result was produced."""
        label = f"[{self.target.name}] iteration {index + 1} bulk"
        args = {
            "rowsCount": self.settings.bulk_rows,
            "updatesCount": self.settings.bulk_updates,
        }

        async def call():
            return await session.invoke(self.api.bulk, args)

        async def validate(payload):
            return BulkResult.from_payload(payload)

        outcome = await run_with_retry(call, validate, self._policy(False), label)
        return outcome.value

    async def _churn_test(self, session: BrowserSession, index: int) -> Optional[ChurnResult]:
        """Run the mount/unmount test; None if no valid result was produced."""
        label = f"[{self.target.name}] iteration {index + 1} churn"
        args = {
            "components": self.settings.churn_components,
            "cycles": self.settings.churn_cycles,
        }

        async def call():
            return await session.invoke(self.api.churn, args)

        async def validate(payload):
            return ChurnResult.from_payload(payload)

        outcome = await run_with_retry(call, validate, self._policy(False), label)
        return outcome.value

    def _persist(self, report: TargetReport) -> Path:
        """Write raw history and statistics to ``<target>-all-runs.json``."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / f"{report.target}-all-runs.json"

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, ensure_ascii=False, indent=2)

        logger.info(f"[{report.target}] results saved: {output_path}")
        return output_path
