"""
Run orchestration across benchmark targets.
Runs every target through a single-worker queue and writes the run artifacts.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from ..config import Config
from ..targets.base import Target, TargetUnavailable, ConfigurationError
from .charts import plot_bar_chart
from .reporter import ReportBuilder, ChartSeries
from .runner import BenchmarkRunner, RunnerSettings, TargetReport
from .utils import get_machine_info

logger = logging.getLogger(__name__)

ChartBackend = Callable[[ChartSeries, Path], Path]


@dataclass
class RunArtifacts:
    """Everything written by one orchestrator run."""
    output_dir: Path
    reports: List[TargetReport] = field(default_factory=list)
    csv_text: str = ""
    markdown_text: str = ""
    charts: Dict[str, Path] = field(default_factory=dict)

    @property
    def failed_targets(self) -> List[str]:
        return [r.target for r in self.reports if not r.available]


class Orchestrator:
    """
    Benchmarks every target in turn and builds the combined report.

    Targets share fixed ports, so they run through a queue drained by a
    single worker; each target's server and browser are torn down before
    the next one starts. A target that fails is reported as unavailable
    and the run continues.

    Example:
        orchestrator = Orchestrator(resolve_targets("all"), iterations=5)
        artifacts = asyncio.run(orchestrator.run())
    """

    def __init__(
        self,
        targets: Sequence[Target],
        iterations: int = 5,
        output_dir: Optional[Path] = None,
        settings: Optional[RunnerSettings] = None,
        runner_factory: Optional[Callable[[Target], BenchmarkRunner]] = None,
        chart_backend: Optional[ChartBackend] = None,
        workers: int = 1,
    ):
        """
        Initialize orchestrator.

        Args:
            targets: Targets to benchmark, in order
            iterations: Iterations per target
            output_dir: Artifact directory (default: Config.OUTPUT_DIR)
            settings: Runner settings shared by every target
            runner_factory: Callable creating the runner for a target
            chart_backend: Callable rendering one ChartSeries to an image path
            workers: Concurrent targets; more than one needs distinct ports
        """
        if iterations < 1:
            raise ConfigurationError("iterations must be at least 1")
        if workers < 1:
            raise ConfigurationError("workers must be at least 1")
        ports = [t.port for t in targets]
        if workers > 1 and len(set(ports)) != len(ports):
            raise ConfigurationError("Parallel targets need distinct ports")

        self.targets = list(targets)
        self.iterations = iterations
        self.output_dir = Path(output_dir) if output_dir else Config.OUTPUT_DIR
        self.settings = settings or RunnerSettings.from_config()
        self.runner_factory = runner_factory or self._default_runner
        self.chart_backend = chart_backend or plot_bar_chart
        self.workers = workers
        self.builder = ReportBuilder.from_settings(self.settings)

        # Callbacks
        self._on_target: Optional[Callable[[TargetReport], None]] = None

    def _default_runner(self, target: Target) -> BenchmarkRunner:
        return BenchmarkRunner(target, settings=self.settings, output_dir=self.output_dir)

    def on_target(self, callback: Callable[[TargetReport], None]) -> "Orchestrator":
        """
        Set target callback.

        Args:
            callback: Function(report) called when a target finishes or fails
        """
        self._on_target = callback
        return self

    async def run(self) -> RunArtifacts:
        """
        Benchmark all targets and write every artifact.

        Returns:
            RunArtifacts

        Raises:
            OSError: If the output directory or an artifact cannot be written
        """
        Config.ensure_directories(self.output_dir)

        names = ", ".join(t.name for t in self.targets)
        logger.info(f"Running targets: {names} (iterations={self.iterations})")

        reports = await self._run_queue()
        return self.write_artifacts(reports)

    async def _run_queue(self) -> List[TargetReport]:
        """Drain the target queue; reports keep the configured target order."""
        queue: asyncio.Queue = asyncio.Queue()
        for position, target in enumerate(self.targets):
            queue.put_nowait((position, target))

        reports: List[Optional[TargetReport]] = [None] * len(self.targets)

        async def worker():
            while True:
                try:
                    position, target = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    reports[position] = await self._run_target(target)
                finally:
                    queue.task_done()

        await asyncio.gather(*(worker() for _ in range(self.workers)))
        return [r for r in reports if r is not None]

    async def _run_target(self, target: Target) -> TargetReport:
        logger.info(f"{'=' * 60}")
        logger.info(f"Benchmarking target: {target.name}")
        logger.info(f"{'=' * 60}")

        try:
            runner = self.runner_factory(target)
            report = await runner.run(self.iterations)
        except TargetUnavailable as e:
            logger.error(f"[{target.name}] target unavailable: {e}")
            report = TargetReport.unavailable(target.name, self.iterations, str(e))
        except Exception as e:
            logger.exception(f"[{target.name}] unexpected error")
            report = TargetReport.unavailable(
                target.name, self.iterations, f"{type(e).__name__}: {e}"
            )

        if self._on_target:
            self._on_target(report)
        return report

    def write_artifacts(self, reports: Sequence[TargetReport]) -> RunArtifacts:
        """
        Build and write results.csv, report.md, all-results.json and charts.

        Artifacts are regenerated wholesale; existing files are overwritten.
        """
        output_dir = Config.ensure_directories(self.output_dir)
        plots_dir = output_dir / "plots"

        artifacts = RunArtifacts(
            output_dir=output_dir,
            reports=list(reports),
            csv_text=self.builder.to_csv(reports),
            markdown_text=self.builder.to_markdown(
                reports,
                generated_at=datetime.now(timezone.utc).isoformat(),
                environment=get_machine_info(),
            ),
        )

        (output_dir / "results.csv").write_text(artifacts.csv_text, encoding="utf-8")

        for filename, chart in self.builder.chart_series(reports).items():
            artifacts.charts[filename] = self.chart_backend(chart, plots_dir / filename)

        (output_dir / "report.md").write_text(artifacts.markdown_text, encoding="utf-8")

        with open(output_dir / "all-results.json", "w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in reports], f, ensure_ascii=False, indent=2)

        logger.info(f"All results written to {output_dir}")
        return artifacts


def load_reports(path: Path) -> List[TargetReport]:
    """Load TargetReports from an ``all-results.json`` file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return [TargetReport.from_dict(item) for item in data]
