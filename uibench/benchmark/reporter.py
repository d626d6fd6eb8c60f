"""
Report generation for benchmark results.
Builds the aggregate CSV, the Markdown report and the chart input series.
All functions are pure; files are written by the orchestrator.
"""

import csv
import io
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from .metrics import SummaryStats
from .runner import TargetReport, RunnerSettings
from .utils import NOT_AVAILABLE, format_value, format_ms

CSV_HEADER = ["framework", "test", "detail1", "detail2", "stat", "value"]
STAT_NAMES = ("median", "mean", "min", "max")

RENDER_CHART = "render_comparison.png"
BULK_CHART = "bulk_comparison.png"
CHURN_CHART = "churn_comparison.png"


@dataclass(frozen=True)
class ChartSeries:
    """Labeled bar-chart input: one value per category for every series."""
    title: str
    categories: List[str]
    series: Dict[str, List[Optional[float]]] = field(default_factory=dict)
    x_label: str = ""
    y_label: str = "ms"


def collect_sizes(reports: Sequence[TargetReport]) -> List[int]:
    """Union of the render sizes observed by any target, ascending."""
    sizes = set()
    for report in reports:
        sizes.update(report.stats.render_by_size)
    return sorted(sizes)


def _stat(stats: Optional[SummaryStats], name: str) -> Optional[float]:
    return getattr(stats, name) if stats is not None else None


def _median(stats: Optional[SummaryStats]) -> Optional[float]:
    return _stat(stats, "median")


class ReportBuilder:
    """
    Turns TargetReports into report text and chart series.

    Targets that failed entirely stay in every table with N/A values.

    Example:
        builder = ReportBuilder.from_settings(settings)
        csv_text = builder.to_csv(reports)
        markdown = builder.to_markdown(reports)
    """

    def __init__(
        self,
        bulk_rows: int = 10000,
        bulk_updates: int = 1000,
        churn_components: int = 1000,
        churn_cycles: int = 100,
        plots_dir: str = "plots",
    ):
        self.bulk_rows = bulk_rows
        self.bulk_updates = bulk_updates
        self.churn_components = churn_components
        self.churn_cycles = churn_cycles
        self.plots_dir = plots_dir

    @classmethod
    def from_settings(cls, settings: RunnerSettings, plots_dir: str = "plots") -> "ReportBuilder":
        return cls(
            bulk_rows=settings.bulk_rows,
            bulk_updates=settings.bulk_updates,
            churn_components=settings.churn_components,
            churn_cycles=settings.churn_cycles,
            plots_dir=plots_dir,
        )

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    def to_csv(self, reports: Sequence[TargetReport]) -> str:
        """
        Build the aggregate CSV.

        One row per (target, test, parameters, statistic); absent values are
        written as the N/A sentinel.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)

        sizes = collect_sizes(reports)
        bulk_details = (f"rows={self.bulk_rows}", f"updates={self.bulk_updates}")
        churn_details = (f"components={self.churn_components}", f"cycles={self.churn_cycles}")

        for report in reports:
            name = report.target
            for size in sizes:
                stats = report.stats.render_by_size.get(size)
                for stat in STAT_NAMES:
                    writer.writerow([name, "render", f"rows={size}", "-", stat, format_value(_stat(stats, stat))])

            for stat in STAT_NAMES:
                writer.writerow([name, "bulk", *bulk_details, stat, format_value(_stat(report.stats.bulk, stat))])

            for stat in STAT_NAMES:
                writer.writerow([name, "churn", *churn_details, stat, format_value(_stat(report.stats.churn, stat))])

        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Markdown
    # ------------------------------------------------------------------

    def to_markdown(
        self,
        reports: Sequence[TargetReport],
        generated_at: Optional[str] = None,
        environment: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Build the Markdown report: render, bulk and churn tables with one
        column per target, plus chart references.
        """
        generated_at = generated_at or datetime.now(timezone.utc).isoformat()
        names = [r.target for r in reports]

        lines = []
        lines.append("# Benchmark Results\n")
        lines.append(f"_Generated: {generated_at}_\n")

        if environment:
            lines.append("## Test environment\n")
            lines.append("| Item | Value |")
            lines.append("|------|-------|")
            for key, value in environment.items():
                lines.append(f"| {key} | {value} |")
            lines.append("")

        # Render
        lines.append("## Render time (median ms)\n")
        lines.append(self._table_header("Rows", names))
        sizes = collect_sizes(reports)
        for size in sizes:
            cells = [format_ms(_median(r.stats.render_by_size.get(size))) for r in reports]
            lines.append(self._table_row(str(size), cells))
        if not sizes:
            lines.append(self._table_row("-", [NOT_AVAILABLE] * len(reports)))
        lines.append("")
        if sizes:
            lines.append(f"![Render Comparison]({self.plots_dir}/{RENDER_CHART})\n")

        # Bulk
        lines.append(f"## Bulk updates (ms, rows={self.bulk_rows}, updates={self.bulk_updates})\n")
        lines.extend(self._summary_table(names, [r.stats.bulk for r in reports]))
        lines.append("")
        lines.append(f"![Bulk Comparison]({self.plots_dir}/{BULK_CHART})\n")

        # Churn
        lines.append(
            f"## Mount/Unmount churn (ms, components={self.churn_components}, cycles={self.churn_cycles})\n"
        )
        lines.extend(self._summary_table(names, [r.stats.churn for r in reports]))
        lines.append("")
        lines.append(f"![Churn Comparison]({self.plots_dir}/{CHURN_CHART})\n")

        failed = [r for r in reports if not r.available]
        if failed:
            lines.append("## Unavailable targets\n")
            for report in failed:
                lines.append(f"- **{report.target}**: {report.error}")
            lines.append("")

        return "\n".join(lines)

    def _table_header(self, first: str, names: Sequence[str]) -> str:
        header = f"| {first} | " + " | ".join(n.upper() for n in names) + " |"
        separator = "|------|" + "|".join("------:" for _ in names) + "|"
        return f"{header}\n{separator}"

    def _table_row(self, label: str, cells: Sequence[str]) -> str:
        return f"| {label} | " + " | ".join(cells) + " |"

    def _summary_table(
        self,
        names: Sequence[str],
        stats: Sequence[Optional[SummaryStats]],
    ) -> List[str]:
        lines = [self._table_header("Stat", names)]
        for stat in STAT_NAMES:
            lines.append(self._table_row(stat, [format_ms(_stat(s, stat)) for s in stats]))
        return lines

    # ------------------------------------------------------------------
    # Chart series
    # ------------------------------------------------------------------

    def render_series(self, reports: Sequence[TargetReport]) -> Optional[ChartSeries]:
        """Grouped bars: render size on the x axis, one series per target."""
        sizes = collect_sizes(reports)
        if not sizes:
            return None
        return ChartSeries(
            title="Render time (median ms)",
            categories=[str(size) for size in sizes],
            series={
                r.target: [_median(r.stats.render_by_size.get(size)) for size in sizes]
                for r in reports
            },
            x_label="rows",
        )

    def summary_series(self, reports: Sequence[TargetReport], kind: str) -> ChartSeries:
        """Single-series bars of the bulk or churn median per target."""
        titles = {"bulk": "Bulk updates", "churn": "Mount/Unmount churn"}
        if kind not in titles:
            raise ValueError(f"Unknown test kind: {kind}")

        title = f"{titles[kind]} (median ms)"
        return ChartSeries(
            title=title,
            categories=[r.target for r in reports],
            series={title: [_median(getattr(r.stats, kind)) for r in reports]},
        )

    def chart_series(self, reports: Sequence[TargetReport]) -> Dict[str, ChartSeries]:
        """All chart inputs keyed by image filename."""
        charts = {}
        render = self.render_series(reports)
        if render is not None:
            charts[RENDER_CHART] = render
        charts[BULK_CHART] = self.summary_series(reports, "bulk")
        charts[CHURN_CHART] = self.summary_series(reports, "churn")
        return charts
