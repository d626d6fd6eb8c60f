"""
Benchmark execution and reporting package.
"""

from .runner import BenchmarkRunner, RunnerSettings, TargetReport, IterationResult
from .metrics import StatsCollector, SummaryStats, TargetStats, summarize
from .reporter import ReportBuilder, ChartSeries
from .orchestrator import Orchestrator, RunArtifacts

__all__ = [
    "BenchmarkRunner",
    "RunnerSettings",
    "TargetReport",
    "IterationResult",
    "StatsCollector",
    "SummaryStats",
    "TargetStats",
    "summarize",
    "ReportBuilder",
    "ChartSeries",
    "Orchestrator",
    "RunArtifacts",
]
