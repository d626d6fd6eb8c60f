"""
Statistics aggregation for benchmark samples.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple


def is_valid_sample(value: Any) -> bool:
    """A usable timing sample is a non-negative, finite number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


@dataclass(frozen=True)
class SummaryStats:
    """
    Summary statistics over one sample set.

    ``samples`` keeps the original sample order; the statistics are computed
    over a sorted copy.
    """
    samples: Tuple[float, ...]
    min: float
    max: float
    median: float
    mean: float

    @property
    def count(self) -> int:
        return len(self.samples)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "runs": list(self.samples),
            "min": self.min,
            "max": self.max,
            "median": self.median,
            "mean": self.mean,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["SummaryStats"]:
        if not data:
            return None
        if data.get("runs"):
            return summarize(data["runs"])
        return cls(
            samples=(),
            min=float(data["min"]),
            max=float(data["max"]),
            median=float(data["median"]),
            mean=float(data["mean"]),
        )


def summarize(samples: Iterable[float]) -> Optional[SummaryStats]:
    """
    Compute min/max/median/mean over ``samples``.

    Args:
        samples: Non-negative finite numbers

    Returns:
        SummaryStats, or None for an empty sample set

    Raises:
        ValueError: If a sample is not a number, or is negative, infinite or NaN
    """
    values = []
    for sample in samples:
        if not is_valid_sample(sample):
            raise ValueError(f"Invalid sample: {sample!r}")
        values.append(float(sample))

    if not values:
        return None

    ordered = sorted(values)
    n = len(ordered)
    mid = n // 2
    if n % 2:
        median = ordered[mid]
    else:
        median = (ordered[mid - 1] + ordered[mid]) / 2

    return SummaryStats(
        samples=tuple(values),
        min=ordered[0],
        max=ordered[-1],
        median=median,
        mean=math.fsum(ordered) / n,
    )


@dataclass(frozen=True)
class TargetStats:
    """Aggregated statistics for one target across all iterations."""
    render_by_size: Dict[int, Optional[SummaryStats]] = field(default_factory=dict)
    bulk: Optional[SummaryStats] = None
    churn: Optional[SummaryStats] = None

    @property
    def sizes(self) -> List[int]:
        return sorted(self.render_by_size)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "render": {
                str(size): stats.to_dict() if stats else None
                for size, stats in sorted(self.render_by_size.items())
            },
            "bulk": self.bulk.to_dict() if self.bulk else None,
            "churn": self.churn.to_dict() if self.churn else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TargetStats":
        data = data or {}
        render = data.get("render") or {}
        return cls(
            render_by_size={int(size): SummaryStats.from_dict(s) for size, s in render.items()},
            bulk=SummaryStats.from_dict(data.get("bulk")),
            churn=SummaryStats.from_dict(data.get("churn")),
        )


class StatsCollector:
    """
    Collects per-iteration samples for one target.

    Usage:
        collector = StatsCollector("react")

        for iteration in history:
            collector.record(iteration)

        stats = collector.calculate()
    """

    def __init__(self, target: str):
        """
        Initialize stats collector.

        Args:
            target: Target name
        """
        self.target = target
        self.iterations = 0

        # Raw samples; render keys are the union of every size observed
        self.render_samples: Dict[int, List[float]] = {}
        self.bulk_totals: List[float] = []
        self.churn_totals: List[float] = []

    def record(self, result: Any) -> None:
        """
        Record one iteration.

        Args:
            result: IterationResult with render_samples, bulk and churn
        """
        self.iterations += 1

        for size, value in (result.render_samples or {}).items():
            samples = self.render_samples.setdefault(int(size), [])
            if is_valid_sample(value):
                samples.append(float(value))

        if result.bulk is not None and is_valid_sample(result.bulk.total_ms):
            self.bulk_totals.append(float(result.bulk.total_ms))

        if result.churn is not None and is_valid_sample(result.churn.total_ms):
            self.churn_totals.append(float(result.churn.total_ms))

    def calculate(self) -> TargetStats:
        """
        Calculate aggregated statistics.

        Returns:
            TargetStats; absent sample sets are None
        """
        return TargetStats(
            render_by_size={
                size: summarize(self.render_samples[size])
                for size in sorted(self.render_samples)
            },
            bulk=summarize(self.bulk_totals),
            churn=summarize(self.churn_totals),
        )


def aggregate(target: str, history: Sequence[Any]) -> TargetStats:
    """Derive TargetStats from a target's raw iteration history."""
    collector = StatsCollector(target)
    for result in history:
        collector.record(result)
    return collector.calculate()
