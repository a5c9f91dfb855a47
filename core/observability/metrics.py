"""
Metrics Collection for the Producer Resolver

Collects and exposes metrics for:
- Resolutions (total, by producer kind, by confidence tier)
- Candidate source failures
- Resolution times (average, p95)

Metrics are in-memory only and reset when the process restarts.
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class ResolutionMetrics:
    """Counts of resolutions performed."""
    total: int = 0
    source_failures: int = 0

    # By producer kind: {"distiller": {"high": 3, "medium": 1, "low": 0}}
    by_kind: Dict[str, Dict[str, int]] = field(default_factory=lambda: defaultdict(lambda: {"high": 0, "medium": 0, "low": 0}))

    # Source failures by producer kind
    failures_by_kind: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    # Raw timing samples (keep last N for percentile calculations)
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    # By stage
    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if stage:
            self.by_stage[stage].append(duration_ms)
            if len(self.by_stage[stage]) > self.max_samples:
                self.by_stage[stage] = self.by_stage[stage][-self.max_samples:]

    def get_average(self, stage: str = None) -> float:
        """Get average processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str = None) -> float:
        """Get 95th percentile processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector for producer resolution.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_resolution("distiller", "high", duration_ms=1.4)
        metrics.get_summary()
    """

    _instance: Optional["MetricsCollector"] = None
    _lock = Lock()

    def __init__(self):
        self.resolutions = ResolutionMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def record_resolution(self, kind: str, confidence: str, duration_ms: float = None):
        """Record a completed resolution."""
        with self._lock:
            self.resolutions.total += 1
            self.resolutions.by_kind[kind][confidence] += 1

            if duration_ms is not None:
                self.timings.add_sample(duration_ms, f"resolve.{kind}")

    def record_source_failure(self, kind: str):
        """Record a candidate source failure (resolution continues with no candidates)."""
        with self._lock:
            self.resolutions.source_failures += 1
            self.resolutions.failures_by_kind[kind] += 1

    def get_timing_stats(self, stage: str = None) -> Dict[str, float]:
        """Get average and p95 timing, overall or for one stage."""
        with self._lock:
            samples = self.timings.by_stage.get(stage, []) if stage else self.timings.samples
            return {
                "count": len(samples),
                "average_ms": round(self.timings.get_average(stage), 3),
                "p95_ms": round(self.timings.get_p95(stage), 3),
            }

    def get_summary(self) -> Dict[str, Any]:
        """Get a JSON-serializable snapshot of all metrics."""
        with self._lock:
            by_kind = {k: dict(v) for k, v in self.resolutions.by_kind.items()}
            summary = {
                "resolutions": {
                    "total": self.resolutions.total,
                    "source_failures": self.resolutions.source_failures,
                    "by_kind": by_kind,
                    "failures_by_kind": dict(self.resolutions.failures_by_kind),
                },
            }
            stages = list(self.timings.by_stage.keys())

        summary["timings"] = {
            "overall": self.get_timing_stats(),
            "by_stage": {stage: self.get_timing_stats(stage) for stage in stages},
        }
        return summary

    def reset(self):
        """Clear all metrics (for testing)."""
        with self._lock:
            self.resolutions = ResolutionMetrics()
            self.timings = TimingMetrics()


def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()
