"""
Gateway Metrics
===============
In-memory counters and timings for request handling, exportable in
Prometheus text format.
"""

import threading
from typing import Dict, List, Optional
from dataclasses import dataclass, field
from time import perf_counter


@dataclass
class MetricLabels:
    """Labels added to every exported sample."""
    service: str
    environment: str = "production"
    extra: Dict[str, str] = field(default_factory=dict)


class SimpleMetrics:
    """
    Thread-safe counters and timing samples for one gateway process.

    Args:
        labels: Base labels for export
        name_prefix: Prepended to every metric name
    """

    def __init__(self, labels: Optional[MetricLabels] = None, name_prefix: str = ""):
        self.labels = labels or MetricLabels(service="unknown")
        self.name_prefix = name_prefix
        self._counters: Dict[str, int] = {}
        self._histograms: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def increment(self, name: str, value: int = 1, labels: Optional[Dict] = None) -> None:
        """Add to a counter, e.g. one rejected request."""
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + value

    def observe(self, name: str, value: float, labels: Optional[Dict] = None) -> None:
        """Record one timing sample in seconds."""
        key = self._make_key(name, labels)
        with self._lock:
            self._histograms.setdefault(key, []).append(value)

    def _make_key(self, name: str, labels: Optional[Dict] = None) -> str:
        full_name = f"{self.name_prefix}{name}"
        if labels:
            label_str = ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))
            return f"{full_name}{{{label_str}}}"
        return full_name

    def get_counter(self, name: str, labels: Optional[Dict] = None) -> int:
        """Current value of a counter, 0 if never incremented."""
        key = self._make_key(name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    def get_histogram_stats(self, name: str, labels: Optional[Dict] = None) -> Dict:
        """Count, sum and mean of the recorded samples."""
        with self._lock:
            values = list(self._histograms.get(self._make_key(name, labels), ()))
        total = sum(values)
        return {
            "count": len(values),
            "sum": total,
            "avg": total / len(values) if values else 0,
        }

    def _base_labels(self) -> str:
        labels = {"service": self.labels.service, "env": self.labels.environment}
        labels.update(self.labels.extra)
        return ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))

    @staticmethod
    def _split(key: str):
        if "{" not in key:
            return key, ""
        name, rest = key.split("{", 1)
        return name, rest[:-1]

    def export_prometheus(self) -> str:
        """Render counters and timing summaries as Prometheus text."""
        lines = []
        base = self._base_labels()

        with self._lock:
            for key, value in self._counters.items():
                name, extra = self._split(key)
                labels = f"{base},{extra}" if extra else base
                lines.append(f"{name}_total{{{labels}}} {value}")

            # Histograms exported as count/sum summaries
            for key, values in self._histograms.items():
                name, extra = self._split(key)
                labels = f"{base},{extra}" if extra else base
                lines.append(f"{name}_count{{{labels}}} {len(values)}")
                lines.append(f"{name}_sum{{{labels}}} {sum(values)}")

        return "\n".join(lines)


class Timer:
    """Records the duration of a `with` block as one sample."""

    def __init__(self, metrics: SimpleMetrics, name: str, labels: Optional[Dict] = None):
        self.metrics = metrics
        self.name = name
        self.labels = labels
        self._start: Optional[float] = None

    def __enter__(self):
        self._start = perf_counter()
        return self

    def __exit__(self, *args):
        if self._start is not None:
            self.metrics.observe(self.name, perf_counter() - self._start, self.labels)


class MetricNames:
    REQUESTS_TOTAL = "http_requests"
    REQUEST_REJECTED = "http_requests_rejected"
    AUTH_REJECTED = "auth_rejections"
    HANDLER_DURATION = "handler_duration_seconds"
    HANDLER_FAILURES = "handler_failures"
