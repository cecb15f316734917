"""
Metrics Collection - Monitoring Layer

Prometheus-compatible in-process metrics:
- Counters (monotonically increasing)
- Histograms (distribution of values)

Exposed at GET /metrics for Prometheus scraping.

@.architecture
Incoming: api/endpoints/files.py, api/endpoints/health.py (/metrics) --- {str metric_name, float value, label values}
Processing: inc(), observe(), collect(), export_prometheus() --- {3 jobs: metric_creation, recording, export}
Outgoing: api/endpoints/health.py (/metrics), api/endpoints/files.py --- {Counter/Histogram instances, str Prometheus text format}
"""

import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

LabelKey = Tuple[str, ...]


class _LabeledMetric:
    """Shared label handling: label values are stored in declaration order."""

    metric_type = "untyped"

    def __init__(self, name: str, help_text: str, labels: Optional[List[str]] = None):
        self.name = name
        self.help_text = help_text
        self.label_names = labels or []
        self._lock = threading.Lock()

    def _key(self, labels: Dict[str, str]) -> LabelKey:
        if set(labels) != set(self.label_names):
            raise ValueError(f"Expected labels {self.label_names}, got {list(labels)}")
        return tuple(str(labels[name]) for name in self.label_names)

    def _labels(self, key: LabelKey) -> Dict[str, str]:
        return dict(zip(self.label_names, key))


class Counter(_LabeledMetric):
    """
    Counter metric - monotonically increasing value.

    Use for: operation counts, error counts.
    """

    metric_type = "counter"

    def __init__(self, name: str, help_text: str, labels: Optional[List[str]] = None):
        super().__init__(name, help_text, labels)
        self._values: Dict[LabelKey, float] = defaultdict(float)

    def inc(self, value: float = 1.0, **labels: str) -> None:
        if value < 0:
            raise ValueError("Counter can only be incremented by non-negative values")
        key = self._key(labels)
        with self._lock:
            self._values[key] += value

    def get(self, **labels: str) -> float:
        key = self._key(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def collect(self) -> List[Tuple[Dict[str, str], float]]:
        with self._lock:
            return [(self._labels(key), value) for key, value in self._values.items()]


class Histogram(_LabeledMetric):
    """
    Histogram metric - distribution of values into cumulative buckets.

    Use for: upload sizes, durations.
    """

    metric_type = "histogram"

    DEFAULT_BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]

    def __init__(
        self,
        name: str,
        help_text: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[List[float]] = None
    ):
        super().__init__(name, help_text, labels)
        self.buckets = sorted(buckets or self.DEFAULT_BUCKETS)
        # One slot per bucket plus +Inf
        self._bucket_counts: Dict[LabelKey, List[int]] = defaultdict(
            lambda: [0] * (len(self.buckets) + 1)
        )
        self._sum: Dict[LabelKey, float] = defaultdict(float)
        self._count: Dict[LabelKey, int] = defaultdict(int)

    def observe(self, value: float, **labels: str) -> None:
        key = self._key(labels)
        with self._lock:
            self._sum[key] += value
            self._count[key] += 1
            bucket_counts = self._bucket_counts[key]
            for i, bound in enumerate(self.buckets):
                if value <= bound:
                    bucket_counts[i] += 1
            bucket_counts[-1] += 1

    def _stats(self, key: LabelKey) -> Dict[str, Any]:
        # Caller holds the lock
        count = self._count.get(key, 0)
        total = self._sum.get(key, 0.0)
        bucket_counts = self._bucket_counts.get(key, [0] * (len(self.buckets) + 1))
        return {
            'count': count,
            'sum': total,
            'average': total / count if count else 0.0,
            'buckets': dict(zip([*self.buckets, float('inf')], bucket_counts)),
        }

    def get_stats(self, **labels: str) -> Dict[str, Any]:
        key = self._key(labels)
        with self._lock:
            return self._stats(key)

    def collect(self) -> List[Tuple[Dict[str, str], Dict[str, Any]]]:
        with self._lock:
            return [(self._labels(key), self._stats(key)) for key in list(self._count)]


class MetricsRegistry:
    """Get-or-create registry for all metrics, with Prometheus export."""

    def __init__(self):
        self._lock = threading.Lock()
        self._metrics: Dict[str, _LabeledMetric] = {}

    def _get_or_create(self, cls, name: str, *args):
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = self._metrics[name] = cls(name, *args)
            elif not isinstance(metric, cls):
                raise ValueError(f"Metric {name} already registered as {metric.metric_type}")
            return metric

    def counter(self, name: str, help_text: str, labels: Optional[List[str]] = None) -> Counter:
        return self._get_or_create(Counter, name, help_text, labels)

    def histogram(
        self,
        name: str,
        help_text: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[List[float]] = None
    ) -> Histogram:
        return self._get_or_create(Histogram, name, help_text, labels, buckets)

    def export_prometheus(self) -> str:
        """
        Export metrics in Prometheus text format.

        Returns:
            Prometheus-formatted metrics string
        """
        lines = []
        with self._lock:
            metrics = list(self._metrics.values())

        for metric in metrics:
            lines.append(f"# HELP {metric.name} {metric.help_text}")
            lines.append(f"# TYPE {metric.name} {metric.metric_type}")

            if isinstance(metric, Counter):
                for labels, value in metric.collect():
                    lines.append(f"{metric.name}{_format_labels(labels)} {value}")
            elif isinstance(metric, Histogram):
                for labels, stats in metric.collect():
                    for bound, count in stats['buckets'].items():
                        le = "+Inf" if bound == float('inf') else str(bound)
                        lines.append(f"{metric.name}_bucket{_format_labels(dict(labels, le=le))} {count}")
                    lines.append(f"{metric.name}_sum{_format_labels(labels)} {stats['sum']}")
                    lines.append(f"{metric.name}_count{_format_labels(labels)} {stats['count']}")

        return '\n'.join(lines) + '\n'


def _format_labels(labels: Dict[str, str]) -> str:
    if not labels:
        return ""
    pairs = [f'{key}="{value}"' for key, value in labels.items()]
    return "{" + ",".join(pairs) + "}"


# Global registry instance
_global_registry: Optional[MetricsRegistry] = None


def get_registry() -> MetricsRegistry:
    global _global_registry
    if _global_registry is None:
        _global_registry = MetricsRegistry()
    return _global_registry


def counter(name: str, help_text: str, labels: Optional[List[str]] = None) -> Counter:
    """Get or create counter from global registry."""
    return get_registry().counter(name, help_text, labels)


def histogram(
    name: str,
    help_text: str,
    labels: Optional[List[str]] = None,
    buckets: Optional[List[float]] = None
) -> Histogram:
    """Get or create histogram from global registry."""
    return get_registry().histogram(name, help_text, labels, buckets)
