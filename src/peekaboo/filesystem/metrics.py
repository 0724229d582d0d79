"""
In-process operation metrics reported by the health check.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional

# Number of most recent operation records retained.
RECENT_OPERATIONS = 100


@dataclass
class OperationMetrics:
    """Timing and outcome of one operation."""

    operation: str
    start_time: float = field(default_factory=time.monotonic)
    end_time: Optional[float] = None
    duration_ms: Optional[float] = None
    success: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "duration_ms": self.duration_ms,
            "success": self.success,
            "error": self.error,
        }


class MetricsCollector:
    """
    Collects per-operation timings and success counters.

    Only the most recent operations are kept as records. The summary is
    computed from running totals.
    """

    def __init__(self):
        self._operations: deque[OperationMetrics] = deque(maxlen=RECENT_OPERATIONS)
        self._counters: dict[str, int] = {}
        self._total = 0
        self._completed = 0
        self._successful = 0
        self._total_duration_ms = 0.0

    def start_operation(self, operation: str) -> OperationMetrics:
        metric = OperationMetrics(operation=operation)
        self._operations.append(metric)
        self._total += 1
        return metric

    def end_operation(
        self, metric: OperationMetrics, success: bool, error: Optional[str] = None
    ) -> None:
        metric.end_time = time.monotonic()
        metric.duration_ms = (metric.end_time - metric.start_time) * 1000
        metric.success = success
        metric.error = error

        self._completed += 1
        self._total_duration_ms += metric.duration_ms
        if success:
            self._successful += 1

        outcome = "success" if success else "failure"
        self.increment_counter(f"{metric.operation}.{outcome}")

    def increment_counter(self, name: str) -> None:
        self._counters[name] = self._counters.get(name, 0) + 1

    def get_metrics(self) -> dict[str, Any]:
        """
        Get recent operations, counters and a summary.

        Returns:
            Dict with ``operations`` (last 100), ``counters`` and ``summary``
            (total operations, success rate in percent, average duration)
        """
        total = self._total
        return {
            "operations": [op.to_dict() for op in self._operations],
            "counters": dict(self._counters),
            "summary": {
                "total_operations": total,
                "success_rate": (self._successful / total) * 100 if total else 0.0,
                "average_duration_ms": (
                    self._total_duration_ms / self._completed if self._completed else 0.0
                ),
            },
        }

    def reset(self) -> None:
        self._operations.clear()
        self._counters.clear()
        self._total = 0
        self._completed = 0
        self._successful = 0
        self._total_duration_ms = 0.0
