"""
In-memory metrics for pipeline runs: duration and error rate.

Simulated faults are never recorded here.
"""

import logging
import threading
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class PipelineMetrics:
    """In-memory storage for pipeline metrics."""

    def __init__(self, max_entries: int = 1000, slow_threshold_ms: float = 1000.0):
        """
        Initialize metrics storage.

        Args:
            max_entries: Maximum number of runs to keep
            slow_threshold_ms: Duration above which a run is logged as slow
        """
        self.runs: deque = deque(maxlen=max_entries)
        self.error_counts: Dict[str, int] = defaultdict(int)
        self.slow_threshold_ms = slow_threshold_ms
        self._lock = threading.Lock()

    def record(self, duration_ms: float, is_error: bool, message_type: Optional[str] = None) -> None:
        """
        Record one pipeline run.

        Args:
            duration_ms: Run duration in milliseconds
            is_error: Whether the run ended with a parse or validation error
            message_type: HL7 message type, if known
        """
        key = message_type or "UNKNOWN"
        with self._lock:
            self.runs.append({
                "message_type": key,
                "duration_ms": duration_ms,
                "is_error": is_error,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            })
            if is_error:
                self.error_counts[key] += 1

        if duration_ms >= self.slow_threshold_ms:
            logger.warning(
                "Slow pipeline run: %s took %.1fms (threshold: %.1fms)",
                key,
                duration_ms,
                self.slow_threshold_ms,
            )

    def get_stats(self) -> Dict:
        """
        Get pipeline statistics.

        Returns:
            Dictionary with run count, average duration and error rate
        """
        with self._lock:
            runs = list(self.runs)
            error_breakdown = dict(self.error_counts)

        if not runs:
            return {
                "total_runs": 0,
                "average_duration_ms": 0.0,
                "max_duration_ms": 0.0,
                "error_rate": 0.0,
                "error_breakdown": error_breakdown,
            }

        durations = [r["duration_ms"] for r in runs]
        errors = sum(1 for r in runs if r["is_error"])
        return {
            "total_runs": len(runs),
            "average_duration_ms": sum(durations) / len(durations),
            "max_duration_ms": max(durations),
            "error_rate": errors / len(runs),
            "error_breakdown": error_breakdown,
        }

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self.runs.clear()
            self.error_counts.clear()


# Global metrics instance
_metrics = PipelineMetrics()


def get_metrics() -> PipelineMetrics:
    return _metrics
