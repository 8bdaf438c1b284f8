"""
Classification Latency Monitoring

This module tracks how long the engine needs to classify a gesture buffer.
Classification runs inside the IMU handler, so it has to finish well
before the next IMU frame arrives (20 ms at 50 Hz).
"""
import statistics
from collections import Counter, deque
from typing import Any, Dict, Optional

from ..config import LATENCY_HISTORY_SIZE, TARGET_LATENCY_MS


class LatencyTracker:
    """
    Tracks classification latency and results.

    Attributes:
        target_latency_ms: Target maximum latency in milliseconds
        history_size: Number of recent classifications to keep
    """

    def __init__(self, history_size: int = LATENCY_HISTORY_SIZE,
                 target_ms: float = TARGET_LATENCY_MS):
        self.target_latency_ms = target_ms
        self.history_size = history_size

        # deques for fixed-size history
        self._latency_history = deque(maxlen=history_size)
        self._points_history = deque(maxlen=history_size)

        self._label_counts: Counter = Counter()
        self._exceeded_count = 0
        self._total_count = 0

    def record(self, latency_ms: float, num_points: int, label: str) -> Dict[str, Any]:
        """
        Record one classification.

        Args:
            latency_ms: Time spent in snapshot and classification
            num_points: Number of classified samples
            label: Resulting gesture label

        Returns:
            Dictionary describing the recorded classification
        """
        self._latency_history.append(latency_ms)
        self._points_history.append(num_points)
        self._label_counts[label] += 1

        self._total_count += 1
        if latency_ms > self.target_latency_ms:
            self._exceeded_count += 1

        return {
            'latency_ms': round(latency_ms, 3),
            'num_points': num_points,
            'gesture': label,
            'within_target': latency_ms <= self.target_latency_ms
        }

    def get_current_stats(self) -> Dict[str, Any]:
        """
        Get current latency statistics.

        Returns:
            Dictionary with mean, median, max, and compliance metrics
        """
        if not self._latency_history:
            return {
                'mean_ms': 0.0,
                'median_ms': 0.0,
                'max_ms': 0.0,
                'mean_points': 0.0,
                'target_ms': self.target_latency_ms,
                'compliance_rate': 1.0,
                'sample_count': 0
            }

        latencies = list(self._latency_history)

        return {
            'mean_ms': round(statistics.mean(latencies), 3),
            'median_ms': round(statistics.median(latencies), 3),
            'max_ms': round(max(latencies), 3),
            'mean_points': round(statistics.mean(self._points_history), 1),
            'target_ms': self.target_latency_ms,
            'compliance_rate': round(1 - (self._exceeded_count / max(1, self._total_count)), 4),
            'sample_count': len(latencies)
        }

    def get_label_counts(self) -> Dict[str, int]:
        return dict(self._label_counts)

    def is_within_target(self) -> bool:
        """Check if the latest classification was within target latency."""
        if not self._latency_history:
            return True
        return self._latency_history[-1] <= self.target_latency_ms

    def reset(self) -> None:
        """Reset all tracking data."""
        self._latency_history.clear()
        self._points_history.clear()
        self._label_counts.clear()
        self._exceeded_count = 0
        self._total_count = 0


# Global tracker instance
_global_tracker: Optional[LatencyTracker] = None


def get_latency_tracker() -> LatencyTracker:
    """
    Get or create the global latency tracker.

    Returns:
        LatencyTracker instance (singleton pattern)
    """
    global _global_tracker
    if _global_tracker is None:
        _global_tracker = LatencyTracker()
    return _global_tracker
