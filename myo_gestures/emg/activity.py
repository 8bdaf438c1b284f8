"""
EMG Activity Tracking and Sync

Muscle activity is only used to start and end the recording of a gesture.
This module smooths the raw EMG stream and calibrates a reference amplitude
once per session:

1. The user performs a strong pose during the first EMG_SYNC_TIME_MS
   after the first EMG packet arrives.
2. The largest smoothed amplitude in that window becomes the reference.
3. Afterwards the ratio of the current amplitude to the reference tells
   whether the arm is relaxed or holding the lock/unlock pose.
"""
import logging
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from ..clock import Clock, monotonic_ms
from ..config import (
    AFTER_SYNC_WAIT_MS,
    EMG_CACHE_SIZE,
    EMG_SYNC_TIME_MS,
    LOCK_TOGGLE_THRESHOLD,
    NUM_EMG_CHANNELS,
)

logger = logging.getLogger(__name__)


class EMGActivityTracker:
    """
    Sliding sum of absolute EMG values with one-shot sync.

    Attributes:
        emg_sum: Sum of |value| over the whole cache
        emg_sync: Largest emg_sum seen during the sync window
        time_connected: Timestamp (ms) of the first EMG sample, None before
        is_synced: Whether the sync window has ended (never goes back to False)
    """

    def __init__(self, clock: Clock = monotonic_ms,
                 on_synced: Optional[Callable[[], None]] = None,
                 cache_size: int = EMG_CACHE_SIZE,
                 num_channels: int = NUM_EMG_CHANNELS):
        self.clock = clock
        self.on_synced = on_synced
        self.num_channels = num_channels

        # int16 so that abs(-128) does not overflow
        self._cache = np.zeros((cache_size, num_channels), dtype=np.int16)

        self.emg_sum = 0
        self.emg_sync = 0
        self.time_connected: Optional[int] = None
        self.is_synced = False

    @property
    def cache(self) -> np.ndarray:
        return self._cache.copy()

    def update(self, sample: Sequence[int]) -> None:
        """
        Add one EMG sample and advance the sync phase.

        Args:
            sample: One signed 8-bit value per channel

        Raises:
            ValueError: If the sample does not have one signed 8-bit value
                per channel
        """
        sample = np.asarray(sample, dtype=np.int64)
        if sample.shape != (self.num_channels,):
            raise ValueError(
                f"Expected {self.num_channels} EMG channels, got shape {sample.shape}"
            )
        if ((sample < -128) | (sample > 127)).any():
            raise ValueError(f"EMG values must be signed 8-bit, got {sample.tolist()}")
        sample = sample.astype(np.int16)

        # newest sample in row 0, oldest row dropped
        self._cache[1:] = self._cache[:-1]
        self._cache[0] = sample
        self.emg_sum = int(np.abs(self._cache).sum())

        now = self.clock()

        if self.time_connected is None:
            self.time_connected = now
            logger.info("Syncing. Perform a strong gesture to use for EMG evaluation.")

        if now < self.time_connected + EMG_SYNC_TIME_MS:
            if self.emg_sum > self.emg_sync:
                self.emg_sync = self.emg_sum
        elif not self.is_synced:
            self.is_synced = True
            logger.info("EMG sync done (reference amplitude %d)", self.emg_sync)
            if self.on_synced is not None:
                self.on_synced()

    def activity_ratio(self) -> float:
        """Current amplitude relative to the sync reference."""
        if self.emg_sync == 0:
            return float('inf')
        return self.emg_sum / self.emg_sync

    def is_relaxed(self) -> bool:
        return self.activity_ratio() < LOCK_TOGGLE_THRESHOLD

    def lock_armed(self) -> bool:
        """Whether the grace period after the sync window has passed."""
        if not self.is_synced or self.time_connected is None:
            return False
        return self.clock() > self.time_connected + EMG_SYNC_TIME_MS + AFTER_SYNC_WAIT_MS

    def get_sync_progress(self) -> Dict[str, Any]:
        """
        Get the current sync progress.

        Returns:
            Dictionary with progress information
        """
        if self.time_connected is None:
            elapsed = 0
        else:
            elapsed = max(0, self.clock() - self.time_connected)

        return {
            'is_synced': self.is_synced,
            'time_connected': self.time_connected,
            'elapsed_ms': elapsed,
            'sync_time_ms': EMG_SYNC_TIME_MS,
            'progress_percent': min(100, int(elapsed / EMG_SYNC_TIME_MS * 100)),
            'emg_sum': self.emg_sum,
            'emg_sync': self.emg_sync,
        }
