"""
Bounded Gesture Buffer

Stores the pointing direction of the arm while the device is unlocked.
The buffer never grows: once full, further samples are dropped and the
lock state machine treats the fullness as a signal to discard the gesture.
"""
import math
from typing import Tuple

import numpy as np

from ..config import ANGLE_CLIP, GESTURE_CACHE_SIZE
from ..orientation.matrix import clip


class GestureBuffer:
    """
    Fixed-capacity buffer of interleaved (x, y) angles plus the latest roll.

    Attributes:
        capacity: Number of float slots (two per sample)
        offset: Write cursor in floats, always even
        roll_angle: Most recent roll angle passed to append()
    """

    def __init__(self, capacity: int = GESTURE_CACHE_SIZE):
        if capacity <= 0 or capacity % 2:
            raise ValueError(f"Gesture buffer capacity must be a positive even number, got {capacity}")
        self.capacity = capacity
        self._data = np.zeros(capacity)
        self.offset = 0
        self.roll_angle = 0.0

    def __len__(self) -> int:
        return self.offset // 2

    def reset(self) -> None:
        self.offset = 0
        self.roll_angle = 0.0

    def full(self) -> bool:
        return self.offset == self.capacity

    def append(self, x: float, y: float, roll_angle: float) -> None:
        """
        Store one pointing sample.

        The direction components are converted to angles with asin().
        The roll angle is always updated, even when the sample is dropped.
        """
        if self.offset < self.capacity:
            self._data[self.offset] = math.asin(clip(x, ANGLE_CLIP))
            self._data[self.offset + 1] = math.asin(clip(y, ANGLE_CLIP))
            self.offset += 2

        self.roll_angle = roll_angle

    def points(self) -> np.ndarray:
        """Return a copy of the stored samples with shape (N, 2)."""
        return self._data[:self.offset].reshape(-1, 2).copy()

    def snapshot(self) -> Tuple[np.ndarray, float]:
        """
        Consume the buffer.

        Returns:
            Tuple of the stored points (N, 2) and the current roll angle.
            The write cursor is reset; the roll angle is kept.
        """
        points = self.points()
        self.offset = 0
        return points, self.roll_angle
