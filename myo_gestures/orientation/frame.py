"""
Reference Frame Tracking

The armband reports absolute orientations. Gestures are recognized relative
to the orientation the arm had when the user started the unlock pose, so
the inverse of that orientation is kept and applied to every later frame.
"""
import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..config import ANGLE_CLIP
from .matrix import ZERO_MATRIX, clip, inverse_matrix, multiply_matrix, unit_quaternion_to_matrix

logger = logging.getLogger(__name__)


@dataclass
class LocalOrientation:
    """
    Orientation of the arm in the reference frame.

    Attributes:
        matrix: Current rotation times the inverse reference rotation
        roll: Rotation about the forearm axis in radians
    """
    matrix: np.ndarray
    roll: float

    @property
    def pointing_x(self) -> float:
        return float(self.matrix[2, 0])

    @property
    def pointing_y(self) -> float:
        return float(self.matrix[2, 1])


class OrientationFrame:
    """
    Maintains the reference orientation and maps frames into it.

    Attributes:
        inverse_init: Inverse of the reference rotation matrix
        refresh_init: Whether the next frame becomes the new reference
    """

    def __init__(self):
        self.inverse_init = ZERO_MATRIX.copy()
        self.refresh_init = True

    def request_refresh(self) -> None:
        """Use the next frame as the new reference orientation."""
        self.refresh_init = True

    def update(self, quaternion: Sequence[int]) -> LocalOrientation:
        """
        Express a raw orientation in the reference frame.

        Args:
            quaternion: Raw (x, y, z, w) int16 quaternion

        Returns:
            LocalOrientation with the local matrix and roll angle
        """
        matrix = unit_quaternion_to_matrix(quaternion)

        if self.refresh_init:
            self.inverse_init = inverse_matrix(matrix)
            self.refresh_init = False
            logger.debug("Captured new reference orientation")

        local = multiply_matrix(matrix, self.inverse_init)
        roll = math.asin(clip(float(local[1, 0]), ANGLE_CLIP))
        return LocalOrientation(matrix=local, roll=roll)
