"""
3x3 Matrix Utilities

Small linear algebra kernel used to express the armband orientation in a
user-anchored reference frame. All matrices are numpy arrays of shape (3, 3)
with dtype float64.
"""
from typing import Sequence

import numpy as np

from ..config import MYOHW_ORIENTATION_SCALE, QUATERNION_CLIP

ZERO_MATRIX = np.zeros((3, 3))


def clip(value: float, bound: float) -> float:
    """Clip value to the symmetric interval [-bound, bound]."""
    return max(-bound, min(value, bound))


def multiply_matrix(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Return the matrix product a . b."""
    return np.asarray(a, dtype=np.float64) @ np.asarray(b, dtype=np.float64)


def multiply_matrix_vector(a: np.ndarray, v: Sequence[float]) -> np.ndarray:
    """Return the product of a 3x3 matrix and a 3-vector."""
    return np.asarray(a, dtype=np.float64) @ np.asarray(v, dtype=np.float64)


def inverse_matrix(m: np.ndarray) -> np.ndarray:
    """
    Invert a 3x3 matrix with the closed-form cofactor formula.

    Args:
        m: Matrix of shape (3, 3). Must not be singular.

    Returns:
        The inverse matrix.

    Rotation matrices derived from unit quaternions are never singular, so
    no check is made. A singular input yields inf/nan entries.
    """
    m = np.asarray(m, dtype=np.float64)

    determinant = (m[0, 0] * (m[1, 1] * m[2, 2] - m[2, 1] * m[1, 2])
                   - m[0, 1] * (m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
                   + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0]))

    with np.errstate(divide='ignore', invalid='ignore'):
        invdet = np.float64(1.0) / determinant

    out = np.empty((3, 3))
    out[0, 0] = (m[1, 1] * m[2, 2] - m[2, 1] * m[1, 2]) * invdet
    out[0, 1] = (m[0, 2] * m[2, 1] - m[0, 1] * m[2, 2]) * invdet
    out[0, 2] = (m[0, 1] * m[1, 2] - m[0, 2] * m[1, 1]) * invdet
    out[1, 0] = (m[1, 2] * m[2, 0] - m[1, 0] * m[2, 2]) * invdet
    out[1, 1] = (m[0, 0] * m[2, 2] - m[0, 2] * m[2, 0]) * invdet
    out[1, 2] = (m[1, 0] * m[0, 2] - m[0, 0] * m[1, 2]) * invdet
    out[2, 0] = (m[1, 0] * m[2, 1] - m[2, 0] * m[1, 1]) * invdet
    out[2, 1] = (m[2, 0] * m[0, 1] - m[0, 0] * m[2, 1]) * invdet
    out[2, 2] = (m[0, 0] * m[1, 1] - m[1, 0] * m[0, 1]) * invdet
    return out


def scale_quaternion(quat: Sequence[int]) -> np.ndarray:
    """
    Convert a raw armband quaternion to floats.

    Args:
        quat: Four signed 16-bit integers in (x, y, z, w) order.

    Returns:
        Array (x, y, z, w), each component divided by the orientation scale
        and clipped to +/- QUATERNION_CLIP.
    """
    if len(quat) != 4:
        raise ValueError(f"Expected 4 quaternion components, got {len(quat)}")
    scaled = np.asarray(quat, dtype=np.float64) / MYOHW_ORIENTATION_SCALE
    return np.clip(scaled, -QUATERNION_CLIP, QUATERNION_CLIP)


def unit_quaternion_to_matrix(quat: Sequence[int]) -> np.ndarray:
    """
    Convert a raw armband unit quaternion to a rotation matrix.

    Args:
        quat: Four signed 16-bit integers in (x, y, z, w) order.

    Returns:
        Rotation matrix of shape (3, 3).
    """
    x, y, z, w = scale_quaternion(quat)

    return np.array([
        [1 - 2 * y * y - 2 * z * z, 2 * x * y - 2 * w * z, 2 * x * z + 2 * w * y],
        [2 * x * y + 2 * w * z, 1 - 2 * x * x - 2 * z * z, 2 * y * z - 2 * w * x],
        [2 * x * z - 2 * w * y, 2 * y * z + 2 * w * x, 1 - 2 * x * x - 2 * y * y],
    ])
