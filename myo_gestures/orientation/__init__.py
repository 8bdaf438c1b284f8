"""
Orientation Package - Quaternion math and the user-anchored reference frame
"""
from .matrix import (
    inverse_matrix,
    multiply_matrix,
    multiply_matrix_vector,
    unit_quaternion_to_matrix,
)
from .frame import LocalOrientation, OrientationFrame

__all__ = [
    'inverse_matrix',
    'multiply_matrix',
    'multiply_matrix_vector',
    'unit_quaternion_to_matrix',
    'LocalOrientation',
    'OrientationFrame',
]
