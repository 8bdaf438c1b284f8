import numpy as np
import pytest

from myo_gestures.orientation.frame import LocalOrientation, OrientationFrame
from myo_gestures.orientation.matrix import (
    inverse_matrix,
    multiply_matrix,
    multiply_matrix_vector,
    scale_quaternion,
    unit_quaternion_to_matrix,
)
from myo_gestures.sources.simulated_source import encode_quaternion, local_quaternion

# raw quaternions that are exactly unit length after scaling
EXACT_QUATERNIONS = [
    (0, 0, 0, 16384),
    (8192, 8192, 8192, 8192),
    (8192, -8192, 8192, 8192),
    (-8192, -8192, 8192, -8192),
]

ROUNDED_QUATERNIONS = [
    encode_quaternion(local_quaternion(0.3, -0.2, 0.5)),
    encode_quaternion(local_quaternion(-1.1, 0.4, -2.0)),
    encode_quaternion(local_quaternion(0.05, 0.9, 3.0)),
]


@pytest.mark.parametrize('quat', EXACT_QUATERNIONS + ROUNDED_QUATERNIONS)
def test_matrix_times_inverse_is_identity(quat):
    matrix = unit_quaternion_to_matrix(quat)
    product = multiply_matrix(matrix, inverse_matrix(matrix))
    assert np.allclose(product, np.eye(3), atol=1e-5)


@pytest.mark.parametrize('quat', EXACT_QUATERNIONS)
def test_rotation_matrix_is_orthonormal(quat):
    matrix = unit_quaternion_to_matrix(quat)
    assert np.allclose(np.linalg.norm(matrix, axis=1), 1.0, atol=1e-5)
    for i in range(3):
        for j in range(i + 1, 3):
            assert abs(np.dot(matrix[i], matrix[j])) < 1e-5


def test_identity_quaternion():
    assert np.allclose(unit_quaternion_to_matrix((0, 0, 0, 16384)), np.eye(3), atol=1e-5)


def test_quaternion_components_are_clipped():
    scaled = scale_quaternion((32767, -32768, 0, 16384))
    assert np.allclose(scaled, [0.999999, -0.999999, 0.0, 0.999999])


def test_quaternion_needs_four_components():
    with pytest.raises(ValueError):
        unit_quaternion_to_matrix((0, 0, 16384))


def test_multiply_matrix_vector():
    matrix = np.array([[0, -1, 0], [1, 0, 0], [0, 0, 1]], dtype=float)
    assert np.allclose(multiply_matrix_vector(matrix, [1, 0, 0]), [0, 1, 0])


def test_inverse_of_general_matrix():
    matrix = np.array([[2.0, 0.0, 1.0], [1.0, 3.0, 0.0], [0.0, 1.0, 4.0]])
    assert np.allclose(inverse_matrix(matrix), np.linalg.inv(matrix))


def test_frame_starts_with_refresh_pending():
    frame = OrientationFrame()
    assert frame.refresh_init
    assert np.all(frame.inverse_init == 0)


def test_frame_reference_is_kept_until_refresh():
    frame = OrientationFrame()
    base = encode_quaternion(local_quaternion(0.4, 0.1, -0.3))

    local = frame.update(base)
    assert not frame.refresh_init
    assert np.allclose(local.matrix, np.eye(3), atol=1e-5)
    reference = frame.inverse_init.copy()

    moved = frame.update(encode_quaternion(local_quaternion(0.7, 0.1, -0.3)))
    assert np.array_equal(frame.inverse_init, reference)
    assert not np.allclose(moved.matrix, np.eye(3), atol=1e-3)

    frame.request_refresh()
    again = frame.update(encode_quaternion(local_quaternion(0.7, 0.1, -0.3)))
    assert not np.array_equal(frame.inverse_init, reference)
    assert np.allclose(again.matrix, np.eye(3), atol=1e-5)


def test_frame_reports_roll_and_pointing():
    frame = OrientationFrame()
    frame.update((0, 0, 0, 16384))

    rolled = frame.update(encode_quaternion(local_quaternion(0.0, 0.0, -0.5)))
    assert rolled.roll == pytest.approx(-0.5, abs=1e-3)

    pointed = frame.update(encode_quaternion(local_quaternion(0.2, -0.1, 0.0)))
    # gesture x is read from L[2][1], gesture y from L[2][0]
    assert np.arcsin(pointed.pointing_y) == pytest.approx(0.2, abs=1e-3)
    assert np.arcsin(pointed.pointing_x) == pytest.approx(-0.1, abs=1e-3)


def test_pointing_components_come_from_last_row():
    matrix = np.arange(9, dtype=float).reshape(3, 3) / 10
    local = LocalOrientation(matrix=matrix, roll=0.0)
    assert local.pointing_x == matrix[2, 0]
    assert local.pointing_y == matrix[2, 1]
