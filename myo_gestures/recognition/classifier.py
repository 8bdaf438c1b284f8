"""
Geometric Gesture Classifier

Maps a recorded path of pointing angles to one of the gesture labels.
The tests run in a fixed order and the first one that matches wins:

1. Circle: the path keeps a roughly constant distance to its center,
   is large enough and nearly closed. The order in which the extrema are
   visited gives the direction.
2. Rotation: the arm stays close to the reference direction while the roll
   angle is large.
3. Straight movement: one axis dominates the movement and the path ends
   far enough from the start.

Anything else is UNKNOWN.

The "variances" used below are second moments around (0, 0), not around
the mean. The path starts at the reference direction, so the moments
measure how far the arm moved away from it; the thresholds are tuned for
exactly this quantity.
"""
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Sequence

import numpy as np

from ..config import (
    CIRCLE_MAX_DEVIATION,
    CIRCLE_MIN_DIAMETER,
    GESTURE_CIRCLE_SAMPLES,
    MAX_ENDS_DISTANCE,
    ROTATION_MAX_VARIANCE,
    ROTATION_MIN_ANGLE,
    STRAIGHT_MAX_RELATION,
    STRAIGHT_MIN_DISTANCE,
    Y_DEVIATION_CORRECTION,
)
from .gesture_types import GestureType

# Seeds of the extrema search
X_MIN_SEED = 1000.0
X_MAX_SEED = 0.0
Y_MAX_SEED = 0.0


@dataclass(frozen=True)
class ClassifierSettings:
    """Thresholds of the classifier. Defaults come from the config module."""
    circle_samples: int = GESTURE_CIRCLE_SAMPLES
    circle_min_diameter: float = CIRCLE_MIN_DIAMETER
    circle_max_deviation: float = CIRCLE_MAX_DEVIATION
    max_ends_distance: float = MAX_ENDS_DISTANCE
    rotation_max_variance: float = ROTATION_MAX_VARIANCE
    rotation_min_angle: float = ROTATION_MIN_ANGLE
    straight_max_relation: float = STRAIGHT_MAX_RELATION
    straight_min_distance: float = STRAIGHT_MIN_DISTANCE
    y_deviation_correction: float = Y_DEVIATION_CORRECTION


DEFAULT_SETTINGS = ClassifierSettings()


@dataclass
class CircleFit:
    """Metrics of the circle test."""
    average_radius: float
    circular_deviation: float
    ends_distance: float
    clockwise: bool
    center: Sequence[float]


@dataclass
class GestureAnalysis:
    """
    Result of classifying one gesture buffer.

    Attributes:
        gesture: The recognized gesture
        num_points: Number of samples that were classified
        roll: Roll angle used for the rotation test
        circle: Circle metrics, None if there were too few samples
        x_var / y_var: Second moments (y already corrected)
        relation: x_var / y_var
        end_distance: Distance of the last point from (0, 0)
    """
    gesture: GestureType
    num_points: int
    roll: float
    circle: Optional[CircleFit] = None
    x_total: Optional[float] = None
    y_total: Optional[float] = None
    x_var: Optional[float] = None
    y_var: Optional[float] = None
    relation: Optional[float] = None
    end_distance: Optional[float] = None
    decided_by: str = field(default='none')

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['gesture'] = self.gesture.value
        if self.circle is not None:
            result['circle']['center'] = [float(c) for c in self.circle.center]
        for key, value in result.items():
            if isinstance(value, float) and not math.isfinite(value):
                # JSON has no inf / nan
                result[key] = None
        return result


def _as_points(points) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64)
    if points.size == 0:
        return points.reshape(0, 2)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(f"Expected points of shape (N, 2), got {points.shape}")
    return points


def _extremum_index(values: np.ndarray, seed: float, largest: bool) -> int:
    """
    Index of the first strict extremum that beats the seed.

    Returns 0 if no value beats the seed.
    """
    if largest:
        index = int(np.argmax(values))
        return index if values[index] > seed else 0
    index = int(np.argmin(values))
    return index if values[index] < seed else 0


def _is_clockwise(x_min_index: int, y_max_index: int, x_max_index: int) -> bool:
    """The extrema are visited in the cyclic order x_min -> y_max -> x_max."""
    return ((x_min_index < y_max_index < x_max_index)
            or (y_max_index < x_max_index < x_min_index)
            or (x_max_index < x_min_index < y_max_index))


def fit_circle(points: np.ndarray, samples: int = GESTURE_CIRCLE_SAMPLES) -> Optional[CircleFit]:
    """
    Estimate how circular a path is.

    Args:
        points: Path of shape (N, 2)
        samples: Number of evenly spaced sample points

    Returns:
        CircleFit, or None if the path has fewer than `samples` points
    """
    num_points = len(points)
    index_offset = num_points // samples
    if index_offset < 1:
        return None

    sample_points = points[0:samples * index_offset:index_offset]

    # greatest distance from every sample point to any point of the path
    differences = sample_points[:, np.newaxis, :] - points[np.newaxis, :, :]
    diameters = np.sqrt(np.sum(differences ** 2, axis=2)).max(axis=1)

    center = sample_points.mean(axis=0)
    average_radius = diameters.sum() / (samples * 2.0)

    radii = np.sqrt(np.sum((points - center) ** 2, axis=1))
    circular_deviation = math.sqrt(np.sum((radii - average_radius) ** 2) / num_points)

    ends_distance = float(np.linalg.norm(points[0] - points[-1]))

    x_max_index = _extremum_index(points[:, 0], X_MAX_SEED, largest=True)
    x_min_index = _extremum_index(points[:, 0], X_MIN_SEED, largest=False)
    y_max_index = _extremum_index(points[:, 1], Y_MAX_SEED, largest=True)

    return CircleFit(
        average_radius=float(average_radius),
        circular_deviation=circular_deviation,
        ends_distance=ends_distance,
        clockwise=_is_clockwise(x_min_index, y_max_index, x_max_index),
        center=center.tolist(),
    )


def analyze(points, roll: float, settings: ClassifierSettings = DEFAULT_SETTINGS) -> GestureAnalysis:
    """
    Classify a gesture path and keep the intermediate metrics.

    Args:
        points: Path of pointing angles, shape (N, 2)
        roll: Roll angle at the end of the gesture in radians
        settings: Classifier thresholds

    Returns:
        GestureAnalysis with the recognized gesture
    """
    points = _as_points(points)
    num_points = len(points)
    analysis = GestureAnalysis(gesture=GestureType.UNKNOWN, num_points=num_points, roll=float(roll))

    if num_points == 0:
        return analysis

    # circular movement
    circle = fit_circle(points, settings.circle_samples)
    analysis.circle = circle
    if circle is not None:
        if (circle.average_radius * 2.0 >= settings.circle_min_diameter
                and circle.circular_deviation <= settings.circle_max_deviation
                and circle.ends_distance <= settings.max_ends_distance):
            analysis.gesture = GestureType.CIRCLE_CW if circle.clockwise else GestureType.CIRCLE_CCW
            analysis.decided_by = 'circle'
            return analysis

    # statistics
    x = points[:, 0]
    y = points[:, 1]
    x_total = np.sum(x)
    y_total = np.sum(y)
    x_var = np.sum(x ** 2) / num_points
    y_var = np.sum(y ** 2) / num_points * settings.y_deviation_correction
    with np.errstate(divide='ignore', invalid='ignore'):
        relation = x_var / y_var

    analysis.x_total = float(x_total)
    analysis.y_total = float(y_total)
    analysis.x_var = float(x_var)
    analysis.y_var = float(y_var)
    analysis.relation = float(relation)

    # wrist rotation
    if (x_var <= settings.rotation_max_variance
            and y_var <= settings.rotation_max_variance
            and roll ** 2 > settings.rotation_min_angle ** 2):
        analysis.gesture = GestureType.ROTATE_CW if roll < 0 else GestureType.ROTATE_CCW
        analysis.decided_by = 'rotation'
        return analysis

    # straight movement
    distance = float(np.hypot(points[-1, 0], points[-1, 1]))
    analysis.end_distance = distance

    if (x_var > y_var
            and relation > 1.0 / settings.straight_max_relation
            and distance >= settings.straight_min_distance):
        analysis.gesture = GestureType.RIGHT if x_total > 0 else GestureType.LEFT
        analysis.decided_by = 'horizontal'
        return analysis

    if (y_var > x_var
            and relation < settings.straight_max_relation
            and distance >= settings.straight_min_distance):
        analysis.gesture = GestureType.UP if y_total > 0 else GestureType.DOWN
        analysis.decided_by = 'vertical'
        return analysis

    return analysis


def classify(points, roll: float, settings: ClassifierSettings = DEFAULT_SETTINGS) -> GestureType:
    """Return the gesture recognized in a path of pointing angles."""
    return analyze(points, roll, settings).gesture
