"""
Gesture Labels
"""
from enum import Enum


class GestureType(Enum):
    """
    The fixed gesture alphabet.

    Values are the label strings used in logs and JSON output.
    """
    UP = "UP"
    DOWN = "DOWN"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    CIRCLE_CW = "CIRCLE_CW"
    CIRCLE_CCW = "CIRCLE_CCW"
    ROTATE_CW = "ROTATE_CW"
    ROTATE_CCW = "ROTATE_CCW"
    UNKNOWN = "UNKNOWN"


def gesture_to_string(gesture: GestureType) -> str:
    """Return the label string of a gesture."""
    return gesture.value


def gesture_from_string(label: str) -> GestureType:
    """
    Parse a gesture label (case-insensitive).

    Raises:
        ValueError: If the label is not part of the alphabet
    """
    try:
        return GestureType(label.strip().upper())
    except ValueError:
        raise ValueError(
            f"Unknown gesture '{label}'. Expected one of {[g.value for g in GestureType]}"
        ) from None
