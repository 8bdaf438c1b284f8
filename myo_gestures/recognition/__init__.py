"""
Recognition Package - Gesture buffer and geometric classifier
"""
from .gesture_types import GestureType, gesture_from_string, gesture_to_string
from .gesture_buffer import GestureBuffer
from .classifier import ClassifierSettings, GestureAnalysis, analyze, classify

__all__ = [
    'GestureType',
    'gesture_from_string',
    'gesture_to_string',
    'GestureBuffer',
    'ClassifierSettings',
    'GestureAnalysis',
    'analyze',
    'classify',
]
