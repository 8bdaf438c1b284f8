"""
Gesture-to-Action Abstraction Layer

This module maps recognized gestures to host actions, providing a clean
interface between the recognition engine and application logic.

The abstraction allows:
- Different applications to interpret gestures differently
- Easy customization of action mappings
- Showing the lock state next to the last action

ActionMapper.handle_gesture and ActionMapper.handle_lock_change have the
signatures of the engine callbacks, so a mapper can be passed straight to
GestureController.begin().
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..config import GESTURE_ACTION_MAP
from ..recognition.gesture_types import GestureType

logger = logging.getLogger(__name__)


class ActionType(Enum):
    """
    Enumeration of possible action types.

    These are generic media-remote actions that can be mapped to
    specific behaviors by the consuming application.
    """
    VOLUME_UP = "VOLUME_UP"
    VOLUME_DOWN = "VOLUME_DOWN"
    PREVIOUS = "PREVIOUS"
    NEXT = "NEXT"
    SEEK_FORWARD = "SEEK_FORWARD"
    SEEK_BACKWARD = "SEEK_BACKWARD"
    PLAY = "PLAY"
    PAUSE = "PAUSE"
    NONE = "NONE"


ActionListener = Callable[[GestureType, str], None]


class ActionMapper:
    """
    Maps gestures to host actions.

    Attributes:
        gesture_map: Dictionary mapping gesture labels to actions
        locked: Last lock state reported by the engine
        last_action: The most recently triggered action
        history: (gesture label, action) pairs in the order they fired
    """

    def __init__(self, custom_mapping: Optional[Dict[str, str]] = None):
        """
        Initialize the action mapper.

        Args:
            custom_mapping: Optional custom gesture-to-action mapping.
                           If None, uses default mapping from config.
        """
        self.gesture_map = GESTURE_ACTION_MAP.copy()
        if custom_mapping:
            for gesture, action in custom_mapping.items():
                self.set_mapping(gesture, action)

        self._action_listeners: List[ActionListener] = []

        self.locked = True
        self.last_action: Optional[str] = None
        self.last_gesture: Optional[GestureType] = None
        self.history: List[tuple] = []

    def get_action(self, gesture: GestureType) -> str:
        """
        Get the action for a gesture without triggering it.

        Returns:
            Action string, 'NONE' for unmapped gestures
        """
        return self.gesture_map.get(gesture.value, ActionType.NONE.value)

    def handle_gesture(self, gesture: GestureType) -> str:
        """
        Trigger the action of a recognized gesture.

        Args:
            gesture: The gesture reported by the engine

        Returns:
            The triggered action
        """
        action = self.get_action(gesture)

        self.last_gesture = gesture
        self.last_action = action
        self.history.append((gesture.value, action))

        if action != ActionType.NONE.value:
            self._notify_listeners(gesture, action)

        return action

    def handle_lock_change(self, locked: bool) -> None:
        self.locked = locked

    def set_mapping(self, gesture: str, action: str) -> None:
        """
        Set a custom mapping for a gesture.

        Raises:
            ValueError: If the gesture or action is unknown
        """
        gesture = GestureType(gesture.upper()).value
        action = ActionType(action.upper()).value
        self.gesture_map[gesture] = action

    def get_mapping(self) -> Dict[str, str]:
        return self.gesture_map.copy()

    def reset_to_defaults(self) -> None:
        """Reset to default mappings from config."""
        self.gesture_map = GESTURE_ACTION_MAP.copy()

    def add_listener(self, callback: ActionListener) -> None:
        """
        Add a listener for triggered actions.

        Args:
            callback: Function to call with (gesture, action)
        """
        self._action_listeners.append(callback)

    def remove_listener(self, callback: ActionListener) -> None:
        if callback in self._action_listeners:
            self._action_listeners.remove(callback)

    def _notify_listeners(self, gesture: GestureType, action: str) -> None:
        for listener in self._action_listeners:
            try:
                listener(gesture, action)
            except Exception:
                logger.exception("Error in action listener")

    def get_state(self) -> Dict[str, Any]:
        """
        Get the current state of the action mapper.

        Returns:
            Dictionary with current state information
        """
        return {
            'locked': self.locked,
            'last_gesture': self.last_gesture.value if self.last_gesture else None,
            'last_action': self.last_action,
            'history': [list(entry) for entry in self.history],
            'mapping': self.get_mapping()
        }
