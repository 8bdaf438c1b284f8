"""
Actions Package - Gesture to Action Mapping
"""
from .action_mapper import ActionMapper, ActionType

__all__ = ['ActionMapper', 'ActionType']
