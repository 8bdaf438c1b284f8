"""
Engine Package - Lock state machine and armband wiring
"""
from .controller import GestureController

__all__ = ['GestureController']
