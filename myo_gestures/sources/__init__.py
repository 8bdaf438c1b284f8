"""
Armband Bridges - Hardware Abstraction Layer

This module provides a unified interface between the recognition engine
and whatever delivers armband data, keeping the engine identical for:

- SimulatedBridge: Scripted sessions for testing and demos
- CSVReplayBridge: Replay of recorded sessions
"""
from .base_source import EMGMode, IMUData, IMUMode, MyoBridge, VibrationType
from .csv_source import CSVReplayBridge
from .simulated_source import SimulatedBridge, Segment, gesture_session

__all__ = [
    'EMGMode',
    'IMUData',
    'IMUMode',
    'MyoBridge',
    'VibrationType',
    'CSVReplayBridge',
    'SimulatedBridge',
    'Segment',
    'gesture_session',
]
