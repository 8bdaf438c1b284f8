"""
Myo IMU Gesture Recognition

Recognizes arm gestures from the orientation data of a Myo armband. Muscle
activity is only used to start and end the recording of a gesture:

- orientation: Quaternion math and the user-anchored reference frame
- recognition: Gesture buffer and geometric classifier
- emg: EMG smoothing and the one-time amplitude sync
- engine: Lock state machine and armband wiring
- sources: Armband bridges (simulated and recorded sessions)
- actions: Gesture to action mapping
- monitoring: Classification latency tracking
"""
from .engine import GestureController
from .recognition import GestureType, classify

__version__ = '0.1.0'

__all__ = ['GestureController', 'GestureType', 'classify']
