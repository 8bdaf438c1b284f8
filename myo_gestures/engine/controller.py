"""
Gesture Controller

Ties the pieces together. The armband streams orientation and EMG data;
muscle activity toggles a lock, and while the device is unlocked the
pointing direction of the arm is recorded. When the user starts the lock
pose again, the recording is classified.

Lock cycle:

    locked --(pose begins)--> locked, pose held     new reference requested
           --(pose ends)----> unlocked              buffer reset, lock callback
           --(relaxed)------> unlocked              samples recorded
           --(pose begins)--> unlocked, pose held   gesture classified
           --(pose ends)----> locked                lock callback

A full buffer while relaxed means the user stopped gesturing or the gesture
is incomplete: the recording is dropped and the device locks again.
"""
import logging
import math
import threading
import time
from typing import Any, Callable, Dict, Optional

from ..clock import Clock, monotonic_ms
from ..config import SYNC_DONE_VIBRATION, SYNC_START_VIBRATION
from ..emg.activity import EMGActivityTracker
from ..orientation.frame import OrientationFrame
from ..recognition.classifier import DEFAULT_SETTINGS, ClassifierSettings, analyze
from ..recognition.gesture_buffer import GestureBuffer
from ..recognition.gesture_types import GestureType
from ..sources.base_source import EMGMode, IMUData, IMUMode, MyoBridge, VibrationType

logger = logging.getLogger(__name__)

GestureCallback = Callable[[GestureType], None]
LockCallback = Callable[[bool], None]


class GestureController:
    """
    Gesture recognition engine for one armband.

    Attributes:
        locked: Whether recording is disabled
        lock_toggle: Whether the user is holding the lock/unlock pose
        frame: Reference frame manager
        activity: EMG smoother and sync tracker
        buffer: Recorded gesture samples
    """

    def __init__(self, clock: Clock = monotonic_ms,
                 buffer: Optional[GestureBuffer] = None,
                 settings: ClassifierSettings = DEFAULT_SETTINGS,
                 latency_tracker=None):
        self.clock = clock
        self.settings = settings
        self.latency_tracker = latency_tracker

        self.bridge: Optional[MyoBridge] = None
        self.on_gesture: Optional[GestureCallback] = None
        self.on_lock_change: Optional[LockCallback] = None

        self.frame = OrientationFrame()
        self.activity = EMGActivityTracker(clock=clock, on_synced=self._on_synced)
        self.buffer = buffer if buffer is not None else GestureBuffer()

        # the device starts locked; the first pose release is ignored
        self.locked = True
        self.lock_toggle = True

        self.last_analysis = None
        self._lock = threading.RLock()

    @property
    def refresh_init(self) -> bool:
        return self.frame.refresh_init

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def begin(self, bridge: MyoBridge, on_gesture: GestureCallback,
              on_lock_change: LockCallback) -> None:
        """
        Attach to an armband and start the sync phase.

        This enables the IMU and EMG streams, disables the on-device pose
        classifier and sleep mode, registers the data handlers and signals
        the start of the sync with a long vibration.

        Args:
            bridge: Connected armband bridge
            on_gesture: Called with each recognized gesture
            on_lock_change: Called with the new lock state on every change
        """
        self.bridge = bridge
        self.on_gesture = on_gesture
        self.on_lock_change = on_lock_change

        bridge.set_imu_mode(IMUMode.SEND_DATA)
        bridge.set_emg_mode(EMGMode.SEND)
        bridge.disable_pose_data()

        bridge.set_imu_data_callback(self.handle_imu_data)
        bridge.set_emg_data_callback(self.handle_emg_data)

        bridge.disable_sleep()

        bridge.vibrate(VibrationType(SYNC_START_VIBRATION))
        logger.info("Gesture controller attached to %s", bridge.__class__.__name__)

    def end(self) -> None:
        """Detach from the armband and stop its data streams."""
        if self.bridge is None:
            return

        self.bridge.set_imu_data_callback(None)
        self.bridge.set_emg_data_callback(None)
        self.bridge.set_imu_mode(IMUMode.NONE)
        self.bridge.set_emg_mode(EMGMode.NONE)
        self.bridge.enable_sleep()
        logger.info("Gesture controller detached from %s", self.bridge.__class__.__name__)

        self.bridge = None
        self.on_gesture = None
        self.on_lock_change = None

    # -------------------------------------------------------------------------
    # Data handlers
    # -------------------------------------------------------------------------

    def handle_emg_data(self, sample) -> None:
        with self._lock:
            self.activity.update(sample)

    def handle_imu_data(self, data: IMUData) -> None:
        with self._lock:
            local = self.frame.update(data.orientation)

            # the lock mechanism arms a moment after the sync
            if not self.activity.lock_armed():
                return

            if self.activity.is_relaxed():
                self._handle_relaxed()
            else:
                self._handle_pose()

            if not self.locked:
                # the pointing y component is the first gesture axis
                self.buffer.append(local.pointing_y, local.pointing_x, local.roll)

    def _handle_relaxed(self) -> None:
        # discard the gesture if the buffer is full, the user is probably
        # inactive or the gesture incomplete
        if not self.locked and self.buffer.full():
            logger.info("Gesture buffer full, discarding recording")
            self.buffer.reset()
            self.lock_toggle = False

        if not self.lock_toggle:
            self.lock_toggle = True
            self.locked = not self.locked

            # end of the unlock pose
            if not self.locked:
                self.buffer.reset()

            logger.info("Device %s", "locked" if self.locked else "unlocked")
            if self.on_lock_change is not None:
                self.on_lock_change(self.locked)

    def _handle_pose(self) -> None:
        if not self.lock_toggle:
            return

        self.frame.request_refresh()
        self.lock_toggle = False

        # beginning of the lock pose ends the gesture
        if not self.locked:
            gesture = self._classify_buffer()
            if gesture != GestureType.UNKNOWN and self.on_gesture is not None:
                self.on_gesture(gesture)

    def _classify_buffer(self) -> GestureType:
        start = time.perf_counter()
        points, roll = self.buffer.snapshot()
        analysis = analyze(points, roll, self.settings)
        elapsed_ms = (time.perf_counter() - start) * 1000

        self.last_analysis = analysis
        if self.latency_tracker is not None:
            self.latency_tracker.record(elapsed_ms, analysis.num_points, analysis.gesture.value)

        logger.info("Classified %d samples as %s (%s, %.2f ms)",
                    analysis.num_points, analysis.gesture.value, analysis.decided_by, elapsed_ms)
        return analysis.gesture

    def _on_synced(self) -> None:
        if self.bridge is not None:
            self.bridge.vibrate(VibrationType(SYNC_DONE_VIBRATION))

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def get_state(self) -> Dict[str, Any]:
        """
        Get the current state of the engine.

        Returns:
            Dictionary with lock, sync and buffer state
        """
        with self._lock:
            ratio = self.activity.activity_ratio()
            return {
                'locked': self.locked,
                'lock_toggle': self.lock_toggle,
                'refresh_init': self.frame.refresh_init,
                'lock_armed': self.activity.lock_armed(),
                'activity_ratio': ratio if math.isfinite(ratio) else None,
                'sync': self.activity.get_sync_progress(),
                'buffer_samples': len(self.buffer),
                'buffer_full': self.buffer.full(),
                'last_gesture': (self.last_analysis.gesture.value
                                 if self.last_analysis is not None else None),
            }
