"""
Simulated Armband

This module generates scripted armband sessions for testing and
demonstration. It mimics the data a user produces without requiring
hardware:

- EMG bursts for the sync gesture and the lock/unlock pose
- Arm movements for every gesture of the alphabet
- Gaussian noise on the EMG channels

A session is a list of segments. Each segment sets the EMG amplitude and,
optionally, moves the arm. Motions are described in the reference frame of
the gesture (pointing angles and roll); the simulator turns them into the
absolute quaternions the armband would report.
"""
import logging
import math
from dataclasses import dataclass
from typing import Callable, Generator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..clock import ManualClock
from ..config import (
    EMG_RATE_HZ,
    EMG_SYNC_TIME_MS,
    IMU_RATE_HZ,
    MYOHW_ORIENTATION_SCALE,
    NUM_EMG_CHANNELS,
    SIMULATED_CIRCLE_RADIUS,
    SIMULATED_NOISE_STD,
    SIMULATED_POSE_AMPLITUDE,
    SIMULATED_ROTATION_ANGLE,
    SIMULATED_SEED,
    SIMULATED_SWIPE_ANGLE,
    SIMULATED_SYNC_AMPLITUDE,
    AFTER_SYNC_WAIT_MS,
)
from ..recognition.gesture_types import GestureType
from .base_source import IMUData, MyoBridge, VibrationType

logger = logging.getLogger(__name__)

# progress in [0, 1] -> (x angle, y angle, roll) in the gesture frame
Motion = Callable[[float], Tuple[float, float, float]]

RECORDING_COLUMNS = ['timestamp_ms', 'kind'] + [f'v{i}' for i in range(NUM_EMG_CHANNELS)]


@dataclass
class Segment:
    """
    One part of a scripted session.

    Attributes:
        duration_ms: Length of the segment
        emg_amplitude: Per-channel EMG amplitude (0 = relaxed arm)
        motion: Arm movement over the segment, None to hold still
        label: Name used in logs
    """
    duration_ms: int
    emg_amplitude: int = 0
    motion: Optional[Motion] = None
    label: str = 'rest'


# =============================================================================
# QUATERNION HELPERS
# =============================================================================

def _axis_quaternion(axis: int, angle: float) -> np.ndarray:
    """Unit quaternion (x, y, z, w) for a rotation about a coordinate axis."""
    quat = np.zeros(4)
    quat[axis] = math.sin(angle / 2)
    quat[3] = math.cos(angle / 2)
    return quat


def quaternion_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product of two (x, y, z, w) quaternions."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array([
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    ])


def local_quaternion(x_angle: float, y_angle: float, roll: float) -> np.ndarray:
    """
    Quaternion of an arm pose expressed in the gesture frame.

    The pose is chosen so that the gesture buffer records x_angle and
    y_angle and the engine reads back roll as roll angle.
    """
    cos_x = math.cos(x_angle)
    ratio = math.sin(y_angle) / cos_x if cos_x > 0 else 0.0
    y_rotation = -math.asin(max(-1.0, min(ratio, 1.0)))

    quat = quaternion_multiply(_axis_quaternion(2, roll), _axis_quaternion(0, x_angle))
    return quaternion_multiply(quat, _axis_quaternion(1, y_rotation))


def encode_quaternion(quat: Sequence[float]) -> Tuple[int, int, int, int]:
    """Convert a float quaternion to the armband's int16 representation."""
    raw = np.clip(np.round(np.asarray(quat) * MYOHW_ORIENTATION_SCALE), -32768, 32767)
    return tuple(int(v) for v in raw)


# =============================================================================
# SCRIPT BUILDERS
# =============================================================================

def rest(duration_ms: int) -> Segment:
    return Segment(duration_ms, 0, None, 'rest')


def pose(duration_ms: int = 200, amplitude: int = SIMULATED_POSE_AMPLITUDE) -> Segment:
    """The lock/unlock pose: strong muscle activity, no movement."""
    return Segment(duration_ms, amplitude, None, 'pose')


def sync_segments() -> List[Segment]:
    """
    Rest, a strong sync gesture at the end of the sync window, then rest
    until the lock mechanism is armed.
    """
    burst = 500
    return [
        rest(EMG_SYNC_TIME_MS - burst),
        Segment(burst, SIMULATED_SYNC_AMPLITUDE, None, 'sync'),
        rest(AFTER_SYNC_WAIT_MS + 100),
    ]


def swipe(direction: GestureType, duration_ms: int = 1000,
          angle: float = SIMULATED_SWIPE_ANGLE) -> Segment:
    """Straight movement away from the reference direction."""
    directions = {
        GestureType.RIGHT: (1.0, 0.0),
        GestureType.LEFT: (-1.0, 0.0),
        GestureType.UP: (0.0, 1.0),
        GestureType.DOWN: (0.0, -1.0),
    }
    if direction not in directions:
        raise ValueError(f"{direction} is not a swipe direction")
    dx, dy = directions[direction]

    def motion(progress: float) -> Tuple[float, float, float]:
        return dx * angle * progress, dy * angle * progress, 0.0

    return Segment(duration_ms, 0, motion, f'swipe {direction.value}')


def circle(clockwise: bool, duration_ms: int = 1000,
           radius: float = SIMULATED_CIRCLE_RADIUS) -> Segment:
    """
    Closed circle starting and ending at the reference direction.

    The circle lies to the right of the start point.
    """
    sign = -1.0 if clockwise else 1.0

    def motion(progress: float) -> Tuple[float, float, float]:
        phi = math.pi + sign * 2 * math.pi * progress
        return radius + radius * math.cos(phi), radius * math.sin(phi), 0.0

    return Segment(duration_ms, 0, motion, 'circle cw' if clockwise else 'circle ccw')


def rotate(clockwise: bool, duration_ms: int = 600,
           angle: float = SIMULATED_ROTATION_ANGLE) -> Segment:
    """Wrist twist about the forearm axis."""
    target = -angle if clockwise else angle

    def motion(progress: float) -> Tuple[float, float, float]:
        return 0.0, 0.0, target * progress

    return Segment(duration_ms, 0, motion, 'rotate cw' if clockwise else 'rotate ccw')


def gesture_segment(gesture: GestureType) -> Segment:
    """The movement segment that performs a gesture."""
    if gesture in (GestureType.UP, GestureType.DOWN, GestureType.LEFT, GestureType.RIGHT):
        return swipe(gesture)
    if gesture in (GestureType.CIRCLE_CW, GestureType.CIRCLE_CCW):
        return circle(gesture == GestureType.CIRCLE_CW)
    if gesture in (GestureType.ROTATE_CW, GestureType.ROTATE_CCW):
        return rotate(gesture == GestureType.ROTATE_CW)
    return rest(1000)


def gesture_session(*gestures: GestureType) -> List[Segment]:
    """
    A complete session: sync, then for each gesture
    unlock pose -> movement -> short hold -> lock pose -> rest.
    """
    segments = sync_segments()
    for gesture in gestures:
        segments += [
            pose(200),
            gesture_segment(gesture),
            rest(100),
            pose(200),
            rest(300),
        ]
    return segments


# =============================================================================
# BRIDGE
# =============================================================================

class SimulatedBridge(MyoBridge):
    """
    Bridge that plays a scripted session on a manual clock.

    EMG samples are delivered at EMG_RATE_HZ and IMU frames at IMU_RATE_HZ.
    When both are due at the same millisecond the EMG sample goes first.

    Attributes:
        clock: ManualClock driven by the session
        segments: The session script
        base_orientation: Absolute orientation of the gesture frame
        vibrations: (timestamp, VibrationType) of all vibration commands
    """

    def __init__(self, segments: Optional[List[Segment]] = None,
                 base_orientation: Sequence[float] = (0.0, 0.0, 0.0, 1.0),
                 noise_std: float = SIMULATED_NOISE_STD,
                 seed: int = SIMULATED_SEED,
                 clock: Optional[ManualClock] = None,
                 num_channels: int = NUM_EMG_CHANNELS):
        super().__init__(num_channels)

        self.clock = clock if clock is not None else ManualClock()
        self.segments: List[Segment] = list(segments) if segments is not None else []
        self.base_orientation = np.asarray(base_orientation, dtype=np.float64)
        self.noise_std = noise_std
        self.seed = seed

        self.emg_interval_ms = 1000 // EMG_RATE_HZ
        self.imu_interval_ms = 1000 // IMU_RATE_HZ

        self.vibrations: List[Tuple[int, VibrationType]] = []
        self.is_active = False

    @property
    def duration_ms(self) -> int:
        return sum(segment.duration_ms for segment in self.segments)

    def set_session(self, segments: List[Segment]) -> None:
        self.segments = list(segments)

    def vibrate(self, duration: VibrationType) -> None:
        duration = VibrationType(duration)
        self.vibrations.append((self.clock(), duration))
        logger.info("Vibrate %s at %d ms", duration.name, self.clock())

    def stop(self) -> None:
        self.is_active = False

    def _emg_sample(self, rng: np.random.Generator, amplitude: int) -> np.ndarray:
        signs = rng.choice([-1, 1], size=self.num_channels)
        noise = rng.normal(0, self.noise_std, self.num_channels)
        sample = np.round(signs * amplitude + noise)
        return np.clip(sample, -128, 127).astype(np.int8)

    def _orientation(self, arm: np.ndarray) -> Tuple[int, int, int, int]:
        return encode_quaternion(quaternion_multiply(arm, self.base_orientation))

    def frames(self) -> Generator[Tuple[int, str, tuple], None, None]:
        """
        Generate the session as (timestamp_ms, kind, values) tuples.

        kind is 'emg' (8 values) or 'imu' (quaternion x, y, z, w). The noise
        generator is re-seeded, so every pass yields the same data.
        """
        rng = np.random.default_rng(self.seed)
        # arm orientation relative to the base orientation
        arm = np.array([0.0, 0.0, 0.0, 1.0])
        start = self.clock()
        segment_start = 0

        for segment in self.segments:
            # movements start wherever the previous segment left the arm
            anchor = arm
            for t in range(segment_start, segment_start + segment.duration_ms):
                if segment.motion is not None:
                    progress = (t - segment_start + 1) / segment.duration_ms
                    arm = quaternion_multiply(local_quaternion(*segment.motion(progress)), anchor)

                if t % self.emg_interval_ms == 0:
                    yield start + t, 'emg', tuple(int(v) for v in self._emg_sample(rng, segment.emg_amplitude))
                if t % self.imu_interval_ms == 0:
                    yield start + t, 'imu', self._orientation(arm)

            segment_start += segment.duration_ms

    def iter_run(self) -> Generator[int, None, None]:
        """
        Play the session, yielding the timestamp after every IMU frame.

        Useful for pacing a live stream. stop() ends the session early.
        """
        self.is_active = True
        logger.info("Simulated session started (%d ms)", self.duration_ms)
        for timestamp, kind, values in self.frames():
            if not self.is_active:
                break
            self.clock.set(timestamp)
            if kind == 'emg':
                self.dispatch_emg(values)
            else:
                self.dispatch_imu(IMUData(orientation=values))
                yield timestamp
        self.is_active = False

    def run(self) -> None:
        for _ in self.iter_run():
            pass

    def record(self) -> pd.DataFrame:
        """
        Return the session in the recording format used by CSVReplayBridge.

        IMU rows leave the unused value columns empty.
        """
        rows = []
        for timestamp, kind, values in self.frames():
            padded = list(values) + [None] * (self.num_channels - len(values))
            rows.append([timestamp, kind] + padded)
        return pd.DataFrame(rows, columns=RECORDING_COLUMNS)
