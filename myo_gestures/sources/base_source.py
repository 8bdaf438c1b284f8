"""
Abstract Base Class for Armband Bridges

A bridge is whatever delivers armband data to the engine and carries its
commands back to the device: a Bluetooth link, a simulator or a recording.
The engine only relies on this interface:

- stream configuration (IMU mode, EMG mode, pose data, sleep)
- vibration commands
- one callback per data stream

Subclasses implement vibrate() and run(). Incoming frames are handed to
dispatch_imu() / dispatch_emg(), which validate them and forward them to
the registered callbacks.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from ..config import NUM_EMG_CHANNELS

logger = logging.getLogger(__name__)


class IMUMode(IntEnum):
    """IMU streaming modes of the armband."""
    NONE = 0
    SEND_DATA = 1
    SEND_EVENTS = 2
    SEND_ALL = 3
    SEND_RAW = 4


class EMGMode(IntEnum):
    """EMG streaming modes of the armband."""
    NONE = 0
    SEND = 2
    SEND_RAW = 3


class VibrationType(IntEnum):
    NONE = 0
    SHORT = 1
    MEDIUM = 2
    LONG = 3


@dataclass
class IMUData:
    """
    One IMU frame.

    Attributes:
        orientation: Raw int16 quaternion in (x, y, z, w) order
        accelerometer: Raw int16 acceleration (x, y, z), if available
        gyroscope: Raw int16 angular rate (x, y, z), if available
    """
    orientation: Tuple[int, int, int, int]
    accelerometer: Optional[Tuple[int, int, int]] = None
    gyroscope: Optional[Tuple[int, int, int]] = None

    def __post_init__(self):
        if len(self.orientation) != 4:
            raise ValueError(f"Expected 4 orientation values, got {len(self.orientation)}")
        self.orientation = tuple(int(v) for v in self.orientation)


IMUCallback = Callable[[IMUData], None]
EMGCallback = Callable[[np.ndarray], None]


class MyoBridge(ABC):
    """
    Interface between the recognition engine and an armband.

    Attributes:
        imu_mode: Currently commanded IMU mode
        emg_mode: Currently commanded EMG mode
        pose_data_enabled: Whether the on-device pose classifier is active
        sleep_enabled: Whether the armband may go to sleep
    """

    def __init__(self, num_channels: int = NUM_EMG_CHANNELS):
        self.num_channels = num_channels
        self.imu_mode = IMUMode.NONE
        self.emg_mode = EMGMode.NONE
        self.pose_data_enabled = True
        self.sleep_enabled = True

        self._imu_callback: Optional[IMUCallback] = None
        self._emg_callback: Optional[EMGCallback] = None

    # -------------------------------------------------------------------------
    # Device configuration
    # -------------------------------------------------------------------------

    def set_imu_mode(self, mode: IMUMode) -> None:
        self.imu_mode = IMUMode(mode)

    def set_emg_mode(self, mode: EMGMode) -> None:
        self.emg_mode = EMGMode(mode)

    def disable_pose_data(self) -> None:
        self.pose_data_enabled = False

    def enable_pose_data(self) -> None:
        self.pose_data_enabled = True

    def disable_sleep(self) -> None:
        self.sleep_enabled = False

    def enable_sleep(self) -> None:
        self.sleep_enabled = True

    def set_imu_data_callback(self, callback: Optional[IMUCallback]) -> None:
        self._imu_callback = callback

    def set_emg_data_callback(self, callback: Optional[EMGCallback]) -> None:
        self._emg_callback = callback

    @abstractmethod
    def vibrate(self, duration: VibrationType) -> None:
        """Send a vibration command to the armband."""
        pass

    @abstractmethod
    def run(self) -> None:
        """Deliver data until the source is exhausted or stopped."""
        pass

    # -------------------------------------------------------------------------
    # Data delivery
    # -------------------------------------------------------------------------

    def validate_emg_sample(self, sample: np.ndarray) -> bool:
        """
        Check that a sample has one signed 8-bit value per channel.

        Returns:
            True if sample is valid, False otherwise
        """
        if sample.shape != (self.num_channels,):
            return False
        return bool(((sample >= -128) & (sample <= 127)).all())

    def dispatch_imu(self, frame: IMUData) -> bool:
        """
        Forward an IMU frame to the registered callback.

        Returns:
            True if the frame was delivered
        """
        if self.imu_mode == IMUMode.NONE or self._imu_callback is None:
            logger.debug("Dropped IMU frame (stream disabled)")
            return False
        self._imu_callback(frame)
        return True

    def dispatch_emg(self, sample: Sequence[int]) -> bool:
        """
        Forward an EMG sample to the registered callback.

        Returns:
            True if the sample was delivered

        Raises:
            ValueError: If the sample is malformed
        """
        sample = np.asarray(sample)
        if not self.validate_emg_sample(sample):
            raise ValueError(f"Invalid EMG sample {sample.tolist()}")
        if self.emg_mode == EMGMode.NONE or self._emg_callback is None:
            logger.debug("Dropped EMG sample (stream disabled)")
            return False
        self._emg_callback(sample.astype(np.int8))
        return True

    def get_source_info(self) -> dict:
        """
        Get metadata about this bridge.

        Returns:
            Dictionary containing bridge type, modes and status.
        """
        return {
            'source_type': self.__class__.__name__,
            'num_channels': self.num_channels,
            'imu_mode': self.imu_mode.name,
            'emg_mode': self.emg_mode.name,
            'pose_data_enabled': self.pose_data_enabled,
            'sleep_enabled': self.sleep_enabled,
        }
