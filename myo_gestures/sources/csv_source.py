"""
Recorded Session Replay

This module replays armband sessions recorded to CSV, providing offline
analysis and regression testing of the recognition engine.

Expected CSV format (one row per packet, header required):
- timestamp_ms: Millisecond timestamp of the packet
- kind: 'emg' or 'imu'
- v0 ... v7: EMG values (emg rows) or raw quaternion x, y, z, w in
  v0 ... v3 (imu rows, remaining columns empty)

SimulatedBridge.record() produces this format.
"""
import logging
from io import StringIO
from typing import Optional

import numpy as np
import pandas as pd

from ..clock import ManualClock
from ..config import NUM_EMG_CHANNELS
from .base_source import IMUData, MyoBridge, VibrationType

logger = logging.getLogger(__name__)

VALUE_COLUMNS = [f'v{i}' for i in range(NUM_EMG_CHANNELS)]
REQUIRED_COLUMNS = ['timestamp_ms', 'kind'] + VALUE_COLUMNS


class CSVReplayBridge(MyoBridge):
    """
    Bridge that replays a recorded session.

    The clock is set to each packet's timestamp before the packet is
    dispatched, so the engine sees the original timing.

    Attributes:
        data: The loaded recording, sorted by timestamp
        clock: ManualClock following the recording
        vibrations: (timestamp, VibrationType) of all vibration commands
    """

    def __init__(self, clock: Optional[ManualClock] = None, num_channels: int = NUM_EMG_CHANNELS):
        super().__init__(num_channels)
        self.clock = clock if clock is not None else ManualClock()
        self.data: Optional[pd.DataFrame] = None
        self.vibrations = []

    def load_from_file(self, file_content: bytes) -> None:
        """
        Load a recording from uploaded file content.

        Args:
            file_content: Raw bytes of the CSV file

        Raises:
            ValueError: If the file is not a valid recording
        """
        # Handle both UTF-8 and Latin-1 encodings commonly used in data files
        try:
            content_str = file_content.decode('utf-8')
        except UnicodeDecodeError:
            content_str = file_content.decode('latin-1')

        try:
            df = pd.read_csv(StringIO(content_str))
        except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
            raise ValueError(f"Could not parse recording: {e}") from e

        self.load_from_dataframe(df)

    def load_from_dataframe(self, df: pd.DataFrame) -> None:
        """
        Load a recording from a DataFrame.

        Raises:
            ValueError: If columns are missing or rows are malformed
        """
        missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
        if missing:
            raise ValueError(f"Recording is missing columns {missing}")
        if df.empty:
            raise ValueError("Recording contains no packets")

        df = df[REQUIRED_COLUMNS].copy()
        df['kind'] = df['kind'].astype(str).str.strip().str.lower()

        unknown = sorted(set(df['kind']) - {'emg', 'imu'})
        if unknown:
            raise ValueError(f"Unknown packet kinds {unknown}")

        df['timestamp_ms'] = pd.to_numeric(df['timestamp_ms'], errors='coerce')
        df[VALUE_COLUMNS] = df[VALUE_COLUMNS].apply(pd.to_numeric, errors='coerce')

        if df['timestamp_ms'].isna().any():
            raise ValueError("Recording has rows without a valid timestamp")

        emg_rows = df['kind'] == 'emg'
        if df.loc[emg_rows, VALUE_COLUMNS].isna().to_numpy().any():
            raise ValueError(f"EMG rows need {self.num_channels} numeric values")
        if df.loc[~emg_rows, VALUE_COLUMNS[:4]].isna().to_numpy().any():
            raise ValueError("IMU rows need 4 quaternion values")

        # stable sort keeps the recorded order of packets with equal timestamps
        self.data = df.sort_values('timestamp_ms', kind='stable').reset_index(drop=True)
        logger.info("Loaded recording with %d packets (%d EMG, %d IMU)",
                    len(self.data), int(emg_rows.sum()), int((~emg_rows).sum()))

    def get_packet_count(self) -> int:
        return len(self.data) if self.data is not None else 0

    def get_duration_ms(self) -> int:
        if self.data is None:
            return 0
        timestamps = self.data['timestamp_ms']
        return int(timestamps.iloc[-1] - timestamps.iloc[0])

    def vibrate(self, duration: VibrationType) -> None:
        duration = VibrationType(duration)
        self.vibrations.append((self.clock(), duration))
        logger.debug("Vibrate %s at %d ms", duration.name, self.clock())

    def run(self) -> None:
        """
        Replay the whole recording through the registered callbacks.

        Raises:
            RuntimeError: If no recording was loaded
        """
        if self.data is None:
            raise RuntimeError("No recording loaded. Call load_from_file() first.")

        timestamps = self.data['timestamp_ms'].to_numpy(dtype=np.int64)
        kinds = self.data['kind'].to_numpy()
        values = self.data[VALUE_COLUMNS].to_numpy()

        for timestamp, kind, row in zip(timestamps, kinds, values):
            self.clock.set(int(timestamp))
            if kind == 'emg':
                self.dispatch_emg(row.astype(np.int64))
            else:
                self.dispatch_imu(IMUData(orientation=tuple(int(v) for v in row[:4])))
