import numpy as np
import pandas as pd
import pytest

from myo_gestures.engine import GestureController
from myo_gestures.recognition import GestureType
from myo_gestures.sources import (
    CSVReplayBridge,
    EMGMode,
    IMUData,
    IMUMode,
    SimulatedBridge,
    gesture_session,
)
from myo_gestures.sources.simulated_source import RECORDING_COLUMNS, pose, rest


def collect(bridge):
    gestures = []
    locks = []
    controller = GestureController(clock=bridge.clock)
    controller.begin(bridge, gestures.append, locks.append)
    bridge.run()
    return gestures, locks


def test_simulated_rates_and_order():
    bridge = SimulatedBridge([pose(1000)])
    frames = list(bridge.frames())

    kinds = [kind for _, kind, _ in frames]
    assert kinds.count('emg') == 200
    assert kinds.count('imu') == 50

    # EMG first when both are due at the same millisecond
    assert frames[0][:2] == (0, 'emg')
    assert frames[1][:2] == (0, 'imu')
    for _, kind, values in frames:
        if kind == 'emg':
            assert len(values) == 8
            assert all(-128 <= v <= 127 for v in values)


def test_simulated_frames_are_reproducible():
    bridge = SimulatedBridge(gesture_session(GestureType.LEFT))
    assert list(bridge.frames()) == list(bridge.frames())


def test_simulated_bridge_drops_data_when_streams_disabled():
    bridge = SimulatedBridge([rest(100)])
    received = []
    bridge.set_imu_data_callback(received.append)
    bridge.set_emg_data_callback(received.append)
    bridge.run()
    assert received == []

    bridge.set_imu_mode(IMUMode.SEND_DATA)
    bridge.set_emg_mode(EMGMode.SEND)
    bridge.run()
    assert len(received) == 25


def test_stop_ends_session():
    bridge = SimulatedBridge(gesture_session(GestureType.UP))
    seen = []
    for timestamp in bridge.iter_run():
        seen.append(timestamp)
        if timestamp >= 1000:
            bridge.stop()
    assert seen[-1] == 1000
    assert not bridge.is_active


def test_invalid_emg_sample_raises():
    bridge = SimulatedBridge()
    bridge.set_emg_mode(EMGMode.SEND)
    bridge.set_emg_data_callback(lambda sample: None)
    with pytest.raises(ValueError):
        bridge.dispatch_emg([0] * 7)
    with pytest.raises(ValueError):
        bridge.dispatch_emg([200] + [0] * 7)


def test_imu_data_needs_quaternion():
    with pytest.raises(ValueError):
        IMUData(orientation=(0, 0, 16384))


def test_source_info():
    info = SimulatedBridge().get_source_info()
    assert info['source_type'] == 'SimulatedBridge'
    assert info['imu_mode'] == 'NONE'
    assert info['sleep_enabled']


def test_record_format():
    df = SimulatedBridge([rest(100)]).record()
    assert list(df.columns) == RECORDING_COLUMNS
    assert set(df['kind']) == {'emg', 'imu'}
    assert df.loc[df['kind'] == 'imu', 'v4'].isna().all()


def test_replay_matches_simulation():
    session = gesture_session(GestureType.CIRCLE_CW, GestureType.DOWN)
    expected = collect(SimulatedBridge(session))

    replay = CSVReplayBridge()
    replay.load_from_file(SimulatedBridge(session).record().to_csv(index=False).encode('utf-8'))
    assert collect(replay) == expected
    assert expected[0] == [GestureType.CIRCLE_CW, GestureType.DOWN]


def test_replay_sorts_by_timestamp():
    df = SimulatedBridge(gesture_session(GestureType.RIGHT)).record()
    shuffled = df.sample(frac=1.0, random_state=3)

    replay = CSVReplayBridge()
    replay.load_from_dataframe(shuffled)
    assert replay.data['timestamp_ms'].is_monotonic_increasing
    assert replay.get_packet_count() == len(df)
    assert replay.get_duration_ms() == df['timestamp_ms'].max()


def test_replay_vibrations():
    replay = CSVReplayBridge()
    replay.load_from_dataframe(SimulatedBridge(gesture_session()).record())
    collect(replay)
    assert [v.name for _, v in replay.vibrations] == ['LONG', 'SHORT']


@pytest.mark.parametrize('content', [
    b'',
    b'timestamp_ms,kind\n0,emg\n',
    b'timestamp_ms,kind,v0,v1,v2,v3,v4,v5,v6,v7\n0,acc,1,2,3,4,5,6,7,8\n',
    b'timestamp_ms,kind,v0,v1,v2,v3,v4,v5,v6,v7\nx,emg,1,2,3,4,5,6,7,8\n',
    b'timestamp_ms,kind,v0,v1,v2,v3,v4,v5,v6,v7\n0,emg,1,2,3,4,,,,\n',
    b'timestamp_ms,kind,v0,v1,v2,v3,v4,v5,v6,v7\n0,imu,1,2,,,,,,\n',
])
def test_malformed_recording(content):
    with pytest.raises(ValueError):
        CSVReplayBridge().load_from_file(content)


def test_empty_recording():
    with pytest.raises(ValueError):
        CSVReplayBridge().load_from_dataframe(pd.DataFrame(columns=RECORDING_COLUMNS))


def test_run_without_recording():
    with pytest.raises(RuntimeError):
        CSVReplayBridge().run()


def test_latin1_recording():
    df = SimulatedBridge([rest(40)]).record()
    content = df.to_csv(index=False).encode('latin-1')
    replay = CSVReplayBridge()
    replay.load_from_file(content)
    assert replay.get_packet_count() == len(df)
    assert np.array_equal(replay.data['timestamp_ms'].to_numpy(), df['timestamp_ms'].to_numpy())
