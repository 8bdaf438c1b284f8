import pytest

from myo_gestures.actions import ActionMapper, ActionType
from myo_gestures.monitoring import LatencyTracker
from myo_gestures.recognition import GestureType, gesture_from_string, gesture_to_string


def test_default_mapping():
    mapper = ActionMapper()
    assert mapper.get_action(GestureType.RIGHT) == 'NEXT'
    assert mapper.get_action(GestureType.CIRCLE_CW) == 'SEEK_FORWARD'
    assert mapper.get_action(GestureType.UNKNOWN) == ActionType.NONE.value


def test_handle_gesture_notifies_listeners():
    mapper = ActionMapper()
    received = []
    mapper.add_listener(lambda gesture, action: received.append((gesture, action)))

    assert mapper.handle_gesture(GestureType.UP) == 'VOLUME_UP'
    mapper.handle_gesture(GestureType.UNKNOWN)

    assert received == [(GestureType.UP, 'VOLUME_UP')]
    assert mapper.history == [('UP', 'VOLUME_UP'), ('UNKNOWN', 'NONE')]


def test_failing_listener_does_not_stop_others():
    mapper = ActionMapper()
    received = []

    def broken(gesture, action):
        raise RuntimeError("listener failed")

    mapper.add_listener(broken)
    mapper.add_listener(lambda gesture, action: received.append(action))
    mapper.handle_gesture(GestureType.LEFT)
    assert received == ['PREVIOUS']


def test_remove_listener():
    mapper = ActionMapper()
    received = []
    listener = lambda gesture, action: received.append(action)  # noqa: E731
    mapper.add_listener(listener)
    mapper.remove_listener(listener)
    mapper.handle_gesture(GestureType.LEFT)
    assert received == []


def test_custom_mapping():
    mapper = ActionMapper({'right': 'play'})
    assert mapper.get_action(GestureType.RIGHT) == 'PLAY'

    mapper.reset_to_defaults()
    assert mapper.get_action(GestureType.RIGHT) == 'NEXT'


@pytest.mark.parametrize('gesture, action', [('SHAKE', 'PLAY'), ('RIGHT', 'EXPLODE')])
def test_invalid_mapping(gesture, action):
    with pytest.raises(ValueError):
        ActionMapper().set_mapping(gesture, action)


def test_lock_state():
    mapper = ActionMapper()
    assert mapper.locked
    mapper.handle_lock_change(False)
    assert mapper.get_state()['locked'] is False


def test_gesture_labels():
    assert gesture_to_string(GestureType.CIRCLE_CCW) == 'CIRCLE_CCW'
    assert gesture_from_string(' rotate_cw ') == GestureType.ROTATE_CW
    with pytest.raises(ValueError):
        gesture_from_string('WAVE')


def test_latency_tracker_statistics():
    tracker = LatencyTracker(history_size=3, target_ms=1.0)
    assert tracker.is_within_target()

    tracker.record(0.5, 40, 'UP')
    tracker.record(2.0, 50, 'UP')
    tracker.record(0.5, 30, 'LEFT')
    tracker.record(0.8, 60, 'RIGHT')

    stats = tracker.get_current_stats()
    assert stats['sample_count'] == 3
    assert stats['max_ms'] == 2.0
    assert stats['compliance_rate'] == 0.75
    assert tracker.get_label_counts() == {'UP': 2, 'LEFT': 1, 'RIGHT': 1}
    assert tracker.is_within_target()

    tracker.reset()
    assert tracker.get_current_stats()['sample_count'] == 0
