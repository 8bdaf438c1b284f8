from myo_gestures import config
from myo_gestures.actions import ActionType
from myo_gestures.recognition import GestureType


def test_buffer_capacity_is_even():
    assert config.GESTURE_CACHE_SIZE > 0
    assert config.GESTURE_CACHE_SIZE % 2 == 0


def test_action_map_covers_alphabet():
    assert set(config.GESTURE_ACTION_MAP) == {g.value for g in GestureType}
    for action in config.GESTURE_ACTION_MAP.values():
        ActionType(action)


def test_only_engine_settings_are_exported():
    names = {name for name in dir(config) if name.isupper()}
    assert not any(name.endswith('_DIR') for name in names)
