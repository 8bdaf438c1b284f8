import io

import pytest

import app as app_module
from myo_gestures.recognition import GestureType
from myo_gestures.sources import SimulatedBridge, gesture_session


@pytest.fixture
def client():
    app_module.app.config['TESTING'] = True
    app_module.action_mapper.reset_to_defaults()
    with app_module.app.test_client() as client:
        yield client


def test_index_lists_endpoints(client):
    response = client.get('/')
    assert response.status_code == 200
    assert '/api/classify' in response.get_json()['endpoints']


def test_status(client):
    data = client.get('/api/status').get_json()
    assert data['stream_active'] is False
    assert 'locked' in data


def test_classify(client):
    points = [[0.0, -0.5 * i / 19] for i in range(20)]
    response = client.post('/api/classify', json={'points': points, 'roll': 0.0})
    assert response.status_code == 200
    data = response.get_json()
    assert data['gesture'] == 'DOWN'
    assert data['num_points'] == 20


def test_classify_requires_points(client):
    assert client.post('/api/classify', json={}).status_code == 400
    assert client.post('/api/classify', json={'points': [[1, 2, 3]]}).status_code == 400


def test_simulate_gestures(client):
    response = client.post('/api/simulate', json={'gestures': ['up', 'CIRCLE_CCW']})
    assert response.status_code == 200
    data = response.get_json()
    assert data['gestures'] == ['UP', 'CIRCLE_CCW']
    assert data['performed'] == ['UP', 'CIRCLE_CCW']
    assert [v for _, v in data['vibrations']] == ['LONG', 'SHORT']

    actions = [e['action'] for e in data['events'] if e['type'] == 'gesture']
    assert actions == ['VOLUME_UP', 'SEEK_BACKWARD']


def test_simulate_rejects_unknown_label(client):
    assert client.post('/api/simulate', json={'gesture': 'WAVE'}).status_code == 400
    assert client.post('/api/simulate', json={'gestures': []}).status_code == 400


def test_upload_recording(client):
    recording = SimulatedBridge(gesture_session(GestureType.LEFT)).record()
    content = recording.to_csv(index=False).encode('utf-8')

    response = client.post(
        '/api/upload',
        data={'file': (io.BytesIO(content), 'session.csv')},
        content_type='multipart/form-data'
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data['gestures'] == ['LEFT']
    assert data['packet_count'] == len(recording)


def test_upload_rejects_bad_files(client):
    assert client.post('/api/upload').status_code == 400

    response = client.post(
        '/api/upload',
        data={'file': (io.BytesIO(b'a,b\n1,2\n'), 'session.txt')},
        content_type='multipart/form-data'
    )
    assert response.status_code == 400

    response = client.post(
        '/api/upload',
        data={'file': (io.BytesIO(b'a,b\n1,2\n'), 'session.csv')},
        content_type='multipart/form-data'
    )
    assert response.status_code == 400


def test_action_mapping(client):
    response = client.post('/api/action_mapping', json={'LEFT': 'PAUSE'})
    assert response.status_code == 200
    assert response.get_json()['LEFT'] == 'PAUSE'
    assert client.get('/api/action_mapping').get_json()['LEFT'] == 'PAUSE'

    assert client.post('/api/action_mapping', json={'LEFT': 'FLY'}).status_code == 400


def test_metrics(client):
    client.post('/api/simulate', json={'gesture': 'ROTATE_CCW'})
    data = client.get('/api/metrics').get_json()
    assert data['latency']['sample_count'] >= 1
    assert data['gesture_counts'].get('ROTATE_CCW', 0) >= 1


def test_stream_rejects_unknown_label(client):
    assert client.get('/api/stream/data?gesture=WAVE').status_code == 400


def test_stop_stream(client):
    assert client.post('/api/stream/stop').get_json()['success']


def test_simulate_rejects_non_object_body(client):
    response = client.post('/api/simulate', json=['UP'])
    assert response.status_code == 400
    assert 'error' in response.get_json()


def test_stream_is_released_when_client_disconnects(client):
    response = client.get('/api/stream/data?gesture=UP', buffered=False)
    assert response.status_code == 200
    assert client.get('/api/status').get_json()['stream_active'] is True
    response.close()

    assert client.get('/api/status').get_json()['stream_active'] is False

    again = client.get('/api/stream/data', buffered=False)
    assert again.status_code == 200
    again.close()
