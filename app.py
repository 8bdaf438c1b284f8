"""
Myo IMU Gesture Recognition - Flask Backend

This is the Flask application providing REST API endpoints for:
- Classifying a path of pointing angles
- Running simulated armband sessions through the engine
- Replaying recorded sessions (CSV upload)
- Live event streaming of a simulated session (SSE)
- Action mapping and classification metrics

All endpoints return JSON responses.
"""
import json
import logging
import threading
import time

from flask import Flask, Response, jsonify, request

from myo_gestures.actions import ActionMapper
from myo_gestures.config import (
    FLASK_DEBUG,
    FLASK_HOST,
    FLASK_PORT,
    LOG_FORMAT,
    LOG_LEVEL,
    MAX_UPLOAD_SIZE_MB,
    STREAM_INTERVAL_MS,
)
from myo_gestures.engine import GestureController
from myo_gestures.monitoring import get_latency_tracker
from myo_gestures.recognition import analyze, gesture_from_string
from myo_gestures.sources import CSVReplayBridge, SimulatedBridge, gesture_session

logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_SIZE_MB * 1024 * 1024

# Global state
action_mapper = ActionMapper()
latency_tracker = get_latency_tracker()

# Streaming state
_stream_active = False
_stream_lock = threading.Lock()


# =============================================================================
# SESSION HELPERS
# =============================================================================

class EventRecorder:
    """Collects engine callbacks with the bridge timestamp they fired at."""

    def __init__(self, clock):
        self.clock = clock
        self.events = []

    def on_gesture(self, gesture):
        action = action_mapper.handle_gesture(gesture)
        self.events.append({
            'type': 'gesture',
            'timestamp_ms': self.clock(),
            'gesture': gesture.value,
            'action': action
        })

    def on_lock_change(self, locked):
        action_mapper.handle_lock_change(locked)
        self.events.append({
            'type': 'lock_change',
            'timestamp_ms': self.clock(),
            'locked': locked
        })


def attach_engine(bridge):
    """Create an engine on the bridge's clock and attach it."""
    recorder = EventRecorder(bridge.clock)
    controller = GestureController(clock=bridge.clock, latency_tracker=latency_tracker)
    controller.begin(bridge, recorder.on_gesture, recorder.on_lock_change)
    return controller, recorder


def run_session(bridge):
    """Run a bridge to completion and return the engine events."""
    controller, recorder = attach_engine(bridge)
    bridge.run()
    state = controller.get_state()
    controller.end()
    return {
        'events': recorder.events,
        'gestures': [e['gesture'] for e in recorder.events if e['type'] == 'gesture'],
        'vibrations': [[t, v.name] for t, v in bridge.vibrations],
        'final_state': state
    }


def parse_gestures(data):
    """Read the 'gesture' or 'gestures' field of a request body."""
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    if 'gestures' in data:
        labels = data['gestures']
        if not isinstance(labels, list) or not labels:
            raise ValueError("gestures must be a non-empty list")
    else:
        labels = [data.get('gesture', 'RIGHT')]
    return [gesture_from_string(str(label)) for label in labels]


# =============================================================================
# ROUTES - INDEX AND STATUS
# =============================================================================

@app.route('/')
def index():
    """List the available endpoints."""
    return jsonify({
        'service': 'myo-imu-gestures',
        'endpoints': sorted(
            str(rule) for rule in app.url_map.iter_rules() if rule.endpoint != 'static'
        )
    })


@app.route('/api/status', methods=['GET'])
def get_status():
    """Get overall system status."""
    return jsonify({
        'stream_active': _stream_active,
        'locked': action_mapper.locked,
        'last_gesture': action_mapper.get_state()['last_gesture'],
        'within_latency_target': latency_tracker.is_within_target()
    })


# =============================================================================
# ROUTES - CLASSIFICATION
# =============================================================================

@app.route('/api/classify', methods=['POST'])
def classify_points():
    """
    Classify a path of pointing angles.

    Expected JSON: {"points": [[x, y], ...], "roll": 0.0}
    Returns: Gesture label and the classifier metrics.
    """
    data = request.get_json(silent=True)
    if not data or 'points' not in data:
        return jsonify({'error': 'points required'}), 400

    try:
        roll = float(data.get('roll', 0.0))
        analysis = analyze(data['points'], roll)
    except (TypeError, ValueError) as e:
        return jsonify({'error': str(e)}), 400

    return jsonify(analysis.to_dict())


# =============================================================================
# ROUTES - SIMULATED AND RECORDED SESSIONS
# =============================================================================

@app.route('/api/simulate', methods=['POST'])
def simulate():
    """
    Run a simulated session through a fresh engine.

    Expected JSON: {"gesture": "RIGHT"} or {"gestures": ["UP", "CIRCLE_CW"]}
    Returns: Lock and gesture events in the order they fired.
    """
    data = request.get_json(silent=True) or {}
    try:
        gestures = parse_gestures(data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    bridge = SimulatedBridge(gesture_session(*gestures))
    try:
        result = run_session(bridge)
    except Exception as e:
        logger.exception("Simulated session failed")
        return jsonify({'error': str(e)}), 500
    result['performed'] = [g.value for g in gestures]
    return jsonify(result)


@app.route('/api/upload', methods=['POST'])
def upload_recording():
    """
    Upload a recorded session and replay it through a fresh engine.

    Expected: CSV file with columns timestamp_ms, kind, v0..v7.
    Returns: Lock and gesture events in the order they fired.
    """
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']
    if file.filename == '':
        return jsonify({'error': 'No file selected'}), 400

    if not file.filename.endswith('.csv'):
        return jsonify({'error': 'File must be a CSV'}), 400

    bridge = CSVReplayBridge()
    try:
        bridge.load_from_file(file.read())
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    try:
        result = run_session(bridge)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.exception("Replay failed")
        return jsonify({'error': str(e)}), 500

    result['packet_count'] = bridge.get_packet_count()
    result['duration_ms'] = bridge.get_duration_ms()
    return jsonify(result)


# =============================================================================
# ROUTES - LIVE SIMULATED STREAM
# =============================================================================

@app.route('/api/stream/stop', methods=['POST'])
def stop_stream():
    """Stop the live simulated stream."""
    global _stream_active

    with _stream_lock:
        _stream_active = False

    return jsonify({
        'success': True,
        'message': 'Stream stopped'
    })


@app.route('/api/stream/data')
def stream_data():
    """
    Server-Sent Events endpoint for a live simulated session.

    Query: ?gesture=RIGHT (repeatable)
    Streams engine events and the engine state in real time.
    """
    global _stream_active

    try:
        gestures = [gesture_from_string(g) for g in request.args.getlist('gesture')] or None
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    with _stream_lock:
        if _stream_active:
            return jsonify({'error': 'Stream already active'}), 409
        _stream_active = True

    bridge = SimulatedBridge(gesture_session(*(gestures or [])))
    controller, recorder = attach_engine(bridge)

    def generate():
        sent = 0
        for timestamp in bridge.iter_run():
            if not _stream_active:
                bridge.stop()
                break

            for event in recorder.events[sent:]:
                yield f"data: {json.dumps(event)}\n\n"
            sent = len(recorder.events)

            if timestamp % 200 == 0:
                state = controller.get_state()
                yield f"data: {json.dumps({'type': 'state', 'timestamp_ms': timestamp, 'state': state})}\n\n"

            # Wait for next frame to play the session in real time
            time.sleep(STREAM_INTERVAL_MS / 1000.0)

        yield f"data: {json.dumps({'type': 'status', 'status': 'stream_ended'})}\n\n"

    def release_stream():
        # runs when the response is closed, also if the client left early
        global _stream_active
        bridge.stop()
        controller.end()
        with _stream_lock:
            _stream_active = False

    response = Response(
        generate(),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'Connection': 'keep-alive',
            'X-Accel-Buffering': 'no'
        }
    )
    response.call_on_close(release_stream)
    return response


# =============================================================================
# ROUTES - ACTIONS AND METRICS
# =============================================================================

@app.route('/api/action_mapping', methods=['GET'])
def get_action_mapping():
    """Get the current gesture-to-action mapping."""
    return jsonify(action_mapper.get_mapping())


@app.route('/api/action_mapping', methods=['POST'])
def set_action_mapping():
    """
    Change gesture-to-action mappings.

    Expected JSON: {"RIGHT": "NEXT", ...}
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'mapping required'}), 400

    try:
        for gesture, action in data.items():
            action_mapper.set_mapping(gesture, action)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify(action_mapper.get_mapping())


@app.route('/api/metrics', methods=['GET'])
def get_metrics():
    """Get classification latency and result metrics."""
    return jsonify({
        'latency': latency_tracker.get_current_stats(),
        'gesture_counts': latency_tracker.get_label_counts(),
        'actions': action_mapper.get_state()
    })


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    print("\n" + "=" * 60)
    print("MYO IMU GESTURE RECOGNITION")
    print("=" * 60 + "\n")
    print(f"[*] Starting server at http://{FLASK_HOST}:{FLASK_PORT}")

    app.run(
        host=FLASK_HOST,
        port=FLASK_PORT,
        debug=FLASK_DEBUG,
        threaded=True
    )
