"""
Configuration settings for Myo IMU Gesture Recognition.

This module centralizes all tunable parameters of the recognition engine.
The classifier thresholds are tuned for gesture buffers holding at most
GESTURE_CACHE_SIZE / 2 samples, so change them together.
"""
import math
import os

# =============================================================================
# DEVICE CONFIGURATION
# =============================================================================
# Number of EMG channels delivered by the armband
NUM_EMG_CHANNELS = 8

# Fixed-point divisor of the raw orientation quaternion (int16 -> float)
MYOHW_ORIENTATION_SCALE = 16384.0

# Quaternion components are clipped to this bound after scaling
QUATERNION_CLIP = 0.999999

# Values fed to asin() are clipped to this bound
ANGLE_CLIP = 0.99999

# Nominal stream rates of the armband
IMU_RATE_HZ = 50
EMG_RATE_HZ = 200

# =============================================================================
# EMG LOCK CONFIGURATION
# =============================================================================
# Number of EMG rows kept for smoothing (~50 ms at 200 Hz)
EMG_CACHE_SIZE = 10

# Duration of the initial sync window in milliseconds.
# The strongest smoothed EMG amplitude in this window becomes the reference.
EMG_SYNC_TIME_MS = 3000

# Activity ratio (emg_sum / emg_sync) below which the arm counts as relaxed
LOCK_TOGGLE_THRESHOLD = 0.5

# Grace period after the sync window before the lock mechanism arms
AFTER_SYNC_WAIT_MS = 500

# =============================================================================
# GESTURE BUFFER CONFIGURATION
# =============================================================================
# Number of float slots, used as interleaved (x, y) pairs.
# Holds about GESTURE_CACHE_SIZE / (2 * IMU_RATE_HZ) seconds of movement.
# Must be even.
GESTURE_CACHE_SIZE = 128

# =============================================================================
# CLASSIFIER CONFIGURATION
# =============================================================================
# Straight movement
# Maximum relation of X and Y second moments for straight movement
STRAIGHT_MAX_RELATION = 0.5
# Minimum angle (distance from origin) of the last point
STRAIGHT_MIN_DISTANCE = 0.3
# Vertical movement range is smaller, so the y moment is amplified
Y_DEVIATION_CORRECTION = 1.3

# Circular movement
# Number of sample points used for diameter and center estimation
GESTURE_CIRCLE_SAMPLES = 10
# Minimum mean circle diameter
CIRCLE_MIN_DIAMETER = 0.65
# Maximum standard deviation of the circle radius
CIRCLE_MAX_DEVIATION = 0.3
# Maximum distance between the first and the last point
MAX_ENDS_DISTANCE = 0.4

# Wrist rotation
# Maximum x / y second moment around (0, 0)
ROTATION_MAX_VARIANCE = 0.15
# Minimum absolute roll angle
ROTATION_MIN_ANGLE = math.pi / 6

# =============================================================================
# FEEDBACK CONFIGURATION
# =============================================================================
# Vibration lengths as understood by the armband (0 = none ... 3 = long)
SYNC_START_VIBRATION = 3
SYNC_DONE_VIBRATION = 1

# =============================================================================
# SIMULATED SESSION CONFIGURATION
# =============================================================================
# EMG amplitude (per channel) of a held lock/unlock pose
SIMULATED_POSE_AMPLITUDE = 100

# EMG amplitude of the strong gesture performed during sync
SIMULATED_SYNC_AMPLITUDE = 100

# Noise standard deviation added to every simulated EMG value
SIMULATED_NOISE_STD = 2.0

# Seed for the simulated noise generator
SIMULATED_SEED = 42

# Angular extent of simulated movements in radians
SIMULATED_SWIPE_ANGLE = 0.6
SIMULATED_CIRCLE_RADIUS = 0.45
SIMULATED_ROTATION_ANGLE = math.pi / 4

# Pacing of the live SSE stream (real milliseconds per IMU frame)
STREAM_INTERVAL_MS = 20

# =============================================================================
# MONITORING CONFIGURATION
# =============================================================================
# Target classification latency in milliseconds
TARGET_LATENCY_MS = 5

# Number of classifications kept for statistics
LATENCY_HISTORY_SIZE = 100

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
LOG_LEVEL = os.environ.get('MYO_GESTURES_LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'

# =============================================================================
# GESTURE TO ACTION MAPPING
# =============================================================================
# Maps recognized gestures to host actions (media remote layout)
GESTURE_ACTION_MAP = {
    'UP': 'VOLUME_UP',
    'DOWN': 'VOLUME_DOWN',
    'LEFT': 'PREVIOUS',
    'RIGHT': 'NEXT',
    'CIRCLE_CW': 'SEEK_FORWARD',
    'CIRCLE_CCW': 'SEEK_BACKWARD',
    'ROTATE_CW': 'PLAY',
    'ROTATE_CCW': 'PAUSE',
    'UNKNOWN': 'NONE'
}

# =============================================================================
# FLASK SERVER CONFIGURATION
# =============================================================================
FLASK_HOST = '0.0.0.0'
FLASK_PORT = 5000
FLASK_DEBUG = False

# Maximum recording upload size (16 MB)
MAX_UPLOAD_SIZE_MB = 16
