"""
Central Configuration
All constants, mappings, and settings in one place
"""

import math

# === AUDIO ===
DEFAULT_SAMPLE_RATE = 44100
MIN_FREQUENCY = 20.0  # Lower edge of every frequency axis (Hz)

# Points on the synthesized response curve (one per pixel column in the UI)
RESPONSE_POINTS = 512

# === EQUALIZER ===
FILTER_TYPES = [
    "lowpass",
    "highpass",
    "bandpass",
    "lowshelf",
    "highshelf",
    "peaking",
    "notch",
]

TYPES_USING_GAIN = ("peaking", "lowshelf", "highshelf")
TYPES_USING_Q = ("lowpass", "highpass", "bandpass", "peaking", "notch")

# Double-click / right-double-click cycles through types in this order
FILTER_TYPE_ROTATION = [
    "peaking",
    "lowshelf",
    "highshelf",
    "lowpass",
    "highpass",
    "notch",
    "bandpass",
]

# Zero-line insertion: pointer within 1% of either edge adds a cut filter
EDGE_INSERT_RATIO = 0.01

# Vertical drag covers +/-20 dB of stage gain
EQ_DRAG_DB_RANGE = 20.0

Q_MIN = 0.0001
Q_MAX = 1000.0
Q_WHEEL_FACTOR = 1.1

# Stage parameter ranges (single source of truth for validation and display)
STAGE_PARAMS = [
    {
        'key': 'frequency',
        'label': 'FRQ',
        'default': 350.0,
        'min': 0.0,
        'max': None,  # Nyquist, depends on sample rate
        'unit': 'Hz',
    },
    {
        'key': 'gain',
        'label': 'GAIN',
        'default': 0.0,
        'min': -40.0,
        'max': 40.0,
        'unit': 'dB',
    },
    {
        'key': 'q',
        'label': 'Q',
        'default': 1.0,
        'min': Q_MIN,
        'max': Q_MAX,
        'unit': '',
    },
]

STAGE_PARAMS_BY_KEY = {p['key']: p for p in STAGE_PARAMS}

# === MIXER ===
NUM_CHANNELS = 7
MASTER_CHANNEL = 6

CHANNEL_NAMES = [
    "Left",
    "Right",
    "Left Surround",
    "Right Surround",
    "Center",
    "Bass (LFE)",
    "Master",
]

MIXER_DB_MIN = -50.0
MIXER_DB_MAX = 10.0

# Symmetric log curve constant: stretches the travel around 0 dB
SYMLOG_C = 40.0 / math.log(10)

MIXER_SNAP_DISTANCE = 0.025  # Snap to 0 dB when this close (ratio units)
MIXER_MUTE_SNAP = 0.98       # Positions at or below this snap to -inf
MIXER_KEY_STEP = 0.025       # Arrow key step (ratio units)

# === METERS ===
METER_UNITS = 50        # LED segments per meter
PEAK_HOLD_MS = 650      # Full-opacity hold after a new peak
PEAK_FADE_MS = 350      # Linear fade after the hold

# === PERSISTENCE ===
SAVE_DEBOUNCE_MS = 500
STATE_FILENAME = "audio_profiles.json"

PROFILE_FILE_TYPE = "audioProfile"
PROFILE_FILE_VERSION = 1
PROFILE_FILE_SUFFIX = ".fsprofile.json"

UNNAMED_PROFILE_LABEL = "Unnamed Profile"


def get_stage_param(key):
    """Get stage param config by key, or None."""
    return STAGE_PARAMS_BY_KEY.get(key)


def nyquist(sample_rate):
    """Highest representable frequency for a sample rate."""
    return sample_rate / 2.0
