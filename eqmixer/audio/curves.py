"""
Value mapping between control positions and audio units.

Frequency axis: plain log interpolation, 20 Hz at ratio 0, Nyquist at 1.

Volume axis: symmetric log curve over [-50, +10] dB. Position ratio 0 is the
top of the fader (+10 dB), 1 is the bottom (-inf). The curve stretches the
region around 0 dB so small gain changes near unity get most of the travel.
"""

import math

from eqmixer.config import (
    MIN_FREQUENCY,
    MIXER_DB_MAX,
    MIXER_DB_MIN,
    MIXER_MUTE_SNAP,
    MIXER_SNAP_DISTANCE,
    SYMLOG_C,
    nyquist,
)
from eqmixer.utils.formatting import format_frequency


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


# === FREQUENCY AXIS ===

def ratio_to_frequency(ratio, sample_rate):
    """Map a 0-1 horizontal position to Hz."""
    max_freq = nyquist(sample_rate)
    log_width = math.log10(max_freq / MIN_FREQUENCY)
    return clamp(math.pow(10, ratio * log_width + math.log10(MIN_FREQUENCY)), 0.0, max_freq)


def frequency_to_ratio(frequency, sample_rate):
    """Horizontal position of a frequency (used to place stage markers)."""
    if frequency <= 0:
        return 0.0
    max_freq = nyquist(sample_rate)
    return math.log10(frequency / MIN_FREQUENCY) / math.log10(max_freq / MIN_FREQUENCY)


def frequency_axis_ticks(sample_rate):
    """
    Tick marks for the EQ frequency axis as (ratio, label) pairs.

    One tick per decade and per 2x-9x step inside [20 Hz, Nyquist]. Decades
    and the 2x/5x steps carry a label; the last tick is labelled with Nyquist.
    Label is None for unlabelled ticks.
    """
    max_freq = nyquist(sample_rate)
    ticks = []
    for exponent in range(math.ceil(math.log10(max_freq))):
        decade = 10 ** exponent
        for multiple in range(1, 10):
            freq = decade * multiple
            position = frequency_to_ratio(freq, sample_rate)
            if position < 0:
                continue
            if position > 1:
                break
            label = None
            if multiple in (1, 2, 5):
                label = f"{format_frequency(freq)}Hz"
            ticks.append((position, label))

    final_label = f"{format_frequency(max_freq)}Hz"
    if ticks and ticks[-1][0] >= 1:
        ticks[-1] = (1.0, final_label)
    else:
        ticks.append((1.0, final_label))
    return ticks


def decibel_axis_ticks(min_db=-20, max_db=20, step=5):
    """EQ gain axis ticks, top to bottom; every other tick is labelled."""
    ticks = []
    count = int((max_db - min_db) / step)
    for i in range(count + 1):
        db = max_db - i * step
        ratio = i / count
        label = f"{db}" if i % 2 == 0 else None
        ticks.append((ratio, label))
    return ticks


# === VOLUME AXIS ===

def db_to_gain(db):
    """Decibels to linear gain; -inf gives 0."""
    return math.pow(10, db / 20)


def gain_to_db(gain):
    """Linear gain to decibels; 0 gives -inf."""
    if gain <= 0:
        return -math.inf
    return 20 * math.log10(gain)


def sym_log_y(x, c=SYMLOG_C):
    """Symmetric log: sign(x) * log10(|x/c| + 1)."""
    return math.copysign(math.log10(abs(x / c) + 1), x) if x != 0 else 0.0


def sym_log_x(y, c=SYMLOG_C):
    """Inverse of sym_log_y: sign(y) * c * (10^|y| - 1)."""
    return math.copysign(c * (math.pow(10, abs(y)) - 1), y) if y != 0 else 0.0


_MAX_Y = sym_log_y(MIXER_DB_MAX)
_MIN_Y = sym_log_y(MIXER_DB_MIN)


def mixer_db_to_position_ratio(db):
    """Fader position for a dB value. -50 dB and below sit at the bottom (1)."""
    if db <= MIXER_DB_MIN:
        return 1.0
    y = sym_log_y(db)
    return clamp((_MAX_Y - y) / (_MAX_Y - _MIN_Y), 0.0, 1.0)


def mixer_position_ratio_to_db(ratio):
    """dB value for a fader position. The bottom of travel is -inf."""
    if ratio >= 1:
        return -math.inf
    y = _MAX_Y - ratio * (_MAX_Y - _MIN_Y)
    return clamp(sym_log_x(y), MIXER_DB_MIN, MIXER_DB_MAX)


UNITY_POSITION = mixer_db_to_position_ratio(0.0)


def snap_mixer_ratio(ratio):
    """
    Apply fader detents: near 0 dB snaps to unity, near the bottom snaps to
    hard mute (ratio 1).
    """
    ratio = clamp(ratio, 0.0, 1.0)
    if abs(ratio - UNITY_POSITION) < MIXER_SNAP_DISTANCE:
        return UNITY_POSITION
    if ratio >= MIXER_MUTE_SNAP:
        return 1.0
    return ratio


def mixer_volume_ticks():
    """Fader scale: +10 down to -40 in 10 dB steps, then -inf. (ratio, label) pairs."""
    ticks = []
    for i in range(6):
        db = 10 - i * 10
        label = f"+{db}" if db > 0 else f"{db}"
        ticks.append((mixer_db_to_position_ratio(db), label))
    ticks.append((1.0, "-∞"))
    return ticks
