"""
Frequency Response Synthesis: analytic biquad magnitude for the EQ curve.

Pure Python + NumPy. Given an ordered filter chain and a sample rate,
produces the aggregate dB response sampled on a log-frequency axis from
20 Hz to Nyquist. Cascaded stages add in dB.

Locked definitions:
    Coefficients:  Web Audio BiquadFilterNode formulas
    Lowpass/HP Q:  interpreted in dB (resonance), as the host node does
    Shelf slope:   S = 1
    A:             10^(gain/40)
    Magnitude:     |H(e^{jw})|, w = 2*pi*f/sample_rate
    Zero magnitude maps to -inf dB and is propagated, never clamped.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from eqmixer.config import MIN_FREQUENCY, nyquist


# Evaluator signature: (stage, frequencies) -> linear magnitudes
MagnitudeEvaluator = Callable[[object, np.ndarray], np.ndarray]

_PASSTHROUGH = ((1.0, 0.0, 0.0), (1.0, 0.0, 0.0))
_SILENT = ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))


# =============================================================================
# Frequency axis
# =============================================================================

def log_frequencies(sample_rate: float, sample_count: int) -> np.ndarray:
    """Log-spaced frequencies from 20 Hz towards Nyquist.

    freq[i] = min(10^(i*step + log10(20)), nyquist),
    step = log10(nyquist/20) / sample_count
    """
    max_freq = nyquist(sample_rate)
    step = np.log10(max_freq / MIN_FREQUENCY) / sample_count
    exponents = np.arange(sample_count, dtype=np.float64) * step + np.log10(MIN_FREQUENCY)
    return np.minimum(np.power(10.0, exponents), max_freq)


# =============================================================================
# Biquad coefficients
# =============================================================================

def biquad_coefficients(stage, sample_rate: float) -> Tuple[Tuple[float, float, float],
                                                            Tuple[float, float, float]]:
    """Return ((b0, b1, b2), (a0, a1, a2)) for a filter stage.

    Frequency is clamped to [0, nyquist]. At the two edges the formulas
    degenerate, so the limit behavior of each type is returned directly.
    """
    max_freq = nyquist(sample_rate)
    freq = min(max(stage.frequency, 0.0), max_freq)
    A = 10.0 ** (stage.gain / 40.0)
    kind = stage.type

    if freq <= 0.0 or freq >= max_freq:
        return _edge_coefficients(kind, A, at_nyquist=freq >= max_freq)

    w0 = 2.0 * np.pi * freq / sample_rate
    cos_w0 = np.cos(w0)
    sin_w0 = np.sin(w0)
    alpha_q = sin_w0 / (2.0 * stage.q)
    alpha_q_db = sin_w0 / (2.0 * 10.0 ** (stage.q / 20.0))
    alpha_s = sin_w0 / 2.0 * np.sqrt(2.0)
    sqrt_a = np.sqrt(A)

    if kind == "lowpass":
        b = ((1 - cos_w0) / 2, 1 - cos_w0, (1 - cos_w0) / 2)
        a = (1 + alpha_q_db, -2 * cos_w0, 1 - alpha_q_db)
    elif kind == "highpass":
        b = ((1 + cos_w0) / 2, -(1 + cos_w0), (1 + cos_w0) / 2)
        a = (1 + alpha_q_db, -2 * cos_w0, 1 - alpha_q_db)
    elif kind == "bandpass":
        b = (alpha_q, 0.0, -alpha_q)
        a = (1 + alpha_q, -2 * cos_w0, 1 - alpha_q)
    elif kind == "notch":
        b = (1.0, -2 * cos_w0, 1.0)
        a = (1 + alpha_q, -2 * cos_w0, 1 - alpha_q)
    elif kind == "peaking":
        b = (1 + alpha_q * A, -2 * cos_w0, 1 - alpha_q * A)
        a = (1 + alpha_q / A, -2 * cos_w0, 1 - alpha_q / A)
    elif kind == "lowshelf":
        b = (A * ((A + 1) - (A - 1) * cos_w0 + 2 * alpha_s * sqrt_a),
             2 * A * ((A - 1) - (A + 1) * cos_w0),
             A * ((A + 1) - (A - 1) * cos_w0 - 2 * alpha_s * sqrt_a))
        a = ((A + 1) + (A - 1) * cos_w0 + 2 * alpha_s * sqrt_a,
             -2 * ((A - 1) + (A + 1) * cos_w0),
             (A + 1) + (A - 1) * cos_w0 - 2 * alpha_s * sqrt_a)
    elif kind == "highshelf":
        b = (A * ((A + 1) + (A - 1) * cos_w0 + 2 * alpha_s * sqrt_a),
             -2 * A * ((A - 1) + (A + 1) * cos_w0),
             A * ((A + 1) + (A - 1) * cos_w0 - 2 * alpha_s * sqrt_a))
        a = ((A + 1) - (A - 1) * cos_w0 + 2 * alpha_s * sqrt_a,
             2 * ((A - 1) - (A + 1) * cos_w0),
             (A + 1) - (A - 1) * cos_w0 - 2 * alpha_s * sqrt_a)
    else:
        raise ValueError(f"Unknown filter type: {kind}")

    return tuple(float(x) for x in b), tuple(float(x) for x in a)


def _edge_coefficients(kind: str, A: float, at_nyquist: bool):
    """Limit behavior for a cutoff at 0 Hz or at Nyquist."""
    if kind == "lowpass":
        return _PASSTHROUGH if at_nyquist else _SILENT
    if kind == "highpass":
        return _SILENT if at_nyquist else _PASSTHROUGH
    if kind == "bandpass":
        return _SILENT
    if kind in ("notch", "peaking"):
        return _PASSTHROUGH
    if kind == "lowshelf":
        return ((A * A, 0.0, 0.0), (1.0, 0.0, 0.0)) if at_nyquist else _PASSTHROUGH
    if kind == "highshelf":
        return _PASSTHROUGH if at_nyquist else ((A * A, 0.0, 0.0), (1.0, 0.0, 0.0))
    raise ValueError(f"Unknown filter type: {kind}")


# =============================================================================
# Magnitude response
# =============================================================================

def magnitude_response(stage, frequencies, sample_rate: float) -> np.ndarray:
    """Linear magnitude of one stage at each frequency."""
    freqs = np.asarray(frequencies, dtype=np.float64)
    b, a = biquad_coefficients(stage, sample_rate)
    z1 = np.exp(-1j * 2.0 * np.pi * freqs / sample_rate)
    z2 = z1 * z1
    numerator = b[0] + b[1] * z1 + b[2] * z2
    denominator = a[0] + a[1] * z1 + a[2] * z2
    return np.abs(numerator / denominator)


def response_at(chain: Sequence, frequencies, sample_rate: float,
                evaluator: Optional[MagnitudeEvaluator] = None) -> np.ndarray:
    """Aggregate dB response of a chain at arbitrary frequencies."""
    freqs = np.asarray(frequencies, dtype=np.float64)
    db = np.zeros(len(freqs), dtype=np.float64)
    for stage in chain:
        if evaluator is not None:
            mag = np.asarray(evaluator(stage, freqs), dtype=np.float64)
        else:
            mag = magnitude_response(stage, freqs, sample_rate)
        with np.errstate(divide="ignore"):
            db += 20.0 * np.log10(mag)
    return db


def compute_response(chain: Sequence, sample_rate: float, sample_count: int,
                     evaluator: Optional[MagnitudeEvaluator] = None) -> np.ndarray:
    """Aggregate dB response sampled on the log axis from 20 Hz to Nyquist.

    Args:
        chain: FilterStage records (or live filters) in signal order.
        sample_rate: Host sample rate in Hz.
        sample_count: Number of points (typically the curve width in pixels).
        evaluator: Optional host-side magnitude evaluator; defaults to the
            analytic biquad response.

    Returns:
        sample_count dB values. Empty chain -> all zeros.
    """
    freqs = log_frequencies(sample_rate, sample_count)
    return response_at(chain, freqs, sample_rate, evaluator)


# =============================================================================
# Spectrum bars
# =============================================================================

@dataclass
class SpectrumBar:
    """One spectrum column: pixel x, bar width and pre/post byte levels (0-255)."""
    x: int
    width: float
    pre: int
    post: int


def spectrum_bars(pre_bins: Sequence[int], post_bins: Sequence[int],
                  sample_rate: float, width: int) -> List[SpectrumBar]:
    """Map analyser byte bins onto a log-frequency pixel axis.

    Bins below 20 Hz are skipped, as are bins landing on a pixel column
    already taken by a lower bin.
    """
    bin_count = len(pre_bins)
    if bin_count == 0 or width <= 0:
        return []

    max_freq = nyquist(sample_rate)
    log_min = np.log10(MIN_FREQUENCY)
    x_scale = width / (np.log10(max_freq) - log_min)

    bars = []
    last_x = -1
    for i in range(bin_count):
        x = np.log10((i + 1) * max_freq / bin_count) - log_min
        x2 = np.log10((i + 2) * max_freq / bin_count) - log_min
        if x < 0:
            continue
        new_x = int(np.floor(x * x_scale))
        if new_x == last_x:
            continue
        bar_width = float(np.clip((x2 - x) * x_scale / 2, 1, 5))
        bars.append(SpectrumBar(new_x, bar_width, int(pre_bins[i]), int(post_bins[i])))
        last_x = new_x
    return bars
