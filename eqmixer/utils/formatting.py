"""
Display formatting for stage tooltips, axis labels and the CLI.
"""

import math

from eqmixer.config import TYPES_USING_GAIN, TYPES_USING_Q


def format_frequency(value: float) -> str:
    """Compact frequency label without unit: 440 -> '440', 2500 -> '2.5k'."""
    if value >= 1000:
        text = f"{value / 1000:.1f}".rstrip("0").rstrip(".")
        return f"{text}k"
    return f"{value:.0f}"


def format_db(value: float, signed: bool = False) -> str:
    """Format a decibel value; -inf renders as '-∞'."""
    if math.isinf(value):
        return "-∞" if value < 0 else "∞"
    if signed and value > 0:
        return f"+{value:.1f}"
    return f"{value:.1f}"


def describe_stage(stage) -> str:
    """
    One-line summary of a filter stage, e.g. '1kHz peaking 3.0dB Q=1.000'.

    Gain and Q are only shown for the types that use them.
    """
    text = f"{format_frequency(stage.frequency)}Hz {stage.type}"
    if stage.type in TYPES_USING_GAIN:
        text += f" {stage.gain:.1f}dB"
    if stage.type in TYPES_USING_Q:
        text += f" Q={stage.q:.3f}"
    return text
