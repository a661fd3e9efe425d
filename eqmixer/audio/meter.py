"""
Peak-hold level metering.

Each channel meter is a column of METER_UNITS LED segments. A new peak
latches at the highest segment reached, holds at full opacity for
PEAK_HOLD_MS, fades linearly over PEAK_FADE_MS, then resets.

State per channel is exactly (peak_units, peak_time_ms); decay() is a pure
function of that state and the current time.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from eqmixer.config import METER_UNITS, NUM_CHANNELS, PEAK_FADE_MS, PEAK_HOLD_MS


@dataclass
class MeterReading:
    """What the renderer needs for one channel meter on one tick."""
    level: float          # 0-1 continuous level
    units: int            # lit segments
    peak_units: int       # latched peak segment (0 = none)
    peak_opacity: float   # 0-1, 0 when no indicator is drawn


@dataclass
class PeakState:
    peak_units: int = 0
    peak_time_ms: float = 0.0


def level_units(level: float, scale: float = 1.0, unit_height: float = 1.0 / METER_UNITS) -> int:
    """LED count for a level: ceil(level * scale / unit_height)."""
    # 1e-9 absorbs float error on exact segment boundaries
    return int(math.ceil(level * scale / unit_height - 1e-9))


def level_from_bins(bins: Sequence[int]) -> float:
    """Average of analyser byte bins, normalized to 0-1."""
    if len(bins) == 0:
        return 0.0
    return sum(bins) / len(bins) / 255


def decay(peak_units: int, peak_time_ms: float, now_ms: float) -> Tuple[int, float, float]:
    """
    Apply the hold/fade/reset rule.

    Returns:
        (peak_units, peak_time_ms, opacity) after this tick.
    """
    dt = now_ms - peak_time_ms
    if dt < PEAK_HOLD_MS + PEAK_FADE_MS and peak_units >= 1:
        if dt < PEAK_HOLD_MS:
            opacity = 1.0
        else:
            opacity = 1.0 - (dt - PEAK_HOLD_MS) / PEAK_FADE_MS
        return peak_units, peak_time_ms, opacity
    return 0, now_ms, 0.0


class PeakMeter:
    """Peak-hold meters for a fixed set of channels."""

    def __init__(self, num_channels: int = NUM_CHANNELS,
                 scale: float = 1.0, unit_height: Optional[float] = None):
        self.num_channels = num_channels
        self.scale = scale
        self.unit_height = unit_height if unit_height is not None else scale / METER_UNITS
        self._state: Dict[int, PeakState] = {}

    def state(self, channel: int) -> PeakState:
        return self._state.setdefault(channel, PeakState())

    def reset(self, channel: Optional[int] = None):
        """Forget peak state for one channel, or all channels."""
        if channel is None:
            self._state.clear()
        else:
            self._state.pop(channel, None)

    def update(self, channel: int, level: float, now_ms: float) -> MeterReading:
        level = max(0.0, min(1.0, level))
        units = level_units(level, self.scale, self.unit_height)
        st = self.state(channel)

        if not st.peak_units or units > st.peak_units:
            st.peak_units = units
            st.peak_time_ms = now_ms

        st.peak_units, st.peak_time_ms, opacity = decay(st.peak_units, st.peak_time_ms, now_ms)
        return MeterReading(level, units, st.peak_units, opacity)

    def update_all(self, levels: Sequence[float], now_ms: float) -> List[MeterReading]:
        return [self.update(i, level, now_ms) for i, level in enumerate(levels[:self.num_channels])]
