"""
Tests for value mapping in eqmixer.audio.curves
Frequency axis, symmetric-log fader curve, detents and tick generation.
"""

import math
import pytest

from eqmixer.audio.curves import (
    UNITY_POSITION,
    db_to_gain,
    decibel_axis_ticks,
    frequency_axis_ticks,
    frequency_to_ratio,
    gain_to_db,
    mixer_db_to_position_ratio,
    mixer_position_ratio_to_db,
    mixer_volume_ticks,
    ratio_to_frequency,
    snap_mixer_ratio,
    sym_log_x,
    sym_log_y,
)

SR = 44100


class TestFrequencyAxis:
    """Tests for ratio <-> frequency mapping."""

    def test_left_edge_is_20hz(self):
        """Ratio 0 maps to 20 Hz."""
        assert ratio_to_frequency(0, SR) == pytest.approx(20.0)

    def test_right_edge_is_nyquist(self):
        """Ratio 1 maps to Nyquist."""
        assert ratio_to_frequency(1, SR) == pytest.approx(22050.0)

    def test_midpoint_is_geometric_mean(self):
        """Log axis: ratio 0.5 is the geometric mean of the range."""
        assert ratio_to_frequency(0.5, SR) == pytest.approx(math.sqrt(20 * 22050))

    def test_clamps_above_nyquist(self):
        """Ratios past the right edge never exceed Nyquist."""
        assert ratio_to_frequency(1.2, SR) == 22050.0

    def test_sample_rate_changes_range(self):
        """Right edge follows the sample rate."""
        assert ratio_to_frequency(1, 48000) == pytest.approx(24000.0)

    @pytest.mark.parametrize("ratio", [0.0, 0.1, 0.33, 0.5, 0.8, 1.0])
    def test_inverse(self, ratio):
        """frequency_to_ratio undoes ratio_to_frequency."""
        freq = ratio_to_frequency(ratio, SR)
        assert frequency_to_ratio(freq, SR) == pytest.approx(ratio, abs=1e-9)

    def test_zero_frequency_sits_at_left(self):
        """A 0 Hz stage is placed at the left edge."""
        assert frequency_to_ratio(0.0, SR) == 0.0


class TestAxisTicks:
    """Tests for EQ plot axis ticks."""

    def test_frequency_ticks_start_at_20hz(self):
        """First tick is the labelled 20 Hz line at the left edge."""
        ticks = frequency_axis_ticks(SR)
        assert ticks[0] == (0.0, "20Hz")

    def test_frequency_ticks_end_at_nyquist(self):
        """Last tick is at the right edge, labelled with Nyquist."""
        position, label = frequency_axis_ticks(SR)[-1]
        assert position == 1.0
        assert label.endswith("kHz")

    def test_frequency_ticks_are_ordered_and_in_range(self):
        """Positions increase monotonically inside [0, 1]."""
        positions = [p for p, _ in frequency_axis_ticks(SR)]
        assert positions == sorted(positions)
        assert all(0.0 <= p <= 1.0 for p in positions)

    def test_frequency_tick_labels(self):
        """Decades and 2x/5x steps are labelled; others are not."""
        labels = {label for _, label in frequency_axis_ticks(SR)}
        assert "100Hz" in labels
        assert "1kHz" in labels
        assert "5kHz" in labels
        assert "300Hz" not in labels
        assert None in labels

    def test_decibel_ticks(self):
        """+20 at the top, -20 at the bottom, every other tick labelled."""
        ticks = decibel_axis_ticks()
        assert len(ticks) == 9
        assert ticks[0] == (0.0, "20")
        assert ticks[4] == (0.5, "0")
        assert ticks[-1] == (1.0, "-20")
        assert ticks[1][1] is None


class TestGainConversion:
    """Tests for dB <-> linear gain."""

    def test_unity(self):
        assert db_to_gain(0) == 1.0
        assert gain_to_db(1.0) == 0.0

    def test_zero_gain_is_negative_infinity(self):
        """Silence is -inf dB, not an error."""
        assert gain_to_db(0.0) == -math.inf

    def test_negative_infinity_is_zero_gain(self):
        assert db_to_gain(-math.inf) == 0.0

    def test_six_db_doubles_amplitude(self):
        assert db_to_gain(6.0206) == pytest.approx(2.0, rel=1e-4)


class TestSymLog:
    """Tests for the symmetric log curve."""

    def test_zero(self):
        assert sym_log_y(0) == 0.0
        assert sym_log_x(0) == 0.0

    def test_odd_symmetry(self):
        """Negative inputs mirror positive ones."""
        assert sym_log_y(-12) == pytest.approx(-sym_log_y(12))

    @pytest.mark.parametrize("x", [-50, -6, -0.5, 0.5, 3, 10])
    def test_inverse(self, x):
        assert sym_log_x(sym_log_y(x)) == pytest.approx(x)


class TestFaderCurve:
    """Tests for mixer dB <-> fader position mapping."""

    @pytest.mark.parametrize("db", [-49.0, -30.0, -12.0, -6.0, -0.5, 0.0, 0.5, 3.0, 10.0])
    def test_round_trip(self, db):
        """Position -> dB recovers the dB value across the fader range."""
        ratio = mixer_db_to_position_ratio(db)
        assert mixer_position_ratio_to_db(ratio) == pytest.approx(db, abs=1e-9)

    def test_top_is_plus_10(self):
        assert mixer_db_to_position_ratio(10) == 0.0
        assert mixer_position_ratio_to_db(0.0) == pytest.approx(10.0)

    def test_bottom_is_silence(self):
        """Ratio 1 is -inf dB."""
        assert mixer_position_ratio_to_db(1.0) == -math.inf

    def test_floor_maps_to_bottom(self):
        """-50 dB and anything quieter sit at the bottom of travel."""
        assert mixer_db_to_position_ratio(-50) == 1.0
        assert mixer_db_to_position_ratio(-80) == 1.0
        assert mixer_db_to_position_ratio(-math.inf) == 1.0

    def test_unity_gets_upper_quarter(self):
        """0 dB sits well above the middle, stretching travel near unity."""
        assert 0.2 < UNITY_POSITION < 0.3

    def test_monotonic(self):
        """Louder is always higher on the fader."""
        dbs = [10, 6, 3, 0, -3, -6, -12, -24, -40, -49]
        ratios = [mixer_db_to_position_ratio(db) for db in dbs]
        assert ratios == sorted(ratios)


class TestFaderSnap:
    """Tests for fader detents."""

    def test_snaps_to_unity(self):
        """Positions near 0 dB snap exactly to it."""
        assert snap_mixer_ratio(UNITY_POSITION + 0.02) == UNITY_POSITION
        assert snap_mixer_ratio(UNITY_POSITION - 0.02) == UNITY_POSITION
        assert mixer_position_ratio_to_db(snap_mixer_ratio(UNITY_POSITION + 0.01)) == pytest.approx(0.0)

    def test_snaps_to_mute(self):
        """Positions near the bottom snap to hard mute."""
        assert snap_mixer_ratio(0.985) == 1.0
        assert snap_mixer_ratio(0.98) == 1.0

    def test_free_travel(self):
        assert snap_mixer_ratio(0.5) == 0.5

    def test_clamps(self):
        assert snap_mixer_ratio(-0.3) == 0.0
        assert snap_mixer_ratio(1.4) == 1.0


class TestVolumeTicks:
    """Tests for the fader scale."""

    def test_labels(self):
        labels = [label for _, label in mixer_volume_ticks()]
        assert labels == ["+10", "0", "-10", "-20", "-30", "-40", "-∞"]

    def test_positions(self):
        ticks = mixer_volume_ticks()
        assert ticks[0][0] == 0.0
        assert ticks[1][0] == pytest.approx(UNITY_POSITION)
        assert ticks[-1][0] == 1.0
        assert ticks[-2][0] < 1.0
