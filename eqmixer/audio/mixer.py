"""
MixerRouter - resolves effective channel gains and pushes them to the host.

Every mutation recomputes all effective gains immediately; there is no
batching at control rate.
"""
from __future__ import annotations

from typing import List, Sequence

from eqmixer.audio.curves import (
    db_to_gain,
    gain_to_db,
    mixer_db_to_position_ratio,
    mixer_position_ratio_to_db,
    snap_mixer_ratio,
)
from eqmixer.audio.host import GainHandle, HostGraph
from eqmixer.config import MASTER_CHANNEL, MIXER_KEY_STEP
from eqmixer.profiles.profile_schema import ChannelState
from eqmixer.profiles.profile_store import InvalidInputError, StateInconsistencyError
from eqmixer.utils.logger import logger


def resolve_effective_gain(channels: Sequence[ChannelState]) -> List[float]:
    """
    Effective linear gain per channel after mute/solo.

    Any soloed channel silences every non-soloed regular channel. The master
    only follows its own mute and gain.
    """
    soloed = [ch for ch in channels if ch.solo]
    result = []
    for ch in channels:
        if soloed and ch.id != MASTER_CHANNEL and not ch.solo:
            result.append(0.0)
        else:
            result.append(0.0 if ch.muted else ch.gain)
    return result


class MixerRouter:
    """Applies a profile's channel states to the host gain nodes."""

    def __init__(self, host: HostGraph):
        self.host = host
        self.channels: List[ChannelState] = []
        self.handles: List[GainHandle] = []
        self.effective: List[float] = []

    def bind(self, channels: List[ChannelState]):
        """Attach to a profile's channel list (shared, not copied) and push gains."""
        self.channels = channels
        self.handles = [self.host.gain_handle(ch.id) for ch in channels]
        self.push()

    def release(self):
        """Drop gain handles (profile switch / teardown)."""
        self.handles = []
        self.effective = []

    def push(self) -> List[float]:
        self.effective = resolve_effective_gain(self.channels)
        for handle, value in zip(self.handles, self.effective):
            handle.value = value
        return self.effective

    def channel(self, channel_id: int) -> ChannelState:
        if not 0 <= channel_id < len(self.channels):
            logger.warning(f"Unknown channel: {channel_id}", component="MIXER")
            raise StateInconsistencyError(f"Unknown channel: {channel_id}")
        return self.channels[channel_id]

    def set_gain(self, channel_id: int, gain: float):
        if gain < 0:
            raise InvalidInputError(f"Channel gain must be >= 0, got {gain}")
        self.channel(channel_id).gain = gain
        logger.mixer(channel_id, f"gain {gain:.3f}")
        self.push()

    def toggle_mute(self, channel_id: int) -> bool:
        ch = self.channel(channel_id)
        ch.muted = not ch.muted
        logger.mixer(channel_id, f"mute {ch.muted}")
        self.push()
        return ch.muted

    def toggle_solo(self, channel_id: int) -> bool:
        """
        Toggle solo. Enabling solo clears it on every other regular channel,
        so the last soloed regular channel wins.
        """
        ch = self.channel(channel_id)
        if not ch.solo:
            for other in self.channels:
                if other is not ch and other.id != MASTER_CHANNEL:
                    other.solo = False
        ch.solo = not ch.solo
        logger.mixer(channel_id, f"solo {ch.solo}")
        self.push()
        return ch.solo

    def position_of(self, channel_id: int) -> float:
        """Fader position ratio (0 = top, 1 = bottom) of a channel's gain."""
        return mixer_db_to_position_ratio(gain_to_db(self.channel(channel_id).gain))

    def set_position(self, channel_id: int, ratio: float) -> float:
        """Set gain from a fader position, with detents. Returns the dB applied."""
        db = mixer_position_ratio_to_db(snap_mixer_ratio(ratio))
        self.set_gain(channel_id, db_to_gain(db))
        return db

    def nudge(self, channel_id: int, steps: int) -> float:
        """Keyboard nudge: positive steps move the fader up (louder)."""
        ratio = self.position_of(channel_id) - steps * MIXER_KEY_STEP
        db = mixer_position_ratio_to_db(ratio)
        self.set_gain(channel_id, db_to_gain(db))
        return db
