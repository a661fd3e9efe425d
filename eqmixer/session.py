"""
Session - command/query façade over the control core.

Holds the active profile explicitly (no global current profile) together
with the live chain, mixer routing and meters built from it. An external UI
calls the command methods on discrete events and tick() once per frame.

Error policy:
- InvalidInputError propagates to the caller; nothing was changed.
- StateInconsistencyError (stale profile/channel id) is logged and the
  command becomes a no-op returning False.
"""
from __future__ import annotations

import functools
import json
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

import numpy as np

from eqmixer.audio.chain import ChainManager
from eqmixer.audio.curves import clamp, frequency_to_ratio, ratio_to_frequency
from eqmixer.audio.host import HostGraph
from eqmixer.audio.meter import MeterReading, PeakMeter
from eqmixer.audio.mixer import MixerRouter
from eqmixer.audio.response import SpectrumBar, spectrum_bars
from eqmixer.config import (
    EDGE_INSERT_RATIO,
    EQ_DRAG_DB_RANGE,
    FILTER_TYPE_ROTATION,
    NUM_CHANNELS,
    Q_MAX,
    Q_MIN,
    Q_WHEEL_FACTOR,
    RESPONSE_POINTS,
    TYPES_USING_GAIN,
)
from eqmixer.profiles import FilterStage, Profile, ProfileStore, StateInconsistencyError
from eqmixer.utils.formatting import describe_stage
from eqmixer.utils.logger import logger


@dataclass
class TickFrame:
    """Everything the renderer draws for one frame."""
    response: np.ndarray
    meters: List[MeterReading]
    effective_gains: List[float]
    spectrum: List[SpectrumBar] = field(default_factory=list)


@dataclass
class StageMarker:
    """Stage handle position on the EQ plot (ratios, y=0.5 is 0 dB)."""
    index: int
    x: float
    y: float
    label: str


def _stale_is_noop(method):
    """Turn StateInconsistencyError into a logged no-op returning False."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except StateInconsistencyError as e:
            logger.warning(f"Ignored {method.__name__}", component="APP", details=str(e))
            return False
    return wrapper


class Session:
    """
    Usage:
        session = Session(OfflineHostGraph(), ProfileStore(storage=ProfileStorage()))
        session.start()
        session.add_stage_at(0.5)
        frame = session.tick(now_ms)
        ...
        session.close()
    """

    def __init__(self, host: HostGraph, store: ProfileStore,
                 response_points: int = RESPONSE_POINTS,
                 spectrum_width: Optional[int] = None):
        self.host = host
        self.store = store
        self.response_points = response_points
        self.spectrum_width = spectrum_width or response_points
        self.chain = ChainManager(host)
        self.mixer = MixerRouter(host)
        self.meter = PeakMeter(NUM_CHANNELS)
        self.response = np.zeros(response_points)

    @property
    def profile(self) -> Optional[Profile]:
        return self.store.active

    @property
    def sample_rate(self) -> float:
        return self.host.sample_rate

    # -----------------------------------------------------------------
    # Profile activation
    # -----------------------------------------------------------------

    def start(self) -> Profile:
        """Load stored profiles if needed and bind the active one."""
        if self.store.active is None:
            self.store.load()
        self._bind(self.store.active)
        logger.info(f"Session started on {self.profile.label}", component="APP")
        return self.profile

    @_stale_is_noop
    def activate(self, profile_id: int) -> Profile:
        self.store.get(profile_id)
        self.release()
        profile = self.store.activate(profile_id)
        self._bind(profile)
        return profile

    def _bind(self, profile: Profile):
        self.chain.bind(profile.equalizer_nodes)
        self.mixer.bind(profile.mixer_channels)
        self.meter.reset()
        self.refresh_response()

    def release(self):
        """Disconnect every live filter and gain handle."""
        self.chain.release()
        self.mixer.release()

    def close(self):
        self.release()
        if self.store.writer is not None:
            self.store.writer.flush()
        logger.info("Session closed", component="APP")

    # -----------------------------------------------------------------
    # Equalizer
    # -----------------------------------------------------------------

    def refresh_response(self) -> np.ndarray:
        self.response = self.chain.response(self.response_points)
        return self.response

    def add_stage(self, stage: FilterStage) -> int:
        index = self.chain.insert(stage)
        self.refresh_response()
        logger.eq(f"Added {describe_stage(stage)}")
        return index

    def add_stage_at(self, x_ratio: float) -> int:
        """
        Add a stage from a click on the 0 dB line.

        Clicks at the far left add a highpass, at the far right a lowpass,
        anywhere else a peaking stage at that frequency.
        """
        x_ratio = clamp(x_ratio, 0.0, 1.0)
        if x_ratio < EDGE_INSERT_RATIO:
            x_ratio, stage_type = 0.0, "highpass"
        elif x_ratio > 1.0 - EDGE_INSERT_RATIO:
            x_ratio, stage_type = 1.0, "lowpass"
        else:
            stage_type = "peaking"
        frequency = ratio_to_frequency(x_ratio, self.sample_rate)
        return self.add_stage(FilterStage(stage_type, frequency, 0.0, 1.0))

    def remove_stage(self, index: int) -> FilterStage:
        stage = self.chain.remove(index)
        self.refresh_response()
        return stage

    def move_stage(self, from_index: int, to_index: int):
        self.chain.move(from_index, to_index)
        self.refresh_response()

    def set_stage_param(self, index: int, field_name: str, value):
        self.chain.mutate(index, field_name, value)
        self.refresh_response()

    def drag_stage(self, index: int, x_ratio: float, y_ratio: float):
        """
        Drag a stage handle. x sets frequency; y sets gain for the types that
        use it (top = +20 dB, middle = 0 dB, bottom = -20 dB).
        """
        self.chain.mutate(index, "frequency",
                          ratio_to_frequency(clamp(x_ratio, 0.0, 1.0), self.sample_rate))
        if self.chain.stages[index].type in TYPES_USING_GAIN:
            percent = clamp(y_ratio, 0.0, 1.0) * 100
            db = clamp(-percent + 50, -50, 50) / 100 * (2 * EQ_DRAG_DB_RANGE)
            self.chain.mutate(index, "gain", db)
        self.refresh_response()

    def scroll_q(self, index: int, delta: float) -> float:
        """Wheel over a stage: each notch scales Q by 1.1."""
        self.chain.check_index(index)
        q = self.chain.stages[index].q * Q_WHEEL_FACTOR ** float(np.sign(delta))
        q = clamp(q, Q_MIN, Q_MAX)
        self.chain.mutate(index, "q", q)
        self.refresh_response()
        return q

    def cycle_type(self, index: int, step: int = 1) -> str:
        """Rotate the stage type forward (double click) or backward (step=-1)."""
        self.chain.check_index(index)
        current = self.chain.stages[index].type
        if current not in FILTER_TYPE_ROTATION:
            return current
        position = FILTER_TYPE_ROTATION.index(current)
        new_type = FILTER_TYPE_ROTATION[(position + step) % len(FILTER_TYPE_ROTATION)]
        self.chain.mutate(index, "type", new_type)
        self.refresh_response()
        return new_type

    def stage_markers(self) -> List[StageMarker]:
        markers = []
        for i, stage in enumerate(self.chain.stages):
            y = 0.5
            if stage.type in TYPES_USING_GAIN:
                y = 0.5 - clamp(stage.gain, -EQ_DRAG_DB_RANGE, EQ_DRAG_DB_RANGE) / (2 * EQ_DRAG_DB_RANGE)
            x = frequency_to_ratio(stage.frequency, self.sample_rate)
            markers.append(StageMarker(i, x, y, describe_stage(stage)))
        return markers

    # -----------------------------------------------------------------
    # Mixer
    # -----------------------------------------------------------------

    @_stale_is_noop
    def set_channel_gain(self, channel_id: int, gain: float) -> List[float]:
        self.mixer.set_gain(channel_id, gain)
        return self.mixer.effective

    @_stale_is_noop
    def set_channel_position(self, channel_id: int, ratio: float) -> float:
        return self.mixer.set_position(channel_id, ratio)

    @_stale_is_noop
    def nudge_channel(self, channel_id: int, steps: int) -> float:
        return self.mixer.nudge(channel_id, steps)

    @_stale_is_noop
    def toggle_mute(self, channel_id: int) -> bool:
        return self.mixer.toggle_mute(channel_id)

    @_stale_is_noop
    def toggle_solo(self, channel_id: int) -> bool:
        return self.mixer.toggle_solo(channel_id)

    # -----------------------------------------------------------------
    # Profiles
    # -----------------------------------------------------------------

    def new_profile(self) -> Profile:
        return self.store.new_profile()

    @_stale_is_noop
    def delete_profile(self, profile_id: int) -> Profile:
        """Delete a stored profile; if it was active, the neighbour becomes active."""
        was_active = self.profile is None or self.profile.id == profile_id
        neighbour = self.store.delete(profile_id)
        if was_active:
            self.activate(neighbour.id)
        return neighbour

    @_stale_is_noop
    def rename_profile(self, profile_id: int, label: str) -> str:
        return self.store.rename(profile_id, label)

    @_stale_is_noop
    def commit(self, target_id: Optional[int] = None) -> Profile:
        return self.store.commit(target_id)

    def import_document(self, data, today: Optional[date] = None) -> List[Profile]:
        return self.store.import_document(data, today)

    def import_json(self, text: str, today: Optional[date] = None) -> List[Profile]:
        return self.store.import_json(text, today)

    @_stale_is_noop
    def export_profile(self, profile_id: int) -> tuple:
        """(suggested filename, JSON text) for a stored profile."""
        document = self.store.export_document(profile_id)
        return self.store.export_filename(profile_id), json.dumps(document, indent=2)

    # -----------------------------------------------------------------
    # Render tick
    # -----------------------------------------------------------------

    def tick(self, now_ms: float) -> TickFrame:
        levels = self.host.channel_levels()
        meters = self.meter.update_all(levels, now_ms)

        pre_bins, post_bins = self.host.spectrum()
        bars = spectrum_bars(pre_bins, post_bins, self.sample_rate, self.spectrum_width)

        if self.store.writer is not None:
            self.store.writer.poll()

        return TickFrame(self.response, meters, list(self.mixer.effective), bars)
