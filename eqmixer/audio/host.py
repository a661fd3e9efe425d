"""
Host Audio Graph
Boundary between the control core and whatever runs the actual audio nodes.

The core only decides node parameters and topology and reads analysis data.
A host provides:
- a factory for filter instances (one per FilterStage)
- an idempotent set_connections(topology) primitive
- one gain handle per mixer channel
- per-tick channel levels and pre/post spectrum bins

OfflineHostGraph is a pure-Python host whose filters evaluate the analytic
biquad response. It backs the CLI and headless use.
"""

from typing import List, Sequence, Tuple

import numpy as np

from eqmixer.audio.meter import level_from_bins
from eqmixer.audio.response import magnitude_response
from eqmixer.config import DEFAULT_SAMPLE_RATE, NUM_CHANNELS


class Endpoint:
    """Fixed chain endpoint (pre-EQ analyser / post-EQ analyser)."""

    def __init__(self, name: str):
        self.name = name

    def __repr__(self):
        return f"<Endpoint {self.name}>"


PRE = Endpoint("pre")
POST = Endpoint("post")


class LiveFilter:
    """A filter instance inside the host graph."""

    def __init__(self, stage_type: str, frequency: float, gain: float, q: float):
        self.type = stage_type
        self.frequency = frequency
        self.gain = gain
        self.q = q
        self.released = False

    def get_frequency_response(self, frequencies) -> np.ndarray:
        raise NotImplementedError

    def __repr__(self):
        return f"<LiveFilter {self.type} {self.frequency:.1f}Hz>"


class GainHandle:
    """Per-channel gain node handle."""

    def __init__(self, channel_id: int):
        self.channel_id = channel_id
        self.value = 1.0


class HostGraph:
    """Collaborator interface implemented by an audio backend."""

    sample_rate: float = DEFAULT_SAMPLE_RATE

    def create_filter(self, stage) -> LiveFilter:
        raise NotImplementedError

    def release_filter(self, live: LiveFilter) -> None:
        raise NotImplementedError

    def set_connections(self, topology: Sequence) -> None:
        """Make the EQ section exactly `topology` (PRE, filters..., POST).

        Must be safe to call repeatedly with the same topology.
        """
        raise NotImplementedError

    def gain_handle(self, channel_id: int) -> GainHandle:
        raise NotImplementedError

    def channel_levels(self) -> List[float]:
        """Per-channel level 0-1 for this tick."""
        raise NotImplementedError

    def spectrum(self) -> Tuple[List[int], List[int]]:
        """Pre- and post-EQ byte frequency bins for this tick."""
        raise NotImplementedError


class OfflineFilter(LiveFilter):
    """Filter instance that answers frequency-response queries analytically."""

    def __init__(self, stage_type, frequency, gain, q, sample_rate):
        super().__init__(stage_type, frequency, gain, q)
        self.sample_rate = sample_rate

    def get_frequency_response(self, frequencies) -> np.ndarray:
        return magnitude_response(self, frequencies, self.sample_rate)


class OfflineHostGraph(HostGraph):
    """In-memory host. Levels and spectrum are fed by the caller."""

    def __init__(self, sample_rate: float = DEFAULT_SAMPLE_RATE,
                 num_channels: int = NUM_CHANNELS, bin_count: int = 1024):
        self.sample_rate = sample_rate
        self.topology: List = [PRE, POST]
        self.filters: List[OfflineFilter] = []
        self._gains = [GainHandle(i) for i in range(num_channels)]
        self._levels = [0.0] * num_channels
        self._pre_bins = [0] * bin_count
        self._post_bins = [0] * bin_count

    def create_filter(self, stage) -> OfflineFilter:
        live = OfflineFilter(stage.type, stage.frequency, stage.gain, stage.q,
                             self.sample_rate)
        self.filters.append(live)
        return live

    def release_filter(self, live: LiveFilter) -> None:
        live.released = True
        if live in self.filters:
            self.filters.remove(live)

    def set_connections(self, topology: Sequence) -> None:
        self.topology = list(topology)

    def gain_handle(self, channel_id: int) -> GainHandle:
        return self._gains[channel_id]

    def channel_levels(self) -> List[float]:
        return list(self._levels)

    def spectrum(self) -> Tuple[List[int], List[int]]:
        return list(self._pre_bins), list(self._post_bins)

    def feed_levels(self, levels: Sequence[float]) -> None:
        self._levels = list(levels)

    def feed_channel_bins(self, channel_bins: Sequence[Sequence[int]]) -> None:
        """Set levels from per-channel analyser byte bins."""
        self._levels = [level_from_bins(bins) for bins in channel_bins]

    def feed_spectrum(self, pre_bins: Sequence[int], post_bins: Sequence[int]) -> None:
        self._pre_bins = list(pre_bins)
        self._post_bins = list(post_bins)
