"""
ChainManager - owns the live equalizer filter chain.

Live instances mirror the active profile's equalizer_nodes 1:1, in signal
order. Structural edits (insert/remove/move) rebuild the chain; parameter
edits (drag, scroll) go through mutate() and never rewire.
"""
from __future__ import annotations

from typing import List, Optional

import numpy as np

from eqmixer.audio.host import POST, PRE, HostGraph, LiveFilter
from eqmixer.audio.response import compute_response
from eqmixer.config import FILTER_TYPES, RESPONSE_POINTS, nyquist
from eqmixer.profiles.profile_schema import FilterStage
from eqmixer.profiles.profile_store import InvalidInputError
from eqmixer.utils.logger import logger

MUTABLE_FIELDS = ("type", "frequency", "gain", "q")


class ChainManager:
    """Live filter chain bound to one profile's stage list."""

    def __init__(self, host: HostGraph):
        self.host = host
        self.stages: List[FilterStage] = []
        self.live: List[LiveFilter] = []

    @property
    def nyquist(self) -> float:
        return nyquist(self.host.sample_rate)

    def bind(self, stages: List[FilterStage]):
        """Attach to a profile's stage list (shared, not copied) and rebuild."""
        self.stages = stages
        self.rebuild()

    def rebuild(self, stages: Optional[List[FilterStage]] = None):
        """
        Replace every live instance and rewire PRE -> f0 -> ... -> POST.

        An empty chain is wired as an explicit PRE -> POST bypass. If the host
        fails part way, instances created here are released and the host is
        left in bypass before the error propagates.
        """
        if stages is not None:
            self.stages = stages

        self._release_live()

        created = []
        try:
            for stage in self.stages:
                stage.frequency = self._clamp_frequency(stage.frequency)
                created.append(self.host.create_filter(stage))
            self.host.set_connections([PRE, *created, POST])
        except Exception as e:
            logger.error("Chain rebuild failed", component="EQ", details=str(e))
            for live in created:
                self.host.release_filter(live)
            self.host.set_connections([PRE, POST])
            raise

        self.live = created
        logger.eq(f"Chain rebuilt with {len(created)} stage(s)")

    def insert(self, stage: FilterStage) -> int:
        """Append a stage and rebuild. Returns its index."""
        saved = list(self.stages)
        self.stages.append(stage)
        self._rebuild_or_restore(saved)
        return len(self.stages) - 1

    def remove(self, index: int) -> FilterStage:
        self.check_index(index)
        saved = list(self.stages)
        stage = self.stages.pop(index)
        self._rebuild_or_restore(saved)
        return stage

    def move(self, from_index: int, to_index: int):
        """Reorder a stage within the chain and rebuild."""
        self.check_index(from_index)
        self.check_index(to_index)
        if from_index == to_index:
            return
        saved = list(self.stages)
        stage = self.stages.pop(from_index)
        self.stages.insert(to_index, stage)
        self._rebuild_or_restore(saved)

    def mutate(self, index: int, field: str, value):
        """
        Update one parameter on both the stage record and the live instance.

        No rewiring happens here.
        """
        self.check_index(index)
        if field not in MUTABLE_FIELDS:
            logger.warning(f"Unknown stage field: {field}", component="EQ")
            raise InvalidInputError(f"Unknown stage field: {field}")

        if field == "type":
            if value not in FILTER_TYPES:
                raise InvalidInputError(f"Unknown filter type: {value}")
        else:
            value = float(value)
            if field == "frequency":
                value = self._clamp_frequency(value)
            elif field == "q" and value <= 0:
                raise InvalidInputError(f"q must be > 0, got {value}")

        setattr(self.stages[index], field, value)
        if len(self.live) == len(self.stages):
            setattr(self.live[index], field, value)
        else:
            logger.warning("Chain is in bypass, live filters not updated", component="EQ")

    def release(self):
        """Disconnect every live instance and leave the host in bypass."""
        self._release_live()
        self.host.set_connections([PRE, POST])

    def response(self, sample_count: int = RESPONSE_POINTS) -> np.ndarray:
        """Aggregate dB curve of the live chain, as the host nodes report it."""
        return compute_response(
            self.live,
            self.host.sample_rate,
            sample_count,
            evaluator=lambda live, freqs: live.get_frequency_response(freqs),
        )

    def _rebuild_or_restore(self, saved: List[FilterStage]):
        """Rebuild; on failure put the stage list back as it was (in place)."""
        try:
            self.rebuild()
        except Exception:
            self.stages[:] = saved
            raise

    def _release_live(self):
        for live in self.live:
            self.host.release_filter(live)
        self.live = []

    def _clamp_frequency(self, frequency: float) -> float:
        return max(0.0, min(self.nyquist, frequency))

    def check_index(self, index: int):
        if not 0 <= index < len(self.stages):
            logger.warning(f"Stage index out of range: {index}", component="EQ",
                           details=f"chain has {len(self.stages)} stage(s)")
            raise InvalidInputError(f"Stage index out of range: {index}")
