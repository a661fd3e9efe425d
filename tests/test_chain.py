"""
Tests for the live equalizer chain (eqmixer.audio.chain).
"""

import numpy as np
import pytest

from eqmixer.audio.chain import ChainManager
from eqmixer.audio.host import POST, PRE
from eqmixer.audio.response import compute_response
from eqmixer.profiles import FilterStage, InvalidInputError
from tests.helpers.fake_host import HostFailure, RecordingHost


def make_chain(*types):
    host = RecordingHost()
    chain = ChainManager(host)
    chain.bind([FilterStage(t, 1000.0 * (i + 1), 0.0, 1.0) for i, t in enumerate(types)])
    return host, chain


class TestRebuild:
    """Tests for topology rebuilds."""

    def test_empty_chain_is_bypass(self):
        """An empty chain is wired PRE -> POST explicitly."""
        host, chain = make_chain()
        assert host.topology == [PRE, POST]
        assert chain.live == []

    def test_serial_topology_in_signal_order(self):
        """PRE -> f0 -> f1 -> f2 -> POST, one live instance per stage."""
        host, chain = make_chain("highpass", "peaking", "lowpass")
        assert host.topology[0] is PRE
        assert host.topology[-1] is POST
        assert host.topology[1:-1] == chain.live
        assert [f.type for f in chain.live] == ["highpass", "peaking", "lowpass"]

    def test_parameters_copied_to_live(self):
        host, chain = make_chain("peaking")
        live = chain.live[0]
        stage = chain.stages[0]
        assert (live.type, live.frequency, live.gain, live.q) == \
            (stage.type, stage.frequency, stage.gain, stage.q)

    def test_rebuild_releases_previous_instances(self):
        """Old instances are released before new ones are created."""
        host, chain = make_chain("peaking", "notch")
        old = list(chain.live)
        chain.rebuild()
        assert all(f.released for f in old)
        assert len(host.filters) == 2

    def test_frequency_clamped_to_nyquist(self):
        host = RecordingHost()
        chain = ChainManager(host)
        chain.bind([FilterStage("lowpass", 30000.0, 0.0, 1.0)])
        assert chain.stages[0].frequency == 22050.0
        assert chain.live[0].frequency == 22050.0

    def test_bind_shares_stage_list(self):
        """Edits go straight into the bound profile's list."""
        stages = []
        chain = ChainManager(RecordingHost())
        chain.bind(stages)
        chain.insert(FilterStage())
        assert len(stages) == 1


class TestRebuildFailure:
    """Tests for all-or-nothing rebuilds."""

    def test_create_failure_restores_bypass(self):
        """A failing create releases what was made and leaves bypass."""
        host, chain = make_chain("peaking", "notch")
        host.arm_create_failure(1)

        with pytest.raises(HostFailure):
            chain.rebuild()

        assert host.topology == [PRE, POST]
        assert host.filters == []
        assert chain.live == []
        assert all(f.released for f in host.created)

    def test_connect_failure_restores_bypass(self):
        host, chain = make_chain("peaking")
        host.fail_on_connect = True

        with pytest.raises(HostFailure):
            chain.insert(FilterStage("lowshelf", 100.0, 3.0, 1.0))

        assert host.topology == [PRE, POST]
        assert host.filters == []

    def test_failed_insert_keeps_stage_list(self):
        """The stage list is put back when the rebuild behind an edit fails."""
        host, chain = make_chain("peaking")
        stages = chain.stages
        host.fail_on_connect = True

        with pytest.raises(HostFailure):
            chain.insert(FilterStage("lowshelf", 100.0, 3.0, 1.0))

        assert chain.stages is stages
        assert [s.type for s in chain.stages] == ["peaking"]

    def test_failed_remove_and_move_keep_stage_list(self):
        host, chain = make_chain("peaking", "notch")
        host.fail_on_connect = True

        with pytest.raises(HostFailure):
            chain.remove(0)
        with pytest.raises(HostFailure):
            chain.move(0, 1)

        assert [s.type for s in chain.stages] == ["peaking", "notch"]

    def test_mutate_in_bypass_updates_record_only(self):
        """After a failed rebuild, edits land on the stage and apply on the next rebuild."""
        host, chain = make_chain("peaking")
        host.fail_on_connect = True
        with pytest.raises(HostFailure):
            chain.insert(FilterStage("lowshelf", 100.0, 3.0, 1.0))

        host.disarm()
        chain.mutate(0, "gain", 6.0)
        assert chain.stages[0].gain == 6.0

        chain.rebuild()
        assert len(chain.live) == len(chain.stages) == 1
        assert chain.live[0].gain == 6.0

    def test_recovers_after_failure(self):
        host, chain = make_chain("peaking")
        host.fail_on_connect = True
        with pytest.raises(HostFailure):
            chain.rebuild()

        host.disarm()
        chain.rebuild()
        assert len(host.topology) == 3


class TestStructuralEdits:
    """Tests for insert/remove/move."""

    def test_insert_appends(self):
        host, chain = make_chain("peaking")
        index = chain.insert(FilterStage("highshelf", 8000.0, 2.0, 1.0))
        assert index == 1
        assert [f.type for f in host.topology[1:-1]] == ["peaking", "highshelf"]

    def test_remove(self):
        host, chain = make_chain("peaking", "notch", "lowpass")
        removed = chain.remove(1)
        assert removed.type == "notch"
        assert [f.type for f in host.topology[1:-1]] == ["peaking", "lowpass"]

    def test_remove_last_leaves_bypass(self):
        host, chain = make_chain("peaking")
        chain.remove(0)
        assert host.topology == [PRE, POST]

    @pytest.mark.parametrize("index", [-1, 2, 10])
    def test_remove_out_of_range(self, index):
        """Bad index is rejected with nothing changed."""
        host, chain = make_chain("peaking", "notch")
        calls = len(host.connection_log)

        with pytest.raises(InvalidInputError):
            chain.remove(index)

        assert len(chain.stages) == 2
        assert len(host.connection_log) == calls

    def test_move(self):
        host, chain = make_chain("highpass", "peaking", "lowpass")
        chain.move(2, 0)
        assert [s.type for s in chain.stages] == ["lowpass", "highpass", "peaking"]
        assert [f.type for f in host.topology[1:-1]] == ["lowpass", "highpass", "peaking"]

    def test_move_to_same_index_does_not_rewire(self):
        host, chain = make_chain("highpass", "peaking")
        calls = len(host.connection_log)
        chain.move(1, 1)
        assert len(host.connection_log) == calls

    def test_move_out_of_range(self):
        host, chain = make_chain("highpass")
        with pytest.raises(InvalidInputError):
            chain.move(0, 3)


class TestMutate:
    """Tests for parameter edits without rewiring."""

    def test_updates_stage_and_live_without_rewiring(self):
        host, chain = make_chain("peaking")
        calls = len(host.connection_log)
        live = chain.live[0]

        chain.mutate(0, "gain", 4.5)
        chain.mutate(0, "q", 2.0)

        assert chain.stages[0].gain == 4.5
        assert live.gain == 4.5
        assert live.q == 2.0
        assert chain.live[0] is live
        assert len(host.connection_log) == calls

    def test_frequency_clamped(self):
        host, chain = make_chain("peaking")
        chain.mutate(0, "frequency", 40000)
        assert chain.stages[0].frequency == 22050.0
        assert chain.live[0].frequency == 22050.0

    def test_type_change(self):
        host, chain = make_chain("peaking")
        chain.mutate(0, "type", "notch")
        assert chain.live[0].type == "notch"

    def test_unknown_field(self):
        host, chain = make_chain("peaking")
        with pytest.raises(InvalidInputError):
            chain.mutate(0, "slope", 2.0)

    def test_unknown_type(self):
        host, chain = make_chain("peaking")
        with pytest.raises(InvalidInputError):
            chain.mutate(0, "type", "allpass")
        assert chain.stages[0].type == "peaking"

    def test_non_positive_q(self):
        host, chain = make_chain("peaking")
        with pytest.raises(InvalidInputError):
            chain.mutate(0, "q", 0)

    def test_bad_index(self):
        host, chain = make_chain()
        with pytest.raises(InvalidInputError):
            chain.mutate(0, "gain", 1.0)


class TestReleaseAndResponse:
    """Tests for teardown and the live response curve."""

    def test_release(self):
        host, chain = make_chain("peaking", "notch")
        live = list(chain.live)
        chain.release()
        assert all(f.released for f in live)
        assert host.topology == [PRE, POST]
        assert chain.live == []

    def test_response_matches_stage_records(self):
        """The host-reported curve matches the analytic one for the stages."""
        host, chain = make_chain("lowshelf", "peaking")
        chain.mutate(0, "gain", 3.0)
        chain.mutate(1, "gain", -5.0)
        np.testing.assert_allclose(chain.response(64),
                                   compute_response(chain.stages, 44100, 64))

    def test_empty_response_is_flat(self):
        host, chain = make_chain()
        assert np.all(chain.response(32) == 0.0)
