"""
Test doubles for the host audio graph and wall clock.

RecordingHost is the offline host plus a log of every set_connections()
call and switchable failure injection for rebuild tests.

FakeClock is a manually advanced millisecond clock for DebouncedWriter.
"""
from eqmixer.audio.host import OfflineHostGraph


class HostFailure(RuntimeError):
    """Injected host graph failure."""
    pass


class RecordingHost(OfflineHostGraph):

    def __init__(self, *args, fail_on_create=None, fail_on_connect=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.connection_log = []
        self.created = []
        self.released = []
        # Raise on the Nth create_filter() call (1-based), counted from now
        self.fail_on_create = fail_on_create
        self.fail_on_connect = fail_on_connect
        self._create_calls = 0

    def create_filter(self, stage):
        self._create_calls += 1
        if self.fail_on_create is not None and self._create_calls >= self.fail_on_create:
            raise HostFailure(f"create_filter failed on call {self._create_calls}")
        live = super().create_filter(stage)
        self.created.append(live)
        return live

    def release_filter(self, live):
        self.released.append(live)
        super().release_filter(live)

    def set_connections(self, topology):
        topology = list(topology)
        # Restoring bypass must always succeed
        if self.fail_on_connect and len(topology) > 2:
            raise HostFailure("set_connections failed")
        self.connection_log.append(topology)
        super().set_connections(topology)

    def arm_create_failure(self, after_calls):
        """Fail once `after_calls` more create_filter() calls have succeeded."""
        self._create_calls = 0
        self.fail_on_create = after_calls + 1

    def disarm(self):
        self.fail_on_create = None
        self.fail_on_connect = False


class FakeClock:
    """Callable millisecond clock."""

    def __init__(self, now_ms=0.0):
        self.now_ms = now_ms

    def __call__(self):
        return self.now_ms

    def advance(self, ms):
        self.now_ms += ms
        return self.now_ms
