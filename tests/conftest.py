"""Pytest configuration - isolate app state and provide shared fixtures.

Profile persistence resolves its default path from the app state dir, so
every test points EQMIXER_STATE_DIR at a temp dir. Nothing a test does can
touch the real user profile file.
"""
from __future__ import annotations

import os
from pathlib import Path
import pytest

from eqmixer.profiles import DebouncedWriter, ProfileStorage, ProfileStore
from eqmixer.session import Session
from tests.helpers.fake_host import FakeClock, RecordingHost

ROOT = Path(__file__).resolve().parents[1]


def pytest_sessionstart(session):
    os.chdir(ROOT)


@pytest.fixture(autouse=True)
def isolated_state_dir(tmp_path, monkeypatch):
    """Point the app state dir at a per-test temp dir."""
    state_dir = tmp_path / "state"
    monkeypatch.setenv("EQMIXER_STATE_DIR", str(state_dir))
    return state_dir


@pytest.fixture
def project_root():
    """Return path to project root."""
    return ROOT


@pytest.fixture
def host():
    """Offline host graph that records topology changes."""
    return RecordingHost()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "audio_profiles.json"


@pytest.fixture
def storage(state_path):
    return ProfileStorage(state_path)


@pytest.fixture
def store(storage, clock):
    """Loaded store with a synchronous debounced writer on a fake clock."""
    store = ProfileStore(storage=storage)
    store.writer = DebouncedWriter(store.snapshot, storage.save_snapshot,
                                   clock=clock, background=False)
    store.load()
    return store


@pytest.fixture
def session(host, store):
    session = Session(host, store, response_points=64)
    session.start()
    return session
