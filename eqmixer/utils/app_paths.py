"""App path helpers (cross-platform).

SSOT for EQ Mixer app data/state paths.

Environment overrides (useful for portable/dev launches):
- EQMIXER_DATA_DIR: base dir containing state/
- EQMIXER_STATE_DIR: explicit state dir (overrides EQMIXER_DATA_DIR/state)
"""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_data_dir

from eqmixer.config import STATE_FILENAME

APP_NAME = "EqMixer"


def _env_path(name: str) -> Path | None:
    v = os.environ.get(name)
    if not v:
        return None
    return Path(os.path.expanduser(v)).resolve()


def get_app_data_dir() -> Path:
    """Base app data dir."""
    data_dir = _env_path("EQMIXER_DATA_DIR")
    if data_dir is not None:
        return data_dir
    return Path(user_data_dir(APP_NAME, appauthor=False, roaming=True)).resolve()


def get_app_state_dir() -> Path:
    """State dir under the app data dir."""
    state_dir = _env_path("EQMIXER_STATE_DIR")
    if state_dir is not None:
        state_dir.mkdir(parents=True, exist_ok=True)
        return state_dir

    state_dir = get_app_data_dir() / "state"
    state_dir.mkdir(parents=True, exist_ok=True)
    return state_dir


def get_profiles_path() -> Path:
    return get_app_state_dir() / STATE_FILENAME
