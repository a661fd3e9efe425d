"""
Profile persistence.

ProfileStorage reads/writes the profile state file atomically.
DebouncedWriter coalesces bursts of edits into one write once no new edit
has arrived for the quiescence window. It is polled from the render tick
and hands the write to a background thread so ticks never block on disk.
"""

import json
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from eqmixer.config import SAVE_DEBOUNCE_MS
from eqmixer.utils.logger import logger

from .profile_schema import Profile, validate_profile
from .profile_store import ProfileError


class ProfileStorage:
    """
    JSON state file: {"audioProfiles": [...], "currentAudioProfile": id}.

    Usage:
        storage = ProfileStorage()             # app state dir
        profiles, active_id = storage.load()
        storage.save(profiles, active_id)
    """

    def __init__(self, path: Optional[Path] = None):
        if path is None:
            from eqmixer.utils.app_paths import get_profiles_path
            path = get_profiles_path()
        self.path = Path(path)

    def load(self) -> Tuple[List[Profile], int]:
        """
        Load stored profiles.

        Returns:
            (profiles, last_active_id). A missing file gives ([], -1).
            Invalid entries are skipped with a warning.

        Raises:
            ProfileError: unreadable file or invalid JSON
        """
        if not self.path.exists():
            return [], -1

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ProfileError(f"Invalid JSON in profile state file: {e}")
        except OSError as e:
            raise ProfileError(f"Failed to read profile state file: {e}")

        if not isinstance(data, dict):
            raise ProfileError("Profile state file must contain a JSON object")

        profiles = []
        seen_ids = set()
        for i, obj in enumerate(data.get("audioProfiles") or []):
            is_valid, messages = validate_profile(obj, f"audioProfiles[{i}]")
            if not is_valid:
                logger.warning("Skipping invalid stored profile", component="STORE",
                               details="; ".join(messages))
                continue
            profile = Profile.from_dict(obj)
            if profile.id in seen_ids:
                logger.warning(f"Skipping duplicate profile id {profile.id}", component="STORE")
                continue
            seen_ids.add(profile.id)
            profiles.append(profile)

        active_id = data.get("currentAudioProfile", -1)
        if not isinstance(active_id, int) or isinstance(active_id, bool):
            active_id = -1
        return profiles, active_id

    def save(self, profiles: List[Profile], active_id: int) -> None:
        self.save_snapshot(([p.to_dict() for p in profiles], active_id))

    def save_snapshot(self, snapshot: tuple) -> None:
        """Write a (profile dicts, active id) snapshot atomically."""
        profile_dicts, active_id = snapshot
        data = {
            "audioProfiles": profile_dicts,
            "currentAudioProfile": active_id,
        }
        json_str = json.dumps(data, indent=2)

        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Atomic write: temp file in same directory, then os.replace
        try:
            fd, temp_path = tempfile.mkstemp(
                suffix='.tmp',
                prefix='.profiles_',
                dir=self.path.parent
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(json_str)
                os.replace(temp_path, self.path)
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise ProfileError(f"Failed to write profile state file: {e}")

        logger.store(f"Saved {len(profile_dicts)} profile(s)", details=str(self.path))


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class DebouncedWriter:
    """
    Pending-write scheduler.

    request() marks state dirty. poll() (called every tick) dispatches a single
    write once quiescence_ms have passed since the last request and no earlier
    write is still in flight. The snapshot
    is taken on the calling thread; only the disk write runs in the background.

    Usage:
        writer = DebouncedWriter(store.snapshot, storage.save_snapshot)
        writer.request()          # on every edit
        writer.poll()             # on every tick
        writer.flush()            # on teardown
    """

    def __init__(self, snapshot_fn: Callable[[], tuple], write_fn: Callable[[tuple], None],
                 quiescence_ms: float = SAVE_DEBOUNCE_MS,
                 clock: Callable[[], float] = _monotonic_ms,
                 background: bool = True):
        self.snapshot_fn = snapshot_fn
        self.write_fn = write_fn
        self.quiescence_ms = quiescence_ms
        self.clock = clock
        self.background = background
        self._pending = False
        self._last_request_ms = 0.0
        self._thread: Optional[threading.Thread] = None

    @property
    def pending(self) -> bool:
        return self._pending

    def request(self, now_ms: Optional[float] = None):
        self._pending = True
        self._last_request_ms = self.clock() if now_ms is None else now_ms

    def poll(self, now_ms: Optional[float] = None) -> bool:
        """Dispatch the pending write if the window has elapsed. Returns True if dispatched."""
        if not self._pending:
            return False
        now_ms = self.clock() if now_ms is None else now_ms
        if now_ms - self._last_request_ms < self.quiescence_ms:
            return False
        if self._thread is not None and self._thread.is_alive():
            # one write in flight at a time; retry on a later tick
            return False

        self._pending = False
        snapshot = self.snapshot_fn()
        if self.background:
            self._thread = threading.Thread(target=self._write, args=(snapshot,), daemon=True)
            self._thread.start()
        else:
            self._write(snapshot)
        return True

    def flush(self):
        """Write now if anything is pending, and wait for an in-flight write."""
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._pending:
            self._pending = False
            self._write(self.snapshot_fn())

    def _write(self, snapshot: tuple):
        try:
            self.write_fn(snapshot)
        except ProfileError as e:
            logger.error("Profile save failed", component="STORE", details=str(e))
