"""
Profile store - lifecycle of audio profiles.

The store owns the list of saved profiles. The active profile is always a
detached copy: edits to it are invisible to the store until commit().
The store is never empty; removing the last profile creates a fresh one.

Persistence is an injected collaborator. Every mutation asks the writer for
a (debounced) save; the in-memory list is authoritative.
"""

import json
from datetime import date
from typing import List, Optional

from eqmixer.config import PROFILE_FILE_SUFFIX, UNNAMED_PROFILE_LABEL
from eqmixer.utils.logger import logger

from .profile_schema import (
    Profile,
    make_export_document,
    validate_import_document,
)


class ProfileError(Exception):
    """Base class for profile and core control errors."""
    pass


class InvalidInputError(ProfileError):
    """Rejected input: bad index, unknown field, malformed document. Nothing changed."""
    pass


class StateInconsistencyError(ProfileError):
    """Referenced profile or channel does not exist in the current state."""
    pass


class ProfileStore:
    """
    Holds saved profiles and the active working copy.

    Usage:
        store = ProfileStore(storage=ProfileStorage())
        store.load()
        active = store.active          # detached copy, edit freely
        store.commit()                 # write edits back over the stored profile
    """

    def __init__(self, storage=None, writer=None):
        self.profiles: List[Profile] = []
        self.active: Optional[Profile] = None
        self.storage = storage
        self.writer = writer
        if self.writer is None and storage is not None:
            from .storage import DebouncedWriter
            self.writer = DebouncedWriter(self.snapshot, storage.save_snapshot)

    # -----------------------------------------------------------------
    # Loading / saving
    # -----------------------------------------------------------------

    def load(self) -> Profile:
        """Load from storage and activate the last active profile (or the first)."""
        profiles, last_active_id = ([], -1)
        if self.storage is not None:
            profiles, last_active_id = self.storage.load()

        self.profiles = list(profiles)
        if not self.profiles:
            self.new_profile()
            return self.activate(self.profiles[0].id)

        if self.find(last_active_id) is not None:
            return self.activate(last_active_id)
        return self.activate(self.profiles[0].id)

    def snapshot(self) -> tuple:
        """(list of profile dicts, active id) for the persistence layer."""
        if self.active is not None:
            active_id = self.active.id
        elif self.profiles:
            active_id = self.profiles[0].id
        else:
            active_id = 0
        return [p.to_dict() for p in self.profiles], active_id

    def _changed(self):
        if self.writer is not None:
            self.writer.request()

    # -----------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------

    def next_id(self) -> int:
        """Smallest positive integer not used by a stored profile."""
        used = {p.id for p in self.profiles}
        profile_id = 1
        while profile_id in used:
            profile_id += 1
        return profile_id

    def find(self, profile_id: int) -> Optional[Profile]:
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        return None

    def get(self, profile_id: int) -> Profile:
        profile = self.find(profile_id)
        if profile is None:
            logger.warning(f"Unknown profile: {profile_id}", component="STORE")
            raise StateInconsistencyError(f"Unknown profile: {profile_id}")
        return profile

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    def new_profile(self) -> Profile:
        profile = Profile(id=self.next_id())
        self.add_profile(profile)
        logger.store(f"Created {profile.label}")
        return profile

    def add_profile(self, profile: Profile):
        self.profiles.append(profile)
        self._changed()

    def activate(self, profile_id: int) -> Profile:
        """Make a detached copy of a stored profile the active one."""
        self.active = self.get(profile_id).copy()
        logger.store(f"Activated {self.active.label}", details=f"id={profile_id}")
        self._changed()
        return self.active

    def delete(self, profile_id: int) -> Profile:
        """
        Remove a profile. Returns the profile that should be selected next
        (the previous neighbour). A fresh profile is created if the store
        would otherwise be empty.
        """
        profile = self.get(profile_id)
        index = self.profiles.index(profile)
        self.profiles.pop(index)
        logger.store(f"Deleted {profile.label}", details=f"id={profile_id}")

        if not self.profiles:
            self.new_profile()

        self._changed()
        return self.profiles[max(0, index - 1)]

    def rename(self, profile_id: int, label: str) -> str:
        label = label.replace("\n", " ").strip()
        if not label:
            label = UNNAMED_PROFILE_LABEL
        self.get(profile_id).label = label
        self._changed()
        return label

    def commit(self, target_id: Optional[int] = None) -> Profile:
        """
        Write the active profile's content over a stored profile.

        The stored profile keeps its own id and label.
        """
        if self.active is None:
            raise StateInconsistencyError("No active profile")
        target = self.get(self.active.id if target_id is None else target_id)

        committed = self.active.copy()
        committed.id = target.id
        committed.label = target.label

        index = self.profiles.index(target)
        self.profiles[index] = committed
        logger.store(f"Committed {committed.label}", details=f"id={committed.id}")
        self._changed()
        return committed

    # -----------------------------------------------------------------
    # Import / export
    # -----------------------------------------------------------------

    def import_document(self, data, today: Optional[date] = None) -> List[Profile]:
        """
        Append every profile in an import document under fresh ids.

        Labels that collide with an existing profile get a
        " (loaded from file on <date>)" suffix.

        Raises:
            InvalidInputError: wrong type tag or invalid content; store unchanged.
        """
        is_valid, messages = validate_import_document(data)
        if not is_valid:
            logger.warning("Rejected profile document", component="STORE",
                           details="; ".join(messages))
            raise InvalidInputError(f"Invalid profile document: {'; '.join(messages)}")

        today = today or date.today()
        imported = []
        for obj in data["profiles"]:
            profile = Profile.from_dict(obj)
            profile.id = self.next_id()
            if not obj.get("label"):
                profile.label = f"Profile {profile.id}"
            if any(p.label == profile.label for p in self.profiles):
                profile.label += f" (loaded from file on {today.strftime('%a %b %d %Y')})"
            self.profiles.append(profile)
            imported.append(profile)

        logger.store(f"Imported {len(imported)} profile(s)")
        self._changed()
        return imported

    def import_json(self, text: str, today: Optional[date] = None) -> List[Profile]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"Invalid JSON in profile file: {e}")
        return self.import_document(data, today)

    def export_document(self, profile_id: int) -> dict:
        return make_export_document([self.get(profile_id)])

    def export_filename(self, profile_id: int) -> str:
        return f"{self.get(profile_id).label}{PROFILE_FILE_SUFFIX}"
