"""
Profiles module - equalizer/mixer profile data, lifecycle and persistence.
"""

from .profile_schema import (
    FilterStage,
    ChannelState,
    Profile,
    ProfileValidationError,
    make_export_document,
    normalize_channels,
    validate_profile,
    validate_import_document,
)

from .profile_store import (
    ProfileStore,
    ProfileError,
    InvalidInputError,
    StateInconsistencyError,
)

from .storage import (
    ProfileStorage,
    DebouncedWriter,
)

__all__ = [
    "FilterStage",
    "ChannelState",
    "Profile",
    "ProfileValidationError",
    "make_export_document",
    "normalize_channels",
    "validate_profile",
    "validate_import_document",
    "ProfileStore",
    "ProfileError",
    "InvalidInputError",
    "StateInconsistencyError",
    "ProfileStorage",
    "DebouncedWriter",
]
