"""
Profile schema definition and validation.

A profile is a pure value: an ordered equalizer chain (signal order) plus
exactly NUM_CHANNELS mixer channels (six regular channels and the master).
Serialized key names match the stored/exported JSON documents.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import json
import math

from eqmixer.config import (
    FILTER_TYPES,
    NUM_CHANNELS,
    PROFILE_FILE_TYPE,
    PROFILE_FILE_VERSION,
    STAGE_PARAMS_BY_KEY,
)


@dataclass
class FilterStage:
    """One parametric filter in the equalizer chain."""
    type: str = "peaking"
    frequency: float = 350.0  # Hz
    gain: float = 0.0         # dB, used by peaking/lowshelf/highshelf
    q: float = 1.0            # used by lowpass/highpass/bandpass/peaking/notch

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "frequency": self.frequency,
            "gain": self.gain,
            "q": self.q,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FilterStage":
        return cls(
            type=data.get("type", "peaking"),
            frequency=float(data.get("frequency", 350.0)),
            gain=float(data.get("gain", 0.0)),
            q=float(data.get("q", 1.0)),
        )


@dataclass
class ChannelState:
    """Mixer channel: linear gain, mute and solo. id 6 is the master."""
    id: int = 0
    gain: float = 1.0
    muted: bool = False
    solo: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "gain": self.gain,
            "muted": self.muted,
            "solo": self.solo,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChannelState":
        return cls(
            id=int(data.get("id", 0)),
            gain=float(data.get("gain", 1.0)),
            muted=bool(data.get("muted", False)),
            solo=bool(data.get("solo", False)),
        )


def normalize_channels(channels: List[ChannelState]) -> List[ChannelState]:
    """
    Pad or truncate to exactly NUM_CHANNELS entries.

    Channel ids always equal their position; missing channels get unity
    gain with mute and solo off.
    """
    result = list(channels[:NUM_CHANNELS])
    while len(result) < NUM_CHANNELS:
        result.append(ChannelState(id=len(result)))
    for i, channel in enumerate(result):
        channel.id = i
    return result


def default_channels() -> List[ChannelState]:
    return [ChannelState(id=i) for i in range(NUM_CHANNELS)]


@dataclass
class Profile:
    id: int = 1
    label: str = ""
    equalizer_nodes: List[FilterStage] = field(default_factory=list)
    mixer_channels: List[ChannelState] = field(default_factory=default_channels)

    def __post_init__(self):
        if not self.label:
            self.label = f"Profile {self.id}"
        self.mixer_channels = normalize_channels(self.mixer_channels)

    def to_dict(self, include_id: bool = True) -> dict:
        data = {}
        if include_id:
            data["id"] = self.id
        data["label"] = self.label
        data["equalizerNodes"] = [node.to_dict() for node in self.equalizer_nodes]
        data["mixerChannels"] = [ch.to_dict() for ch in self.mixer_channels]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Profile":
        nodes = data.get("equalizerNodes") or []
        channels = data.get("mixerChannels") or []
        return cls(
            id=int(data.get("id", 1)),
            label=data.get("label", ""),
            equalizer_nodes=[FilterStage.from_dict(n) for n in nodes],
            mixer_channels=[ChannelState.from_dict(c) for c in channels],
        )

    def copy(self) -> "Profile":
        """Detached deep copy."""
        return Profile.from_dict(self.to_dict())

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "Profile":
        return cls.from_dict(json.loads(json_str))


def make_export_document(profiles: List[Profile]) -> dict:
    """Build an import/export document. Ids are stripped."""
    return {
        "type": PROFILE_FILE_TYPE,
        "version": PROFILE_FILE_VERSION,
        "profiles": [p.to_dict(include_id=False) for p in profiles],
    }


class ProfileValidationError(Exception):
    """Raised when profile validation fails in strict mode."""
    pass


def validate_profile(data: dict, prefix: str = "profile", strict: bool = False) -> tuple:
    """
    Validate profile data.

    Args:
        data: Profile dictionary (id optional, as in export documents)
        prefix: Path prefix for messages
        strict: If True, raise ProfileValidationError on any error

    Returns:
        (is_valid, errors_and_warnings)
    """
    errors = []
    warnings = []

    if not isinstance(data, dict):
        errors.append(f"{prefix} must be dict")
        if strict:
            raise ProfileValidationError(f"Invalid profile: {errors[0]}")
        return False, errors

    if "id" in data:
        profile_id, warning = _coerce_int(data["id"], f"{prefix}.id")
        if warning:
            warnings.append(warning)
        if profile_id is None or profile_id < 1:
            errors.append(f"{prefix}.id must be a positive integer, got {data['id']!r}")

    label = data.get("label", "")
    if not isinstance(label, str):
        errors.append(f"{prefix}.label must be str, got {type(label).__name__}")

    nodes = data.get("equalizerNodes", [])
    if nodes is None:
        nodes = []
    if not isinstance(nodes, list):
        errors.append(f"{prefix}.equalizerNodes must be list")
        nodes = []
    for i, node in enumerate(nodes):
        node_errors, node_warnings = _validate_stage(node, f"{prefix}.equalizerNodes[{i}]")
        errors.extend(node_errors)
        warnings.extend(node_warnings)

    channels = data.get("mixerChannels", [])
    if channels is None:
        channels = []
    if not isinstance(channels, list):
        errors.append(f"{prefix}.mixerChannels must be list")
        channels = []
    if len(channels) > NUM_CHANNELS:
        warnings.append(
            f"{prefix}.mixerChannels has {len(channels)} items, extra channels are dropped"
        )
    for i, channel in enumerate(channels[:NUM_CHANNELS]):
        ch_errors, ch_warnings = _validate_channel(channel, f"{prefix}.mixerChannels[{i}]")
        errors.extend(ch_errors)
        warnings.extend(ch_warnings)

    is_valid = len(errors) == 0

    if strict and not is_valid:
        raise ProfileValidationError(f"Invalid profile: {'; '.join(errors)}")

    return is_valid, errors + warnings


def validate_import_document(data) -> tuple:
    """
    Validate an import document: {"type": "audioProfile", "version": 1, "profiles": [...]}.

    Returns:
        (is_valid, errors_and_warnings)
    """
    if not isinstance(data, dict):
        return False, ["document must be a JSON object"]

    errors = []
    warnings = []

    if data.get("type") != PROFILE_FILE_TYPE:
        errors.append(f"type must be '{PROFILE_FILE_TYPE}', got {data.get('type')!r}")
        return False, errors

    version = data.get("version", PROFILE_FILE_VERSION)
    version, warning = _coerce_int(version, "version")
    if warning:
        warnings.append(warning)
    if version is not None and version > PROFILE_FILE_VERSION:
        warnings.append(
            f"Document version {version} is newer than supported {PROFILE_FILE_VERSION}"
        )

    profiles = data.get("profiles")
    if not isinstance(profiles, list):
        errors.append("profiles must be list")
        return False, errors

    for i, profile in enumerate(profiles):
        _, messages = validate_profile(profile, f"profiles[{i}]")
        for msg in messages:
            if _is_warning(msg):
                warnings.append(msg)
            else:
                errors.append(msg)

    return len(errors) == 0, errors + warnings


def _is_warning(message: str) -> bool:
    return "coerced" in message or "dropped" in message


def _validate_stage(stage: dict, prefix: str) -> tuple:
    """Validate a single filter stage."""
    errors = []
    warnings = []

    if not isinstance(stage, dict):
        errors.append(f"{prefix} must be dict")
        return errors, warnings

    stage_type = stage.get("type")
    if stage_type not in FILTER_TYPES:
        errors.append(f"{prefix}.type must be one of {', '.join(FILTER_TYPES)}, got {stage_type!r}")

    for key in ("frequency", "gain", "q"):
        if key not in stage:
            continue
        val, warning = _coerce_float(stage[key], f"{prefix}.{key}")
        if warning:
            errors.append(warning)
            continue
        param = STAGE_PARAMS_BY_KEY[key]
        if key == "frequency" and val <= 0:
            errors.append(f"{prefix}.frequency must be > 0, got {val}")
        elif key == "q" and val <= 0:
            errors.append(f"{prefix}.q must be > 0, got {val}")
        elif key == "gain" and not (param['min'] <= val <= param['max']):
            errors.append(f"{prefix}.gain must be {param['min']}-{param['max']}, got {val}")

    return errors, warnings


def _validate_channel(channel: dict, prefix: str) -> tuple:
    """Validate a single mixer channel."""
    errors = []
    warnings = []

    if not isinstance(channel, dict):
        errors.append(f"{prefix} must be dict")
        return errors, warnings

    if "id" in channel:
        channel_id, warning = _coerce_int(channel["id"], f"{prefix}.id")
        if channel_id is None:
            errors.append(warning or f"{prefix}.id must be int, got None")
        elif warning:
            warnings.append(warning)

    if "gain" in channel:
        gain, warning = _coerce_float(channel["gain"], f"{prefix}.gain")
        if warning:
            errors.append(warning)
        elif gain < 0:
            errors.append(f"{prefix}.gain must be >= 0, got {gain}")

    for key in ("muted", "solo"):
        val = channel.get(key)
        if val is not None and not isinstance(val, bool):
            errors.append(f"{prefix}.{key} must be bool, got {type(val).__name__}")

    return errors, warnings


def _coerce_float(val, field_name: str) -> tuple:
    """
    Coerce value to float.
    Returns (coerced_value, error_message).
    """
    if isinstance(val, float):
        if math.isnan(val):
            return None, f"{field_name}: NaN rejected"
        if math.isinf(val):
            return None, f"{field_name}: Inf rejected"
        return val, None
    if isinstance(val, int) and not isinstance(val, bool):
        return float(val), None
    return None, f"{field_name}: invalid type {type(val).__name__}"


def _coerce_int(val, field_name: str) -> tuple:
    """
    Coerce value to int, accepting integral floats with warning.
    Returns (coerced_value, warning_message).
    """
    if val is None:
        return None, None
    if isinstance(val, int) and not isinstance(val, bool):
        return val, None
    if isinstance(val, float):
        if val != val:  # NaN check
            return None, f"{field_name}: NaN rejected"
        if math.isinf(val):
            return None, f"{field_name}: Inf rejected"
        if val.is_integer():
            return int(val), f"{field_name}: coerced float {val} to int"
        return None, f"{field_name}: non-integral float {val}"
    return None, f"{field_name}: invalid type {type(val).__name__}"
