"""
Classification profiles for region detection.

A profile's parameters are one of four frozen dataclasses; the variant
determines the profile type and which matching rule applies.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from waverider.utils.errors import InvalidProfileParameters

DEFAULT_WINDOW_SIZE_SEC = 1.0


@dataclass(frozen=True)
class QuietParameters:
    max_amplitude: float = 0.1
    min_duration_sec: float = 2.0
    window_size_sec: float = DEFAULT_WINDOW_SIZE_SEC


@dataclass(frozen=True)
class IntensityParameters:
    min_amplitude: float = 0.7
    threshold: float = 0.8
    window_size_sec: float = DEFAULT_WINDOW_SIZE_SEC


@dataclass(frozen=True)
class TransitionParameters:
    sensitivity: float = 0.5
    window_size_sec: float = DEFAULT_WINDOW_SIZE_SEC


@dataclass(frozen=True)
class CustomParameters:
    """Opaque user parameters; no built-in matching rule."""

    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    window_size_sec: float = DEFAULT_WINDOW_SIZE_SEC


ProfileParameters = Union[
    QuietParameters, IntensityParameters, TransitionParameters, CustomParameters
]

PROFILE_TYPES: Dict[str, type] = {
    'quiet': QuietParameters,
    'intensity': IntensityParameters,
    'transition': TransitionParameters,
    'custom': CustomParameters,
}

# Spellings used by the profile store that predate the *Sec names
_PARAMETER_ALIASES = {
    'minDuration': 'minDurationSec',
    'windowSize': 'windowSizeSec',
}

_WIRE_NAMES = {
    'max_amplitude': 'maxAmplitude',
    'min_duration_sec': 'minDurationSec',
    'window_size_sec': 'windowSizeSec',
    'min_amplitude': 'minAmplitude',
    'threshold': 'threshold',
    'sensitivity': 'sensitivity',
}


@dataclass(frozen=True)
class Profile:
    """A named rule set that classifies sliding windows into regions."""

    id: str
    parameters: ProfileParameters
    name: str = ""
    description: str = ""
    is_default: bool = False
    created_at: Optional[datetime] = None

    @property
    def type(self) -> str:
        for type_name, params_cls in PROFILE_TYPES.items():
            if isinstance(self.parameters, params_cls):
                return type_name
        raise InvalidProfileParameters(
            f"Unsupported parameter variant {type(self.parameters).__name__}",
            profile_id=self.id,
        )

    @property
    def window_size_sec(self) -> float:
        return self.parameters.window_size_sec

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Profile":
        """
        Build a profile from its JSON form.

        Missing numeric fields take the variant's documented default.

        Raises:
            InvalidProfileParameters: If the type is unknown or a parameter
                is not a usable number
        """
        if not isinstance(data, Mapping):
            raise InvalidProfileParameters(
                f"Profile must be an object, got {type(data).__name__}"
            )
        profile_id = str(data.get('id') or data.get('name') or "")
        if not profile_id:
            raise InvalidProfileParameters("Profile is missing an id", parameter='id')

        type_name = str(data.get('type', '')).lower()
        params_cls = PROFILE_TYPES.get(type_name)
        if params_cls is None:
            raise InvalidProfileParameters(
                f"Unknown profile type {data.get('type')!r}; expected one of "
                f"{sorted(PROFILE_TYPES)}",
                profile_id=profile_id,
                parameter='type',
            )

        raw = data.get('parameters') or {}
        if not isinstance(raw, Mapping):
            raise InvalidProfileParameters(
                "Profile parameters must be an object",
                profile_id=profile_id,
                parameter='parameters',
            )
        raw = {_PARAMETER_ALIASES.get(k, k): v for k, v in raw.items()}

        if params_cls is CustomParameters:
            values = {k: v for k, v in raw.items() if k != 'windowSizeSec'}
            parameters: ProfileParameters = CustomParameters(
                values=MappingProxyType(values),
                window_size_sec=_number(raw, 'windowSizeSec', DEFAULT_WINDOW_SIZE_SEC, profile_id),
            )
        else:
            defaults = params_cls()
            kwargs = {
                name: _number(raw, _WIRE_NAMES[name], getattr(defaults, name), profile_id)
                for name in (f.name for f in fields(params_cls))
            }
            parameters = params_cls(**kwargs)

        profile = cls(
            id=profile_id,
            parameters=parameters,
            name=str(data.get('name') or ""),
            description=str(data.get('description') or ""),
            is_default=bool(data.get('isDefault', False)),
        )
        validate_profile(profile)
        return profile

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        if isinstance(self.parameters, CustomParameters):
            parameters = dict(self.parameters.values)
            parameters['windowSizeSec'] = self.parameters.window_size_sec
        else:
            parameters = {
                _WIRE_NAMES[name]: getattr(self.parameters, name)
                for name in (f.name for f in fields(self.parameters))
            }
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'type': self.type,
            'parameters': parameters,
            'isDefault': self.is_default,
        }


def _number(raw: Mapping[str, Any], key: str, default: float, profile_id: str) -> float:
    value = raw.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise InvalidProfileParameters(
            f"Parameter {key} must be a number, got {value!r}",
            profile_id=profile_id, parameter=key,
        )
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidProfileParameters(
            f"Parameter {key} must be a number, got {value!r}",
            profile_id=profile_id, parameter=key,
        ) from e
    if not math.isfinite(number):
        raise InvalidProfileParameters(
            f"Parameter {key} must be finite, got {value!r}",
            profile_id=profile_id, parameter=key,
        )
    return number


def validate_profile(profile: Profile) -> None:
    """
    Check that a profile's parameters can be evaluated.

    Raises:
        InvalidProfileParameters: On a non-positive amplitude bound or
            window size, or a negative sensitivity
    """
    params = profile.parameters
    if not isinstance(params, tuple(PROFILE_TYPES.values())):
        raise InvalidProfileParameters(
            f"Unsupported parameter variant {type(params).__name__}",
            profile_id=profile.id,
        )

    checks = [('windowSizeSec', params.window_size_sec, False)]
    if isinstance(params, QuietParameters):
        checks.append(('maxAmplitude', params.max_amplitude, False))
    elif isinstance(params, IntensityParameters):
        checks.append(('minAmplitude', params.min_amplitude, False))
    elif isinstance(params, TransitionParameters):
        checks.append(('sensitivity', params.sensitivity, True))

    for name, value, allow_zero in checks:
        if not math.isfinite(value) or value < 0 or (value == 0 and not allow_zero):
            bound = "non-negative" if allow_zero else "positive"
            raise InvalidProfileParameters(
                f"Parameter {name} must be {bound}, got {value}",
                profile_id=profile.id, parameter=name,
            )


def default_profiles() -> List[Profile]:
    """The profiles the profile store preloads."""
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        Profile(
            id='quiet-profile',
            name='Quiet Section',
            description='Detects periods of low amplitude audio',
            parameters=QuietParameters(max_amplitude=0.1, min_duration_sec=2.0),
            is_default=True,
            created_at=created,
        ),
        Profile(
            id='intensity-profile',
            name='High Intensity',
            description='Detects periods of high amplitude audio',
            parameters=IntensityParameters(min_amplitude=0.7, threshold=0.8),
            is_default=True,
            created_at=created,
        ),
        Profile(
            id='transition-profile',
            name='Transition',
            description='Detects transition periods between quiet and loud',
            parameters=TransitionParameters(sensitivity=0.5, window_size_sec=1.0),
            is_default=True,
            created_at=created,
        ),
    ]
