"""Animation descriptors for overlay motion (slide, fade, zoom).

An overlay's animation is a three-phase timeline:

    [in phase] -> [hold] -> [out phase]
    |             |         |            |
    start      in_end    hold_end     out_end

Descriptors are frozen and validated on construction; the expression
compiler in ``timeline.py`` only ever sees valid, non-negative durations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..constants import DEFAULT_ZOOM_FROM, DEFAULT_ZOOM_TO
from ..exceptions import ConfigurationError
from .easing import Easing


class MotionKind(str, Enum):
    """Motion applied during one animation phase."""

    FADE = "fade"
    SLIDE_UP = "slide-up"
    SLIDE_DOWN = "slide-down"
    SLIDE_LEFT = "slide-left"
    SLIDE_RIGHT = "slide-right"
    ZOOM = "zoom"
    NONE = "none"

    @classmethod
    def parse(cls, value: Union[MotionKind, str, None]) -> MotionKind:
        """Resolve a motion kind name (``slide_up`` and ``slideUp`` also work).

        Raises:
            ConfigurationError: If the name is not a known motion kind
        """
        if value is None:
            return cls.NONE
        if isinstance(value, MotionKind):
            return value

        key = str(value).strip()
        if key != key.lower() and key != key.upper():
            key = re.sub(r"(?<!^)(?=[A-Z])", "-", key)
        key = key.lower().replace("_", "-")
        for member in cls:
            if member.value == key:
                return member

        raise ConfigurationError(
            f"Unknown motion kind (expected one of: {', '.join(m.value for m in cls)})",
            field="kind",
            value=value,
        )

def _check_duration(value: Optional[float], field: str) -> float:
    if value is None:
        raise ConfigurationError("Duration is required", field=field)
    if value < 0:
        raise ConfigurationError("Duration must not be negative", field=field, value=value)
    return float(value)


@dataclass(frozen=True)
class PhaseSpec:
    """Configuration for one directional motion phase (entry or exit)."""

    kind: MotionKind
    duration: float  # Seconds, >= 0 (0 = instantaneous)
    easing: Optional[Easing] = None  # None = linear (ease-out for zoom overshoot)

    # Zoom only
    zoom_from: float = DEFAULT_ZOOM_FROM  # Scale factor away from rest
    zoom_to: float = DEFAULT_ZOOM_TO  # Scale factor at rest
    overshoot: Optional[float] = None  # Peak scale before settling (entry only)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", MotionKind.parse(self.kind))
        object.__setattr__(self, "duration", _check_duration(self.duration, "duration"))
        if self.easing is not None:
            object.__setattr__(self, "easing", Easing.parse(self.easing))

        if self.zoom_from <= 0:
            raise ConfigurationError("Zoom factor must be positive", field="zoom_from", value=self.zoom_from)
        if self.zoom_to <= 0:
            raise ConfigurationError("Zoom factor must be positive", field="zoom_to", value=self.zoom_to)
        if self.overshoot is not None and self.overshoot <= self.zoom_to:
            raise ConfigurationError(
                f"Overshoot must be greater than the target zoom ({self.zoom_to})",
                field="overshoot",
                value=self.overshoot,
            )

    @property
    def is_degenerate(self) -> bool:
        """True when the phase has no visible effect (zero length or no motion)."""
        return self.duration == 0 or self.kind is MotionKind.NONE


@dataclass(frozen=True)
class Animation:
    """Timeline descriptor: optional entry, hold, optional exit."""

    in_phase: Optional[PhaseSpec] = None
    hold: float = 0.0  # Seconds at rest after the entry
    out_phase: Optional[PhaseSpec] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "hold", _check_duration(self.hold, "hold"))
        if self.out_phase is not None and self.out_phase.overshoot is not None:
            raise ConfigurationError(
                "Overshoot is only supported on the entry phase",
                field="out.overshoot",
                value=self.out_phase.overshoot,
            )

    @property
    def in_duration(self) -> float:
        return self.in_phase.duration if self.in_phase else 0.0

    @property
    def out_duration(self) -> float:
        return self.out_phase.duration if self.out_phase else 0.0
