"""Overlay descriptors: images and text composited onto the base video."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..constants import (
    DEFAULT_FONT_COLOR,
    DEFAULT_FONT_SIZE,
    DEFAULT_IDLE_SPEED,
    DEFAULT_PAD_COLOR,
    DEFAULT_STILL_FADE_IN,
)
from ..exceptions import ConfigurationError
from .expr import ExprLike
from .motion import Animation


def _check_window(start: float, end: float) -> None:
    if start < 0:
        raise ConfigurationError("Start time must not be negative", field="start", value=start)
    if end < start:
        raise ConfigurationError(
            f"End time must not be before start ({start})",
            field="end",
            value=end,
        )


@dataclass(frozen=True)
class OverlayGeometry:
    """Resting position of an overlay.

    Each coordinate is a number or an FFmpeg expression string such as
    ``"h*0.7"``. None centers the overlay on that axis using the canvas and
    the overlay's measured size.
    """

    x: Optional[ExprLike] = None
    y: Optional[ExprLike] = None


@dataclass(frozen=True)
class IdleAnimation:
    """Continuous vertical float: ``amplitude * sin(2*pi*speed*(t - start))``."""

    amplitude: float = 0.0  # Pixels
    speed: float = DEFAULT_IDLE_SPEED  # Oscillations per second

    def __post_init__(self) -> None:
        if self.speed < 0:
            raise ConfigurationError("Idle speed must not be negative", field="idle.speed", value=self.speed)


def _check_fades(owner: object, *names: str) -> None:
    for name in names:
        if getattr(owner, name) < 0:
            raise ConfigurationError("Fade duration must not be negative", field=name, value=getattr(owner, name))


class Fit(str, Enum):
    """How an image fills its box."""

    COVER = "cover"  # Fill the box, cropping the overflow around the center
    CONTAIN = "contain"  # Fit inside the box, keeping the whole image


@dataclass(frozen=True)
class ImageOverlay:
    """Still image overlay (photo, sticker, frame).

    ``width`` scales the image keeping its aspect ratio. ``box`` instead
    fits it into a fixed ``(width, height)`` slot, e.g. the photo window of
    a greeting card template.
    """

    path: Path
    start: float
    end: float
    width: Optional[int] = None  # Scale to this width, keeping aspect ratio
    geometry: OverlayGeometry = field(default_factory=OverlayGeometry)
    animation: Optional[Animation] = None
    box: Optional[tuple[int, int]] = None
    fit: Fit = Fit.COVER

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        _check_window(self.start, self.end)
        if self.width is not None and self.width <= 0:
            raise ConfigurationError("Image width must be positive", field="width", value=self.width)

        try:
            object.__setattr__(self, "fit", Fit(self.fit))
        except ValueError:
            raise ConfigurationError(
                f"Unknown fit (expected one of: {', '.join(f.value for f in Fit)})",
                field="fit",
                value=self.fit,
            ) from None

        if self.box is None:
            return
        if self.width is not None:
            raise ConfigurationError("Give either width or box, not both", field="box", value=self.box)
        if len(self.box) != 2 or any(side <= 0 for side in self.box):
            raise ConfigurationError("Box must be a positive (width, height) pair", field="box", value=self.box)
        object.__setattr__(self, "box", (int(self.box[0]), int(self.box[1])))


@dataclass(frozen=True)
class TextOverlay:
    """Text overlay rendered with drawtext."""

    text: str
    start: float
    end: float
    font_size: float = DEFAULT_FONT_SIZE
    font_file: Optional[Path] = None
    font_color: str = DEFAULT_FONT_COLOR
    geometry: OverlayGeometry = field(default_factory=OverlayGeometry)
    animation: Optional[Animation] = None
    idle: Optional[IdleAnimation] = None

    def __post_init__(self) -> None:
        _check_window(self.start, self.end)
        if self.font_size <= 0:
            raise ConfigurationError("Font size must be positive", field="font_size", value=self.font_size)
        if self.font_file is not None:
            object.__setattr__(self, "font_file", Path(self.font_file))


Overlay = Union[ImageOverlay, TextOverlay]


@dataclass(frozen=True)
class AudioTrack:
    """Background music mixed under the greeting."""

    path: Path
    fade_in: float = 0.0
    fade_out: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        _check_fades(self, "fade_in", "fade_out")


@dataclass(frozen=True)
class VideoFade:
    """Fade the composited greeting from and to black."""

    fade_in: float = 0.0
    fade_out: float = 0.0

    def __post_init__(self) -> None:
        _check_fades(self, "fade_in", "fade_out")


@dataclass(frozen=True)
class StillSegment:
    """Closing still image shown after the greeting.

    The image is shrunk to fit the output (never enlarged), centered on
    ``color`` and faded in.
    """

    path: Path
    duration: float
    fade_in: float = DEFAULT_STILL_FADE_IN
    color: str = DEFAULT_PAD_COLOR

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        if self.duration <= 0:
            raise ConfigurationError("Still duration must be positive", field="duration", value=self.duration)
        _check_fades(self, "fade_in")
        if self.fade_in > self.duration:
            raise ConfigurationError(
                f"Fade-in must not be longer than the still ({self.duration}s)",
                field="fade_in",
                value=self.fade_in,
            )
