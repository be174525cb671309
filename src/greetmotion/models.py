"""Pydantic models for greeting job files (JSON or TOML).

A job file names the base video and lists the image and text overlays with
their animations. Pydantic checks the document's shape and types; the
overlay descriptors built by ``to_overlays()`` check timing and zoom values.
"""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from .constants import (
    DEFAULT_FONT_COLOR,
    DEFAULT_FONT_SIZE,
    DEFAULT_IDLE_SPEED,
    DEFAULT_PAD_COLOR,
    DEFAULT_STILL_FADE_IN,
    DEFAULT_ZOOM_FROM,
    DEFAULT_ZOOM_TO,
)
from .exceptions import JobFileError
from .logging import get_logger
from .processing.motion import Animation, MotionKind, PhaseSpec
from .processing.overlays import (
    AudioTrack,
    IdleAnimation,
    ImageOverlay,
    Overlay,
    OverlayGeometry,
    StillSegment,
    TextOverlay,
    VideoFade,
)

log = get_logger(__name__)

Coordinate = Union[float, str]


class PhaseModel(BaseModel):
    """One animation phase as written in a job file."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    kind: Union[str, list[str]]
    duration: float
    easing: Optional[str] = None
    zoom_from: float = Field(DEFAULT_ZOOM_FROM, alias="from")
    zoom_to: float = Field(DEFAULT_ZOOM_TO, alias="to")
    overshoot: Optional[float] = None

    def resolve_kind(self) -> MotionKind:
        """Resolve the phase kind; with several listed, the last one wins."""
        if isinstance(self.kind, str):
            return MotionKind.parse(self.kind)
        if not self.kind:
            return MotionKind.NONE
        kinds = [MotionKind.parse(k) for k in self.kind]
        if len(set(kinds)) > 1:
            log.warning(f"Phase lists several kinds {[k.value for k in kinds]}, using {kinds[-1].value}")
        return kinds[-1]

    def to_phase(self) -> PhaseSpec:
        return PhaseSpec(
            kind=self.resolve_kind(),
            duration=self.duration,
            easing=self.easing,
            zoom_from=self.zoom_from,
            zoom_to=self.zoom_to,
            overshoot=self.overshoot,
        )


class AnimationModel(BaseModel):
    """Animation timeline: ``in``, ``hold``, ``out``."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    in_phase: Optional[PhaseModel] = Field(None, alias="in")
    hold: float = 0.0
    out_phase: Optional[PhaseModel] = Field(None, alias="out")

    def to_animation(self) -> Animation:
        return Animation(
            in_phase=self.in_phase.to_phase() if self.in_phase else None,
            hold=self.hold,
            out_phase=self.out_phase.to_phase() if self.out_phase else None,
        )


class IdleModel(BaseModel):
    """Idle float settings."""

    model_config = ConfigDict(extra="forbid")

    amplitude: float
    speed: float = DEFAULT_IDLE_SPEED


class ImageEntry(BaseModel):
    """Image overlay entry."""

    model_config = ConfigDict(extra="forbid")

    path: str
    start: float = 0.0
    end: float
    width: Optional[int] = None
    box: Optional[tuple[int, int]] = None  # [width, height] slot, instead of width
    fit: str = "cover"
    x: Optional[Coordinate] = None
    y: Optional[Coordinate] = None
    animation: Optional[AnimationModel] = None


class TextEntry(BaseModel):
    """Text overlay entry. ``{name}`` placeholders are filled from variables."""

    model_config = ConfigDict(extra="forbid")

    text: str
    start: float = 0.0
    end: float
    font_size: float = DEFAULT_FONT_SIZE
    font_file: Optional[str] = None
    font_color: str = DEFAULT_FONT_COLOR
    x: Optional[Coordinate] = None
    y: Optional[Coordinate] = None
    animation: Optional[AnimationModel] = None
    idle: Optional[IdleModel] = None


class AudioEntry(BaseModel):
    """Background music track."""

    model_config = ConfigDict(extra="forbid")

    path: str
    fade_in: float = 0.0
    fade_out: float = 0.0


class VideoEntry(BaseModel):
    """Fades of the whole composited greeting."""

    model_config = ConfigDict(extra="forbid")

    fade_in: float = 0.0
    fade_out: float = 0.0


class OutroEntry(BaseModel):
    """Closing still image shown after the greeting."""

    model_config = ConfigDict(extra="forbid")

    path: str
    duration: float
    fade_in: float = DEFAULT_STILL_FADE_IN
    color: str = DEFAULT_PAD_COLOR


class OutputSettings(BaseModel):
    """Output resolution and frame rate (None = user config default)."""

    model_config = ConfigDict(extra="forbid")

    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[int] = None


class GreetingJob(BaseModel):
    """Complete description of one personalized greeting video."""

    base_video: str
    duration: Optional[float] = None  # Base video duration (probed when missing)
    output: OutputSettings = Field(default_factory=OutputSettings)
    images: list[ImageEntry] = Field(default_factory=list)
    texts: list[TextEntry] = Field(default_factory=list)
    audio: Optional[AudioEntry] = None
    video: Optional[VideoEntry] = None
    outro: Optional[OutroEntry] = None
    variables: dict[str, str] = Field(default_factory=dict)

    _source_dir: Optional[Path] = PrivateAttr(default=None)

    @classmethod
    def from_file(cls, path: str | Path) -> GreetingJob:
        """Load a job from a ``.json`` or ``.toml`` file.

        Relative media paths are resolved against the file's directory.

        Raises:
            JobFileError: If the file cannot be read or does not match the schema
        """
        path = Path(path)
        try:
            if path.suffix.lower() == ".toml":
                with open(path, "rb") as f:
                    data = tomllib.load(f)
            else:
                with open(path) as f:
                    data = json.load(f)
        except OSError as e:
            raise JobFileError(f"Cannot read job file: {e.strerror}", job_path=path) from e
        except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
            raise JobFileError(f"Malformed job file: {e}", job_path=path) from e

        try:
            job = cls.model_validate(data)
        except ValidationError as e:
            details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise JobFileError("Invalid job file", job_path=path, details=details) from e

        job._source_dir = path.parent
        return job

    def resolve_path(self, value: str) -> Path:
        """Resolve a media path relative to the job file."""
        path = Path(value).expanduser()
        if path.is_absolute() or self._source_dir is None:
            return path
        return self._source_dir / path

    @property
    def base_video_path(self) -> Path:
        return self.resolve_path(self.base_video)

    def to_overlays(self, variables: Optional[dict[str, str]] = None) -> list[Overlay]:
        """Build validated overlay descriptors: images first, then text.

        Args:
            variables: Placeholder values overriding the job's own variables

        Raises:
            ConfigurationError: If an entry has invalid timing or zoom values
        """
        values = {**self.variables, **(variables or {})}
        overlays: list[Overlay] = []

        for entry in self.images:
            overlays.append(
                ImageOverlay(
                    path=self.resolve_path(entry.path),
                    start=entry.start,
                    end=entry.end,
                    width=entry.width,
                    geometry=OverlayGeometry(entry.x, entry.y),
                    animation=entry.animation.to_animation() if entry.animation else None,
                    box=entry.box,
                    fit=entry.fit,
                )
            )

        for entry in self.texts:
            overlays.append(
                TextOverlay(
                    text=format_text(entry.text, values),
                    start=entry.start,
                    end=entry.end,
                    font_size=entry.font_size,
                    font_file=self.resolve_path(entry.font_file) if entry.font_file else None,
                    font_color=entry.font_color,
                    geometry=OverlayGeometry(entry.x, entry.y),
                    animation=entry.animation.to_animation() if entry.animation else None,
                    idle=IdleAnimation(entry.idle.amplitude, entry.idle.speed) if entry.idle else None,
                )
            )

        return overlays

    def audio_track(self) -> Optional[AudioTrack]:
        if self.audio is None:
            return None
        return AudioTrack(self.resolve_path(self.audio.path), self.audio.fade_in, self.audio.fade_out)

    def video_fade(self) -> Optional[VideoFade]:
        if self.video is None:
            return None
        return VideoFade(self.video.fade_in, self.video.fade_out)

    def still_segment(self) -> Optional[StillSegment]:
        if self.outro is None:
            return None
        return StillSegment(
            path=self.resolve_path(self.outro.path),
            duration=self.outro.duration,
            fade_in=self.outro.fade_in,
            color=self.outro.color,
        )

    @property
    def needs_duration(self) -> bool:
        """True when a fade-out has to know where the base video ends."""
        audio_fade = self.audio is not None and self.audio.fade_out > 0
        video_fade = self.video is not None and self.video.fade_out > 0
        return audio_fade or video_fade


def format_text(text: str, variables: dict[str, str]) -> str:
    """Fill ``{name}`` placeholders; unknown placeholders are left as is.

    Example:
        >>> format_text("Happy birthday, {name}!", {"name": "Ayu"})
        'Happy birthday, Ayu!'
    """
    for key, value in variables.items():
        text = text.replace(f"{{{key}}}", value)
    return text
