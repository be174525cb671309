"""Overlay animation compiler and filter graph planning."""

from .composer import CompositionPlan, MediaInput, plan_composition
from .easing import Easing, ease
from .expr import Expr, evaluate, parse, render
from .ffmpeg import FFmpegCommand, probe_duration
from .motion import Animation, MotionKind, PhaseSpec
from .overlays import (
    AudioTrack,
    Fit,
    IdleAnimation,
    ImageOverlay,
    OverlayGeometry,
    StillSegment,
    TextOverlay,
    VideoFade,
)
from .timeline import MotionExpressions, Timeline, apply_idle_float, compute_motion, compute_size

__all__ = [
    # Expressions
    "Expr",
    "evaluate",
    "parse",
    "render",
    # Easing
    "Easing",
    "ease",
    # Descriptors
    "Animation",
    "MotionKind",
    "PhaseSpec",
    "AudioTrack",
    "Fit",
    "IdleAnimation",
    "ImageOverlay",
    "OverlayGeometry",
    "StillSegment",
    "TextOverlay",
    "VideoFade",
    # Timeline animator
    "MotionExpressions",
    "Timeline",
    "apply_idle_float",
    "compute_motion",
    "compute_size",
    # Composition
    "CompositionPlan",
    "MediaInput",
    "plan_composition",
    "FFmpegCommand",
    "probe_duration",
]
