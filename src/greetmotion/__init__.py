"""greetmotion - personalized greeting videos with animated overlays."""

from .exceptions import ConfigurationError, ExpressionError, FFmpegError, GreetMotionError, JobFileError
from .models import GreetingJob
from .processing import (
    Animation,
    Easing,
    Fit,
    IdleAnimation,
    ImageOverlay,
    MotionKind,
    OverlayGeometry,
    PhaseSpec,
    StillSegment,
    TextOverlay,
    VideoFade,
    apply_idle_float,
    compute_motion,
    compute_size,
    ease,
)
from .processing.pipeline import RenderConfig, RenderPipeline, RenderResult

__version__ = "0.1.0"
__all__ = [
    # Models
    "GreetingJob",
    # Descriptors
    "Animation",
    "PhaseSpec",
    "MotionKind",
    "Easing",
    "Fit",
    "IdleAnimation",
    "ImageOverlay",
    "OverlayGeometry",
    "StillSegment",
    "TextOverlay",
    "VideoFade",
    # Compiler
    "ease",
    "compute_motion",
    "compute_size",
    "apply_idle_float",
    # Pipeline
    "RenderConfig",
    "RenderPipeline",
    "RenderResult",
    # Errors
    "GreetMotionError",
    "ConfigurationError",
    "JobFileError",
    "ExpressionError",
    "FFmpegError",
]
