"""Render pipeline: greeting job -> composition plan -> FFmpeg command."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from ..config import UserConfig, get_config
from ..exceptions import FFmpegError
from ..logging import get_logger
from ..models import GreetingJob
from .composer import CompositionPlan, plan_composition
from .expr import evaluate, render
from .ffmpeg import FFmpegCommand, probe_duration
from .overlays import ImageOverlay, Overlay, TextOverlay
from .timeline import IMAGE_SYMBOLS, TEXT_SYMBOLS, Timeline, apply_idle_float, compute_motion, compute_size

log = get_logger(__name__)


@dataclass
class RenderConfig:
    """Configuration for the render pipeline."""

    width: int
    height: int
    fps: int
    crf_quality: int
    preset: str
    ffmpeg_binary: str
    ffprobe_binary: str

    @classmethod
    def from_user_config(cls, config: UserConfig, job: Optional[GreetingJob] = None) -> RenderConfig:
        """Job output settings override the user's defaults."""
        output = job.output if job is not None else None
        return cls(
            width=(output and output.width) or config.output.width,
            height=(output and output.height) or config.output.height,
            fps=(output and output.fps) or config.output.fps,
            crf_quality=config.crf_quality,
            preset=config.preset,
            ffmpeg_binary=config.ffmpeg_binary,
            ffprobe_binary=config.ffprobe_binary,
        )


@dataclass
class RenderResult:
    """Result from the render pipeline."""

    success: bool
    output_path: Path
    ffmpeg_command: Optional[str] = None
    overlay_count: int = 0
    error: Optional[str] = None


@dataclass
class OverlayPreview:
    """Compiled expressions of one overlay, for inspection."""

    kind: str
    label: str
    start: float
    end: float
    expressions: dict[str, str] = field(default_factory=dict)


class RenderPipeline:
    """Orchestrates rendering one greeting job."""

    def __init__(
        self,
        job: GreetingJob,
        config: Optional[RenderConfig] = None,
        variables: Optional[dict[str, str]] = None,
        user_config: Optional[UserConfig] = None,
    ):
        """Initialize the pipeline.

        Args:
            job: Loaded greeting job
            config: Render configuration (derived from the user config if not provided)
            variables: Placeholder values for text overlays
            user_config: User configuration (global config if not provided)
        """
        self.job = job
        self.user_config = user_config or get_config()
        self.config = config or RenderConfig.from_user_config(self.user_config, job)
        self.overlays: list[Overlay] = [self._with_font(o) for o in job.to_overlays(variables)]
        for overlay in self.overlays:
            log.debug(f"Loaded {describe_overlay(overlay)}")
        self.audio = job.audio_track()
        self.fade = job.video_fade()
        self.still = job.still_segment()

    def _with_font(self, overlay: Overlay) -> Overlay:
        """Resolve text fonts against the configured font directory."""
        if not isinstance(overlay, TextOverlay):
            return overlay
        if overlay.font_file is not None and overlay.font_file.exists():
            return overlay
        name = overlay.font_file.name if overlay.font_file is not None else None
        font = self.user_config.resolve_font(name)
        if font is None:
            return overlay
        return replace(overlay, font_file=font)

    def base_duration(self) -> Optional[float]:
        """Base video duration from the job, else probed (None if unavailable)."""
        if self.job.duration is not None:
            return self.job.duration
        try:
            return probe_duration(self.job.base_video_path, self.config.ffprobe_binary)
        except FFmpegError as e:
            log.warning(f"Could not probe base video duration: {e}")
            return None

    def plan(self) -> CompositionPlan:
        duration = self.base_duration() if self.job.needs_duration else self.job.duration
        return plan_composition(
            base_video=self.job.base_video_path,
            overlays=self.overlays,
            output_size=(self.config.width, self.config.height),
            audio=self.audio,
            duration=duration,
            fade=self.fade,
            still=self.still,
            fps=self.config.fps,
        )

    def build_command(self, output_path: Path) -> FFmpegCommand:
        """Build the full FFmpeg command for this job."""
        cmd = FFmpegCommand(Path(output_path), binary=self.config.ffmpeg_binary)
        cmd.apply_plan(self.plan())
        cmd.set_codec("libx264")
        cmd.set_quality(crf=self.config.crf_quality, preset=self.config.preset)
        cmd.set_pixel_format("yuv420p")
        cmd.set_frame_rate(self.config.fps)
        cmd.set_audio_codec("aac")
        cmd.set_movflags("faststart")
        return cmd

    def run(self, output_path: Path, dry_run: bool = False) -> RenderResult:
        """Render the greeting video.

        Args:
            output_path: Output video file
            dry_run: If True, build the command without executing it

        Returns:
            RenderResult with success status and the command used
        """
        cmd = self.build_command(output_path)
        ffmpeg_command = cmd.build_string()

        if dry_run:
            return RenderResult(
                success=True,
                output_path=Path(output_path),
                ffmpeg_command=ffmpeg_command,
                overlay_count=len(self.overlays),
            )

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            cmd.run()
        except FFmpegError as e:
            log.error(str(e))
            log.debug(f"Failed command: {e.command_string}")
            return RenderResult(
                success=False,
                output_path=Path(output_path),
                ffmpeg_command=ffmpeg_command,
                overlay_count=len(self.overlays),
                error=str(e),
            )

        log.info(f"Rendered {output_path}")
        return RenderResult(
            success=True,
            output_path=Path(output_path),
            ffmpeg_command=ffmpeg_command,
            overlay_count=len(self.overlays),
        )

    def preview(self) -> list[OverlayPreview]:
        """Compiled expressions of every overlay, in compositing order."""
        return [self._preview_overlay(overlay) for overlay in self.overlays]

    def _preview_overlay(self, overlay: Overlay) -> OverlayPreview:
        is_text = isinstance(overlay, TextOverlay)
        motion = compute_motion(
            overlay.start,
            overlay.end,
            overlay.animation,
            is_text=is_text,
            rest_x=overlay.geometry.x,
            rest_y=overlay.geometry.y,
        )
        y = apply_idle_float(overlay.start, motion.y, overlay.idle) if is_text else motion.y
        base = overlay.font_size if is_text else (overlay.width or 1)
        size = compute_size(overlay.start, overlay.animation, base)
        timeline = Timeline.build(overlay.start, overlay.end, overlay.animation)

        expressions = {"enable": render(motion.enable), "x": render(motion.x), "y": render(y)}
        if motion.alpha is not None:
            expressions["alpha"] = render(motion.alpha)
        if size is not None:
            expressions["size"] = render(size)

        return OverlayPreview(
            kind="text" if is_text else "image",
            label=overlay.text if is_text else overlay.path.name,
            start=overlay.start,
            end=timeline.clamped_end,
            expressions=expressions,
        )

    def sample(self, time: float, measured: Optional[dict[str, float]] = None) -> list[dict[str, float]]:
        """Evaluate every overlay's expressions at one frame time.

        The canvas is taken to be the output size. Overlay dimensions are
        unknown before rendering, so ``measured`` supplies them (default 0).
        Each overlay sees the names its filter accepts: ``w``/``h`` are the
        canvas for text but the image size for images.

        Args:
            time: Frame time in seconds
            measured: Values for text_w/text_h/overlay_w/overlay_h

        Returns:
            One dict of values per overlay (``enable`` is 0 or 1)

        Raises:
            ExpressionError: If a position refers to an unknown name or
                cannot be evaluated
        """
        dims = {"text_w": 0.0, "text_h": 0.0, "overlay_w": 0.0, "overlay_h": 0.0, **(measured or {})}
        canvas = (self.config.width, self.config.height)
        envs = {
            "text": TEXT_SYMBOLS.bind(canvas, (dims["text_w"], dims["text_h"])),
            "image": IMAGE_SYMBOLS.bind(canvas, (dims["overlay_w"], dims["overlay_h"])),
        }
        return [
            {name: evaluate(text, {**envs[preview.kind], "t": time}) for name, text in preview.expressions.items()}
            for preview in self.preview()
        ]


def describe_overlay(overlay: Overlay) -> str:
    """Short human-readable label for logs and tables."""
    if isinstance(overlay, ImageOverlay):
        return f"image {overlay.path.name} [{overlay.start}, {overlay.end}]"
    return f"text {overlay.text!r} [{overlay.start}, {overlay.end}]"
