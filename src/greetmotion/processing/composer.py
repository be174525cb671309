"""Composition planner: chains overlays onto the base video as a filter graph.

Overlays are composited back-to-front in list order. Each step takes the
previous stage's output label and returns the next one:

    [0:v] -> overlay(img 1) -> [v0] -> drawtext(text 1) -> [v1] -> ... -> scale -> [vout]

Images are extra looped inputs (``-loop 1``); text is drawn with drawtext.
An optional fade applies to the whole composite before the final scale, and
an optional closing still is concatenated after it.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from pathlib import Path
from typing import Optional, Sequence

from ..logging import get_logger
from .expr import Expr, Var, format_number, render
from .overlays import AudioTrack, Fit, ImageOverlay, Overlay, StillSegment, TextOverlay, VideoFade
from .timeline import apply_idle_float, compute_motion, compute_size

log = get_logger(__name__)

# geq evaluates per pixel and names the frame time T instead of t
GEQ_NAMES = {"t": "T"}


@dataclass(frozen=True)
class MediaInput:
    """One ``-i`` input with its input options."""

    path: Path
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class CompositionPlan:
    """Inputs and filter graph for a greeting render."""

    inputs: tuple[MediaInput, ...]
    filters: tuple[str, ...]
    video_label: str
    audio_label: Optional[str] = None

    @property
    def filter_graph(self) -> str:
        return ";".join(self.filters)


@dataclass(frozen=True)
class _Stage:
    """Fold accumulator: the current video label and filters so far."""

    label: str
    filters: tuple[str, ...] = ()
    next_input: int = 1  # input index of the next image
    step: int = 0


def escape_text(text: str) -> str:
    """Escape special characters for the FFmpeg drawtext filter."""
    text = text.replace("\\", "\\\\")
    text = text.replace("'", "'\\''")
    text = text.replace(":", "\\:")
    text = text.replace("%", "\\%")
    return text


def escape_path(path: Path) -> str:
    """Escape a file path for use inside a quoted filter option."""
    return str(path).replace("\\", "\\\\").replace(":", "\\:").replace("'", "\\'")


def _quoted(expr: Expr, names: Optional[dict[str, str]] = None) -> str:
    return f"'{render(expr, names)}'"


def box_filters(box: tuple[int, int], fit: Fit) -> list[str]:
    """Scale an image into a fixed box.

    Example:
        >>> box_filters((379, 330), Fit.COVER)
        ['scale=379:330:force_original_aspect_ratio=increase', 'crop=379:330']
    """
    width, height = box
    if fit is Fit.CONTAIN:
        return [f"scale={width}:{height}:force_original_aspect_ratio=decrease"]
    # crop defaults to the center of the scaled image
    return [f"scale={width}:{height}:force_original_aspect_ratio=increase", f"crop={width}:{height}"]


def image_filters(overlay: ImageOverlay, source: str, base: str, image_label: str, output: str) -> list[str]:
    """Filters that prepare one image input and overlay it on ``base``.

    Args:
        overlay: Image overlay descriptor
        source: Input stream label, e.g. ``[1:v]``
        base: Label of the video the image is composited onto
        image_label: Label for the prepared image stream
        output: Label for the composited result

    Returns:
        Two filter chains: image preparation, then overlay
    """
    chain = box_filters(overlay.box, overlay.fit) if overlay.box else []

    # With a box, zoom scales the boxed image (iw is the box width)
    size = compute_size(overlay.start, overlay.animation, overlay.width or 1)
    if size is not None:
        width = size if overlay.width else Var("iw") * size
        chain.append(f"scale=w={_quoted(width)}:h=-1:eval=frame")
    elif overlay.width:
        chain.append(f"scale={overlay.width}:-1")

    motion = compute_motion(
        overlay.start,
        overlay.end,
        overlay.animation,
        is_text=False,
        rest_x=overlay.geometry.x,
        rest_y=overlay.geometry.y,
    )

    chain.append("format=rgba")
    if motion.alpha is not None:
        alpha = render(motion.alpha, GEQ_NAMES)
        chain.append(f"geq=r='r(X,Y)':g='g(X,Y)':b='b(X,Y)':a='alpha(X,Y)*({alpha})'")

    return [
        f"{source}{','.join(chain)}{image_label}",
        f"{base}{image_label}overlay=x={_quoted(motion.x)}:y={_quoted(motion.y)}"
        f":enable={_quoted(motion.enable)}:shortest=1{output}",
    ]


def text_filter(overlay: TextOverlay, base: str, output: str) -> str:
    """drawtext filter for one text overlay."""
    motion = compute_motion(
        overlay.start,
        overlay.end,
        overlay.animation,
        is_text=True,
        rest_x=overlay.geometry.x,
        rest_y=overlay.geometry.y,
    )
    y = apply_idle_float(overlay.start, motion.y, overlay.idle)
    size = compute_size(overlay.start, overlay.animation, overlay.font_size)
    fontsize = _quoted(size) if size is not None else format_number(overlay.font_size)

    parts = [
        f"text='{escape_text(overlay.text)}'",
        f"fontsize={fontsize}",
        f"fontcolor={overlay.font_color}",
        f"x={_quoted(motion.x)}",
        f"y={_quoted(y)}",
    ]
    if overlay.font_file:
        parts.append(f"fontfile='{escape_path(overlay.font_file)}'")
    if motion.alpha is not None:
        parts.append(f"alpha={_quoted(motion.alpha)}")
    parts.append(f"enable={_quoted(motion.enable)}")

    return f"{base}drawtext={':'.join(parts)}{output}"


def _compose(stage: _Stage, overlay: Overlay) -> _Stage:
    output = f"[v{stage.step}]"
    step_log = log.bind(overlay=stage.step)

    if isinstance(overlay, ImageOverlay):
        filters = image_filters(
            overlay,
            source=f"[{stage.next_input}:v]",
            base=stage.label,
            image_label=f"[img{stage.step}]",
            output=output,
        )
        step_log.debug(f"image {overlay.path.name} -> {output}")
        return _Stage(output, stage.filters + tuple(filters), stage.next_input + 1, stage.step + 1)

    step_log.debug(f"text {overlay.text!r} -> {output}")
    return _Stage(output, stage.filters + (text_filter(overlay, stage.label, output),), stage.next_input, stage.step + 1)


def audio_filter(audio: AudioTrack, source: str, output: str, duration: Optional[float]) -> Optional[str]:
    """afade chain for the music track (fade out ends at ``duration``)."""
    fades = []
    if audio.fade_in > 0:
        fades.append(f"afade=t=in:st=0:d={format_number(audio.fade_in)}")
    if audio.fade_out > 0:
        if duration is None:
            log.warning("Base video duration unknown, skipping audio fade-out")
        else:
            start = max(duration - audio.fade_out, 0)
            fades.append(f"afade=t=out:st={format_number(start)}:d={format_number(audio.fade_out)}")
    if not fades:
        return None
    return f"{source}{','.join(fades)}{output}"


def video_fade_filters(fade: VideoFade, duration: Optional[float]) -> list[str]:
    """fade filters for the composited greeting (fade out ends at ``duration``)."""
    filters = []
    if fade.fade_in > 0:
        filters.append(f"fade=t=in:st=0:d={format_number(fade.fade_in)}")
    if fade.fade_out > 0:
        if duration is None:
            log.warning("Base video duration unknown, skipping video fade-out")
        else:
            start = max(duration - fade.fade_out, 0)
            filters.append(f"fade=t=out:st={format_number(start)}:d={format_number(fade.fade_out)}")
    return filters


def _concat_ready(fps: Optional[int]) -> list[str]:
    # concat needs matching sample aspect ratio on both segments
    filters = ["setsar=1"]
    if fps:
        filters.append(f"fps={fps}")
    filters.append("format=yuv420p")
    return filters


def still_input(still: StillSegment, fps: Optional[int] = None) -> MediaInput:
    """Looped image input limited to the still's duration."""
    options = ["-loop", "1"]
    if fps:
        options += ["-framerate", str(fps)]
    options += ["-t", format_number(still.duration)]
    return MediaInput(still.path, tuple(options))


def still_filter(
    still: StillSegment,
    source: str,
    output_size: tuple[int, int],
    output: str,
    fps: Optional[int] = None,
) -> str:
    """Shrink the still to fit the output, pad it to full size and fade it in."""
    width, height = output_size
    chain = [
        f"scale='min(iw,{width})':'min(ih,{height})':force_original_aspect_ratio=decrease",
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2:color={still.color}",
        *_concat_ready(fps),
    ]
    if still.fade_in > 0:
        chain.append(f"fade=t=in:st=0:d={format_number(still.fade_in)}")
    return f"{source}{','.join(chain)}{output}"


def plan_composition(
    base_video: Path,
    overlays: Sequence[Overlay],
    output_size: tuple[int, int],
    audio: Optional[AudioTrack] = None,
    duration: Optional[float] = None,
    fade: Optional[VideoFade] = None,
    still: Optional[StillSegment] = None,
    fps: Optional[int] = None,
) -> CompositionPlan:
    """Plan the filter graph for a greeting video.

    With a closing still the greeting is concatenated with it:

        ... -> [main] + [still] -> concat -> [vout]

    Args:
        base_video: Template video the overlays are composited onto
        overlays: Overlays, back-to-front
        output_size: Final (width, height)
        audio: Optional music track replacing the base audio
        duration: Base video duration (needed for the fade-outs)
        fade: Optional fade of the composited greeting
        still: Optional closing still image
        fps: Output frame rate, used to align the still with the greeting

    Returns:
        CompositionPlan with inputs, filters and output labels
    """
    final = reduce(_compose, overlays, _Stage(label="[0:v]"))

    width, height = output_size
    finish = video_fade_filters(fade, duration) if fade is not None else []
    finish.append(f"scale={width}:{height}")

    inputs = [MediaInput(Path(base_video))]
    inputs.extend(
        MediaInput(overlay.path, ("-loop", "1"))
        for overlay in overlays
        if isinstance(overlay, ImageOverlay)
    )

    total = duration
    if still is None:
        filters = final.filters + (f"{final.label}{','.join(finish)}[vout]",)
    else:
        source = f"[{len(inputs)}:v]"
        inputs.append(still_input(still, fps))
        filters = final.filters + (
            f"{final.label}{','.join(finish + _concat_ready(fps))}[main]",
            still_filter(still, source, output_size, "[still]", fps),
            "[main][still]concat=n=2:v=1:a=0[vout]",
        )
        if duration is not None:
            total = duration + still.duration
        log.debug(f"Closing still {still.path.name} for {still.duration:g}s")

    audio_label: Optional[str] = None
    if audio is not None:
        source = f"[{len(inputs)}:a]"
        inputs.append(MediaInput(audio.path))
        chain = audio_filter(audio, source, "[aout]", total)
        if chain:
            filters += (chain,)
            audio_label = "[aout]"
        else:
            audio_label = f"{len(inputs) - 1}:a"

    log.info(f"Planned {len(overlays)} overlays over {len(inputs)} inputs")
    return CompositionPlan(
        inputs=tuple(inputs),
        filters=filters,
        video_label="[vout]",
        audio_label=audio_label,
    )
