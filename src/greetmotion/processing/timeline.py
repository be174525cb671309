"""Timeline animator: compiles overlay animations into per-frame expressions.

Given an overlay's window and its ``Animation``, this module derives
closed-form expressions of the frame time ``t`` for:

- ``enable``: whether the overlay is drawn at all
- ``x`` / ``y``: position (slides), one axis at a time
- ``alpha``: opacity (fades)
- size: font size or image width (zoom, with optional overshoot)
- idle float: a sinusoid layered on the vertical position

Phase selection is stateless. Each expression compares ``t`` with the
phase boundaries:

    t < in_end            -> entering (eased interpolation from offset)
    in_end <= t < hold_end -> holding (rest value)
    t >= hold_end         -> exiting (eased interpolation to target)

Progress inside a phase is clamped to [0, 1] before easing so evaluation
outside the phase never extrapolates.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from ..constants import OVERSHOOT_SPLIT
from ..logging import get_logger
from .easing import Easing, ease
from .expr import ONE, Const, Expr, ExprLike, T, Var, as_expr, between, clamp, if_, lt, sin
from .motion import Animation, MotionKind, PhaseSpec
from .overlays import IdleAnimation

log = get_logger(__name__)


@dataclass(frozen=True)
class AxisSymbols:
    """Names FFmpeg gives the canvas and overlay dimensions inside a filter."""

    canvas_w: str
    canvas_h: str
    object_w: str
    object_h: str
    short_w: str  # FFmpeg's short alias for object_w
    short_h: str

    def centered_x(self) -> Expr:
        return (Var(self.canvas_w) - Var(self.object_w)) / 2

    def centered_y(self) -> Expr:
        return (Var(self.canvas_h) - Var(self.object_h)) / 2

    def bind(self, canvas: tuple[float, float], size: tuple[float, float]) -> dict[str, float]:
        """Values for every dimension name the filter accepts.

        ``main_w``/``W`` always name the canvas. The object's short alias
        is bound last, so for overlay ``w`` is the image width.
        """
        (canvas_w, canvas_h), (object_w, object_h) = canvas, size
        return {
            "main_w": canvas_w,
            "main_h": canvas_h,
            "W": canvas_w,
            "H": canvas_h,
            self.canvas_w: canvas_w,
            self.canvas_h: canvas_h,
            self.object_w: object_w,
            self.object_h: object_h,
            self.short_w: object_w,
            self.short_h: object_h,
        }


# drawtext and overlay expose different variable names
TEXT_SYMBOLS = AxisSymbols("w", "h", "text_w", "text_h", "tw", "th")
IMAGE_SYMBOLS = AxisSymbols("main_w", "main_h", "overlay_w", "overlay_h", "w", "h")


@dataclass(frozen=True)
class Timeline:
    """Phase boundary times for one overlay."""

    start: float
    in_end: float
    hold_end: float
    out_end: float
    clamped_end: float  # min(out_end, declared end)
    in_phase: Optional[PhaseSpec] = None
    out_phase: Optional[PhaseSpec] = None

    @classmethod
    def build(cls, start: float, end: Optional[float], animation: Optional[Animation]) -> Timeline:
        """Derive boundary times from the overlay window and its animation.

        Args:
            start: Overlay start time in seconds
            end: Declared end time (None = unbounded)
            animation: Animation descriptor (None = static for the whole window)
        """
        if animation is None:
            stop = end if end is not None else start
            return cls(start, start, stop, stop, stop)

        in_end = start + animation.in_duration
        hold_end = in_end + animation.hold
        out_end = hold_end + animation.out_duration
        clamped_end = out_end if end is None else min(out_end, end)
        if end is not None and out_end < end:
            log.debug(f"Overlay window [{start}, {end}] shortened to {out_end} by its animation")

        return cls(
            start=start,
            in_end=in_end,
            hold_end=hold_end,
            out_end=out_end,
            clamped_end=clamped_end,
            in_phase=animation.in_phase,
            out_phase=animation.out_phase,
        )

    @property
    def entry(self) -> Optional[PhaseSpec]:
        """Entry phase, unless absent or degenerate."""
        if self.in_phase is None or self.in_phase.is_degenerate:
            return None
        return self.in_phase

    @property
    def exit(self) -> Optional[PhaseSpec]:
        """Exit phase, unless absent or degenerate."""
        if self.out_phase is None or self.out_phase.is_degenerate:
            return None
        return self.out_phase

    def in_progress(self) -> Expr:
        return phase_progress(self.start, self.in_end - self.start)

    def out_progress(self) -> Expr:
        return phase_progress(self.hold_end, self.out_end - self.hold_end)

    def enable(self) -> Expr:
        return between(T, self.start, self.clamped_end)

    def piecewise(self, entering: Optional[Expr], holding: ExprLike, exiting: Optional[Expr]) -> Expr:
        """Select entering/holding/exiting by comparing ``t`` with the boundaries.

        A missing branch falls back to the holding value.
        """
        rest = as_expr(holding)
        expr = rest
        if exiting is not None:
            expr = if_(lt(T, self.hold_end), rest, exiting)
        if entering is not None:
            expr = if_(lt(T, self.in_end), entering, expr)
        return expr


@dataclass(frozen=True)
class MotionExpressions:
    """Compiled expressions for one overlay."""

    enable: Expr
    x: Optional[Expr] = None
    y: Optional[Expr] = None
    alpha: Optional[Expr] = None


def phase_progress(phase_start: float, duration: float, time: Expr = T) -> Expr:
    """Normalized progress through a phase, clamped to [0, 1].

    A zero-length phase is already complete: its progress is the constant 1
    (no division by zero).
    """
    if duration <= 0:
        return ONE
    return clamp((time - phase_start) / duration, 0, 1)


# =============================================================================
# Position
# =============================================================================

OffsetFn = Callable[[AxisSymbols], Expr]


@dataclass(frozen=True)
class _Axis:
    """Slide kinds acting on one axis, with their off-screen positions."""

    name: str
    entry_offsets: Mapping[MotionKind, OffsetFn]  # where the overlay enters from
    exit_targets: Mapping[MotionKind, OffsetFn]  # where the overlay leaves to


HORIZONTAL = _Axis(
    name="x",
    entry_offsets={
        MotionKind.SLIDE_LEFT: lambda s: Var(s.canvas_w),
        MotionKind.SLIDE_RIGHT: lambda s: -Var(s.object_w),
    },
    exit_targets={
        MotionKind.SLIDE_LEFT: lambda s: -Var(s.object_w),
        MotionKind.SLIDE_RIGHT: lambda s: Var(s.canvas_w),
    },
)

VERTICAL = _Axis(
    name="y",
    entry_offsets={
        MotionKind.SLIDE_UP: lambda s: Var(s.canvas_h),
        MotionKind.SLIDE_DOWN: lambda s: -Var(s.object_h),
    },
    exit_targets={
        MotionKind.SLIDE_UP: lambda s: -Var(s.object_h),
        MotionKind.SLIDE_DOWN: lambda s: Var(s.canvas_h),
    },
)


def axis_position(timeline: Timeline, axis: _Axis, rest: Expr, symbols: AxisSymbols) -> Expr:
    """Position along one axis; constant ``rest`` unless a slide targets this axis.

    Entry: ``offset + e * (rest - offset)``; exit: ``rest + e * (target - rest)``.
    Interpolation happens in eased-progress space, so every easing curve
    applies to spatial motion the same way.
    """
    entering: Optional[Expr] = None
    exiting: Optional[Expr] = None

    entry = timeline.entry
    if entry is not None and entry.kind in axis.entry_offsets:
        offset = axis.entry_offsets[entry.kind](symbols)
        eased = ease(timeline.in_progress(), entry.easing)
        entering = offset + eased * (rest - offset)

    exit_phase = timeline.exit
    if exit_phase is not None and exit_phase.kind in axis.exit_targets:
        target = axis.exit_targets[exit_phase.kind](symbols)
        eased = ease(timeline.out_progress(), exit_phase.easing)
        exiting = rest + eased * (target - rest)

    return timeline.piecewise(entering, rest, exiting)


# =============================================================================
# Opacity
# =============================================================================


def opacity(timeline: Timeline) -> Optional[Expr]:
    """Opacity expression, or None when neither phase fades.

    A phase that is not a fade contributes a constant 1.
    """
    entry = timeline.entry
    exit_phase = timeline.exit
    fade_in = entry is not None and entry.kind is MotionKind.FADE
    fade_out = exit_phase is not None and exit_phase.kind is MotionKind.FADE
    if not (fade_in or fade_out):
        return None

    entering = ease(timeline.in_progress(), entry.easing) if fade_in else None
    exiting = 1 - ease(timeline.out_progress(), exit_phase.easing) if fade_out else None
    return timeline.piecewise(entering, ONE, exiting)


# =============================================================================
# Public API
# =============================================================================


def compute_motion(
    start: float,
    end: float,
    animation: Optional[Animation],
    is_text: bool,
    rest_x: Optional[ExprLike] = None,
    rest_y: Optional[ExprLike] = None,
) -> MotionExpressions:
    """Compile an overlay's enable window, position and opacity.

    Args:
        start: Overlay start time in seconds
        end: Declared end time in seconds (the animation may shorten it)
        animation: Animation descriptor, or None for a static overlay
        is_text: True for drawtext (w/h/text_w/text_h symbols),
            False for image overlays (main_w/main_h/overlay_w/overlay_h)
        rest_x: Resting X (number or expression), None to center
        rest_y: Resting Y (number or expression), None to center

    Returns:
        MotionExpressions with enable, x, y and (for fades) alpha
    """
    symbols = TEXT_SYMBOLS if is_text else IMAGE_SYMBOLS
    x_rest = as_expr(rest_x) if rest_x is not None else symbols.centered_x()
    y_rest = as_expr(rest_y) if rest_y is not None else symbols.centered_y()

    timeline = Timeline.build(start, end, animation)
    if animation is None:
        return MotionExpressions(enable=timeline.enable(), x=x_rest, y=y_rest)

    return MotionExpressions(
        enable=timeline.enable(),
        x=axis_position(timeline, HORIZONTAL, x_rest, symbols),
        y=axis_position(timeline, VERTICAL, y_rest, symbols),
        alpha=opacity(timeline),
    )


def compute_size(start: float, animation: Optional[Animation], base_size: float) -> Optional[Expr]:
    """Compile a zoom animation into a size expression.

    The entry zoom goes from ``zoom_from * base`` to ``zoom_to * base``. With an
    overshoot, the first 70% of the entry eases (default ease-out) up to
    ``overshoot * base`` and the last 30% settles linearly to ``zoom_to * base``.
    The exit zoom mirrors the entry, from the resting size to
    ``zoom_from * base``.

    Args:
        start: Overlay start time in seconds
        animation: Animation descriptor
        base_size: Font size in pixels, image width, or 1 for a scale factor

    Returns:
        Size expression, or None when no phase zooms (use ``base_size`` as is)
    """
    if animation is None:
        return None

    in_phase = animation.in_phase
    out_phase = animation.out_phase
    zoom_in = in_phase is not None and in_phase.kind is MotionKind.ZOOM
    zoom_out = out_phase is not None and out_phase.kind is MotionKind.ZOOM
    if not (zoom_in or zoom_out):
        return None

    timeline = Timeline.build(start, None, animation)
    rest = Const((in_phase.zoom_to if zoom_in else out_phase.zoom_to) * base_size)

    entering: Optional[Expr] = None
    if zoom_in and timeline.entry is not None:
        entering = _zoom_entry(timeline, in_phase, base_size)

    exiting: Optional[Expr] = None
    if zoom_out and timeline.exit is not None:
        target = out_phase.zoom_from * base_size
        eased = ease(timeline.out_progress(), out_phase.easing)
        exiting = rest + eased * (target - rest)

    return timeline.piecewise(entering, rest, exiting)


def _zoom_entry(timeline: Timeline, phase: PhaseSpec, base_size: float) -> Expr:
    low = phase.zoom_from * base_size
    high = phase.zoom_to * base_size

    if phase.overshoot is None:
        eased = ease(timeline.in_progress(), phase.easing)
        return low + eased * (high - low)

    peak = phase.overshoot * base_size
    rise = phase.duration * OVERSHOOT_SPLIT
    settle = phase.duration - rise
    rising = low + ease(
        phase_progress(timeline.start, rise),
        Easing.parse(phase.easing, default=Easing.EASE_OUT),
    ) * (peak - low)
    settling = peak + phase_progress(timeline.start + rise, settle) * (high - peak)
    return if_(lt(T, timeline.start + rise), rising, settling)


def apply_idle_float(start: float, base_y: ExprLike, idle: Optional[IdleAnimation]) -> Expr:
    """Layer an idle float on top of a vertical position expression.

    Adds ``amplitude * sin(2*pi*speed*(t - start))``, anchored at the
    overlay's start and active over the whole window (not phase-gated).
    """
    y = as_expr(base_y)
    if idle is None or idle.amplitude == 0 or idle.speed == 0:
        return y
    angular = 2 * math.pi * idle.speed
    return y + idle.amplitude * sin(angular * (T - start))
