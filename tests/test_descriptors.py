"""Validation of animation and overlay descriptors."""

import dataclasses

import pytest

from greetmotion.exceptions import ConfigurationError
from greetmotion.processing.easing import Easing
from greetmotion.processing.motion import Animation, MotionKind, PhaseSpec
from greetmotion.processing.overlays import (
    AudioTrack,
    Fit,
    IdleAnimation,
    ImageOverlay,
    StillSegment,
    TextOverlay,
    VideoFade,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("slide-up", MotionKind.SLIDE_UP),
        ("slide_down", MotionKind.SLIDE_DOWN),
        ("slideLeft", MotionKind.SLIDE_LEFT),
        ("FADE", MotionKind.FADE),
        (None, MotionKind.NONE),
    ],
)
def test_motion_kind_parse(value, expected):
    assert MotionKind.parse(value) is expected


def test_unknown_motion_kind():
    with pytest.raises(ConfigurationError, match="Unknown motion kind"):
        MotionKind.parse("wobble")


def test_phase_coerces_names():
    phase = PhaseSpec("slide_up", 1, "easeOut")
    assert phase.kind is MotionKind.SLIDE_UP
    assert phase.easing is Easing.EASE_OUT
    assert phase.duration == 1.0


def test_phase_keeps_missing_easing():
    assert PhaseSpec("fade", 1).easing is None


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"kind": "fade", "duration": -1}, "duration"),
        ({"kind": "zoom", "duration": 1, "zoom_from": 0}, "zoom_from"),
        ({"kind": "zoom", "duration": 1, "zoom_to": -2}, "zoom_to"),
        ({"kind": "zoom", "duration": 1, "overshoot": 1.0}, "overshoot"),
        ({"kind": "zoom", "duration": 1, "zoom_to": 1.2, "overshoot": 1.1}, "overshoot"),
    ],
)
def test_invalid_phase(kwargs, field):
    with pytest.raises(ConfigurationError) as excinfo:
        PhaseSpec(**kwargs)
    assert excinfo.value.field == field


def test_degenerate_phases():
    assert PhaseSpec("fade", 0).is_degenerate
    assert PhaseSpec("none", 2).is_degenerate
    assert not PhaseSpec("fade", 0.5).is_degenerate


def test_negative_hold():
    with pytest.raises(ConfigurationError, match="must not be negative"):
        Animation(PhaseSpec("fade", 1), hold=-0.5)


def test_overshoot_only_on_entry():
    with pytest.raises(ConfigurationError) as excinfo:
        Animation(out_phase=PhaseSpec("zoom", 1, overshoot=1.2))
    assert excinfo.value.field == "out.overshoot"


def test_animation_durations():
    animation = Animation(PhaseSpec("fade", 0.5), 2, PhaseSpec("zoom", 0.75))
    assert animation.in_duration == 0.5
    assert animation.out_duration == 0.75
    assert Animation().in_duration == 0.0
    assert Animation().out_duration == 0.0


def test_descriptors_are_frozen():
    phase = PhaseSpec("fade", 1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        phase.duration = 2


@pytest.mark.parametrize("start, end", [(-1, 3), (4, 2)])
def test_invalid_overlay_window(start, end):
    with pytest.raises(ConfigurationError):
        TextOverlay("Hello", start, end)
    with pytest.raises(ConfigurationError):
        ImageOverlay("photo.png", start, end)


def test_zero_length_window_is_allowed():
    overlay = TextOverlay("Hello", 2, 2)
    assert overlay.start == overlay.end


def test_invalid_overlay_sizes():
    with pytest.raises(ConfigurationError):
        ImageOverlay("photo.png", 0, 3, width=0)
    with pytest.raises(ConfigurationError):
        TextOverlay("Hello", 0, 3, font_size=0)


def test_overlay_paths_are_coerced():
    image = ImageOverlay("photo.png", 0, 3)
    text = TextOverlay("Hello", 0, 3, font_file="fonts/Poppins.ttf")
    assert image.path.name == "photo.png"
    assert text.font_file.name == "Poppins.ttf"


def test_invalid_idle_and_audio():
    with pytest.raises(ConfigurationError):
        IdleAnimation(10, -1)
    with pytest.raises(ConfigurationError):
        AudioTrack("music.mp3", fade_in=-1)


def test_image_box():
    image = ImageOverlay("photo.png", 0, 3, box=[379, 330], fit="contain")
    assert image.box == (379, 330)
    assert image.fit is Fit.CONTAIN
    assert ImageOverlay("photo.png", 0, 3).fit is Fit.COVER


@pytest.mark.parametrize("box", [(0, 330), (379, -1), (379,)])
def test_invalid_image_box(box):
    with pytest.raises(ConfigurationError) as excinfo:
        ImageOverlay("photo.png", 0, 3, box=box)
    assert excinfo.value.field == "box"


def test_box_and_width_are_exclusive():
    with pytest.raises(ConfigurationError, match="either width or box"):
        ImageOverlay("photo.png", 0, 3, width=400, box=(379, 330))


def test_unknown_fit():
    with pytest.raises(ConfigurationError, match="Unknown fit"):
        ImageOverlay("photo.png", 0, 3, box=(379, 330), fit="stretch")


def test_video_fade_and_still_validation():
    with pytest.raises(ConfigurationError):
        VideoFade(fade_out=-1)
    with pytest.raises(ConfigurationError):
        StillSegment("thanks.jpg", 0)
    with pytest.raises(ConfigurationError) as excinfo:
        StillSegment("thanks.jpg", 2, fade_in=3)
    assert excinfo.value.field == "fade_in"

    still = StillSegment("thanks.jpg", 5)
    assert still.fade_in == 1.0
    assert still.color == "black"
