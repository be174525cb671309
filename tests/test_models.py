import json

import pytest

from greetmotion.exceptions import ConfigurationError, JobFileError
from greetmotion.models import GreetingJob, PhaseModel, format_text
from greetmotion.processing.easing import Easing
from greetmotion.processing.motion import MotionKind
from greetmotion.processing.overlays import Fit, ImageOverlay, TextOverlay


def test_load_toml_job(job_file):
    job = GreetingJob.from_file(job_file)

    assert job.duration == 10
    assert job.output.width == 720
    assert job.output.fps is None
    assert job.base_video_path == job_file.parent / "template.mp4"
    assert len(job.images) == 1
    assert len(job.texts) == 1


def test_overlays_images_first_then_text(job_file):
    overlays = GreetingJob.from_file(job_file).to_overlays()

    assert [type(o) for o in overlays] == [ImageOverlay, TextOverlay]
    image, text = overlays
    assert image.path == job_file.parent / "photos" / "ayu.png"
    assert image.width == 480
    assert image.geometry.y == "main_h*0.3"
    assert image.animation.in_phase.kind is MotionKind.ZOOM
    assert image.animation.in_phase.overshoot == 1.15
    assert image.animation.out_phase is None

    assert text.text == "Happy birthday, Ayu!"
    assert text.font_size == 72
    assert text.idle.amplitude == 8
    assert text.animation.in_phase.easing is Easing.EASE_OUT
    assert text.animation.out_phase.kind is MotionKind.FADE
    assert text.animation.hold == 5
    assert text.animation.out_duration == 1


def test_variables_override_job_values(job_file):
    overlays = GreetingJob.from_file(job_file).to_overlays({"name": "Budi"})
    assert overlays[1].text == "Happy birthday, Budi!"


def test_load_json_job(tmp_path):
    path = tmp_path / "job.json"
    path.write_text(
        json.dumps(
            {
                "base_video": "/videos/template.mp4",
                "texts": [
                    {
                        "text": "Selamat!",
                        "end": 4,
                        "x": 100,
                        "animation": {
                            "in": {"kind": "zoom", "duration": 0.5, "from": 0.5, "to": 1.2},
                            "hold": 3,
                        },
                    }
                ],
            }
        )
    )
    job = GreetingJob.from_file(path)
    (text,) = job.to_overlays()

    assert str(job.base_video_path) == "/videos/template.mp4"
    assert text.start == 0.0
    assert text.geometry.x == 100
    assert text.animation.in_phase.zoom_from == 0.5
    assert text.animation.in_phase.zoom_to == 1.2
    assert job.audio_track() is None


def test_audio_track(job_file):
    track = GreetingJob.from_file(job_file).audio_track()
    assert track.path == job_file.parent / "music" / "happy.mp3"
    assert track.fade_in == 1
    assert track.fade_out == 2


def test_last_listed_kind_wins():
    phase = PhaseModel(kind=["fade", "slide-left"], duration=1)
    assert phase.to_phase().kind is MotionKind.SLIDE_LEFT
    assert PhaseModel(kind=[], duration=1).resolve_kind() is MotionKind.NONE


def test_missing_job_file(tmp_path):
    with pytest.raises(JobFileError, match="Cannot read job file"):
        GreetingJob.from_file(tmp_path / "missing.toml")


def test_malformed_job_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{ not json")
    with pytest.raises(JobFileError, match="Malformed job file"):
        GreetingJob.from_file(path)


def test_schema_errors_are_listed(tmp_path):
    path = tmp_path / "job.toml"
    path.write_text('base_video = "a.mp4"\n\n[[texts]]\ntext = "Hi"\ncolour = "red"\n')
    with pytest.raises(JobFileError) as excinfo:
        GreetingJob.from_file(path)

    assert excinfo.value.job_path == path
    fields = " ".join(excinfo.value.details)
    assert "texts.0.end" in fields
    assert "texts.0.colour" in fields


def test_invalid_timing_surfaces_at_build(tmp_path):
    path = tmp_path / "job.toml"
    path.write_text('base_video = "a.mp4"\n\n[[texts]]\ntext = "Hi"\nstart = 5\nend = 2\n')
    job = GreetingJob.from_file(path)
    with pytest.raises(ConfigurationError):
        job.to_overlays()


def test_unknown_kind_surfaces_at_build():
    job = GreetingJob.model_validate(
        {
            "base_video": "a.mp4",
            "texts": [{"text": "Hi", "end": 3, "animation": {"in": {"kind": "wobble", "duration": 1}}}],
        }
    )
    with pytest.raises(ConfigurationError, match="Unknown motion kind"):
        job.to_overlays()


def test_format_text():
    assert format_text("Happy birthday, {name}!", {"name": "Ayu"}) == "Happy birthday, Ayu!"
    assert format_text("From {sender}", {}) == "From {sender}"
    assert format_text("{a} & {b}", {"a": "1", "b": "2"}) == "1 & 2"


CARD_JOB = """\
base_video = "card.mp4"

[[images]]
path = "photo.jpg"
end = 10
box = [379, 330]
x = 16
y = 39

[video]
fade_out = 1

[outro]
path = "thanks.jpg"
duration = 5
"""


def test_box_fade_and_outro(tmp_path):
    path = tmp_path / "card.toml"
    path.write_text(CARD_JOB)
    job = GreetingJob.from_file(path)

    (image,) = job.to_overlays()
    assert image.box == (379, 330)
    assert image.fit is Fit.COVER
    assert image.width is None

    assert job.video_fade().fade_out == 1
    still = job.still_segment()
    assert still.path == tmp_path / "thanks.jpg"
    assert (still.duration, still.fade_in, still.color) == (5, 1.0, "black")
    assert job.needs_duration


def test_needs_duration_only_for_fade_outs(job_file):
    assert GreetingJob.from_file(job_file).needs_duration
    job = GreetingJob.model_validate({"base_video": "a.mp4", "audio": {"path": "m.mp3", "fade_in": 1}})
    assert not job.needs_duration
    assert job.video_fade() is None
    assert job.still_segment() is None
