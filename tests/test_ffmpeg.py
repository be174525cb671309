import subprocess
from pathlib import Path

import pytest

from greetmotion.exceptions import FFmpegError
from greetmotion.processing.composer import plan_composition
from greetmotion.processing.ffmpeg import FFmpegCommand, probe_duration
from greetmotion.processing.overlays import AudioTrack, ImageOverlay, TextOverlay


def _plan(audio=None):
    overlays = [ImageOverlay("photo.png", 0, 5), TextOverlay("Hi", 0, 5)]
    return plan_composition(Path("base.mp4"), overlays, (1080, 1920), audio=audio, duration=8)


def test_build_with_plan():
    cmd = FFmpegCommand(Path("out.mp4")).apply_plan(_plan())
    cmd.set_codec().set_quality(crf=18, preset="slow").set_pixel_format()
    args = cmd.build()

    assert args[:4] == ["ffmpeg", "-y", "-i", "base.mp4"]
    assert args[4:8] == ["-loop", "1", "-i", "photo.png"]
    assert args[args.index("-filter_complex") + 1] == cmd.filter_complex
    assert args[args.index("-filter_complex") + 2 :][:4] == ["-map", "[vout]", "-map", "0:a?"]
    assert args[args.index("-crf") + 1] == "18"
    assert args[args.index("-preset") + 1] == "slow"
    assert "-shortest" not in args
    assert args[-1] == "out.mp4"


def test_music_track_replaces_base_audio():
    args = FFmpegCommand(Path("out.mp4")).apply_plan(_plan(AudioTrack("music.mp3", fade_out=2))).build()

    assert ["-i", "music.mp3"] == args[8:10]
    assert "0:a?" not in args
    assert args[args.index("[vout]") + 2] == "[aout]"
    assert "-shortest" in args


def test_build_string_is_shell_quoted():
    cmd = FFmpegCommand(Path("my greeting.mp4")).apply_plan(_plan())
    text = cmd.build_string()
    assert text.startswith("ffmpeg -y -i base.mp4")
    assert text.endswith("'my greeting.mp4'")


def test_missing_binary():
    cmd = FFmpegCommand(Path("out.mp4"), binary="greetmotion-no-such-ffmpeg")
    with pytest.raises(FFmpegError, match="binary not found"):
        cmd.run()


def test_ffmpeg_failure_keeps_relevant_stderr(monkeypatch):
    stderr = "\n".join(
        [
            "ffmpeg version 6.1",
            "  configuration: --enable-gpl",
            "[Parsed_drawtext_0] Cannot find a valid font for the family Sans",
            "Error initializing filters",
        ]
    )

    def fake_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, output="", stderr=stderr)

    monkeypatch.setattr(subprocess, "run", fake_run)
    with pytest.raises(FFmpegError) as excinfo:
        FFmpegCommand(Path("out.mp4")).run()

    error = excinfo.value
    assert error.returncode == 1
    assert "Exit code: 1" in str(error)
    assert "Cannot find a valid font" in str(error)
    assert "ffmpeg version" not in str(error)
    assert error.command_string.startswith("ffmpeg -y")


def test_probe_duration(monkeypatch):
    def fake_run(cmd, **kwargs):
        assert cmd[0] == "ffprobe"
        return subprocess.CompletedProcess(cmd, 0, stdout="12.480000\n", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)
    assert probe_duration(Path("base.mp4")) == pytest.approx(12.48)


def test_probe_duration_without_output(monkeypatch):
    monkeypatch.setattr(
        subprocess,
        "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0, stdout="N/A\n", stderr=""),
    )
    with pytest.raises(FFmpegError, match="no duration"):
        probe_duration(Path("base.mp4"))
