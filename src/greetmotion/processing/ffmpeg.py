"""FFmpeg command builder for greeting video rendering."""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..constants import DEFAULT_FFMPEG_BINARY, DEFAULT_FFPROBE_BINARY
from ..exceptions import FFmpegError
from ..logging import get_logger
from .composer import CompositionPlan, MediaInput

log = get_logger(__name__)


@dataclass
class FFmpegCommand:
    """Builder for multi-input FFmpeg commands with a filter graph."""

    output_path: Path
    inputs: list[MediaInput] = field(default_factory=list)
    filter_complex: Optional[str] = None
    maps: list[str] = field(default_factory=list)
    options: dict[str, str] = field(default_factory=dict)
    binary: str = DEFAULT_FFMPEG_BINARY

    def add_input(self, path: Path, *options: str) -> "FFmpegCommand":
        """Add an input file, with input options placed before its ``-i``."""
        self.inputs.append(MediaInput(Path(path), tuple(options)))
        return self

    def set_filter_complex(self, graph: str) -> "FFmpegCommand":
        self.filter_complex = graph
        return self

    def add_map(self, label: str) -> "FFmpegCommand":
        """Map a filter output label (``[vout]``) or stream specifier (``0:a?``)."""
        self.maps.append(label)
        return self

    def apply_plan(self, plan: CompositionPlan) -> "FFmpegCommand":
        """Register a composition plan's inputs, graph and output streams.

        Without a music track the base video's audio is kept when present.
        """
        for media in plan.inputs:
            self.add_input(media.path, *media.options)
        self.set_filter_complex(plan.filter_graph)
        self.add_map(plan.video_label)
        if plan.audio_label:
            self.add_map(plan.audio_label)
            self.shortest()
        else:
            self.add_map("0:a?")
        return self

    def set_quality(self, crf: int = 20, preset: str = "medium") -> "FFmpegCommand":
        """Set H.264 encoding quality.

        Args:
            crf: Constant Rate Factor (0-51, lower = better)
            preset: Encoding preset (slower = better compression)
        """
        self.options["crf"] = str(crf)
        self.options["preset"] = preset
        return self

    def set_codec(self, codec: str = "libx264") -> "FFmpegCommand":
        """Set video codec."""
        self.options["c:v"] = codec
        return self

    def set_audio_codec(self, codec: str = "aac") -> "FFmpegCommand":
        """Set audio codec."""
        self.options["c:a"] = codec
        return self

    def set_pixel_format(self, pix_fmt: str = "yuv420p") -> "FFmpegCommand":
        """Set pixel format for compatibility."""
        self.options["pix_fmt"] = pix_fmt
        return self

    def set_frame_rate(self, fps: int) -> "FFmpegCommand":
        self.options["r"] = str(fps)
        return self

    def set_movflags(self, flags: str = "faststart") -> "FFmpegCommand":
        """Set movflags for MP4 output (e.g. "faststart" for web playback)."""
        self.options["movflags"] = f"+{flags}"
        return self

    def shortest(self) -> "FFmpegCommand":
        """Stop at the end of the shortest output stream."""
        self.options["shortest"] = ""
        return self

    def build(self) -> list[str]:
        """Build the complete FFmpeg command as argument list."""
        cmd = [self.binary, "-y"]

        for media in self.inputs:
            cmd.extend(media.options)
            cmd.extend(["-i", str(media.path)])

        if self.filter_complex:
            cmd.extend(["-filter_complex", self.filter_complex])

        for label in self.maps:
            cmd.extend(["-map", label])

        for key, value in self.options.items():
            if value:
                cmd.extend([f"-{key}", value])
            else:
                cmd.append(f"-{key}")

        cmd.append(str(self.output_path))
        return cmd

    def build_string(self) -> str:
        """Build the command as a shell-escaped string."""
        return shlex.join(self.build())

    def run(self) -> subprocess.CompletedProcess:
        """Execute the FFmpeg command.

        Raises:
            FFmpegError: If FFmpeg is missing or exits with an error
        """
        cmd = self.build()

        log.info(f"Rendering {self.output_path}")
        log.debug(self.build_string())
        try:
            return subprocess.run(cmd, check=True, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise FFmpegError(f"FFmpeg binary not found: {self.binary}", command=cmd) from e
        except subprocess.CalledProcessError as e:
            raise FFmpegError(
                "FFmpeg failed to render the greeting",
                command=cmd,
                returncode=e.returncode,
                stdout=e.stdout,
                stderr=e.stderr,
            ) from e


def probe_duration(video_path: Path, ffprobe: str = DEFAULT_FFPROBE_BINARY) -> float:
    """Get video duration in seconds using ffprobe.

    Raises:
        FFmpegError: If ffprobe is missing or cannot read the file
    """
    cmd = [
        ffprobe,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(video_path),
    ]

    try:
        result = subprocess.run(cmd, check=True, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise FFmpegError(f"ffprobe binary not found: {ffprobe}", command=cmd) from e
    except subprocess.CalledProcessError as e:
        raise FFmpegError(
            f"ffprobe could not read {video_path}",
            command=cmd,
            returncode=e.returncode,
            stderr=e.stderr,
        ) from e

    try:
        return float(result.stdout.strip())
    except ValueError as e:
        raise FFmpegError(f"ffprobe returned no duration for {video_path}", command=cmd) from e
