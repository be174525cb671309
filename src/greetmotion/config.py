"""User configuration file support for greetmotion.

Supports loading defaults from:
1. Environment variables (highest priority)
2. User config file (~/.config/greetmotion/config.toml)
3. Built-in defaults (lowest priority)

Example config file (~/.config/greetmotion/config.toml):

    [ffmpeg]
    binary = "/usr/local/bin/ffmpeg"
    crf = 18
    preset = "slow"

    [output]
    width = 1080
    height = 1920
    fps = 30

    [fonts]
    font_dir = "/path/to/fonts"
    default_font = "Poppins-Bold.ttf"
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .constants import (
    DEFAULT_CRF_QUALITY,
    DEFAULT_ENCODING_PRESET,
    DEFAULT_FFMPEG_BINARY,
    DEFAULT_FFPROBE_BINARY,
    DEFAULT_FPS,
    DEFAULT_OUTPUT_HEIGHT,
    DEFAULT_OUTPUT_WIDTH,
    ENV_FFMPEG_BINARY,
    ENV_FONT_DIR,
    USER_CONFIG_PATHS,
)
from .logging import get_logger

log = get_logger(__name__)


@dataclass
class OutputDefaults:
    """Default output settings, overridden by the job file or CLI."""

    width: int = DEFAULT_OUTPUT_WIDTH
    height: int = DEFAULT_OUTPUT_HEIGHT
    fps: int = DEFAULT_FPS


@dataclass
class UserConfig:
    """User configuration loaded from config file and environment."""

    # FFmpeg
    ffmpeg_binary: str = DEFAULT_FFMPEG_BINARY
    ffprobe_binary: str = DEFAULT_FFPROBE_BINARY
    crf_quality: int = DEFAULT_CRF_QUALITY
    preset: str = DEFAULT_ENCODING_PRESET

    # Output
    output: OutputDefaults = field(default_factory=OutputDefaults)

    # Fonts
    font_dir: Optional[Path] = None
    default_font: Optional[str] = None

    # Internal: track where config was loaded from
    _config_source: Optional[Path] = field(default=None, repr=False)

    @classmethod
    def load(cls, paths: Optional[list[Path]] = None) -> "UserConfig":
        """Load configuration from file and environment.

        Priority (highest to lowest):
        1. Environment variables
        2. User config file
        3. Built-in defaults
        """
        config = cls()
        config._load_from_file(paths if paths is not None else USER_CONFIG_PATHS)
        config._load_from_env()
        return config

    def _load_from_file(self, paths: list[Path]) -> None:
        """Load configuration from the first TOML file that exists."""
        for config_path in paths:
            if not config_path.exists():
                continue
            try:
                with open(config_path, "rb") as f:
                    data = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                log.warning(f"Ignoring malformed config file {config_path}: {e}")
                return
            self._apply_config_data(data)
            self._config_source = config_path
            log.debug(f"Loaded config from {config_path}")
            return

    def _apply_config_data(self, data: dict[str, Any]) -> None:
        """Apply configuration data from parsed TOML."""
        ffmpeg = data.get("ffmpeg", {})
        if "binary" in ffmpeg:
            self.ffmpeg_binary = str(ffmpeg["binary"])
        if "ffprobe" in ffmpeg:
            self.ffprobe_binary = str(ffmpeg["ffprobe"])
        if "crf" in ffmpeg:
            self.crf_quality = int(ffmpeg["crf"])
        if "preset" in ffmpeg:
            self.preset = str(ffmpeg["preset"])

        output = data.get("output", {})
        if "width" in output:
            self.output.width = int(output["width"])
        if "height" in output:
            self.output.height = int(output["height"])
        if "fps" in output:
            self.output.fps = int(output["fps"])

        fonts = data.get("fonts", {})
        if "font_dir" in fonts:
            self.font_dir = Path(fonts["font_dir"]).expanduser()
        if "default_font" in fonts:
            self.default_font = str(fonts["default_font"])

    def _load_from_env(self) -> None:
        """Override configuration from environment variables."""
        if ENV_FFMPEG_BINARY in os.environ:
            self.ffmpeg_binary = os.environ[ENV_FFMPEG_BINARY]
        if ENV_FONT_DIR in os.environ:
            self.font_dir = Path(os.environ[ENV_FONT_DIR])

    def resolve_font(self, font_file: Optional[str]) -> Optional[Path]:
        """Resolve a font reference against the configured font directory.

        Priority: explicit path > font_dir/name > default_font

        Returns:
            Path to the font file, or None to let FFmpeg use its default font
        """
        name = font_file or self.default_font
        if not name:
            return None
        path = Path(name).expanduser()
        if path.is_absolute() or self.font_dir is None:
            return path
        return self.font_dir / path

    @property
    def source(self) -> Optional[Path]:
        """Config file the settings were read from, if any."""
        return self._config_source


# Global config instance (lazily loaded)
_config: Optional[UserConfig] = None


def get_config() -> UserConfig:
    """Get the global user configuration (loads on first access)."""
    global _config
    if _config is None:
        _config = UserConfig.load()
    return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    _config = None
