"""Constants and default values for greetmotion.

Centralizes magic numbers and default values for easier configuration
and maintenance.
"""

from pathlib import Path

# =============================================================================
# Animation Defaults
# =============================================================================

# Zoom phases scale the overlay from/to these factors of its base size
DEFAULT_ZOOM_FROM = 0.2
DEFAULT_ZOOM_TO = 1.0

# Share of an overshooting zoom entry spent reaching the overshoot peak;
# the remainder settles linearly back to the target size
OVERSHOOT_SPLIT = 0.7

# Idle float oscillation speed (Hz) when only an amplitude is given
DEFAULT_IDLE_SPEED = 1.0

# Fade-in of the closing still image (seconds)
DEFAULT_STILL_FADE_IN = 1.0

# Fill around a still image that does not match the output aspect ratio
DEFAULT_PAD_COLOR = "black"

# =============================================================================
# Text Defaults
# =============================================================================

DEFAULT_FONT_SIZE = 60
DEFAULT_FONT_COLOR = "white"

# =============================================================================
# Output / Encoding Constants
# =============================================================================

# Vertical 9:16 greeting format
DEFAULT_OUTPUT_WIDTH = 1080
DEFAULT_OUTPUT_HEIGHT = 1920
DEFAULT_FPS = 30

# libx264 CRF (0-51, lower = better)
DEFAULT_CRF_QUALITY = 20

# Encoding preset
DEFAULT_ENCODING_PRESET = "medium"

DEFAULT_FFMPEG_BINARY = "ffmpeg"
DEFAULT_FFPROBE_BINARY = "ffprobe"

# =============================================================================
# Configuration
# =============================================================================

# User config file locations (in order of precedence)
USER_CONFIG_PATHS = [
    Path.home() / ".config" / "greetmotion" / "config.toml",
    Path.home() / ".greetmotion.toml",
]

# Environment variable names
ENV_FFMPEG_BINARY = "GREETMOTION_FFMPEG"
ENV_FONT_DIR = "GREETMOTION_FONT_DIR"
ENV_LOG_LEVEL = "GREETMOTION_LOG_LEVEL"

# =============================================================================
# Logging (Loguru)
# =============================================================================

# Default log directory
DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "greetmotion" / "logs"

# Log file date format
LOG_DATE_FORMAT = "%Y-%m-%d"

# Log files older than this are deleted at rotation
LOG_RETENTION = "30 days"
