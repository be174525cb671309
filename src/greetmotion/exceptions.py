"""Custom exceptions for greetmotion with detailed error information."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Any, Optional


class GreetMotionError(Exception):
    """Base exception for greetmotion errors."""

    pass


class ConfigurationError(GreetMotionError):
    """Invalid overlay or animation descriptor.

    Raised when a descriptor is constructed, before any expression is
    generated. The caller has to fix the input; values are never clamped.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
    ):
        self.field = field
        self.value = value

        parts = [message]
        if field:
            parts.append(f"Field: {field}")
        if value is not None:
            parts.append(f"Value: {value!r}")

        super().__init__(" | ".join(parts))


class ExpressionError(GreetMotionError):
    """Exception for malformed or unevaluable FFmpeg expressions."""

    pass


class JobFileError(GreetMotionError):
    """Exception for unreadable or invalid greeting job files."""

    def __init__(
        self,
        message: str,
        job_path: Optional[Path] = None,
        details: Optional[list[str]] = None,
    ):
        self.job_path = job_path
        self.details = details or []

        parts = [message]
        if job_path:
            parts.append(f"File: {job_path}")
        if self.details:
            parts.append(f"Problems: {'; '.join(self.details)}")

        super().__init__(" | ".join(parts))


class FFmpegError(GreetMotionError):
    """Exception for FFmpeg-related errors with detailed output capture."""

    def __init__(
        self,
        message: str,
        command: Optional[list[str]] = None,
        returncode: Optional[int] = None,
        stdout: Optional[str] = None,
        stderr: Optional[str] = None,
    ):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

        # Build detailed error message
        parts = [message]

        if returncode is not None:
            parts.append(f"Exit code: {returncode}")

        if stderr:
            error_lines = self._extract_error_lines(stderr)
            if error_lines:
                parts.append(f"FFmpeg error: {error_lines}")

        super().__init__("\n".join(parts))

    @staticmethod
    def _extract_error_lines(stderr: str) -> str:
        """Extract the most relevant error lines from FFmpeg stderr.

        FFmpeg outputs a lot of verbose info. This extracts just the error.
        """
        lines = stderr.strip().split("\n")

        error_indicators = [
            "Error",
            "error",
            "Invalid",
            "invalid",
            "No such file",
            "not found",
            "Unable to",
            "Cannot",
            "failed",
            "Undefined constant",
        ]

        error_lines = []
        for line in lines:
            if any(indicator in line for indicator in error_indicators):
                line = line.strip()
                if line and line not in error_lines:
                    error_lines.append(line)

        # If no specific errors found, return last few lines
        if not error_lines and lines:
            error_lines = [l.strip() for l in lines[-3:] if l.strip()]

        return " | ".join(error_lines[:3])

    @property
    def command_string(self) -> str:
        """Get the command as a string for display."""
        if self.command:
            return shlex.join(self.command)
        return ""
