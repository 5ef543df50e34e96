"""
mcp-webcam - Configuration
Runtime settings with environment variable overrides (MCP_WEBCAM_*).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .constants import (
    CAPTURES_DIR_NAME,
    PICKER_HOST,
    PICKER_PORT,
    PICKER_TIMEOUT_S,
    PREFERENCES_FILE_NAME,
    RECORDINGS_DIR_NAME,
)

BACKEND_CHOICES = ("auto", "linux", "darwin", "windows", "mock")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class WebcamConfig:
    """Configuration for the webcam server with sensible defaults."""

    # Output locations
    captures_dir: Path = field(default_factory=lambda: Path.cwd() / CAPTURES_DIR_NAME)
    recordings_dir: Path = field(default_factory=lambda: Path.cwd() / RECORDINGS_DIR_NAME)
    preferences_file: Path = field(default_factory=lambda: Path.cwd() / PREFERENCES_FILE_NAME)

    # Platform backend
    backend: str = "auto"  # auto, linux, darwin, windows, mock
    mock_camera_count: int = 2
    ffmpeg_path: str = "ffmpeg"
    v4l2_ctl_path: str = "v4l2-ctl"

    # Camera picker web server
    picker_host: str = PICKER_HOST
    picker_port: int = PICKER_PORT
    picker_timeout: float = PICKER_TIMEOUT_S
    open_browser: bool = True

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.captures_dir = Path(os.getenv("MCP_WEBCAM_CAPTURES_DIR", self.captures_dir))
        self.recordings_dir = Path(os.getenv("MCP_WEBCAM_RECORDINGS_DIR", self.recordings_dir))
        self.preferences_file = Path(
            os.getenv("MCP_WEBCAM_PREFERENCES_FILE", self.preferences_file)
        )
        self.backend = os.getenv("MCP_WEBCAM_BACKEND", self.backend).lower()
        self.mock_camera_count = int(
            os.getenv("MCP_WEBCAM_MOCK_CAMERAS", self.mock_camera_count)
        )
        self.ffmpeg_path = os.getenv("MCP_WEBCAM_FFMPEG", self.ffmpeg_path)
        self.v4l2_ctl_path = os.getenv("MCP_WEBCAM_V4L2_CTL", self.v4l2_ctl_path)
        self.picker_host = os.getenv("MCP_WEBCAM_PICKER_HOST", self.picker_host)
        self.picker_port = int(os.getenv("MCP_WEBCAM_PICKER_PORT", self.picker_port))
        self.picker_timeout = float(
            os.getenv("MCP_WEBCAM_PICKER_TIMEOUT", self.picker_timeout)
        )
        self.open_browser = _env_bool("MCP_WEBCAM_OPEN_BROWSER", self.open_browser)
        self.log_level = os.getenv("MCP_WEBCAM_LOG_LEVEL", self.log_level).upper()

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.backend not in BACKEND_CHOICES:
            errors.append(f"backend must be one of {', '.join(BACKEND_CHOICES)}")
        if self.mock_camera_count < 0:
            errors.append("mock_camera_count must not be negative")
        if not 0 <= self.picker_port <= 65535:
            errors.append("picker_port must be between 0 and 65535")
        if self.picker_timeout <= 0:
            errors.append("picker_timeout must be positive")
        if self.captures_dir == self.recordings_dir:
            errors.append("captures_dir and recordings_dir must differ")

        return errors
