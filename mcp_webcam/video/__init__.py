"""
mcp-webcam - Video Module
Per-platform camera backends, selected once at startup.
"""

from __future__ import annotations

import logging
import sys

from .base import CameraBackend
from .darwin import DarwinBackend
from .linux import LinuxBackend
from .mock import MockBackend, MockDevice
from .unsupported import UnsupportedBackend
from .windows import WindowsBackend

logger = logging.getLogger(__name__)


def resolve_backend_name(name: str = "auto", platform: str = sys.platform) -> str:
    """Map "auto" onto the backend for the running platform."""
    if name != "auto":
        return name
    if platform.startswith("linux"):
        return "linux"
    if platform == "darwin":
        return "darwin"
    if platform in ("win32", "cygwin"):
        return "windows"
    return "unsupported"


def create_backend(
    name: str = "auto",
    ffmpeg_path: str = "ffmpeg",
    v4l2_ctl_path: str = "v4l2-ctl",
    mock_camera_count: int = 2,
) -> CameraBackend:
    """
    Create the backend for a platform.

    Args:
        name: "auto", "linux", "darwin", "windows" or "mock"
        ffmpeg_path: ffmpeg executable
        v4l2_ctl_path: v4l2-ctl executable (Linux only)
        mock_camera_count: Number of simulated cameras (mock only)

    Returns:
        The platform backend, or an UnsupportedBackend when the platform
        has none
    """
    resolved = resolve_backend_name(name)

    if resolved == "linux":
        backend: CameraBackend = LinuxBackend(ffmpeg_path=ffmpeg_path, v4l2_ctl_path=v4l2_ctl_path)
    elif resolved == "darwin":
        backend = DarwinBackend(ffmpeg_path=ffmpeg_path)
    elif resolved == "windows":
        backend = WindowsBackend(ffmpeg_path=ffmpeg_path)
    elif resolved == "mock":
        backend = MockBackend(camera_count=mock_camera_count)
    else:
        backend = UnsupportedBackend(platform=sys.platform if resolved == "unsupported" else resolved)

    logger.info(f"Using {backend.name} camera backend")
    return backend


__all__ = [
    "CameraBackend",
    "DarwinBackend",
    "LinuxBackend",
    "MockBackend",
    "MockDevice",
    "UnsupportedBackend",
    "WindowsBackend",
    "create_backend",
    "resolve_backend_name",
]
