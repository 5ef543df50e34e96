"""
mcp-webcam - Windows Backend
DirectShow cameras through ffmpeg. Device ids are DirectShow friendly names.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from mcp_webcam.errors import PlatformUnsupported
from mcp_webcam.messages import (
    CameraDescriptor,
    CameraSettings,
    CaptureOptions,
    RecordingOptions,
    SettingsWriteResult,
)

from .base import CameraBackend, ffmpeg_quality_args, run_command

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "Default Camera"

_DEVICE_LINE = re.compile(r'\]\s+"([^"]+)"(?:\s+\((video|audio|none)\))?')


def parse_dshow_devices(output: str) -> list[CameraDescriptor]:
    """
    Parse `ffmpeg -list_devices true -f dshow -i dummy` output.

    Handles both the tagged form ('"Name" (video)') and the older
    sectioned form ("DirectShow video devices" header).
    """
    cameras: list[CameraDescriptor] = []
    section = None

    for line in output.splitlines():
        if "DirectShow video devices" in line:
            section = "video"
            continue
        if "DirectShow audio devices" in line:
            section = "audio"
            continue

        match = _DEVICE_LINE.search(line)
        if not match:
            continue
        name, kind = match.group(1), match.group(2)
        if (kind or section) != "video":
            continue
        cameras.append(CameraDescriptor(id=name, name=name, location=f"dshow:{name}"))

    return cameras


class WindowsBackend(CameraBackend):
    """Backend for Windows. Camera controls are not adjustable here."""

    def __init__(self, ffmpeg_path: str = "ffmpeg") -> None:
        self._ffmpeg = ffmpeg_path

    @property
    def name(self) -> str:
        return "windows"

    @property
    def default_device(self) -> str:
        return DEFAULT_DEVICE

    async def enumerate_cameras(self) -> list[CameraDescriptor]:
        try:
            _, _, stderr = await run_command(
                [self._ffmpeg, "-hide_banner", "-list_devices", "true", "-f", "dshow", "-i", "dummy"]
            )
        except OSError as e:
            logger.warning(f"ffmpeg not available ({e}) - using default camera")
            return self.fallback_cameras()

        cameras = parse_dshow_devices(stderr)
        if not cameras:
            logger.warning("No DirectShow video devices listed - using default camera")
            return self.fallback_cameras()
        return cameras

    def fallback_cameras(self) -> list[CameraDescriptor]:
        return [CameraDescriptor(id=DEFAULT_DEVICE, name="Default Camera", location="Windows Default Camera")]

    async def read_settings(self, device_id: str) -> CameraSettings | None:
        return None

    async def write_settings(
        self,
        device_id: str,
        settings: CameraSettings,
    ) -> SettingsWriteResult:
        raise PlatformUnsupported("Platform not fully supported for camera settings")

    def build_recording_command(
        self,
        device_id: str,
        options: RecordingOptions,
        output_path: Path,
    ) -> list[str]:
        return [
            self._ffmpeg,
            "-hide_banner", "-loglevel", "error", "-nostats",
            "-y",
            "-f", "dshow",
            "-i", f"video={device_id}",
            "-r", str(options.fps),
            "-c:v", options.codec,
            "-t", str(options.duration),
            str(output_path),
        ]

    def build_capture_command(
        self,
        device_id: str,
        options: CaptureOptions,
        output_path: Path,
    ) -> list[str]:
        return [
            self._ffmpeg,
            "-hide_banner", "-loglevel", "error", "-nostats",
            "-y",
            "-f", "dshow",
            "-video_size", f"{options.width}x{options.height}",
            "-i", f"video={device_id}",
            "-frames:v", "1",
            *ffmpeg_quality_args(options),
            str(output_path),
        ]

    def interrupt(self, process: Any) -> None:
        # No SIGINT delivery to child consoles on Windows
        process.terminate()
