"""
mcp-webcam - macOS Backend
AVFoundation cameras through ffmpeg. Device ids are AVFoundation indices.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from mcp_webcam.constants import RECORDING_VIDEO_SIZE
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

DEFAULT_DEVICE = "0"
CAPTURE_FRAMERATE = 30

_DEVICE_LINE = re.compile(r"\]\s+\[(\d+)\]\s+(.+)$")


def parse_avfoundation_devices(output: str) -> list[CameraDescriptor]:
    """Parse the video section of `ffmpeg -f avfoundation -list_devices true`."""
    cameras: list[CameraDescriptor] = []
    in_video = False

    for line in output.splitlines():
        if "AVFoundation video devices" in line:
            in_video = True
            continue
        if "AVFoundation audio devices" in line:
            in_video = False
            continue
        if not in_video:
            continue

        match = _DEVICE_LINE.search(line)
        if not match:
            continue
        index, name = match.group(1), match.group(2).strip()
        # Screen capture inputs are listed as video devices too
        if name.lower().startswith("capture screen"):
            continue
        cameras.append(CameraDescriptor(id=index, name=name, location=f"avfoundation:{index}"))

    return cameras


class DarwinBackend(CameraBackend):
    """Backend for macOS. Camera controls are not adjustable here."""

    def __init__(self, ffmpeg_path: str = "ffmpeg") -> None:
        self._ffmpeg = ffmpeg_path

    @property
    def name(self) -> str:
        return "darwin"

    @property
    def default_device(self) -> str:
        return DEFAULT_DEVICE

    async def enumerate_cameras(self) -> list[CameraDescriptor]:
        try:
            # ffmpeg always exits non-zero here; the listing is on stderr
            _, _, stderr = await run_command(
                [self._ffmpeg, "-hide_banner", "-f", "avfoundation", "-list_devices", "true", "-i", ""]
            )
        except OSError as e:
            logger.warning(f"ffmpeg not available ({e}) - using default camera")
            return self.fallback_cameras()

        cameras = parse_avfoundation_devices(stderr)
        if not cameras:
            logger.warning("No AVFoundation video devices listed - using default camera")
            return self.fallback_cameras()
        return cameras

    def fallback_cameras(self) -> list[CameraDescriptor]:
        return [CameraDescriptor(id=DEFAULT_DEVICE, name="Default Camera", location="macOS Default Camera")]

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
            "-f", "avfoundation",
            "-framerate", str(options.fps),
            "-video_size", RECORDING_VIDEO_SIZE,
            "-i", device_id,
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
            "-f", "avfoundation",
            "-framerate", str(CAPTURE_FRAMERATE),
            "-video_size", f"{options.width}x{options.height}",
            "-i", device_id,
            "-frames:v", "1",
            *ffmpeg_quality_args(options),
            str(output_path),
        ]
