"""
mcp-webcam - Unsupported Platform Backend
Keeps the server answering on an OS without a camera backend.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from mcp_webcam.errors import PlatformUnsupported
from mcp_webcam.messages import (
    CameraDescriptor,
    CameraSettings,
    CaptureOptions,
    RecordingOptions,
    SettingsWriteResult,
)

from .base import CameraBackend

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "default"


class UnsupportedBackend(CameraBackend):
    """
    Backend for platforms with no capture support.

    Lists no cameras and reports no settings. Every capture, recording
    or settings change fails with PlatformUnsupported, which the tools
    turn into an error result.
    """

    def __init__(self, platform: str = sys.platform) -> None:
        self._platform = platform
        logger.warning(f"No camera backend for platform {platform!r}; webcam tools will report errors")

    @property
    def name(self) -> str:
        return "unsupported"

    @property
    def platform(self) -> str:
        return self._platform

    @property
    def default_device(self) -> str:
        return DEFAULT_DEVICE

    async def enumerate_cameras(self) -> list[CameraDescriptor]:
        return []

    def fallback_cameras(self) -> list[CameraDescriptor]:
        return []

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
        raise PlatformUnsupported(f"Unsupported platform: {self._platform}")

    def build_capture_command(
        self,
        device_id: str,
        options: CaptureOptions,
        output_path: Path,
    ) -> list[str]:
        raise PlatformUnsupported(f"Unsupported platform: {self._platform}")
