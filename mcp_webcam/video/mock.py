"""
mcp-webcam - Mock Backend
Simulated cameras for development and tests.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from mcp_webcam.errors import DeviceUnavailable
from mcp_webcam.messages import (
    CameraDescriptor,
    CameraSettings,
    CaptureOptions,
    RecordingOptions,
    SettingsWriteResult,
)

from .base import CameraBackend

logger = logging.getLogger(__name__)

TEST_PATTERN_MODULE = "mcp_webcam.video.test_pattern"


def default_mock_settings() -> CameraSettings:
    return CameraSettings(
        brightness=50,
        contrast=50,
        saturation=50,
        hue=0,
        gamma=100,
        sharpness=50,
        whiteBalance=5000,
        exposure=0,
        gain=50,
        focus=50,
    )


@dataclass
class MockDevice:
    """
    Simulated camera hardware.

    The settings live on the device, as they would on a real camera;
    the backend itself keeps nothing between calls.
    """

    id: str
    name: str
    settings: CameraSettings = field(default_factory=default_mock_settings)
    failing_controls: set[str] = field(default_factory=set)


class MockBackend(CameraBackend):
    """
    Backend that drives simulated cameras.

    Captures and recordings run a real child process that writes a
    synthetic test pattern, so process handling is exercised end to end.
    """

    def __init__(self, camera_count: int = 2, python: str = sys.executable) -> None:
        """
        Initialize mock backend.

        Args:
            camera_count: Number of simulated cameras (0 = none attached)
            python: Interpreter used to run the test pattern writer
        """
        self._python = python
        self.devices: dict[str, MockDevice] = {
            f"mock{i}": MockDevice(id=f"mock{i}", name=f"Mock Camera {i}")
            for i in range(camera_count)
        }

        logger.info(f"MockBackend created ({camera_count} cameras)")

    @property
    def name(self) -> str:
        return "mock"

    @property
    def default_device(self) -> str | None:
        return next(iter(self.devices), None)

    async def enumerate_cameras(self) -> list[CameraDescriptor]:
        return [
            CameraDescriptor(id=device.id, name=device.name, location=f"mock://{device.id}")
            for device in self.devices.values()
        ]

    async def read_settings(self, device_id: str) -> CameraSettings | None:
        device = self.devices.get(device_id)
        if device is None:
            return None
        return device.settings.merged(CameraSettings())

    async def write_settings(
        self,
        device_id: str,
        settings: CameraSettings,
    ) -> SettingsWriteResult:
        device = self.devices.get(device_id)
        if device is None:
            return SettingsWriteResult(False, (), f"Unknown device: {device_id}")

        applied: list[str] = []
        for control, value in settings.items():
            if control in device.failing_controls:
                return SettingsWriteResult(
                    False, tuple(applied), f"Failed to set {control}: control rejected by device"
                )
            device.settings = device.settings.merged(CameraSettings(**{control: value}))
            applied.append(control)

        return SettingsWriteResult(True, tuple(applied))

    def _require_device(self, device_id: str) -> None:
        if device_id not in self.devices:
            raise DeviceUnavailable(f"Camera {device_id} is not connected")

    def build_recording_command(
        self,
        device_id: str,
        options: RecordingOptions,
        output_path: Path,
    ) -> list[str]:
        self._require_device(device_id)
        return [
            self._python,
            "-m", TEST_PATTERN_MODULE,
            "clip", str(output_path),
            "--duration", str(options.duration),
            "--fps", str(options.fps),
        ]

    def build_capture_command(
        self,
        device_id: str,
        options: CaptureOptions,
        output_path: Path,
    ) -> list[str]:
        self._require_device(device_id)
        return [
            self._python,
            "-m", TEST_PATTERN_MODULE,
            "still", str(output_path),
            "--width", str(options.width),
            "--height", str(options.height),
            "--quality", str(options.quality),
        ]
