"""
mcp-webcam - Camera Backend Base Class
Uniform per-platform interface for enumeration, settings and command lines.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from mcp_webcam.messages import (
    CameraDescriptor,
    CameraSettings,
    CaptureOptions,
    RecordingOptions,
    SettingsWriteResult,
)

logger = logging.getLogger(__name__)


async def run_command(args: list[str]) -> tuple[int, str, str]:
    """
    Run an external command to completion.

    Args:
        args: Executable and arguments

    Returns:
        Tuple of (returncode, stdout, stderr)

    Raises:
        OSError: If the executable cannot be started
    """
    logger.debug(f"Running: {' '.join(args)}")
    process = await asyncio.create_subprocess_exec(
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    return (
        process.returncode if process.returncode is not None else -1,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


def ffmpeg_quality_args(options: CaptureOptions) -> list[str]:
    """
    Map a 1-100 JPEG quality onto ffmpeg's -q:v scale (2 best, 31 worst).

    PNG and BMP are lossless and take no quality argument.
    """
    if options.format != "jpeg":
        return []
    qscale = round(2 + (100 - options.quality) * 29 / 99)
    return ["-q:v", str(qscale)]


def format_number(value: float) -> str:
    """Render a control value without a trailing .0 for whole numbers."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


class CameraBackend(ABC):
    """
    Base class for all platform backends.

    Backends are stateless: every call receives the device explicitly
    and nothing about a camera is retained between calls.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get backend name for logging."""
        pass

    @property
    @abstractmethod
    def default_device(self) -> str | None:
        """Device used when no camera is selected, or None if there is none."""
        pass

    @abstractmethod
    async def enumerate_cameras(self) -> list[CameraDescriptor]:
        """
        List the cameras currently attached.

        Never raises. If the enumeration tool fails, a single synthetic
        default camera is returned instead of an empty list.
        """
        pass

    @abstractmethod
    async def read_settings(self, device_id: str) -> CameraSettings | None:
        """
        Read the controls the device exposes.

        Returns:
            Settings with only the available controls set, or None if
            settings cannot be read on this platform or device.
        """
        pass

    @abstractmethod
    async def write_settings(
        self,
        device_id: str,
        settings: CameraSettings,
    ) -> SettingsWriteResult:
        """
        Apply each set control in turn.

        Stops at the first failing control. Controls applied before the
        failure stay applied; the remaining ones are not attempted.

        Raises:
            PlatformUnsupported: If the platform cannot change settings
        """
        pass

    @abstractmethod
    def build_recording_command(
        self,
        device_id: str,
        options: RecordingOptions,
        output_path: Path,
    ) -> list[str]:
        """Build the command line that records one video file."""
        pass

    @abstractmethod
    def build_capture_command(
        self,
        device_id: str,
        options: CaptureOptions,
        output_path: Path,
    ) -> list[str]:
        """Build the command line that writes one still image."""
        pass

    def fallback_cameras(self) -> list[CameraDescriptor]:
        """Synthetic camera list used when enumeration fails."""
        device = self.default_device
        if device is None:
            return []
        return [CameraDescriptor(id=device, name="Default Camera", location=device)]

    def interrupt(self, process: Any) -> None:
        """
        Ask a recording process to finish its file and exit.

        Raises:
            ProcessLookupError: If the process has already exited
        """
        process.send_signal(signal.SIGINT)

    def get_status(self) -> dict[str, Any]:
        """Get backend status."""
        return {
            "backend": self.name,
            "default_device": self.default_device,
        }
