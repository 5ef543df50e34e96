"""
mcp-webcam - Linux Backend
Video4Linux cameras: v4l2-ctl for enumeration and controls, ffmpeg for capture.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from mcp_webcam.constants import RECORDING_VIDEO_SIZE
from mcp_webcam.messages import (
    CameraDescriptor,
    CameraSettings,
    CaptureOptions,
    RecordingOptions,
    SettingsWriteResult,
)

from .base import CameraBackend, ffmpeg_quality_args, format_number, run_command

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "/dev/video0"

# Control name -> V4L2 control names (first one is used for writing)
V4L2_CONTROLS: dict[str, tuple[str, ...]] = {
    "brightness": ("brightness",),
    "contrast": ("contrast",),
    "saturation": ("saturation",),
    "hue": ("hue",),
    "gamma": ("gamma",),
    "sharpness": ("sharpness",),
    "whiteBalance": ("white_balance_temperature",),
    "exposure": ("exposure_absolute", "exposure_time_absolute"),
    "gain": ("gain",),
    "focus": ("focus_absolute",),
}

_CTRL_LINE = re.compile(r"^\s*(\w+)\s+0x[0-9a-fA-F]+\s+\((\w+)\)\s*:.*?\bvalue=(-?\d+)")


def parse_device_list(output: str) -> list[CameraDescriptor]:
    """
    Parse `v4l2-ctl --list-devices` output.

    Each /dev/video* node becomes one camera, named after the card
    header it is listed under.
    """
    cameras: list[CameraDescriptor] = []
    card = ""

    for line in output.splitlines():
        if not line.strip():
            continue
        if not line[0].isspace():
            # "HD Webcam: HD Webcam (usb-0000:00:14.0-1):"
            card = line.strip().rstrip(":")
            card = re.sub(r"\s*\([^)]*\)$", "", card)
            if ":" in card:
                card = card.split(":", 1)[0].strip()
            continue

        node = line.strip()
        if node.startswith("/dev/video"):
            name = card or f"Camera {len(cameras)}"
            cameras.append(CameraDescriptor(id=node, name=name, location=node))

    return cameras


def parse_controls(output: str) -> CameraSettings:
    """Parse `v4l2-ctl --list-ctrls` output into the controls it reports."""
    by_v4l2_name = {
        v4l2_name: control
        for control, v4l2_names in V4L2_CONTROLS.items()
        for v4l2_name in v4l2_names
    }

    values: dict[str, float] = {}
    for line in output.splitlines():
        match = _CTRL_LINE.match(line)
        if not match:
            continue
        control = by_v4l2_name.get(match.group(1))
        if control and control not in values:
            values[control] = int(match.group(3))

    return CameraSettings.from_dict(values)


class LinuxBackend(CameraBackend):
    """
    Backend for Video4Linux devices.

    Usage:
        backend = LinuxBackend()
        cameras = await backend.enumerate_cameras()
        settings = await backend.read_settings(cameras[0].id)
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg", v4l2_ctl_path: str = "v4l2-ctl") -> None:
        """
        Initialize Linux backend.

        Args:
            ffmpeg_path: ffmpeg executable used for capture and recording
            v4l2_ctl_path: v4l2-ctl executable used for enumeration and controls
        """
        self._ffmpeg = ffmpeg_path
        self._v4l2_ctl = v4l2_ctl_path

    @property
    def name(self) -> str:
        return "linux"

    @property
    def default_device(self) -> str:
        return DEFAULT_DEVICE

    async def enumerate_cameras(self) -> list[CameraDescriptor]:
        try:
            returncode, stdout, stderr = await run_command([self._v4l2_ctl, "--list-devices"])
        except OSError as e:
            logger.warning(f"v4l2-ctl not available ({e}) - using default camera")
            return self.fallback_cameras()

        cameras = parse_device_list(stdout)
        if cameras:
            return cameras

        if returncode != 0:
            logger.warning(f"v4l2-ctl --list-devices failed: {stderr.strip()}")
            return self.fallback_cameras()

        return []

    async def read_settings(self, device_id: str) -> CameraSettings | None:
        try:
            returncode, stdout, stderr = await run_command(
                [self._v4l2_ctl, "-d", device_id, "--list-ctrls"]
            )
        except OSError as e:
            logger.error(f"Error getting camera settings: {e}")
            return None

        if returncode != 0:
            logger.error(f"Error getting camera settings for {device_id}: {stderr.strip()}")
            return None

        return parse_controls(stdout)

    async def write_settings(
        self,
        device_id: str,
        settings: CameraSettings,
    ) -> SettingsWriteResult:
        applied: list[str] = []

        for control, value in settings.items():
            v4l2_name = V4L2_CONTROLS[control][0]
            args = [
                self._v4l2_ctl,
                "-d",
                device_id,
                f"--set-ctrl={v4l2_name}={format_number(round(value))}",
            ]
            try:
                returncode, _, stderr = await run_command(args)
            except OSError as e:
                return SettingsWriteResult(False, tuple(applied), f"Failed to set {control}: {e}")

            if returncode != 0:
                message = stderr.strip() or f"exit code {returncode}"
                logger.warning(f"Failed to set {control} on {device_id}: {message}")
                return SettingsWriteResult(
                    False, tuple(applied), f"Failed to set {control}: {message}"
                )

            applied.append(control)
            logger.debug(f"Set {control}={value} on {device_id}")

        return SettingsWriteResult(True, tuple(applied))

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
            "-f", "v4l2",
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
            "-f", "v4l2",
            "-video_size", f"{options.width}x{options.height}",
            "-i", device_id,
            "-frames:v", "1",
            *ffmpeg_quality_args(options),
            str(output_path),
        ]
