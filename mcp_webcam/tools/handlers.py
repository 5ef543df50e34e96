"""
mcp-webcam - Tool Handlers
The webcam tool catalogue, bound to one device session.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from mcp_webcam.errors import PlatformUnsupported
from mcp_webcam.messages import (
    ContentItem,
    ContentKind,
    ToolResult,
    error_result,
    text_result,
)
from mcp_webcam.video.base import format_number

from .registry import ToolRegistry
from .schemas import (
    CapturePhotoArgs,
    GetCameraSettingsArgs,
    NoArguments,
    SelectCameraArgs,
    SetCameraSettingsArgs,
    StartRecordingArgs,
)

if TYPE_CHECKING:
    from mcp_webcam.communication.picker import CameraPicker
    from mcp_webcam.device import DeviceSession

logger = logging.getLogger(__name__)


def _iso_timestamp(timestamp_ms: int) -> str:
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class WebcamTools:
    """
    Handlers for every webcam tool.

    Each handler receives validated arguments and returns a ToolResult.
    Expected failures are reported as error results; anything else is
    left to the registry.
    """

    def __init__(self, session: DeviceSession, picker: CameraPicker | None = None) -> None:
        """
        Initialize the tool handlers.

        Args:
            session: Shared device session
            picker: Camera picker web server (select_camera without an id)
        """
        self._session = session
        self._picker = picker

    # -------------------------------------------------------------------------
    # Capture and recording
    # -------------------------------------------------------------------------

    async def capture_photo(self, args: CapturePhotoArgs) -> ToolResult:
        result = await self._session.capture_photo(args.to_options())
        if not result.success:
            return error_result(f"Failed to capture photo: {result.error}")

        when = _iso_timestamp(result.timestamp)

        if args.return_type == "base64":
            return text_result(
                f"Photo captured successfully at {when}",
                f"Base64 data: {result.data}",
            )

        if args.return_type == "location":
            return text_result(
                f"Photo captured successfully and saved to: {result.data}",
                f"Timestamp: {when}",
                f"Format: {result.format}",
            )

        image = result.data if isinstance(result.data, bytes) else b""
        return ToolResult(
            content=(
                ContentItem(text=f"Photo captured successfully ({len(image)} bytes)"),
                ContentItem(text=f"Timestamp: {when}"),
                ContentItem(kind=ContentKind.IMAGE, data=image, mime_type=args.to_options().mime_type),
            )
        )

    async def start_recording(self, args: StartRecordingArgs) -> ToolResult:
        result = await self._session.start_recording(args.to_options())
        if not result.success:
            return error_result(f"Failed to start recording: {result.error}")

        return text_result(
            "Recording started successfully",
            f"Filename: {result.filename}",
            f"Duration: {args.duration} seconds",
            f"FPS: {args.fps}",
            f"Format: {args.format}",
        )

    async def stop_recording(self, args: NoArguments) -> ToolResult:
        result = await self._session.stop_recording()
        if not result.success:
            return error_result(f"Failed to stop recording: {result.error}")
        return text_result("Recording stopped successfully")

    # -------------------------------------------------------------------------
    # Cameras and settings
    # -------------------------------------------------------------------------

    async def list_cameras(self, args: NoArguments) -> ToolResult:
        cameras = await self._session.list_cameras()
        if not cameras:
            return text_result(
                "No cameras found. Make sure you have a webcam connected and proper drivers installed."
            )

        lines = [
            f"• ID: {camera.id}, Name: {camera.name}, Location: {camera.location or 'unknown'}"
            for camera in cameras
        ]
        return text_result(f"Found {len(cameras)} camera(s):\n" + "\n".join(lines))

    async def get_camera_settings(self, args: GetCameraSettingsArgs) -> ToolResult:
        settings = await self._session.get_camera_settings(args.device)
        if settings is None:
            return error_result(
                "Failed to retrieve camera settings. "
                "The camera may not support this feature or may not be accessible."
            )

        lines = [f"{name}: {format_number(value)}" for name, value in settings.items()]
        return text_result("Current camera settings:\n" + "\n".join(lines))

    async def set_camera_settings(self, args: SetCameraSettingsArgs) -> ToolResult:
        settings = args.to_settings()
        if settings.is_empty():
            return text_result("No settings provided to change.")

        try:
            result = await self._session.set_camera_settings(settings, args.device)
        except PlatformUnsupported as e:
            return error_result(f"Failed to update camera settings: {e}")

        if not result.success:
            message = f"Failed to update camera settings: {result.error}"
            if result.applied:
                message += f"\nApplied before the failure: {', '.join(result.applied)}"
            return error_result(message)

        lines = [f"{name}: {format_number(value)}" for name, value in settings.items()]
        return text_result("Camera settings updated successfully:\n" + "\n".join(lines))

    # -------------------------------------------------------------------------
    # Camera selection
    # -------------------------------------------------------------------------

    async def select_camera(self, args: SelectCameraArgs) -> ToolResult:
        if args.camera_id:
            await self._session.select_camera(args.camera_id)
            return text_result(f"Selected camera: {args.camera_id}")

        if self._picker is None:
            return error_result("Failed to open camera selection UI: picker is disabled")

        try:
            started = await self._picker.open()
        except OSError as e:
            logger.error(f"Camera picker failed to start: {e}")
            return error_result(f"Failed to open camera selection UI: {e}")

        if not started:
            return text_result("Camera selection UI reopened in your browser")

        return text_result(
            f"Camera selection UI opened in your browser at {self._picker.url}",
            f"The UI will remain open for {format_number(self._picker.timeout)} seconds. "
            "Select your preferred camera from the list.",
        )

    async def get_current_camera(self, args: NoArguments) -> ToolResult:
        camera = self._session.selected_camera
        if camera:
            return text_result(f"Current camera: {camera}")
        return text_result("No camera currently selected. Use the select_camera tool to choose one.")


def create_registry(session: DeviceSession, picker: CameraPicker | None = None) -> ToolRegistry:
    """Build the registry holding the full webcam tool catalogue."""
    tools = WebcamTools(session, picker)
    registry = ToolRegistry()

    registry.add("capture_photo", "Take a photo using the webcam", CapturePhotoArgs, tools.capture_photo)
    registry.add(
        "start_recording", "Start recording video from the webcam", StartRecordingArgs, tools.start_recording
    )
    registry.add("stop_recording", "Stop the current video recording", NoArguments, tools.stop_recording)
    registry.add("list_cameras", "List all available camera devices", NoArguments, tools.list_cameras)
    registry.add(
        "get_camera_settings", "Get current camera settings", GetCameraSettingsArgs, tools.get_camera_settings
    )
    registry.add(
        "set_camera_settings",
        "Adjust camera settings like brightness, contrast, etc.",
        SetCameraSettingsArgs,
        tools.set_camera_settings,
    )
    registry.add(
        "select_camera",
        "Open camera selection UI to choose from available cameras",
        SelectCameraArgs,
        tools.select_camera,
    )
    registry.add(
        "get_current_camera", "Get the currently selected camera", NoArguments, tools.get_current_camera
    )

    logger.info(f"Registered {len(registry)} tools")
    return registry
