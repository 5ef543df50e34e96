"""
mcp-webcam - Tool Argument Models
Pydantic models validating tool arguments; their JSON schema is the tool input schema.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from mcp_webcam.constants import (
    CAMERA_CONTROL_RANGES,
    CAPTURE_HEIGHT_RANGE,
    CAPTURE_QUALITY_RANGE,
    CAPTURE_WIDTH_RANGE,
    DEFAULT_CAPTURE_FORMAT,
    DEFAULT_CAPTURE_HEIGHT,
    DEFAULT_CAPTURE_QUALITY,
    DEFAULT_CAPTURE_WIDTH,
    DEFAULT_RECORDING_CODEC,
    DEFAULT_RECORDING_DURATION,
    DEFAULT_RECORDING_FORMAT,
    DEFAULT_RECORDING_FPS,
    DEFAULT_RETURN_TYPE,
    RECORDING_DURATION_RANGE,
    RECORDING_FPS_RANGE,
)
from mcp_webcam.messages import CameraSettings, CaptureOptions, RecordingOptions

DEVICE_DESCRIPTION = "Camera device ID (optional)"


def _control(description: str, name: str) -> Any:
    low, high = CAMERA_CONTROL_RANGES[name]
    return Field(None, ge=low, le=high, description=description)


class ToolArguments(BaseModel):
    """Base for tool arguments. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")


class NoArguments(ToolArguments):
    """Arguments of tools that take none."""

    pass


class CapturePhotoArgs(ToolArguments):
    """Arguments for capture_photo."""

    width: int = Field(
        DEFAULT_CAPTURE_WIDTH,
        ge=CAPTURE_WIDTH_RANGE[0],
        le=CAPTURE_WIDTH_RANGE[1],
        description="Image width in pixels",
    )
    height: int = Field(
        DEFAULT_CAPTURE_HEIGHT,
        ge=CAPTURE_HEIGHT_RANGE[0],
        le=CAPTURE_HEIGHT_RANGE[1],
        description="Image height in pixels",
    )
    quality: int = Field(
        DEFAULT_CAPTURE_QUALITY,
        ge=CAPTURE_QUALITY_RANGE[0],
        le=CAPTURE_QUALITY_RANGE[1],
        description="Image quality (1-100)",
    )
    format: Literal["jpeg", "png", "bmp"] = Field(DEFAULT_CAPTURE_FORMAT, description="Image format")
    return_type: Literal["location", "buffer", "base64"] = Field(
        DEFAULT_RETURN_TYPE, description="How to return the image data"
    )
    device: str | None = Field(None, description=DEVICE_DESCRIPTION)

    def to_options(self) -> CaptureOptions:
        return CaptureOptions(
            width=self.width,
            height=self.height,
            quality=self.quality,
            format=self.format,
            return_type=self.return_type,
            device=self.device,
        )


class StartRecordingArgs(ToolArguments):
    """Arguments for start_recording."""

    duration: int = Field(
        DEFAULT_RECORDING_DURATION,
        ge=RECORDING_DURATION_RANGE[0],
        le=RECORDING_DURATION_RANGE[1],
        description="Recording duration in seconds",
    )
    fps: int = Field(
        DEFAULT_RECORDING_FPS,
        ge=RECORDING_FPS_RANGE[0],
        le=RECORDING_FPS_RANGE[1],
        description="Frames per second",
    )
    format: Literal["mp4", "avi", "mkv"] = Field(DEFAULT_RECORDING_FORMAT, description="Video format")
    codec: str = Field(
        DEFAULT_RECORDING_CODEC,
        min_length=1,
        pattern=r"^[A-Za-z0-9][A-Za-z0-9_\-]*$",
        description="Video codec (e.g., libx264, libx265)",
    )

    def to_options(self) -> RecordingOptions:
        return RecordingOptions(
            duration=self.duration,
            fps=self.fps,
            format=self.format,
            codec=self.codec,
        )


class GetCameraSettingsArgs(ToolArguments):
    """Arguments for get_camera_settings."""

    device: str | None = Field(None, description=DEVICE_DESCRIPTION)


class SetCameraSettingsArgs(ToolArguments):
    """Arguments for set_camera_settings. Omitted controls are left unchanged."""

    device: str | None = Field(None, description=DEVICE_DESCRIPTION)
    brightness: float | None = _control("Brightness level (0-100)", "brightness")
    contrast: float | None = _control("Contrast level (0-100)", "contrast")
    saturation: float | None = _control("Saturation level (0-100)", "saturation")
    hue: float | None = _control("Hue adjustment (-180 to 180)", "hue")
    gamma: float | None = _control("Gamma correction (1-500)", "gamma")
    sharpness: float | None = _control("Sharpness level (0-100)", "sharpness")
    whiteBalance: float | None = _control("White balance in Kelvin (2000-10000)", "whiteBalance")  # noqa: N815
    exposure: float | None = _control("Exposure compensation (-10 to 10)", "exposure")
    gain: float | None = _control("Gain level (0-100)", "gain")
    focus: float | None = _control("Focus level (0-100, 0=auto)", "focus")

    def to_settings(self) -> CameraSettings:
        return CameraSettings.from_dict(self.model_dump(exclude={"device"}, exclude_none=True))


class SelectCameraArgs(ToolArguments):
    """Arguments for select_camera. Without camera_id the picker UI is opened."""

    camera_id: str | None = Field(
        None,
        min_length=1,
        description="Camera ID to select directly, without opening the picker",
    )


def input_schema(model: type[BaseModel]) -> dict[str, Any]:
    """JSON schema advertised for a tool's arguments."""
    schema = model.model_json_schema()
    schema.pop("title", None)
    schema.setdefault("properties", {})
    for prop in schema["properties"].values():
        prop.pop("title", None)
    return schema
