"""
mcp-webcam - Tools Module
Tool catalogue, argument validation and dispatch.
"""

from .handlers import WebcamTools, create_registry
from .registry import ToolRegistry, ToolSpec, describe_validation_error
from .schemas import (
    CapturePhotoArgs,
    GetCameraSettingsArgs,
    NoArguments,
    SelectCameraArgs,
    SetCameraSettingsArgs,
    StartRecordingArgs,
    ToolArguments,
    input_schema,
)

__all__ = [
    # Registry
    "ToolRegistry",
    "ToolSpec",
    "describe_validation_error",
    # Handlers
    "WebcamTools",
    "create_registry",
    # Argument models
    "CapturePhotoArgs",
    "GetCameraSettingsArgs",
    "NoArguments",
    "SelectCameraArgs",
    "SetCameraSettingsArgs",
    "StartRecordingArgs",
    "ToolArguments",
    "input_schema",
]
