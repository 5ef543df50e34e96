"""
mcp-webcam - Message Types
Tool results, camera values and JSON-RPC envelopes.
"""

from .types import (
    # Enums
    ContentKind,
    ErrorCode,
    RecordingState,
    # Tool messages
    ContentItem,
    ToolDefinition,
    ToolInvocation,
    ToolResult,
    # Camera messages
    CameraDescriptor,
    CameraSettings,
    SettingsWriteResult,
    # Capture / recording messages
    CaptureOptions,
    CaptureResult,
    OperationResult,
    RecordingOptions,
    RecordingStatus,
    # Protocol envelopes
    Request,
    Response,
    # Factory helpers
    create_error_response,
    create_result_response,
    error_result,
    text_result,
)

__all__ = [
    # Enums
    "ContentKind",
    "ErrorCode",
    "RecordingState",
    # Tool messages
    "ContentItem",
    "ToolDefinition",
    "ToolInvocation",
    "ToolResult",
    # Camera messages
    "CameraDescriptor",
    "CameraSettings",
    "SettingsWriteResult",
    # Capture / recording messages
    "CaptureOptions",
    "CaptureResult",
    "OperationResult",
    "RecordingOptions",
    "RecordingStatus",
    # Protocol envelopes
    "Request",
    "Response",
    # Factory helpers
    "create_error_response",
    "create_result_response",
    "error_result",
    "text_result",
]
