"""
mcp-webcam - Message Types
Dataclass definitions for tool results, camera values and protocol envelopes.

Use serialize()/deserialize() on the envelopes for wire format
(one JSON object per line).
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any

from mcp_webcam.constants import (
    CAMERA_CONTROLS,
    DEFAULT_CAPTURE_FORMAT,
    DEFAULT_CAPTURE_HEIGHT,
    DEFAULT_CAPTURE_QUALITY,
    DEFAULT_CAPTURE_WIDTH,
    DEFAULT_RECORDING_CODEC,
    DEFAULT_RECORDING_DURATION,
    DEFAULT_RECORDING_FORMAT,
    DEFAULT_RECORDING_FPS,
    DEFAULT_RETURN_TYPE,
)

JSONRPC_VERSION = "2.0"


# =============================================================================
# ENUMS
# =============================================================================


class RecordingState(str, Enum):
    """Recording state of the device session."""

    IDLE = "idle"
    RECORDING = "recording"


class ContentKind(str, Enum):
    """Kind of a tool result content item."""

    TEXT = "text"
    IMAGE = "image"


class ErrorCode:
    """JSON-RPC error codes used by the transport."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


# =============================================================================
# TOOL MESSAGES
# =============================================================================


@dataclass(frozen=True)
class ToolDefinition:
    """Name, description and input schema of a registered tool."""

    name: str
    description: str
    input_schema: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(frozen=True)
class ToolInvocation:
    """One tool call request."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> ToolInvocation:
        arguments = params.get("arguments")
        return cls(name=params["name"], arguments=arguments if arguments is not None else {})


@dataclass(frozen=True)
class ContentItem:
    """Single text or binary item of a tool result."""

    kind: ContentKind = ContentKind.TEXT
    text: str = ""
    data: bytes = b""
    mime_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        if self.kind == ContentKind.TEXT:
            return {"type": "text", "text": self.text}
        return {
            "type": self.kind.value,
            "data": base64.b64encode(self.data).decode("ascii"),
            "mimeType": self.mime_type,
        }


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool invocation."""

    content: tuple[ContentItem, ...] = ()
    is_error: bool = False

    @property
    def text(self) -> str:
        """All text items joined by newlines."""
        return "\n".join(item.text for item in self.content if item.kind == ContentKind.TEXT)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": [item.to_dict() for item in self.content],
            "isError": self.is_error,
        }


# =============================================================================
# CAMERA MESSAGES
# =============================================================================


@dataclass(frozen=True)
class CameraDescriptor:
    """A camera as reported by enumeration."""

    id: str
    name: str
    location: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.location is not None:
            result["location"] = self.location
        return result


@dataclass
class CameraSettings:
    """
    Sparse set of camera controls.

    A control left as None is unset: it is neither reported nor written.
    Attribute names match the wire names.
    """

    brightness: float | None = None
    contrast: float | None = None
    saturation: float | None = None
    hue: float | None = None
    gamma: float | None = None
    sharpness: float | None = None
    whiteBalance: float | None = None  # noqa: N815
    exposure: float | None = None
    gain: float | None = None
    focus: float | None = None

    def items(self) -> list[tuple[str, float]]:
        """Set controls in application order."""
        values = []
        for name in CAMERA_CONTROLS:
            value = getattr(self, name)
            if value is not None:
                values.append((name, value))
        return values

    def is_empty(self) -> bool:
        return not self.items()

    def merged(self, other: CameraSettings) -> CameraSettings:
        """Return a copy with the set controls of other applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(dict(other.items()))
        return CameraSettings(**values)

    def to_dict(self) -> dict[str, float]:
        return dict(self.items())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CameraSettings:
        return cls(**{name: data[name] for name in CAMERA_CONTROLS if data.get(name) is not None})


@dataclass(frozen=True)
class SettingsWriteResult:
    """Outcome of applying camera controls one by one."""

    success: bool
    applied: tuple[str, ...] = ()
    error: str = ""


# =============================================================================
# CAPTURE / RECORDING MESSAGES
# =============================================================================


@dataclass(frozen=True)
class CaptureOptions:
    """Photo capture request."""

    width: int = DEFAULT_CAPTURE_WIDTH
    height: int = DEFAULT_CAPTURE_HEIGHT
    quality: int = DEFAULT_CAPTURE_QUALITY
    format: str = DEFAULT_CAPTURE_FORMAT
    return_type: str = DEFAULT_RETURN_TYPE
    device: str | None = None

    @property
    def extension(self) -> str:
        return "jpg" if self.format == "jpeg" else self.format

    @property
    def mime_type(self) -> str:
        return f"image/{self.format}"


@dataclass(frozen=True)
class CaptureResult:
    """
    Outcome of one photo capture.

    data holds the file path (location), raw bytes (buffer) or base64 text
    (base64) depending on the requested return type.
    """

    success: bool
    timestamp: int
    format: str = ""
    path: Path | None = None
    data: str | bytes | None = None
    error: str = ""


@dataclass(frozen=True)
class RecordingOptions:
    """Video recording request."""

    duration: int = DEFAULT_RECORDING_DURATION
    fps: int = DEFAULT_RECORDING_FPS
    format: str = DEFAULT_RECORDING_FORMAT
    codec: str = DEFAULT_RECORDING_CODEC


@dataclass(frozen=True)
class RecordingStatus:
    """Snapshot of the recording state."""

    state: RecordingState = RecordingState.IDLE
    output_path: Path | None = None
    started_at: float | None = None
    device: str | None = None

    @property
    def is_recording(self) -> bool:
        return self.state == RecordingState.RECORDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "output_path": str(self.output_path) if self.output_path else None,
            "started_at": self.started_at,
            "device": self.device,
        }


@dataclass(frozen=True)
class OperationResult:
    """Success flag with an optional error, as returned by recording operations."""

    success: bool
    error: str = ""
    filename: str = ""


# =============================================================================
# PROTOCOL ENVELOPES
# =============================================================================


@dataclass
class Request:
    """
    Incoming JSON-RPC request or notification.

    A request without an id is a notification and never gets a response.
    """

    method: str
    params: dict[str, Any] = field(default_factory=dict)
    id: str | int | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Request:
        if not isinstance(data, dict):
            raise ValueError("Request must be a JSON object")
        method = data.get("method")
        if not isinstance(method, str):
            raise ValueError("Request is missing a method")
        params = data.get("params") or {}
        if not isinstance(params, dict):
            raise ValueError("Request params must be an object")
        return cls(method=method, params=params, id=data.get("id"))


@dataclass
class Response:
    """Outgoing JSON-RPC response carrying either a result or an error."""

    id: str | int | None = None
    result: dict[str, Any] | None = None
    error_code: int | None = None
    error_message: str = ""

    @property
    def is_error(self) -> bool:
        return self.error_code is not None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id}
        if self.is_error:
            result["error"] = {"code": self.error_code, "message": self.error_message}
        else:
            result["result"] = self.result if self.result is not None else {}
        return result

    def serialize(self) -> bytes:
        """Serialize response to one line of bytes."""
        return json.dumps(self.to_dict()).encode("utf-8") + b"\n"


# =============================================================================
# FACTORY HELPERS
# =============================================================================


def text_result(*lines: str, is_error: bool = False) -> ToolResult:
    """Create a tool result made of text items."""
    return ToolResult(
        content=tuple(ContentItem(kind=ContentKind.TEXT, text=line) for line in lines),
        is_error=is_error,
    )


def error_result(message: str) -> ToolResult:
    """Create an error-flagged tool result."""
    return text_result(message, is_error=True)


def create_result_response(request_id: str | int | None, result: dict[str, Any]) -> Response:
    """Create a successful response."""
    return Response(id=request_id, result=result)


def create_error_response(
    request_id: str | int | None,
    code: int,
    message: str,
) -> Response:
    """Create a protocol error response."""
    return Response(id=request_id, error_code=code, error_message=message)
