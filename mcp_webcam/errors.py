"""
mcp-webcam - Error Types
Failures raised by the device session and backends, recovered by the tool registry.
"""

from __future__ import annotations


class WebcamError(Exception):
    """Base exception for webcam operations."""

    pass


class UnknownTool(WebcamError):
    """Raised when a tool name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class InvalidArguments(WebcamError):
    """Raised when tool arguments violate the tool's input schema."""

    def __init__(self, violations: list[str]) -> None:
        super().__init__("Invalid arguments: " + "; ".join(violations))
        self.violations = violations


class DeviceBusy(WebcamError):
    """Raised when the camera is held by a conflicting operation."""

    pass


class AlreadyRecording(DeviceBusy):
    """Raised when a recording is started while one is active."""

    def __init__(self) -> None:
        super().__init__("Already recording")


class NotRecording(WebcamError):
    """Raised when stopping a recording while idle."""

    def __init__(self) -> None:
        super().__init__("Not recording")


class DeviceUnavailable(WebcamError):
    """Raised when no camera can be found or opened."""

    pass


class PlatformUnsupported(WebcamError):
    """Raised when an operation has no backend on this operating system."""

    pass


class ExternalProcessFailure(WebcamError):
    """Raised when a spawned capture or recording command fails."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
