"""
mcp-webcam - Resources
Read-only listings of the cameras and of the capture and recording directories.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mcp_webcam.constants import (
    CAPTURE_EXTENSIONS,
    RECORDING_EXTENSIONS,
    RESOURCE_CAMERAS_URI,
    RESOURCE_CAPTURES_URI,
    RESOURCE_RECORDINGS_URI,
)

if TYPE_CHECKING:
    from mcp_webcam.device import DeviceSession

logger = logging.getLogger(__name__)

JSON_MIME_TYPE = "application/json"


class UnknownResource(LookupError):
    """Raised when reading a URI that is not served."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"Unknown resource: {uri}")
        self.uri = uri


@dataclass(frozen=True)
class ResourceDescriptor:
    """A served resource as advertised by resources/list."""

    uri: str
    name: str
    description: str
    mime_type: str = JSON_MIME_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }


RESOURCES = (
    ResourceDescriptor(RESOURCE_CAMERAS_URI, "Available Cameras", "List of all available camera devices"),
    ResourceDescriptor(RESOURCE_CAPTURES_URI, "Captured Photos", "List of captured photos"),
    ResourceDescriptor(RESOURCE_RECORDINGS_URI, "Video Recordings", "List of video recordings"),
)


def list_directory(directory: Path, extensions: tuple[str, ...]) -> list[str]:
    """
    Sorted names of the files in a directory with one of the extensions.

    A missing or unreadable directory yields an empty list.
    """
    try:
        return sorted(
            entry.name
            for entry in directory.iterdir()
            if entry.suffix.lower() in extensions and entry.is_file()
        )
    except OSError as e:
        logger.debug(f"Cannot list {directory}: {e}")
        return []


class ResourceProvider:
    """Serves the webcam resources from the shared device session."""

    def __init__(self, session: DeviceSession) -> None:
        self._session = session

    def list_resources(self) -> list[ResourceDescriptor]:
        return list(RESOURCES)

    async def read(self, uri: str) -> Any:
        """
        Current value of a resource.

        Raises:
            UnknownResource: If the URI is not served
        """
        if uri == RESOURCE_CAMERAS_URI:
            cameras = await self._session.list_cameras()
            return [camera.to_dict() for camera in cameras]
        if uri == RESOURCE_CAPTURES_URI:
            return list_directory(self._session.captures_dir, CAPTURE_EXTENSIONS)
        if uri == RESOURCE_RECORDINGS_URI:
            return list_directory(self._session.recordings_dir, RECORDING_EXTENSIONS)
        raise UnknownResource(uri)

    async def read_contents(self, uri: str) -> dict[str, Any]:
        """Resource value wrapped as a resources/read result."""
        value = await self.read(uri)
        return {
            "contents": [
                {
                    "uri": uri,
                    "mimeType": JSON_MIME_TYPE,
                    "text": json.dumps(value, indent=2),
                }
            ]
        }
