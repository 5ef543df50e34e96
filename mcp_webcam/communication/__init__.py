"""
mcp-webcam - Communication Module
Stdio JSON-RPC transport, resources and the camera picker web server.
"""

from .picker import CameraPicker
from .resources import RESOURCES, ResourceDescriptor, ResourceProvider, UnknownResource, list_directory
from .stdio_server import StdioServer, StdoutWriter, open_stdin_reader

__all__ = [
    "CameraPicker",
    "RESOURCES",
    "ResourceDescriptor",
    "ResourceProvider",
    "StdioServer",
    "StdoutWriter",
    "UnknownResource",
    "list_directory",
    "open_stdin_reader",
]
