"""
mcp-webcam - Device Module
Camera selection, capture and recording ownership.
"""

from .preferences import PreferencesStore
from .session import DeviceSession, RecordingSession

__all__ = [
    "DeviceSession",
    "PreferencesStore",
    "RecordingSession",
]
