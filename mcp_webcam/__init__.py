"""
mcp-webcam - Webcam tools over the Model Context Protocol
Photo capture, video recording and camera settings for a local webcam.
"""

from mcp_webcam.constants import SERVER_VERSION as __version__

__all__ = ["__version__"]
