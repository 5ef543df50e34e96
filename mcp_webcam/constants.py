"""
mcp-webcam - Shared Constants
Ranges, defaults and names used by the tools, the device session and the transport.
"""

# Server identity
SERVER_NAME = "mcp-webcam"
SERVER_VERSION = "0.1.0"
PROTOCOL_VERSION = "2024-11-05"

# Output locations (relative to the working directory)
CAPTURES_DIR_NAME = "captures"
RECORDINGS_DIR_NAME = "recordings"
PREFERENCES_FILE_NAME = ".camera-preferences.json"

# Photo capture
CAPTURE_WIDTH_RANGE = (320, 3840)
CAPTURE_HEIGHT_RANGE = (240, 2160)
CAPTURE_QUALITY_RANGE = (1, 100)
CAPTURE_FORMATS = ("jpeg", "png", "bmp")
CAPTURE_RETURN_TYPES = ("location", "buffer", "base64")
DEFAULT_CAPTURE_WIDTH = 1280
DEFAULT_CAPTURE_HEIGHT = 720
DEFAULT_CAPTURE_QUALITY = 85
DEFAULT_CAPTURE_FORMAT = "jpeg"
DEFAULT_RETURN_TYPE = "location"

# Preview frames served by the camera picker
PREVIEW_WIDTH = 640
PREVIEW_HEIGHT = 480
PREVIEW_QUALITY = 70

# Video recording
RECORDING_DURATION_RANGE = (1, 3600)  # seconds
RECORDING_FPS_RANGE = (1, 60)
RECORDING_FORMATS = ("mp4", "avi", "mkv")
DEFAULT_RECORDING_DURATION = 30
DEFAULT_RECORDING_FPS = 30
DEFAULT_RECORDING_FORMAT = "mp4"
DEFAULT_RECORDING_CODEC = "libx264"
RECORDING_VIDEO_SIZE = "1280x720"

# Camera controls, in the order they are applied to a device
CAMERA_CONTROL_RANGES: dict[str, tuple[float, float]] = {
    "brightness": (0, 100),
    "contrast": (0, 100),
    "saturation": (0, 100),
    "hue": (-180, 180),
    "gamma": (1, 500),
    "sharpness": (0, 100),
    "whiteBalance": (2000, 10000),  # Kelvin
    "exposure": (-10, 10),
    "gain": (0, 100),
    "focus": (0, 100),  # 0 = auto
}
CAMERA_CONTROLS = tuple(CAMERA_CONTROL_RANGES)

# Resources
RESOURCE_CAMERAS_URI = "webcam://cameras"
RESOURCE_CAPTURES_URI = "webcam://captures"
RESOURCE_RECORDINGS_URI = "webcam://recordings"
CAPTURE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp")
RECORDING_EXTENSIONS = (".mp4", ".avi", ".mkv")

# Camera picker web server
PICKER_HOST = "127.0.0.1"
PICKER_PORT = 0  # 0 = let the OS pick a free port
PICKER_TIMEOUT_S = 60.0

# Stderr kept from a failed external command
STDERR_TAIL_CHARS = 500
