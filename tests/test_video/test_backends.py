"""
Tests for the platform backends.
"""

import signal
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mcp_webcam.errors import DeviceUnavailable, PlatformUnsupported
from mcp_webcam.messages import CameraSettings, CaptureOptions, RecordingOptions
from mcp_webcam.video import (
    DarwinBackend,
    LinuxBackend,
    MockBackend,
    UnsupportedBackend,
    WindowsBackend,
    create_backend,
    resolve_backend_name,
)
from mcp_webcam.video.base import ffmpeg_quality_args, format_number
from mcp_webcam.video.darwin import parse_avfoundation_devices
from mcp_webcam.video.linux import parse_controls, parse_device_list
from mcp_webcam.video.windows import parse_dshow_devices

V4L2_DEVICES = """\
HD Webcam: HD Webcam (usb-0000:00:14.0-1):
\t/dev/video0
\t/dev/video1
\t/dev/media0

Integrated Camera: Integrated C (usb-0000:00:14.0-5):
\t/dev/video2
"""

V4L2_CONTROLS_OUTPUT = """\
User Controls

                     brightness 0x00980900 (int)    : min=0 max=255 step=1 default=128 value=140
                       contrast 0x00980901 (int)    : min=0 max=255 step=1 default=32 value=32
                            hue 0x00980903 (int)    : min=-180 max=180 step=1 default=0 value=-5
      white_balance_temperature 0x0098091a (int)    : min=2800 max=6500 step=1 default=4600 value=4600 flags=inactive

Camera Controls

                  auto_exposure 0x009a0901 (menu)   : min=0 max=3 default=3 value=3 (Aperture Priority Mode)
         exposure_time_absolute 0x009a0902 (int)    : min=1 max=5000 step=1 default=157 value=157 flags=inactive
"""

AVFOUNDATION_OUTPUT = """\
[AVFoundation indev @ 0x7f8] AVFoundation video devices:
[AVFoundation indev @ 0x7f8] [0] FaceTime HD Camera
[AVFoundation indev @ 0x7f8] [1] USB Camera
[AVFoundation indev @ 0x7f8] [2] Capture screen 0
[AVFoundation indev @ 0x7f8] AVFoundation audio devices:
[AVFoundation indev @ 0x7f8] [0] MacBook Pro Microphone
"""

DSHOW_TAGGED_OUTPUT = """\
[dshow @ 000001] "Integrated Webcam" (video)
[dshow @ 000001]   Alternative name "@device_pnp_\\\\?\\usb#vid_0c45"
[dshow @ 000001] "Microphone Array" (audio)
"""

DSHOW_SECTIONED_OUTPUT = """\
[dshow @ 000001] DirectShow video devices (some may be both video and audio devices)
[dshow @ 000001]  "Logitech HD Webcam C270"
[dshow @ 000001] DirectShow audio devices
[dshow @ 000001]  "Microphone (HD Webcam C270)"
"""


class TestHelpers:
    """Tests for shared backend helpers."""

    @pytest.mark.parametrize("quality,qscale", [(100, "2"), (1, "31"), (85, "6"), (50, "17")])
    def test_jpeg_quality_mapping(self, quality, qscale):
        assert ffmpeg_quality_args(CaptureOptions(quality=quality)) == ["-q:v", qscale]

    def test_lossless_formats_ignore_quality(self):
        assert ffmpeg_quality_args(CaptureOptions(format="png", quality=10)) == []

    def test_format_number(self):
        assert format_number(70.0) == "70"
        assert format_number(0.5) == "0.5"

    @pytest.mark.parametrize(
        "platform,expected",
        [("linux", "linux"), ("darwin", "darwin"), ("win32", "windows"), ("sunos5", "unsupported")],
    )
    def test_resolve_backend_name(self, platform, expected):
        assert resolve_backend_name("auto", platform) == expected

    def test_explicit_backend_name(self):
        assert resolve_backend_name("mock", "linux") == "mock"

    def test_create_backend(self):
        assert isinstance(create_backend("mock", mock_camera_count=1), MockBackend)
        assert isinstance(create_backend("linux"), LinuxBackend)
        assert isinstance(create_backend("darwin"), DarwinBackend)
        assert isinstance(create_backend("windows"), WindowsBackend)

    def test_create_unsupported_backend(self):
        with patch("mcp_webcam.video.resolve_backend_name", return_value="unsupported"):
            backend = create_backend("auto")

        assert isinstance(backend, UnsupportedBackend)
        assert backend.platform == sys.platform

    def test_create_unknown_backend_names_it(self):
        backend = create_backend("freebsd")
        assert isinstance(backend, UnsupportedBackend)
        assert backend.platform == "freebsd"


class TestLinuxBackend:
    """Tests for LinuxBackend."""

    @pytest.fixture
    def backend(self):
        return LinuxBackend()

    def test_parse_device_list(self):
        cameras = parse_device_list(V4L2_DEVICES)

        assert [c.id for c in cameras] == ["/dev/video0", "/dev/video1", "/dev/video2"]
        assert cameras[0].name == "HD Webcam"
        assert cameras[2].name == "Integrated Camera"
        assert cameras[2].location == "/dev/video2"

    def test_parse_controls(self):
        settings = parse_controls(V4L2_CONTROLS_OUTPUT)

        assert settings.to_dict() == {
            "brightness": 140,
            "contrast": 32,
            "hue": -5,
            "whiteBalance": 4600,
            "exposure": 157,
        }
        assert settings.focus is None

    @pytest.mark.asyncio
    async def test_enumerate(self, backend):
        with patch("mcp_webcam.video.linux.run_command", AsyncMock(return_value=(0, V4L2_DEVICES, ""))):
            cameras = await backend.enumerate_cameras()
        assert len(cameras) == 3

    @pytest.mark.asyncio
    async def test_enumerate_missing_tool_falls_back(self, backend):
        with patch("mcp_webcam.video.linux.run_command", AsyncMock(side_effect=FileNotFoundError())):
            cameras = await backend.enumerate_cameras()

        assert len(cameras) == 1
        assert cameras[0].id == "/dev/video0"
        assert cameras[0].name == "Default Camera"

    @pytest.mark.asyncio
    async def test_enumerate_failure_falls_back(self, backend):
        with patch(
            "mcp_webcam.video.linux.run_command",
            AsyncMock(return_value=(1, "", "Cannot open device /dev/video0")),
        ):
            cameras = await backend.enumerate_cameras()
        assert [c.id for c in cameras] == ["/dev/video0"]

    @pytest.mark.asyncio
    async def test_read_settings(self, backend):
        run = AsyncMock(return_value=(0, V4L2_CONTROLS_OUTPUT, ""))
        with patch("mcp_webcam.video.linux.run_command", run):
            settings = await backend.read_settings("/dev/video2")

        assert settings.brightness == 140
        run.assert_awaited_once_with(["v4l2-ctl", "-d", "/dev/video2", "--list-ctrls"])

    @pytest.mark.asyncio
    async def test_read_settings_failure(self, backend):
        with patch("mcp_webcam.video.linux.run_command", AsyncMock(return_value=(1, "", "No such device"))):
            assert await backend.read_settings("/dev/video9") is None

    @pytest.mark.asyncio
    async def test_write_only_supplied_controls(self, backend):
        run = AsyncMock(return_value=(0, "", ""))
        with patch("mcp_webcam.video.linux.run_command", run):
            result = await backend.write_settings("/dev/video0", CameraSettings(brightness=70, whiteBalance=5000))

        assert result.success is True
        assert result.applied == ("brightness", "whiteBalance")
        commands = [call.args[0] for call in run.await_args_list]
        assert commands == [
            ["v4l2-ctl", "-d", "/dev/video0", "--set-ctrl=brightness=70"],
            ["v4l2-ctl", "-d", "/dev/video0", "--set-ctrl=white_balance_temperature=5000"],
        ]

    @pytest.mark.asyncio
    async def test_write_stops_at_first_failure(self, backend):
        run = AsyncMock(side_effect=[(0, "", ""), (1, "", "Invalid argument"), (0, "", "")])
        with patch("mcp_webcam.video.linux.run_command", run):
            result = await backend.write_settings(
                "/dev/video0", CameraSettings(brightness=10, contrast=20, saturation=30)
            )

        assert result.success is False
        assert result.applied == ("brightness",)
        assert result.error == "Failed to set contrast: Invalid argument"
        assert run.await_count == 2

    def test_recording_command(self, backend):
        command = backend.build_recording_command(
            "/dev/video2", RecordingOptions(duration=10, fps=15, codec="libx265"), Path("out.mp4")
        )

        assert command[0] == "ffmpeg"
        assert command[command.index("-f") + 1] == "v4l2"
        assert command[command.index("-framerate") + 1] == "15"
        assert command[command.index("-i") + 1] == "/dev/video2"
        assert command[command.index("-c:v") + 1] == "libx265"
        assert command[command.index("-t") + 1] == "10"
        assert command[-1] == "out.mp4"

    def test_capture_command(self, backend):
        command = backend.build_capture_command(
            "/dev/video0", CaptureOptions(width=640, height=480, quality=100), Path("shot.jpg")
        )

        assert command[command.index("-video_size") + 1] == "640x480"
        assert command[command.index("-frames:v") + 1] == "1"
        assert command[command.index("-q:v") + 1] == "2"
        assert command[-1] == "shot.jpg"

    def test_interrupt_sends_sigint(self, backend):
        process = MagicMock()
        backend.interrupt(process)
        process.send_signal.assert_called_once_with(signal.SIGINT)


class TestDarwinBackend:
    """Tests for DarwinBackend."""

    def test_parse_devices_skips_screens_and_audio(self):
        cameras = parse_avfoundation_devices(AVFOUNDATION_OUTPUT)
        assert [(c.id, c.name) for c in cameras] == [("0", "FaceTime HD Camera"), ("1", "USB Camera")]

    @pytest.mark.asyncio
    async def test_enumerate_reads_stderr(self):
        with patch("mcp_webcam.video.darwin.run_command", AsyncMock(return_value=(1, "", AVFOUNDATION_OUTPUT))):
            cameras = await DarwinBackend().enumerate_cameras()
        assert len(cameras) == 2

    @pytest.mark.asyncio
    async def test_enumerate_fallback(self):
        with patch("mcp_webcam.video.darwin.run_command", AsyncMock(side_effect=FileNotFoundError())):
            cameras = await DarwinBackend().enumerate_cameras()
        assert cameras[0].id == "0"
        assert cameras[0].location == "macOS Default Camera"

    @pytest.mark.asyncio
    async def test_settings_unsupported(self):
        backend = DarwinBackend()
        assert await backend.read_settings("0") is None
        with pytest.raises(PlatformUnsupported):
            await backend.write_settings("0", CameraSettings(brightness=50))

    def test_commands(self):
        backend = DarwinBackend(ffmpeg_path="/opt/bin/ffmpeg")
        record = backend.build_recording_command("1", RecordingOptions(fps=24), Path("clip.mkv"))
        capture = backend.build_capture_command("1", CaptureOptions(format="png"), Path("shot.png"))

        assert record[0] == "/opt/bin/ffmpeg"
        assert record[record.index("-f") + 1] == "avfoundation"
        assert record[record.index("-framerate") + 1] == "24"
        assert capture[capture.index("-i") + 1] == "1"
        assert "-q:v" not in capture


class TestWindowsBackend:
    """Tests for WindowsBackend."""

    def test_parse_tagged_devices(self):
        cameras = parse_dshow_devices(DSHOW_TAGGED_OUTPUT)
        assert [c.id for c in cameras] == ["Integrated Webcam"]

    def test_parse_sectioned_devices(self):
        cameras = parse_dshow_devices(DSHOW_SECTIONED_OUTPUT)
        assert [c.name for c in cameras] == ["Logitech HD Webcam C270"]

    @pytest.mark.asyncio
    async def test_enumerate_fallback(self):
        with patch("mcp_webcam.video.windows.run_command", AsyncMock(return_value=(1, "", "no devices"))):
            cameras = await WindowsBackend().enumerate_cameras()
        assert [c.name for c in cameras] == ["Default Camera"]

    @pytest.mark.asyncio
    async def test_write_settings_unsupported(self):
        with pytest.raises(PlatformUnsupported):
            await WindowsBackend().write_settings("cam", CameraSettings(gain=1))

    def test_commands_use_dshow_names(self):
        backend = WindowsBackend()
        command = backend.build_recording_command("Integrated Webcam", RecordingOptions(), Path("a.avi"))
        assert command[command.index("-i") + 1] == "video=Integrated Webcam"

    def test_interrupt_terminates(self):
        process = MagicMock()
        WindowsBackend().interrupt(process)
        process.terminate.assert_called_once()
        process.send_signal.assert_not_called()


class TestMockBackend:
    """Tests for MockBackend."""

    @pytest.mark.asyncio
    async def test_enumerate(self):
        cameras = await MockBackend(camera_count=3).enumerate_cameras()
        assert [c.id for c in cameras] == ["mock0", "mock1", "mock2"]

    def test_zero_cameras(self):
        backend = MockBackend(camera_count=0)
        assert backend.default_device is None
        assert backend.fallback_cameras() == []

    @pytest.mark.asyncio
    async def test_read_returns_copy(self):
        backend = MockBackend()
        settings = await backend.read_settings("mock0")
        settings.brightness = 1
        assert backend.devices["mock0"].settings.brightness == 50

    @pytest.mark.asyncio
    async def test_unknown_device(self):
        backend = MockBackend()
        assert await backend.read_settings("nope") is None
        result = await backend.write_settings("nope", CameraSettings(gain=1))
        assert result.success is False

    def test_commands_run_test_pattern(self):
        backend = MockBackend(python="python3")
        capture = backend.build_capture_command("mock0", CaptureOptions(), Path("shot.jpg"))
        record = backend.build_recording_command("mock0", RecordingOptions(duration=3), Path("clip.mp4"))

        assert capture[:3] == ["python3", "-m", "mcp_webcam.video.test_pattern"]
        assert capture[3:5] == ["still", "shot.jpg"]
        assert record[3:5] == ["clip", "clip.mp4"]

    def test_commands_reject_unknown_device(self):
        with pytest.raises(DeviceUnavailable):
            MockBackend().build_capture_command("mock7", CaptureOptions(), Path("shot.jpg"))


class TestUnsupportedBackend:
    """Tests for UnsupportedBackend."""

    @pytest.fixture
    def backend(self):
        return UnsupportedBackend(platform="sunos5")

    @pytest.mark.asyncio
    async def test_no_cameras_or_settings(self, backend):
        assert await backend.enumerate_cameras() == []
        assert await backend.read_settings(backend.default_device) is None

    @pytest.mark.asyncio
    async def test_write_settings_unsupported(self, backend):
        with pytest.raises(PlatformUnsupported):
            await backend.write_settings("default", CameraSettings(brightness=10))

    def test_commands_unsupported(self, backend):
        with pytest.raises(PlatformUnsupported, match="Unsupported platform: sunos5"):
            backend.build_capture_command("default", CaptureOptions(), Path("shot.jpg"))
        with pytest.raises(PlatformUnsupported, match="Unsupported platform: sunos5"):
            backend.build_recording_command("default", RecordingOptions(), Path("clip.mp4"))
