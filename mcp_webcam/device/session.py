"""
mcp-webcam - Device Session
Single owner of the selected camera and the active recording.

Recording state machine:

    Idle --start_recording--> Recording
    Recording --stop_recording--> Idle      (interrupt sent, no wait)
    Recording --process exits--> Idle       (no-op if already stopped)

Every transition happens under one asyncio.Lock, shared by the protocol
transport and the camera picker web server.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable

from mcp_webcam.constants import STDERR_TAIL_CHARS
from mcp_webcam.errors import (
    AlreadyRecording,
    DeviceUnavailable,
    ExternalProcessFailure,
    NotRecording,
    WebcamError,
)
from mcp_webcam.messages import (
    CameraDescriptor,
    CameraSettings,
    CaptureOptions,
    CaptureResult,
    OperationResult,
    RecordingOptions,
    RecordingState,
    RecordingStatus,
    SettingsWriteResult,
)
from mcp_webcam.video import CameraBackend

from .preferences import PreferencesStore

logger = logging.getLogger(__name__)

Spawn = Callable[..., Awaitable[Any]]

# Time given to a recording process to finalize its file on shutdown
SHUTDOWN_GRACE_S = 5.0


def _stderr_tail(stderr: bytes | None) -> str:
    text = (stderr or b"").decode("utf-8", errors="replace").strip()
    return text[-STDERR_TAIL_CHARS:]


@dataclass
class RecordingSession:
    """An external recording process owned by the device session."""

    process: Any
    output_path: Path
    started_at: float
    device: str
    watcher: asyncio.Task[None] | None = field(default=None, repr=False)


class DeviceSession:
    """
    Coordinates camera selection, photo capture and video recording.

    Usage:
        session = DeviceSession(backend, PreferencesStore(path), captures, recordings)
        result = await session.start_recording(RecordingOptions(duration=10))
        ...
        await session.stop_recording()
    """

    def __init__(
        self,
        backend: CameraBackend,
        preferences: PreferencesStore,
        captures_dir: Path,
        recordings_dir: Path,
        spawn: Spawn | None = None,
    ) -> None:
        """
        Initialize the device session.

        Args:
            backend: Platform backend for device specific work
            preferences: Store holding the selected camera
            captures_dir: Directory photos are written to
            recordings_dir: Directory recordings are written to
            spawn: Process factory (defaults to asyncio.create_subprocess_exec)
        """
        self._backend = backend
        self._preferences = preferences
        self._captures_dir = Path(captures_dir)
        self._recordings_dir = Path(recordings_dir)
        self._spawn: Spawn = spawn or asyncio.create_subprocess_exec

        self._lock = asyncio.Lock()
        self._recording: RecordingSession | None = None
        self._watchers: set[asyncio.Task[None]] = set()
        self._idle = asyncio.Event()
        self._idle.set()

        self._selected_camera = preferences.load()
        self.last_recording_error = ""

        if self._selected_camera:
            logger.info(f"Restored selected camera: {self._selected_camera}")

    @property
    def backend(self) -> CameraBackend:
        return self._backend

    @property
    def captures_dir(self) -> Path:
        return self._captures_dir

    @property
    def recordings_dir(self) -> Path:
        return self._recordings_dir

    @property
    def selected_camera(self) -> str | None:
        """Currently selected camera id, or None for the platform default."""
        return self._selected_camera

    @property
    def is_recording(self) -> bool:
        return self._recording is not None

    def ensure_directories(self) -> None:
        """Create the capture and recording directories."""
        self._captures_dir.mkdir(parents=True, exist_ok=True)
        self._recordings_dir.mkdir(parents=True, exist_ok=True)

    def _resolve_device(self, device: str | None) -> str:
        resolved = device or self._selected_camera or self._backend.default_device
        if not resolved:
            raise DeviceUnavailable("No camera available")
        return resolved

    # -------------------------------------------------------------------------
    # Camera selection
    # -------------------------------------------------------------------------

    async def select_camera(self, camera_id: str) -> None:
        """
        Select a camera and persist the choice before returning.

        Raises:
            ValueError: If camera_id is empty
            OSError: If the preference cannot be written
        """
        if not camera_id:
            raise ValueError("Camera ID required")

        async with self._lock:
            self._preferences.save(camera_id)
            self._selected_camera = camera_id

        logger.info(f"Selected camera: {camera_id}")

    async def list_cameras(self) -> list[CameraDescriptor]:
        """Enumerate attached cameras (never cached)."""
        return await self._backend.enumerate_cameras()

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    async def get_camera_settings(self, device: str | None = None) -> CameraSettings | None:
        """Read the settings of a camera (default: selected camera)."""
        return await self._backend.read_settings(self._resolve_device(device))

    async def set_camera_settings(
        self,
        settings: CameraSettings,
        device: str | None = None,
    ) -> SettingsWriteResult:
        """
        Apply only the set controls; other controls keep their device value.

        Raises:
            PlatformUnsupported: If the platform cannot change settings
        """
        device_id = self._resolve_device(device)
        result = await self._backend.write_settings(device_id, settings)
        if result.success:
            logger.info(f"Updated {', '.join(result.applied)} on {device_id}")
        else:
            logger.warning(f"Settings update on {device_id} stopped: {result.error}")
        return result

    # -------------------------------------------------------------------------
    # Photo capture
    # -------------------------------------------------------------------------

    async def capture_photo(self, options: CaptureOptions | None = None) -> CaptureResult:
        """
        Capture one photo. Runs regardless of recording state.

        Failures are returned as an unsuccessful result, never raised.
        """
        options = options or CaptureOptions()
        timestamp = int(time.time() * 1000)
        output_path: Path | None = None

        try:
            device = self._resolve_device(options.device)
            output_path = self._reserve_capture_path(timestamp, options.extension)
            command = self._backend.build_capture_command(device, options, output_path)
            await self._run_capture(command)

            try:
                image = output_path.read_bytes()
            except OSError as e:
                raise ExternalProcessFailure(f"Capture produced no image: {e}") from e
            if not image:
                raise ExternalProcessFailure("Capture produced no image")

        except WebcamError as e:
            logger.warning(f"Photo capture failed: {e}")
            if output_path is not None:
                output_path.unlink(missing_ok=True)
            return CaptureResult(success=False, timestamp=timestamp, error=str(e))

        logger.info(f"Captured {len(image)} bytes from {device} to {output_path}")

        data: str | bytes
        if options.return_type == "base64":
            data = base64.b64encode(image).decode("ascii")
        elif options.return_type == "buffer":
            data = image
        else:
            data = str(output_path)

        return CaptureResult(
            success=True,
            timestamp=timestamp,
            format=options.format,
            path=output_path,
            data=data,
        )

    def _reserve_capture_path(self, timestamp: int, extension: str) -> Path:
        """
        Create an empty capture file under a name no other capture holds.

        Concurrent captures in the same millisecond get a numeric suffix.
        """
        self._captures_dir.mkdir(parents=True, exist_ok=True)
        suffix = 0
        while True:
            stem = f"capture_{timestamp}" if suffix == 0 else f"capture_{timestamp}_{suffix}"
            path = self._captures_dir / f"{stem}.{extension}"
            try:
                path.touch(exist_ok=False)
                return path
            except FileExistsError:
                suffix += 1

    async def _run_capture(self, command: list[str]) -> None:
        try:
            process = await self._spawn(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise DeviceUnavailable(f"Capture utility not available: {e}") from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            tail = _stderr_tail(stderr)
            raise ExternalProcessFailure(
                f"Capture command exited with code {process.returncode}: {tail}",
                returncode=process.returncode,
                stderr=tail,
            )

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    async def start_recording(self, options: RecordingOptions | None = None) -> OperationResult:
        """
        Start one recording and return without waiting for it.

        The recording length is enforced by the external process.
        """
        try:
            status = await self._start_recording(options or RecordingOptions())
        except WebcamError as e:
            logger.warning(f"Failed to start recording: {e}")
            return OperationResult(success=False, error=str(e))

        return OperationResult(success=True, filename=status.output_path.name)

    async def _start_recording(self, options: RecordingOptions) -> RecordingStatus:
        async with self._lock:
            if self._recording is not None:
                raise AlreadyRecording()

            device = self._resolve_device(None)
            started_at = time.time()
            output_path = self._recordings_dir / f"recording_{int(started_at * 1000)}.{options.format}"
            self._recordings_dir.mkdir(parents=True, exist_ok=True)

            command = self._backend.build_recording_command(device, options, output_path)
            try:
                process = await self._spawn(
                    *command,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise ExternalProcessFailure(f"Could not start recording: {e}") from e

            recording = RecordingSession(
                process=process,
                output_path=output_path,
                started_at=started_at,
                device=device,
            )
            self._recording = recording
            self._idle.clear()
            self.last_recording_error = ""

            recording.watcher = asyncio.create_task(self._watch_recording(recording))
            self._watchers.add(recording.watcher)
            recording.watcher.add_done_callback(self._watchers.discard)

            logger.info(
                f"Recording started on {device}: {output_path.name} "
                f"({options.duration}s @ {options.fps}fps, {options.codec})"
            )
            return self._status()

    async def stop_recording(self) -> OperationResult:
        """
        Interrupt the active recording and return to idle at once.

        Does not wait for the process to exit.
        """
        try:
            async with self._lock:
                recording = self._recording
                if recording is None:
                    raise NotRecording()

                try:
                    self._backend.interrupt(recording.process)
                except ProcessLookupError:
                    logger.debug("Recording process already exited")
                except OSError as e:
                    raise ExternalProcessFailure(f"Could not stop recording: {e}") from e

                self._recording = None
                self._idle.set()
        except WebcamError as e:
            logger.warning(f"Failed to stop recording: {e}")
            return OperationResult(success=False, error=str(e))

        logger.info(f"Recording stopped: {recording.output_path.name}")
        return OperationResult(success=True, filename=recording.output_path.name)

    async def _watch_recording(self, recording: RecordingSession) -> None:
        """Wait for a recording process to exit and leave the Recording state."""
        _, stderr = await recording.process.communicate()
        returncode = recording.process.returncode

        async with self._lock:
            if self._recording is not recording:
                # Stopped by the caller already
                logger.debug(f"Recording process for {recording.output_path.name} exited ({returncode})")
                return
            self._recording = None
            self._idle.set()

        if returncode == 0:
            logger.info(f"Recording finished: {recording.output_path.name}")
            return

        error = ExternalProcessFailure(
            f"Recording exited with code {returncode}: {_stderr_tail(stderr)}",
            returncode=returncode,
            stderr=_stderr_tail(stderr),
        )
        self.last_recording_error = str(error)
        logger.warning(str(error))

    def recording_status(self) -> RecordingStatus:
        """Snapshot of the recording state."""
        return self._status()

    def _status(self) -> RecordingStatus:
        recording = self._recording
        if recording is None:
            return RecordingStatus(state=RecordingState.IDLE)
        return RecordingStatus(
            state=RecordingState.RECORDING,
            output_path=recording.output_path,
            started_at=recording.started_at,
            device=recording.device,
        )

    async def wait_until_idle(self, timeout: float | None = None) -> None:
        """
        Wait until no recording is active.

        Raises:
            asyncio.TimeoutError: If still recording after timeout seconds
        """
        await asyncio.wait_for(self._idle.wait(), timeout)

    async def shutdown(self, grace: float = SHUTDOWN_GRACE_S) -> None:
        """Stop any active recording and reap recording processes."""
        if self.is_recording:
            await self.stop_recording()

        if self._watchers:
            _, pending = await asyncio.wait(set(self._watchers), timeout=grace)
            for task in pending:
                task.cancel()
                logger.warning("Recording process did not exit in time")
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        logger.info("Device session shut down")

    def get_status(self) -> dict[str, Any]:
        """Get session status."""
        return {
            "backend": self._backend.name,
            "selected_camera": self._selected_camera,
            "recording": self._status().to_dict(),
            "last_recording_error": self.last_recording_error,
            "captures_dir": str(self._captures_dir),
            "recordings_dir": str(self._recordings_dir),
        }
