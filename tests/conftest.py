"""Shared fixtures: fake external processes and a mock-backed device session."""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Any

import pytest

from mcp_webcam.device import DeviceSession, PreferencesStore
from mcp_webcam.video import MockBackend

FAKE_JPEG = b"\xff\xd8\xff\xe0fake-jpeg-data\xff\xd9"


class FakeProcess:
    """Stand-in for asyncio.subprocess.Process."""

    def __init__(self, exit_code: int = 0, stderr: bytes = b"") -> None:
        self.pid = 4242
        self.returncode: int | None = None
        self.signals: list[int] = []
        self.terminated = False
        self._exit_code = exit_code
        self._stderr = stderr
        self._exited = asyncio.Event()

    def finish(self, code: int | None = None) -> None:
        """Simulate the process exiting on its own."""
        if self.returncode is None:
            self.returncode = self._exit_code if code is None else code
            self._exited.set()

    async def communicate(self) -> tuple[bytes, bytes]:
        await self._exited.wait()
        return b"", self._stderr

    async def wait(self) -> int:
        await self._exited.wait()
        return self.returncode

    def send_signal(self, sig: int) -> None:
        if self.returncode is not None:
            raise ProcessLookupError()
        self.signals.append(sig)
        # ffmpeg exits 255 after finishing the file on SIGINT
        self.finish(255)

    def terminate(self) -> None:
        self.terminated = True
        self.send_signal(signal.SIGTERM)


class FakeSpawner:
    """
    Records spawned commands and hands out FakeProcess objects.

    Capture commands ("still" mode of the mock backend) exit at once,
    writing `image` to the output path when `exit_code` is 0 (after
    `still_delay` seconds, letting other captures run meanwhile). Recording
    commands keep running until finished or signalled.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.kwargs: list[dict[str, Any]] = []
        self.processes: list[FakeProcess] = []
        self.image = FAKE_JPEG
        self.exit_code = 0
        self.stderr = b""
        self.error: Exception | None = None
        self.still_delay = 0.0

    async def __call__(self, *args: str, **kwargs: Any) -> FakeProcess:
        if self.error is not None:
            raise self.error

        command = list(args)
        self.calls.append(command)
        self.kwargs.append(kwargs)

        process = FakeProcess(exit_code=self.exit_code, stderr=self.stderr)
        if "still" in command:
            if self.still_delay:
                await asyncio.sleep(self.still_delay)
            if self.exit_code == 0:
                Path(command[command.index("still") + 1]).write_bytes(self.image)
            process.finish()

        self.processes.append(process)
        return process

    @property
    def last_process(self) -> FakeProcess:
        return self.processes[-1]


@pytest.fixture
def spawner():
    return FakeSpawner()


@pytest.fixture
def backend():
    return MockBackend(camera_count=2, python="python")


@pytest.fixture
def preferences_path(tmp_path):
    return tmp_path / ".camera-preferences.json"


@pytest.fixture
def session(backend, preferences_path, tmp_path, spawner):
    return DeviceSession(
        backend,
        PreferencesStore(preferences_path),
        captures_dir=tmp_path / "captures",
        recordings_dir=tmp_path / "recordings",
        spawn=spawner,
    )
