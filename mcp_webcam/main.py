"""
mcp-webcam - Server Entry Point
Wires the backend, device session, tools and transport, then serves stdio.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from mcp_webcam.communication import (
    CameraPicker,
    ResourceProvider,
    StdioServer,
    StdoutWriter,
    open_stdin_reader,
)
from mcp_webcam.config import BACKEND_CHOICES, WebcamConfig
from mcp_webcam.device import DeviceSession, PreferencesStore
from mcp_webcam.logging_setup import setup_logging
from mcp_webcam.tools import create_registry
from mcp_webcam.video import create_backend

logger = logging.getLogger("mcp_webcam")


class WebcamServer:
    """
    The running server: one device session shared by the stdio transport
    and the camera picker.
    """

    def __init__(self, config: WebcamConfig) -> None:
        """Build every component from configuration."""
        self._config = config

        self.backend = create_backend(
            config.backend,
            ffmpeg_path=config.ffmpeg_path,
            v4l2_ctl_path=config.v4l2_ctl_path,
            mock_camera_count=config.mock_camera_count,
        )
        self.session = DeviceSession(
            self.backend,
            PreferencesStore(config.preferences_file),
            captures_dir=config.captures_dir,
            recordings_dir=config.recordings_dir,
        )
        self.picker = CameraPicker(
            self.session,
            host=config.picker_host,
            port=config.picker_port,
            timeout=config.picker_timeout,
            open_browser=config.open_browser,
        )
        self.registry = create_registry(self.session, self.picker)
        self.resources = ResourceProvider(self.session)
        self.transport = StdioServer(self.registry, self.resources)

    async def run(self) -> None:
        """Serve stdio until the input stream closes."""
        self.session.ensure_directories()
        reader = await open_stdin_reader()
        await self.transport.serve(reader, StdoutWriter())

    async def stop(self) -> None:
        """Stop the picker and any recording."""
        await self.picker.stop()
        await self.session.shutdown()

    def get_status(self) -> dict[str, Any]:
        """Get status of all components."""
        return {
            "session": self.session.get_status(),
            "picker": self.picker.get_status(),
            "transport": self.transport.get_status(),
        }


async def main(config: WebcamConfig) -> None:
    """Main entry point for the webcam server."""
    server = WebcamServer(config)

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def signal_handler() -> None:
        logger.info("Shutdown signal received")
        shutdown_event.set()

    if sys.platform == "win32":
        # Windows: use signal.signal() with call_soon_threadsafe
        def windows_handler(signum: int, frame: object) -> None:
            loop.call_soon_threadsafe(shutdown_event.set)

        signal.signal(signal.SIGINT, windows_handler)
    else:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

    serve_task = asyncio.create_task(server.run(), name="stdio_server")
    shutdown_task = asyncio.create_task(shutdown_event.wait(), name="shutdown_wait")

    try:
        await asyncio.wait({serve_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        logger.info("Shutting down...")

        for task in (serve_task, shutdown_task):
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        await server.stop()

        if serve_task.done() and not serve_task.cancelled() and serve_task.exception():
            logger.error(f"Server error: {serve_task.exception()}")

        logger.info("Webcam server stopped")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="MCP webcam server (JSON-RPC over stdio)"
    )
    parser.add_argument(
        "--backend",
        choices=BACKEND_CHOICES,
        help="Camera backend: auto (from the operating system), linux (v4l2), "
             "darwin (AVFoundation), windows (DirectShow), mock (test pattern)",
    )
    parser.add_argument(
        "--captures-dir",
        type=Path,
        help="Directory for captured photos (default: ./captures)",
    )
    parser.add_argument(
        "--recordings-dir",
        type=Path,
        help="Directory for video recordings (default: ./recordings)",
    )
    parser.add_argument(
        "--preferences-file",
        type=Path,
        help="File storing the selected camera (default: ./.camera-preferences.json)",
    )
    parser.add_argument(
        "--mock-cameras",
        type=int,
        help="Number of simulated cameras for the mock backend",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Do not open a browser for the camera picker",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def apply_args(config: WebcamConfig, args: argparse.Namespace) -> WebcamConfig:
    """Override configuration with the command line flags that were given."""
    if args.backend is not None:
        config.backend = args.backend
    if args.captures_dir is not None:
        config.captures_dir = args.captures_dir
    if args.recordings_dir is not None:
        config.recordings_dir = args.recordings_dir
    if args.preferences_file is not None:
        config.preferences_file = args.preferences_file
    if args.mock_cameras is not None:
        config.mock_camera_count = args.mock_cameras
    if args.no_browser:
        config.open_browser = False
    if args.verbose:
        config.log_level = "DEBUG"
    return config


def run(argv: list[str] | None = None) -> int:
    """Console script entry point."""
    load_dotenv()
    args = parse_args(argv)
    config = apply_args(WebcamConfig(), args)

    setup_logging(config.log_level, verbose=args.verbose)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Invalid configuration: {error}")
        return 2

    try:
        asyncio.run(main(config))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(run())
