"""
mcp-webcam - Camera Picker
Short-lived local web UI for choosing the camera, served by FastAPI + uvicorn.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import webbrowser
from typing import TYPE_CHECKING, Any, Callable

import uvicorn
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel

from mcp_webcam.constants import (
    PICKER_HOST,
    PICKER_PORT,
    PICKER_TIMEOUT_S,
    PREVIEW_HEIGHT,
    PREVIEW_QUALITY,
    PREVIEW_WIDTH,
)
from mcp_webcam.messages import CaptureOptions

if TYPE_CHECKING:
    from mcp_webcam.device import DeviceSession

logger = logging.getLogger(__name__)


class SelectCameraRequest(BaseModel):
    """Request to select a camera."""

    cameraId: str | None = None  # noqa: N815


PICKER_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Camera Selection - MCP Webcam</title>
  <style>
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
           background: #1a1a1a; color: #fff; margin: 0; padding: 2rem; }
    h1 { text-align: center; }
    #status { text-align: center; color: #aaa; min-height: 1.5rem; }
    .grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(320px, 1fr)); gap: 1.5rem; }
    .card { background: #2a2a2a; border-radius: 12px; overflow: hidden; cursor: pointer;
            border: 2px solid transparent; }
    .card.selected { border-color: #667eea; }
    .card img { width: 100%; aspect-ratio: 4 / 3; object-fit: cover; background: #111; display: block; }
    .card .info { padding: 1rem; }
    .card .id { color: #888; font-size: 0.85rem; word-break: break-all; }
  </style>
</head>
<body>
  <h1>Select a Camera</h1>
  <p id="status">Loading cameras...</p>
  <div class="grid" id="cameras"></div>
  <script>
    const grid = document.getElementById('cameras');
    const status = document.getElementById('status');

    async function select(cameraId) {
      const response = await fetch('/api/camera/select', {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify({ cameraId })
      });
      const body = await response.json();
      if (response.ok) {
        status.textContent = 'Selected ' + body.selectedCamera + '. You can close this window.';
        document.querySelectorAll('.card').forEach(card =>
          card.classList.toggle('selected', card.dataset.id === cameraId));
      } else {
        status.textContent = body.error || 'Selection failed';
      }
    }

    async function load() {
      const response = await fetch('/api/cameras');
      const body = await response.json();
      status.textContent = body.cameras.length ? 'Click a camera to select it.' : 'No cameras found.';
      for (const camera of body.cameras) {
        const card = document.createElement('div');
        card.className = 'card' + (camera.id === body.selectedCamera ? ' selected' : '');
        card.dataset.id = camera.id;

        const img = document.createElement('img');
        img.alt = camera.name;
        img.src = '/api/camera/preview/' + encodeURIComponent(camera.id);

        const info = document.createElement('div');
        info.className = 'info';
        const name = document.createElement('div');
        name.textContent = camera.name;
        const id = document.createElement('div');
        id.className = 'id';
        id.textContent = camera.id;
        info.append(name, id);

        card.append(img, info);
        card.addEventListener('click', () => select(camera.id));
        grid.append(card);
      }
    }

    load().catch(() => { status.textContent = 'Failed to load cameras.'; });
  </script>
</body>
</html>
"""


class CameraPicker:
    """
    Local web server for interactive camera selection.

    Runs inside the server's event loop and stops by itself after
    `timeout` seconds. Selections go through the shared DeviceSession.
    """

    def __init__(
        self,
        session: DeviceSession,
        host: str = PICKER_HOST,
        port: int = PICKER_PORT,
        timeout: float = PICKER_TIMEOUT_S,
        open_browser: bool = True,
        browser_opener: Callable[[str], Any] = webbrowser.open,
    ) -> None:
        """
        Initialize the camera picker.

        Args:
            session: Shared device session
            host: Interface to bind
            port: Port to bind (0 = any free port)
            timeout: Seconds the server stays up once opened
            open_browser: Open the UI in the default browser
            browser_opener: Function opening a URL
        """
        self._session = session
        self._host = host
        self._port = port
        self._timeout = timeout
        self._open_browser = open_browser
        self._browser_opener = browser_opener

        self._app = self._create_app()
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._expiry_task: asyncio.Task[None] | None = None
        self._bound_port: int | None = None

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application."""
        return self._app

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def is_running(self) -> bool:
        return self._serve_task is not None and not self._serve_task.done()

    @property
    def url(self) -> str | None:
        """Address of the running UI, or None when stopped."""
        if self._bound_port is None:
            return None
        host = "localhost" if self._host in ("127.0.0.1", "0.0.0.0") else self._host
        return f"http://{host}:{self._bound_port}"

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""
        app = FastAPI(
            title="MCP Webcam Camera Picker",
            description="Choose the camera used by the webcam tools",
            version="1.0.0",
        )

        @app.get("/", response_class=HTMLResponse)
        async def serve_picker() -> str:
            """Serve the picker page."""
            return PICKER_HTML

        @app.get("/api/cameras")
        async def get_cameras() -> JSONResponse:
            """List cameras and the current selection."""
            try:
                cameras = await self._session.list_cameras()
            except Exception as e:
                logger.error(f"Failed to list cameras: {e}")
                return JSONResponse({"error": "Failed to list cameras"}, status_code=500)

            selected = self._session.selected_camera or (cameras[0].id if cameras else None)
            return JSONResponse(
                {"cameras": [camera.to_dict() for camera in cameras], "selectedCamera": selected}
            )

        @app.post("/api/camera/select")
        async def select_camera(request: SelectCameraRequest) -> JSONResponse:
            """Select and persist a camera."""
            if not request.cameraId:
                return JSONResponse({"error": "Camera ID required"}, status_code=400)

            try:
                await self._session.select_camera(request.cameraId)
            except OSError as e:
                logger.error(f"Failed to save camera selection: {e}")
                return JSONResponse({"error": f"Failed to save selection: {e}"}, status_code=500)

            return JSONResponse({"success": True, "selectedCamera": request.cameraId})

        @app.get("/api/camera/preview/{camera_id:path}")
        async def preview(camera_id: str) -> Response:
            """Capture a small JPEG preview from a camera."""
            result = await self._session.capture_photo(
                CaptureOptions(
                    width=PREVIEW_WIDTH,
                    height=PREVIEW_HEIGHT,
                    quality=PREVIEW_QUALITY,
                    format="jpeg",
                    return_type="buffer",
                    device=camera_id,
                )
            )

            if not result.success or not isinstance(result.data, bytes):
                return JSONResponse(
                    {"error": result.error or "Failed to capture preview"}, status_code=500
                )

            if result.path is not None:
                # Previews are not kept as captures
                result.path.unlink(missing_ok=True)
            return Response(content=result.data, media_type="image/jpeg")

        return app

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self) -> bool:
        """
        Start the server if needed and show the UI.

        Returns:
            True if the server was started, False if it was already running

        Raises:
            OSError: If the server cannot bind its port
        """
        started = False
        if not self.is_running:
            await self.start()
            started = True

        await self._launch_browser()
        return started

    async def start(self) -> None:
        """
        Start serving and schedule the automatic stop.

        Raises:
            OSError: If the server cannot bind its port
        """
        if self.is_running:
            return

        family = socket.AF_INET6 if ":" in self._host else socket.AF_INET
        sock = socket.create_server((self._host, self._port), family=family)
        self._bound_port = sock.getsockname()[1]

        config = uvicorn.Config(
            self._app,
            log_level="warning",
            log_config=None,
            access_log=False,
            lifespan="off",
        )
        server = uvicorn.Server(config)
        self._server = server
        self._serve_task = asyncio.create_task(server.serve(sockets=[sock]), name="camera_picker")

        while not server.started and not self._serve_task.done():
            await asyncio.sleep(0.01)

        if not server.started:
            task = self._serve_task
            self._server = None
            self._serve_task = None
            self._bound_port = None
            sock.close()
            error = None if task.cancelled() else task.exception()
            logger.error(f"Camera picker server failed to start: {error}")
            raise OSError(f"Camera picker server failed to start: {error}") from error

        if self._timeout > 0:
            self._expiry_task = asyncio.create_task(self._expire(), name="camera_picker_expiry")

        logger.info(f"Camera picker listening at {self.url} for {self._timeout:.0f}s")

    async def _expire(self) -> None:
        await asyncio.sleep(self._timeout)
        logger.info("Camera picker timed out")
        await self.stop()

    async def stop(self) -> None:
        """Stop serving. Safe to call when not running."""
        expiry = self._expiry_task
        self._expiry_task = None
        if expiry is not None and expiry is not asyncio.current_task():
            expiry.cancel()

        if self._server is not None:
            self._server.should_exit = True

        if self._serve_task is not None:
            try:
                await self._serve_task
            except asyncio.CancelledError:
                pass

        self._server = None
        self._serve_task = None
        self._bound_port = None
        logger.info("Camera picker stopped")

    async def _launch_browser(self) -> None:
        url = self.url
        if not self._open_browser:
            logger.info(f"Camera picker available at {url}")
            return

        opened = await asyncio.to_thread(self._browser_opener, url)
        if not opened:
            logger.warning(f"Could not open a browser; visit {url}")

    def get_status(self) -> dict[str, Any]:
        """Get picker status."""
        return {
            "running": self.is_running,
            "url": self.url,
            "timeout": self._timeout,
        }
