"""
mcp-webcam - Camera Preferences
Persists the selected camera id across restarts.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

SELECTED_CAMERA_KEY = "selectedCamera"


class PreferencesStore:
    """
    Small JSON record holding the selected camera.

    Usage:
        store = PreferencesStore(Path(".camera-preferences.json"))
        selected = store.load()
        store.save("/dev/video2")
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        """
        Read the selected camera id.

        Returns:
            The stored id, or None if nothing usable is stored
        """
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            # No preferences file yet
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self._path}: {e}")
            return None

        selected = data.get(SELECTED_CAMERA_KEY) if isinstance(data, dict) else None
        if selected is not None and not isinstance(selected, str):
            logger.warning(f"Ignoring invalid selected camera in {self._path}: {selected!r}")
            return None
        return selected or None

    def save(self, camera_id: str | None) -> None:
        """
        Write the selected camera id, replacing the previous record atomically.

        Raises:
            OSError: If the record cannot be written
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({SELECTED_CAMERA_KEY: camera_id}, indent=2)

        fd, tmp_path = tempfile.mkstemp(
            dir=self._path.parent, prefix=self._path.name, suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

        logger.debug(f"Saved selected camera {camera_id!r} to {self._path}")
