"""
Tests for the server configuration.
"""

import os
from pathlib import Path

import pytest

from mcp_webcam.config import WebcamConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("MCP_WEBCAM_"):
            monkeypatch.delenv(name)


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = WebcamConfig()

    assert config.captures_dir == tmp_path / "captures"
    assert config.recordings_dir == tmp_path / "recordings"
    assert config.preferences_file == tmp_path / ".camera-preferences.json"
    assert config.backend == "auto"
    assert config.picker_timeout == 60.0
    assert config.open_browser is True
    assert config.validate() == []


def test_from_env(monkeypatch):
    monkeypatch.setenv("MCP_WEBCAM_BACKEND", "MOCK")
    monkeypatch.setenv("MCP_WEBCAM_MOCK_CAMERAS", "3")
    monkeypatch.setenv("MCP_WEBCAM_CAPTURES_DIR", "/data/photos")
    monkeypatch.setenv("MCP_WEBCAM_PICKER_PORT", "9001")
    monkeypatch.setenv("MCP_WEBCAM_PICKER_TIMEOUT", "15")
    monkeypatch.setenv("MCP_WEBCAM_OPEN_BROWSER", "no")
    monkeypatch.setenv("MCP_WEBCAM_LOG_LEVEL", "debug")

    config = WebcamConfig()

    assert config.backend == "mock"
    assert config.mock_camera_count == 3
    assert config.captures_dir == Path("/data/photos")
    assert config.picker_port == 9001
    assert config.picker_timeout == 15.0
    assert config.open_browser is False
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"backend": "solaris"}, "backend must be one of"),
        ({"mock_camera_count": -1}, "mock_camera_count must not be negative"),
        ({"picker_port": 70000}, "picker_port must be between 0 and 65535"),
        ({"picker_timeout": 0}, "picker_timeout must be positive"),
        ({"captures_dir": Path("/tmp/same"), "recordings_dir": Path("/tmp/same")}, "must differ"),
    ],
)
def test_validate(overrides, message):
    config = WebcamConfig(**overrides)

    errors = config.validate()

    assert len(errors) == 1
    assert message in errors[0]
