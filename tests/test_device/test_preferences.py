"""
Tests for selected camera persistence.
"""

import json

from mcp_webcam.device import PreferencesStore


class TestPreferencesStore:
    """Tests for PreferencesStore."""

    def test_missing_file(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.json")
        assert store.load() is None

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "prefs.json"
        PreferencesStore(path).save("/dev/video2")

        assert json.loads(path.read_text()) == {"selectedCamera": "/dev/video2"}
        assert PreferencesStore(path).load() == "/dev/video2"

    def test_save_overwrites(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.json")
        store.save("mock0")
        store.save("mock1")
        assert store.load() == "mock1"

    def test_save_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "prefs.json"
        PreferencesStore(path).save("mock0")
        assert path.exists()

    def test_no_temp_files_left(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.json")
        store.save("mock0")
        assert [p.name for p in tmp_path.iterdir()] == ["prefs.json"]

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json")
        assert PreferencesStore(path).load() is None

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps(["mock0"]))
        assert PreferencesStore(path).load() is None

    def test_non_string_id(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps({"selectedCamera": 3}))
        assert PreferencesStore(path).load() is None

    def test_null_selection(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps({"selectedCamera": None}))
        assert PreferencesStore(path).load() is None
