"""Tests for the JSON preference store."""
import json
from pathlib import Path

from faceunlock.core.preferences import JsonPreferenceStore


def test__set__persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    JsonPreferenceStore(path).set("auth_login_enabled", "true")

    assert JsonPreferenceStore(path).get("auth_login_enabled") == "true"
    assert json.loads(path.read_text(encoding="utf-8")) == {"auth_login_enabled": "true"}


def test__set__creates_parent_directory(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "dir" / "prefs.json"

    JsonPreferenceStore(path).set("k", "v")

    assert path.exists()


def test__get__missing_file_returns_none(tmp_path: Path) -> None:
    assert JsonPreferenceStore(tmp_path / "absent.json").get("k") is None


def test__get__malformed_file_treated_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    path.write_text("{truncated", encoding="utf-8")

    store = JsonPreferenceStore(path)

    assert store.get("k") is None
    store.set("k", "v")
    assert json.loads(path.read_text(encoding="utf-8")) == {"k": "v"}


def test__get__ignores_non_string_values(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    path.write_text(json.dumps({"a": "1", "b": 2, "c": None}), encoding="utf-8")

    store = JsonPreferenceStore(path)

    assert store.get("a") == "1"
    assert store.get("b") is None


def test__remove__deletes_key_and_ignores_missing(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    store = JsonPreferenceStore(path)
    store.set("a", "1")
    store.set("b", "2")

    store.remove("a")
    store.remove("never-set")

    assert JsonPreferenceStore(path).get("a") is None
    assert JsonPreferenceStore(path).get("b") == "2"
