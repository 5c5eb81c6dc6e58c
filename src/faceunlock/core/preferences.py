"""Durable string key/value preferences backed by a JSON file."""
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    """Plain string key/value persistence. Writes raise OSError on failure."""

    def get(self, key: str) -> str | None:
        """Return the stored value or None."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value durably."""
        ...

    def remove(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        ...


class JsonPreferenceStore:
    """
    PreferenceStore persisting to a single JSON object on disk.

    The file is read once, lazily. Every write rewrites the whole file through
    a temporary file so a crash never leaves a half-written document behind.
    An unreadable or malformed file is treated as empty.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._values: dict[str, str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if self._values is not None:
            return self._values
        values: dict[str, str] = {}
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as handle:
                    data = json.load(handle)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable preference file %s: %s", self._path, e)
                data = {}
            if isinstance(data, dict):
                values = {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}
        self._values = values
        return values

    def _write(self, values: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=str(self._path.parent), delete=False, encoding="utf-8",
        ) as tf:
            json.dump(values, tf, indent=2, ensure_ascii=False)
            temp_path = Path(tf.name)
        try:
            shutil.move(str(temp_path), str(self._path))
        except OSError:
            if temp_path.exists():
                os.unlink(temp_path)
            raise

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        updated = dict(self._load())
        updated[key] = value
        self._write(updated)
        self._values = updated

    def remove(self, key: str) -> None:
        current = self._load()
        if key not in current:
            return
        updated = {k: v for k, v in current.items() if k != key}
        self._write(updated)
        self._values = updated
