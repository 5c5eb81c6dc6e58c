"""Removal of face feature and image files."""
import asyncio
import logging
from pathlib import Path
from typing import Protocol

from faceunlock.services.exceptions import AssetCleanupError

logger = logging.getLogger(__name__)

# Files written at registration: <token>.face (feature vector), <token>.faceimg (photo)
FACE_ASSET_SUFFIXES = (".face", ".faceimg")


class AssetStore(Protocol):
    """Removes the files derived from an enrolled face."""

    async def remove(self, face_token: str) -> None:
        ...


class FileAssetStore:
    """AssetStore over the local faces/ directory."""

    def __init__(self, faces_dir: Path) -> None:
        self._faces_dir = Path(faces_dir)

    def paths_for(self, face_token: str) -> list[Path]:
        """
        Asset file paths for a token.

        Raises:
            AssetCleanupError: If the token could escape the faces directory.
        """
        if not face_token or Path(face_token).name != face_token or face_token in {".", ".."}:
            raise AssetCleanupError(face_token, "token is not a plain file name")
        return [self._faces_dir / f"{face_token}{suffix}" for suffix in FACE_ASSET_SUFFIXES]

    async def remove(self, face_token: str) -> None:
        """
        Delete every asset file for the token. Already-missing files are fine.

        Raises:
            AssetCleanupError: If any existing file could not be deleted.
        """
        paths = self.paths_for(face_token)
        await asyncio.to_thread(self._remove_files, face_token, paths)

    @staticmethod
    def _remove_files(face_token: str, paths: list[Path]) -> None:
        failures: list[str] = []
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                failures.append(f"{path.name}: {e}")
        if failures:
            raise AssetCleanupError(face_token, "; ".join(failures))
        logger.debug("face_assets_removed face_token=%s", face_token)
