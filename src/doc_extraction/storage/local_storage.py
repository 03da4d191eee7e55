"""Local file storage for uploaded document content.

Documents reference their content by an opaque storage key. This module
maps keys to files under a base directory.
"""

import logging
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional

from ..config import Config
from ..exceptions import StorageError

__all__ = ["LocalFileStorage"]

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """Stores document bytes on the local filesystem.

    Attributes:
        base_dir: Directory all storage keys are resolved against
    """

    def __init__(self, base_dir: Optional[str] = None) -> None:
        self.base_dir: Path = Path(base_dir or Config.STORAGE_DIR)

    def build_key(self, project_id: str, filename: str) -> str:
        """Return a fresh storage key for an upload, keeping its extension."""
        suffix = PurePosixPath(filename).suffix
        return f"{project_id}/{uuid.uuid4().hex}{suffix}"

    def save(self, key: str, content: bytes) -> None:
        path = self._resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            raise StorageError(f"Storage write error for {key}: {str(e)}")

    def read(self, key: str) -> bytes:
        path = self._resolve(key)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Storage read error for {key}: {str(e)}")

    def delete(self, key: str) -> None:
        """Remove stored content; a missing file is not an error."""
        path = self._resolve(key)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Stored file %s already removed", key)
        except OSError as e:
            raise StorageError(f"Storage delete error for {key}: {str(e)}")

    def _resolve(self, key: str) -> Path:
        base = self.base_dir.resolve()
        path = (base / key).resolve()
        if base not in path.parents:
            raise StorageError(f"Invalid storage key: {key}")
        return path
