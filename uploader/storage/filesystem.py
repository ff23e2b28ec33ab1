"""
Filesystem storage backend implementation.

Stores uploads under a single root directory at the location computed by
a LocationBuilder:
- flat:   {root}/{id}{ext}
- hashed: {root}/a/b/c/{id}{ext}
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from uploader.storage.adapter import CopyFailed, PathLike, StorageAdapter, StorageError
from uploader.storage.locations import LocationBuilder

logger = logging.getLogger(__name__)


class FilesystemStorage(StorageAdapter):
    """
    Filesystem-based storage implementation.
    """

    def __init__(
        self,
        base_path: PathLike = "./uploads",
        scheme: str = "flat",
        locations: Optional[LocationBuilder] = None,
    ):
        """
        Initialize filesystem storage.

        Args:
            base_path: Root directory for all uploads
            scheme: Location scheme, ignored when ``locations`` is given
            locations: Prebuilt location builder
        """
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.locations = locations or LocationBuilder(self.base_path, scheme)

    def path_for(self, identifier: int, extension: str) -> Path:
        return self.base_path / self.locations.relative(identifier, extension)

    def save(self, source: PathLike, identifier: int, extension: str) -> Path:
        """Copy an upload into place."""
        try:
            target_path = self.base_path / self.locations.build(identifier, extension)
            shutil.copyfile(source, target_path)
        except OSError as e:
            raise CopyFailed(
                f"Failed to store upload {identifier}{extension}: {e}") from e

        logger.debug(f"Stored upload {identifier}{extension} at {target_path}")
        return target_path

    def exists(self, identifier: int, extension: str) -> bool:
        path = self.path_for(identifier, extension)
        return path.exists() and path.is_file()

    def delete(self, identifier: int, extension: str) -> bool:
        """Delete an upload and prune empty hashed directories."""
        path = self.path_for(identifier, extension)
        if not path.exists():
            logger.warning(f"File to delete not found: {path}")
            self._prune(path.parent)
            return False

        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete upload file {path}: {e}") from e

        self._prune(path.parent)
        return True

    def _prune(self, parent: Path) -> None:
        # Clean up empty parent directories, never the root itself
        while parent != self.base_path and self.base_path in parent.parents:
            try:
                if any(parent.iterdir()):
                    break
                parent.rmdir()
                parent = parent.parent
            except OSError:
                # Directory not empty or already removed
                break
