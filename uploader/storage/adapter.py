"""
Abstract base class for upload storage backends.

Defines the interface that all storage implementations must follow.
Files are addressed by upload identifier and extension; the backend maps
them to a concrete location.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from uploader.common.errors import StorageError, CopyFailed
from uploader.storage.locations import LocationBuilder

PathLike = Union[str, Path]

__all__ = ["StorageAdapter", "StorageError", "CopyFailed"]


class StorageAdapter(ABC):
    """
    Abstract base class for storage backends.

    The store never writes a file before its metadata row exists; callers
    insert the row first and then call ``save``.
    """

    # Identifier + extension -> location, shared with URL building
    locations: LocationBuilder

    @abstractmethod
    def save(self, source: PathLike, identifier: int, extension: str) -> Path:
        """
        Copy a file into storage.

        Args:
            source: File to copy
            identifier: Upload identifier
            extension: File extension including the leading dot

        Returns:
            Path of the stored file

        Raises:
            CopyFailed: If the copy fails
        """
        pass

    @abstractmethod
    def delete(self, identifier: int, extension: str) -> bool:
        """
        Delete a stored file.

        A missing file is not an error: metadata may outlive its file after
        a failed copy.

        Returns:
            True if a file was removed, False if none was present
        """
        pass

    @abstractmethod
    def exists(self, identifier: int, extension: str) -> bool:
        pass

    @abstractmethod
    def path_for(self, identifier: int, extension: str) -> Path:
        """Absolute location of an upload."""
        pass
