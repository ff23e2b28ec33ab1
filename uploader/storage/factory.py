"""
Storage factory for creating storage adapter instances.

Provides singleton access to the storage backend based on configuration.
"""

from functools import lru_cache

from uploader.config.settings import get_settings
from uploader.storage.adapter import StorageAdapter
from uploader.storage.filesystem import FilesystemStorage


@lru_cache()
def get_storage_adapter() -> StorageAdapter:
    """
    Get or create the storage adapter instance.

    Returns:
        StorageAdapter instance (FilesystemStorage)
    """
    settings = get_settings()
    return FilesystemStorage(
        base_path=settings.upload_path, scheme=settings.location_scheme)


def reset_storage_adapter() -> None:
    """Reset the storage adapter instance (useful for testing)."""
    get_storage_adapter.cache_clear()
