"""
Storage backend abstraction for upload files.

Provides the storage adapter interface, the filesystem backend and the
identifier-to-location mapping.
"""

from uploader.storage.adapter import StorageAdapter, StorageError, CopyFailed
from uploader.storage.filesystem import FilesystemStorage
from uploader.storage.locations import LocationBuilder
from uploader.storage.factory import get_storage_adapter, reset_storage_adapter

__all__ = [
    "StorageAdapter",
    "StorageError",
    "CopyFailed",
    "FilesystemStorage",
    "LocationBuilder",
    "get_storage_adapter",
    "reset_storage_adapter",
]
