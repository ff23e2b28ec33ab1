"""
Upload manager: stores uploaded files on disk with their metadata in SQL,
derives thumbnails, and deletes or looks up uploads for consuming tables.
"""

from typing import Any, Mapping, Optional, Union

from uploader.catalog.database import create_db_engine
from uploader.catalog.store import MetadataStore
from uploader.config.settings import Settings, get_settings
from uploader.ingest.orchestrator import UploadOrchestrator
from uploader.ingest.rules import UploadSpec
from uploader.storage.factory import get_storage_adapter
from uploader.storage.filesystem import FilesystemStorage

__version__ = "0.1.0"


def build_orchestrator(
    spec: Union[UploadSpec, Mapping[str, Any]],
    settings: Optional[Settings] = None,
) -> UploadOrchestrator:
    """
    Wire an orchestrator from settings.

    Without explicit settings the process-wide settings and the shared
    storage adapter are used.
    """
    if settings is None:
        settings = get_settings()
        storage = get_storage_adapter()
    else:
        storage = FilesystemStorage(settings.upload_path, scheme=settings.location_scheme)
    store = MetadataStore(
        create_db_engine(settings),
        table_name=settings.upload_table,
        column_map=settings.upload_column_map,
        sequence_name=settings.upload_sequence,
    )
    return UploadOrchestrator(spec, store, storage, settings=settings)


__all__ = ["build_orchestrator", "UploadOrchestrator", "UploadSpec", "__version__"]
