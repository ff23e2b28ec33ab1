"""
Upload metadata catalog: table definition, engine and store.
"""

from uploader.catalog.database import create_db_engine, check_database_connection
from uploader.catalog.models import build_uploads_table, resolve_column_map
from uploader.catalog.store import MetadataStore

__all__ = [
    "MetadataStore",
    "build_uploads_table",
    "resolve_column_map",
    "create_db_engine",
    "check_database_connection",
]
