"""
Table definition for upload metadata.

Columns are addressed by their logical name (``Column.key``) everywhere in
the code; the physical names come from a configurable column map, so an
existing table with different column names can be used as is.
"""

from typing import Dict, Mapping, Optional

from sqlalchemy import (  # type: ignore
    BigInteger, Column, Integer, MetaData, Sequence, String, Table, Index
)
from sqlalchemy.types import TypeEngine  # type: ignore

# Logical column name -> column type
UPLOAD_COLUMNS: Dict[str, TypeEngine] = {
    "upload_id": Integer(),
    "mime_type": String(64),
    "extension": String(16),
    "bytes": BigInteger(),
    "width": Integer(),
    "height": Integer(),
    "parent_upload_id": Integer(),
}

EXTRA_COLUMN_TYPE = String(255)


def resolve_column_map(column_map: Optional[Mapping[str, Optional[str]]] = None) -> Dict[str, str]:
    """
    Complete a logical -> physical column map.

    Unmapped logical names map to themselves. Keys outside the standard
    columns declare extra columns.
    """
    resolved = {name: name for name in UPLOAD_COLUMNS}
    for logical, physical in (column_map or {}).items():
        resolved[logical] = physical or logical
    return resolved


def build_uploads_table(
    metadata: MetaData,
    name: str = "uploads",
    column_map: Optional[Mapping[str, Optional[str]]] = None,
    sequence: Optional[Sequence] = None,
) -> Table:
    """
    Build the uploads table.

    Args:
        metadata: MetaData to attach the table to
        name: Physical table name
        column_map: Logical -> physical column names
        sequence: Identifier sequence, for databases without auto-increment

    Returns:
        Table whose ``c`` collection is keyed by logical names
    """
    resolved = resolve_column_map(column_map)

    id_args = [sequence] if sequence is not None else []
    columns = [
        Column(resolved["upload_id"], Integer, *id_args,
               key="upload_id", primary_key=True, autoincrement=sequence is None),
    ]
    for logical, physical in resolved.items():
        if logical == "upload_id":
            continue
        col_type = UPLOAD_COLUMNS.get(logical, EXTRA_COLUMN_TYPE)
        columns.append(Column(physical, col_type, key=logical, nullable=True))

    # SQLite must not reuse the identifiers of deleted rows
    table = Table(name, metadata, *columns, sqlite_autoincrement=sequence is None)
    Index(f"idx_{name}_parent", table.c.parent_upload_id)
    return table
