"""
Upload metadata store.

Persists one row per stored file in the uploads table and answers joined
lookups against consumer tables that reference uploads through
``{prefix}_id`` columns.

Identifier allocation depends on the database family:
- sequence family (PostgreSQL): ``nextval`` is fetched before the insert
- auto-increment family (MySQL/MariaDB, and SQLite for local use): the
  generated key is read back from the insert
"""

import logging
import random
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import MetaData, Sequence as SqlSequence, column, select, table
from sqlalchemy.engine import Connection, Engine

from uploader.catalog.models import build_uploads_table
from uploader.common.errors import UnsupportedDatabase, UploadInputError, UploadNotFound

logger = logging.getLogger(__name__)

SEQUENCE_FAMILY = "sequence"
AUTOINCREMENT_FAMILY = "autoincrement"

DIALECT_FAMILIES = {
    "postgresql": SEQUENCE_FAMILY,
    "mysql": AUTOINCREMENT_FAMILY,
    "mariadb": AUTOINCREMENT_FAMILY,
    "sqlite": AUTOINCREMENT_FAMILY,
}

# Builds the public URL of an upload from its identifier and extension
UrlBuilder = Callable[[int, str], str]


class MetadataStore:
    """
    Reads and writes upload metadata rows.

    Args:
        engine: SQLAlchemy engine
        table_name: Physical name of the uploads table
        column_map: Logical -> physical column names
        sequence_name: Identifier sequence (sequence family only)

    Raises:
        UnsupportedDatabase: If the engine's dialect has no allocation strategy
    """

    def __init__(
        self,
        engine: Engine,
        table_name: str = "uploads",
        column_map: Optional[Mapping[str, Optional[str]]] = None,
        sequence_name: str = "upload_id_seq",
    ):
        dialect = engine.dialect.name
        if dialect not in DIALECT_FAMILIES:
            raise UnsupportedDatabase(dialect)

        self.engine = engine
        self.family = DIALECT_FAMILIES[dialect]
        self.metadata = MetaData()
        self.sequence = (
            SqlSequence(sequence_name, metadata=self.metadata)
            if self.family == SEQUENCE_FAMILY else None
        )
        self.table = build_uploads_table(
            self.metadata, table_name, column_map, sequence=self.sequence)

    @property
    def columns(self) -> List[str]:
        """Logical column names."""
        return list(self.table.c.keys())

    def create_schema(self) -> None:
        """Create the uploads table (and sequence) if missing."""
        self.metadata.create_all(self.engine)

    def _row_values(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        values = {}
        for key, value in fields.items():
            if key == "upload_id":
                continue
            if key in self.table.c:
                values[key] = value
            else:
                logger.debug(f"Ignoring unknown upload column '{key}'")
        return values

    def _select_logical(self):
        return select(*[col.label(key) for key, col in self.table.c.items()])

    def _allocate_id(self, conn: Connection) -> Optional[int]:
        if self.family == SEQUENCE_FAMILY:
            return conn.scalar(select(self.sequence.next_value()))
        return None

    def insert(self, fields: Mapping[str, Any]) -> int:
        """
        Insert a metadata row.

        Args:
            fields: Logical column -> value; unknown keys are ignored

        Returns:
            The new upload identifier
        """
        values = self._row_values(fields)
        with self.engine.begin() as conn:
            upload_id = self._allocate_id(conn)
            if upload_id is not None:
                values["upload_id"] = upload_id
            result = conn.execute(self.table.insert().values(values))
            if upload_id is None:
                upload_id = result.inserted_primary_key[0]
        return int(upload_id)

    def update(self, upload_id: int, fields: Mapping[str, Any]) -> None:
        """
        Overwrite the given columns of an existing row.

        Raises:
            UploadNotFound: If no row has this identifier
        """
        values = self._row_values(fields)
        stmt = (
            self.table.update()
            .where(self.table.c.upload_id == upload_id)
            .values(values)
        )
        with self.engine.begin() as conn:
            if conn.execute(stmt).rowcount == 0:
                raise UploadNotFound(f"No upload with id {upload_id}")

    def delete(self, upload_id: int) -> int:
        """Delete a row. Returns the number of rows removed."""
        stmt = self.table.delete().where(self.table.c.upload_id == upload_id)
        with self.engine.begin() as conn:
            return conn.execute(stmt).rowcount

    def get(self, upload_id: int) -> Optional[Dict[str, Any]]:
        """Row for an identifier keyed by logical names, or None."""
        stmt = self._select_logical().where(self.table.c.upload_id == upload_id)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return dict(row) if row is not None else None

    def children_of(self, upload_id: int) -> List[int]:
        """Identifiers of thumbnails derived from an upload."""
        stmt = (
            select(self.table.c.upload_id)
            .where(self.table.c.parent_upload_id == upload_id)
            .order_by(self.table.c.upload_id)
        )
        with self.engine.connect() as conn:
            return [int(i) for i in conn.scalars(stmt)]

    def lookup_joined(
        self,
        consumer_table: str,
        where: Mapping[str, Any],
        prefixes: Iterable[str],
        url_for: Optional[UrlBuilder] = None,
        include_cache_bust: bool = True,
        columns: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """
        Join upload rows into a consumer row's view.

        For each prefix, the upload row whose identifier equals the consumer
        table's ``{prefix}_id`` column (restricted by ``where``) is
        projected into ``{prefix}_{column}`` keys, plus ``{prefix}_id`` and
        ``{prefix}_url``.

        Args:
            consumer_table: Table referencing uploads
            where: Consumer column -> value, ANDed equality (None = IS NULL)
            prefixes: Upload field names
            url_for: Builds the URL from identifier and extension
            include_cache_bust: Append a random query string to URLs
            columns: Logical columns to project (default: all)

        Returns:
            Flat mapping; prefixes without a matching row contribute nothing
        """
        wanted = list(columns) if columns is not None else [
            c for c in self.columns if c != "upload_id"]
        unknown = [c for c in wanted if c not in self.table.c]
        if unknown:
            raise UploadInputError(f"Unknown upload columns: {', '.join(unknown)}")

        cache_bust = random.randint(0, 99)
        fields: Dict[str, Any] = {}

        with self.engine.connect() as conn:
            for prefix in prefixes:
                ref = f"{prefix}_id"
                names = dict.fromkeys([ref, *where])
                consumer = table(consumer_table, *[column(n) for n in names]).alias("t")

                stmt = (
                    self._select_logical()
                    .select_from(self.table)
                    .join(consumer, self.table.c.upload_id == consumer.c[ref])
                )
                for key, value in where.items():
                    if value is None:
                        stmt = stmt.where(consumer.c[key].is_(None))
                    else:
                        stmt = stmt.where(consumer.c[key] == value)

                upload = conn.execute(stmt).mappings().first()
                if upload is None:
                    continue

                upload_id = upload["upload_id"]
                fields[ref] = upload_id
                for key in wanted:
                    if upload[key] is not None:
                        fields[f"{prefix}_{key}"] = upload[key]
                if url_for is not None:
                    url = url_for(upload_id, upload["extension"])
                    fields[f"{prefix}_url"] = f"{url}?{cache_bust}" if include_cache_bust else url

        return fields
