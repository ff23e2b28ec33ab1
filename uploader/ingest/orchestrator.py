"""
Upload orchestrator.

Drives the per-field pipeline

    extract -> [downsize] -> insert | update -> store primary -> thumbnails

and the matching deletion flow. Metadata rows are always written before
their files, so a failed copy can leave a row without a file but never a
file without a row. There is no rollback across fields: fields that
completed stay committed when a sibling fails.
"""

import logging
import os
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from uploader.catalog.store import MetadataStore
from uploader.common import metrics
from uploader.common.errors import (
    InvalidIdentifier,
    UploadBatchError,
    UploaderError,
    UploadInputError,
    UploadNotFound,
)
from uploader.common.logging_config import (
    PerformanceTracker,
    clear_request_id,
    get_request_id,
    set_request_id,
)
from uploader.config.settings import Settings, get_settings
from uploader.ingest.rules import FieldRule, UploadSpec
from uploader.ingest.sources import UploadedFile, UploadSource
from uploader.media.extractor import MetaExtractor, UploadMeta, read_dimensions
from uploader.media.tempfiles import TempFileScope
from uploader.media.thumbnails import (
    PillowResizeBackend,
    ResizeBackend,
    ThumbnailGenerator,
    exceeds,
)
from uploader.storage.adapter import StorageAdapter

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^\d+$")
_FALSE_FLAGS = {"", "0", "false", "off", "no"}


def is_checked(value: Any) -> bool:
    """Truthiness of a form flag such as ``photo_delete``."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_FLAGS
    return bool(value)


def parse_identifier(value: Any, name: str) -> int:
    """
    Validate an upload identifier taken from form input.

    Raises:
        InvalidIdentifier: If the value is not all digits
    """
    if isinstance(value, bool) or value is None:
        raise InvalidIdentifier(f"No id for upload named '{name}'")
    text = str(value).strip()
    if not _IDENTIFIER_RE.match(text):
        raise InvalidIdentifier(f"Invalid id {value!r} for upload named '{name}'")
    return int(text)


class UploadOrchestrator:
    """
    Stores, replaces and deletes uploads declared in an UploadSpec.

    Args:
        spec: UploadSpec, or its dict form
        store: Metadata store
        storage: File storage
        extractor: Metadata extractor (default from settings)
        resize_backend: Resize backend (default Pillow)
        settings: Settings (default: process settings)
    """

    def __init__(
        self,
        spec: Union[UploadSpec, Mapping[str, Any]],
        store: MetadataStore,
        storage: StorageAdapter,
        extractor: Optional[MetaExtractor] = None,
        resize_backend: Optional[ResizeBackend] = None,
        settings: Optional[Settings] = None,
    ):
        self.spec = spec if isinstance(spec, UploadSpec) else UploadSpec.from_dict(spec)
        self.store = store
        self.storage = storage
        self.settings = settings or get_settings()
        self.extractor = extractor or MetaExtractor(
            require_mime_type=self.settings.require_mime_type)
        self.resize_backend = resize_backend or PillowResizeBackend()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def custom_meta(self, name: str, meta: UploadMeta) -> Dict[str, Any]:
        """
        Extra column values for an upload or thumbnail.

        Override in a subclass to store values beyond the extracted
        metadata. Keys must be columns of the uploads table; others are
        ignored. Returned values take precedence over extracted ones.
        """
        return {}

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def names(self) -> List[str]:
        """Every upload field name and thumbnail name."""
        return self.spec.names()

    def store_uploads(
        self,
        form_fields: Mapping[str, Any],
        source: UploadSource,
        shared_meta: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Store every upload the request carries.

        A field whose form data holds an all-digit ``{field}_id`` replaces
        that existing upload in place.

        Args:
            form_fields: Form values of the consuming entity
            source: Where the upload bytes come from
            shared_meta: Column values stored on every row

        Returns:
            The form fields with ``{name}_id`` keys added for each stored
            upload and thumbnail, and the raw upload fields removed

        Raises:
            UploadBatchError: If any field failed; other fields were still
                processed and stay committed
        """
        owns_request_id = get_request_id() is None
        if owns_request_id:
            set_request_id()

        added: Dict[str, int] = {}
        errors: Dict[str, UploaderError] = {}
        try:
            for rule in self.spec:
                upload = source.fetch(rule.name)
                if upload is None:
                    continue
                try:
                    id_to_update = self._existing_id(form_fields, rule.name)
                    added.update(self.store_upload(
                        rule.name, upload, id_to_update=id_to_update, shared_meta=shared_meta))
                except UploaderError as e:
                    errors[rule.name] = e
                    added.update(e.stored)
                    if self.settings.metrics_enabled:
                        metrics.upload_failures_total.labels(
                            error_type=type(e).__name__).inc()
        finally:
            if owns_request_id:
                clear_request_id()

        if errors:
            raise UploadBatchError(errors, added)

        entity = {**form_fields, **added}
        for field_name in self.spec.fields:
            entity.pop(field_name, None)
        return entity

    def _existing_id(self, form_fields: Mapping[str, Any], field_name: str) -> Optional[int]:
        value = form_fields.get(f"{field_name}_id")
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return parse_identifier(value, field_name)

    def store_upload(
        self,
        field_name: str,
        upload: UploadedFile,
        id_to_update: Optional[int] = None,
        shared_meta: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, int]:
        """
        Store one upload and its thumbnails.

        Args:
            field_name: Upload field declared in the upload spec
            upload: Raw upload
            id_to_update: Existing upload to replace; its thumbnails are
                deleted and rebuilt
            shared_meta: Column values stored on every row

        Returns:
            ``{field}_id`` and ``{thumb}_id`` for each thumbnail built

        Raises:
            UploaderError: With ``stored`` set to the identifiers committed
                before the failure
        """
        rule = self.spec.rule_for(field_name)
        shared = dict(shared_meta or {})
        result: Dict[str, int] = {}

        try:
            self._store_field(rule, upload, id_to_update, shared, result)
        except UploaderError as e:
            e.stored = dict(result)
            raise
        return result

    def _store_field(
        self,
        rule: FieldRule,
        upload: UploadedFile,
        id_to_update: Optional[int],
        shared: Mapping[str, Any],
        result: Dict[str, int],
    ) -> None:
        field_name = rule.name
        with TempFileScope() as scope, PerformanceTracker(
                "store_upload", logger, field=field_name, id_to_update=id_to_update):
            resizer = ThumbnailGenerator(
                scope,
                self.resize_backend,
                self.settings.resize_failure_threshold,
                metrics_enabled=self.settings.metrics_enabled,
            )

            primary_path = scope.copy_stream(
                upload.stream, suffix=Path(upload.filename or "").suffix)
            meta = self.extractor.extract(primary_path, upload.filename, upload.content_type)

            if rule.downsize is not None and exceeds(
                    meta.width, meta.height, rule.downsize.max_width, rule.downsize.max_height):
                primary_path = resizer.resize(
                    primary_path, rule.downsize.max_width, rule.downsize.max_height)
                meta = self._measure(primary_path, meta)
                logger.info(f"Downsized '{field_name}' to {meta.width}x{meta.height}")

            fields = {**meta.as_fields(), **shared, **self.custom_meta(field_name, meta)}
            upload_id = self._write_primary(
                field_name, primary_path, meta, fields, id_to_update, result)

            self._store_thumbnails(rule, upload_id, primary_path, meta, shared, resizer, result)

    def _write_primary(
        self,
        field_name: str,
        path: Path,
        meta: UploadMeta,
        fields: Dict[str, Any],
        id_to_update: Optional[int],
        ids: Dict[str, int],
    ) -> int:
        # Identifiers are recorded as soon as their row exists
        key = f"{field_name}_id"
        if id_to_update is None:
            upload_id = self.store.insert(fields)
            ids[key] = upload_id
            self.storage.save(path, upload_id, meta.extension)
            self._count_stored("primary", "insert")
            logger.info(f"Stored new upload {upload_id} for '{field_name}'")
            return upload_id

        previous = self.store.get(id_to_update)
        if previous is None:
            raise UploadNotFound(f"No upload with id {id_to_update} to replace for '{field_name}'")

        # Old thumbnails are discarded, new ones are built from scratch
        for child_id in self.store.children_of(id_to_update):
            self._delete_by_id(child_id)

        self.store.update(id_to_update, {"parent_upload_id": None, **fields})
        ids[key] = id_to_update
        self.storage.save(path, id_to_update, meta.extension)
        if previous["extension"] and previous["extension"] != meta.extension:
            self.storage.delete(id_to_update, previous["extension"])

        self._count_stored("primary", "update")
        logger.info(f"Replaced upload {id_to_update} for '{field_name}'")
        return id_to_update

    def _store_thumbnails(
        self,
        rule: FieldRule,
        parent_id: int,
        primary_path: Path,
        meta: UploadMeta,
        shared: Mapping[str, Any],
        resizer: ThumbnailGenerator,
        ids: Dict[str, int],
    ) -> None:
        for thumb in rule.thumbnails:
            if exceeds(meta.width, meta.height, thumb.max_width, thumb.max_height):
                thumb_path = resizer.resize(primary_path, thumb.max_width, thumb.max_height)
            else:
                # No upscaling; content without dimensions is copied as is
                thumb_path = primary_path

            # Thumbnails inherit mime type and extension from the primary
            thumb_meta = self._measure(thumb_path, meta)
            thumb_fields = {
                **thumb_meta.as_fields(),
                **shared,
                **self.custom_meta(thumb.name, thumb_meta),
                "parent_upload_id": parent_id,
            }
            thumb_id = self.store.insert(thumb_fields)
            ids[f"{thumb.name}_id"] = thumb_id
            self.storage.save(thumb_path, thumb_id, thumb_meta.extension)
            self._count_stored("thumbnail", "insert")

    @staticmethod
    def _measure(path: Path, meta: UploadMeta) -> UploadMeta:
        width, height = read_dimensions(path)
        return replace(meta, bytes=os.stat(path).st_size, width=width, height=height)

    def _count_stored(self, kind: str, mode: str) -> None:
        if self.settings.metrics_enabled:
            metrics.uploads_stored_total.labels(kind=kind, mode=mode).inc()

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_checked_uploads(self, form_fields: Mapping[str, Any]) -> List[str]:
        """
        Delete uploads whose ``{field}_delete`` flag is set.

        The field's thumbnails are deleted with it. Identifiers come from
        the ``{name}_id`` form values.

        Returns:
            ``{name}_id`` keys deleted, for the caller to null out

        Raises:
            InvalidIdentifier: If a required ``{name}_id`` is not all digits
        """
        deleted: List[str] = []
        for rule in self.spec:
            if not is_checked(form_fields.get(f"{rule.name}_delete")):
                continue
            deleted.append(self.delete_upload(rule.name, form_fields=form_fields))
            for thumb in rule.thumbnails:
                deleted.append(self.delete_upload(thumb.name, form_fields=form_fields))
        return deleted

    def delete_upload(
        self,
        name: str,
        upload_id: Optional[Any] = None,
        form_fields: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        Delete one upload's file and metadata row.

        Args:
            name: Upload field or thumbnail name
            upload_id: Identifier; read from ``form_fields["{name}_id"]``
                when omitted

        Returns:
            ``"{name}_id"``
        """
        if name not in self.spec and self.spec.owner_of(name) is None:
            raise UploadInputError(f"No upload named '{name}' in the upload spec")

        if upload_id is None:
            upload_id = (form_fields or {}).get(f"{name}_id")
        upload_id = parse_identifier(upload_id, name)

        self._delete_by_id(upload_id)
        return f"{name}_id"

    def _delete_by_id(self, upload_id: int) -> bool:
        # The row is read first: the file location needs its extension
        row = self.store.get(upload_id)
        if row is None:
            logger.warning(f"No metadata for upload {upload_id}, nothing to delete")
            self._count_deleted("missing")
            return False

        if row["extension"]:
            self.storage.delete(upload_id, row["extension"])
        else:
            logger.warning(f"Upload {upload_id} has no extension, file not deleted")

        self.store.delete(upload_id)
        self._count_deleted("deleted")
        logger.info(f"Deleted upload {upload_id}")
        return True

    def _count_deleted(self, status: str) -> None:
        if self.settings.metrics_enabled:
            metrics.uploads_deleted_total.labels(status=status).inc()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def meta_hashref(
        self,
        consumer_table: str,
        where: Mapping[str, Any],
        prefixes: Sequence[str],
        include_cache_bust: bool = True,
        columns: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """
        Upload metadata for a consumer row, ready for templating.

        Example::

            orchestrator.meta_hashref("address_book", {"friend_id": 2}, ["photo"])
            # {"photo_id": 3, "photo_url": "http://.../3.png?42",
            #  "photo_mime_type": "image/png", "photo_width": 200, ...}
        """
        base_url = self.settings.upload_url
        return self.store.lookup_joined(
            consumer_table,
            where,
            prefixes,
            url_for=lambda upload_id, ext: self.storage.locations.url(base_url, upload_id, ext),
            include_cache_bust=include_cache_bust,
            columns=columns,
        )
