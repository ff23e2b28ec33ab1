"""
Upload sources: where the bytes of a named upload field come from.

One implementation per environment, chosen by the caller:
- FormUploadSource wraps a parsed multipart form (FastAPI/Starlette)
- LocalFileSource serves files already on disk (scripts, tests)
"""

import logging
from io import BytesIO
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Mapping, Optional, Tuple, Union

from starlette.datastructures import UploadFile

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """Raw upload as delivered by the form layer."""
    stream: BinaryIO
    content_type: Optional[str]
    filename: Optional[str]


class UploadSource(ABC):
    """Delivers the upload for a form field, if the request carries one."""

    @abstractmethod
    def fetch(self, field_name: str) -> Optional[UploadedFile]:
        pass


class FormUploadSource(UploadSource):
    """
    Upload source over a parsed multipart form.

    Args:
        form: Starlette ``FormData`` or any mapping of field -> value.
            Plain string values and file parts without a file name are
            treated as absent.
    """

    def __init__(self, form: Mapping[str, object]):
        self.form = form

    def fetch(self, field_name: str) -> Optional[UploadedFile]:
        value = self.form.get(field_name)
        if not isinstance(value, UploadFile) or not value.filename:
            return None
        value.file.seek(0)
        return UploadedFile(
            stream=value.file,
            content_type=value.content_type,
            filename=value.filename,
        )


LocalFileEntry = Union[str, Path, Tuple[Union[str, Path], Optional[str]]]


class LocalFileSource(UploadSource):
    """
    Upload source over files on disk.

    Args:
        files: Field name -> path, or -> (path, declared content type)
    """

    def __init__(self, files: Mapping[str, LocalFileEntry]):
        self.files = dict(files)

    def fetch(self, field_name: str) -> Optional[UploadedFile]:
        entry = self.files.get(field_name)
        if entry is None:
            return None
        if isinstance(entry, tuple):
            path, content_type = entry
        else:
            path, content_type = entry, None
        path = Path(path)
        if not path.is_file():
            logger.warning(f"Upload for '{field_name}' not found at {path}")
            return None
        return UploadedFile(
            stream=BytesIO(path.read_bytes()),
            content_type=content_type,
            filename=path.name,
        )
