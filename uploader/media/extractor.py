"""
Metadata extraction for uploaded files.

Determines the canonical MIME type and extension of an upload, its size
on disk, and pixel dimensions when the content is an image.
"""

import logging
import mimetypes
import os
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import magic
from PIL import Image, UnidentifiedImageError

from uploader.common.errors import NoExtensionFound, NoMimeType

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# A resolver inspects the file (and the declared type) and answers a MIME
# type or None so that the next resolver is tried.
MimeResolver = Callable[[Path, Optional[str]], Optional[str]]

# Answers from content sniffing that carry no information
GENERIC_MIME_TYPES = {"application/octet-stream", "application/x-empty", "inode/x-empty"}

_EXTENSION_RE = re.compile(r"\.(\w+)$")


@dataclass
class UploadMeta:
    """Metadata extracted from an uploaded file."""
    mime_type: str
    extension: str  # includes the leading dot
    bytes: int
    width: Optional[int] = None
    height: Optional[int] = None

    def as_fields(self) -> Dict[str, Any]:
        return asdict(self)


def sniff_with_libmagic(path: Path, declared: Optional[str]) -> Optional[str]:
    try:
        detected = magic.from_file(str(path), mime=True)
    except magic.MagicException as e:
        logger.warning(f"libmagic failed to detect MIME type for {path}: {e}")
        return None
    if not detected or detected in GENERIC_MIME_TYPES:
        return None
    return detected


def sniff_with_pillow(path: Path, declared: Optional[str]) -> Optional[str]:
    try:
        with Image.open(path) as image:
            return Image.MIME.get(image.format or "")
    except (UnidentifiedImageError, OSError, ValueError):
        return None


def declared_type(path: Path, declared: Optional[str]) -> Optional[str]:
    return declared or None


DEFAULT_RESOLVERS: Tuple[MimeResolver, ...] = (
    sniff_with_libmagic,
    sniff_with_pillow,
    declared_type,
)

# Only the interpreter's built-in table, so results do not depend on the
# host's /etc/mime.types
_mime_registry = mimetypes.MimeTypes()


def canonical_extensions(mime_type: str) -> List[str]:
    """
    Extensions registered for a MIME type, without the leading dot.

    The registry's preferred extension comes first.
    """
    if not mime_type:
        return []
    found = _mime_registry.guess_all_extensions(mime_type, strict=True)
    preferred = _mime_registry.guess_extension(mime_type, strict=True)
    if preferred in found:
        found.remove(preferred)
        found.insert(0, preferred)
    return [ext.lstrip(".") for ext in found]


def declared_extension(filename: Optional[str]) -> Optional[str]:
    """Suffix after the last dot of an uploaded file name."""
    if not filename:
        return None
    match = _EXTENSION_RE.search(filename)
    return match.group(1) if match else None


def choose_extension(declared: Optional[str], canonical: Sequence[str]) -> Optional[str]:
    """
    Reconcile the declared extension with the registered ones.

    The declared extension wins only when it is an exact member of the
    registered set; otherwise the first registered extension is used.
    With nothing registered the declared extension is kept as is.
    """
    if canonical:
        if declared in canonical:
            return declared
        return canonical[0]
    return declared or None


def read_dimensions(path: PathLike) -> Tuple[Optional[int], Optional[int]]:
    """Width and height from the image header, or (None, None)."""
    try:
        with Image.open(path) as image:
            return image.width, image.height
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        return None, None


class MetaExtractor:
    """
    Extracts UploadMeta from a file on disk.

    Args:
        resolvers: MIME resolvers tried in order
        extension_lookup: Maps a MIME type to its registered extensions
        require_mime_type: Fail with NoMimeType when no resolver answers
    """

    def __init__(
        self,
        resolvers: Sequence[MimeResolver] = DEFAULT_RESOLVERS,
        extension_lookup: Callable[[str], List[str]] = canonical_extensions,
        require_mime_type: bool = True,
    ):
        self.resolvers = tuple(resolvers)
        self.extension_lookup = extension_lookup
        self.require_mime_type = require_mime_type

    def resolve_mime_type(self, path: Path, declared: Optional[str]) -> str:
        for resolver in self.resolvers:
            mime_type = resolver(path, declared)
            if mime_type:
                return mime_type
        if self.require_mime_type:
            raise NoMimeType(f"Could not determine a MIME type for {path}")
        return ""

    def extract(
        self,
        path: PathLike,
        declared_filename: Optional[str] = None,
        declared_content_type: Optional[str] = None,
    ) -> UploadMeta:
        """
        Extract metadata from an uploaded file.

        Args:
            path: File on disk
            declared_filename: File name sent by the client
            declared_content_type: Content type sent by the client

        Returns:
            UploadMeta

        Raises:
            NoMimeType: If no MIME type is found and one is required
            NoExtensionFound: If no extension can be determined
        """
        path = Path(path)
        mime_type = self.resolve_mime_type(path, declared_content_type)

        extension = choose_extension(
            declared_extension(declared_filename),
            self.extension_lookup(mime_type),
        )
        if not extension:
            raise NoExtensionFound(
                f"No extension found for '{declared_filename}' ({mime_type or 'unknown type'})")

        width, height = read_dimensions(path)

        return UploadMeta(
            mime_type=mime_type,
            extension=f".{extension}",
            bytes=os.stat(path).st_size,
            width=width,
            height=height,
        )
