"""
Media handling: metadata extraction, resizing and temporary files.
"""

from uploader.media.extractor import MetaExtractor, UploadMeta
from uploader.media.tempfiles import TempFileScope
from uploader.media.thumbnails import (
    PillowResizeBackend,
    ResizeBackend,
    ResizeOutcome,
    ThumbnailGenerator,
    exceeds,
    fit_within,
)

__all__ = [
    "MetaExtractor",
    "UploadMeta",
    "TempFileScope",
    "ThumbnailGenerator",
    "ResizeBackend",
    "ResizeOutcome",
    "PillowResizeBackend",
    "fit_within",
    "exceeds",
]
