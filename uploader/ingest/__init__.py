"""
Upload ingestion: spec rules, upload sources and the orchestrator.
"""

from uploader.ingest.rules import Bounds, FieldRule, ThumbnailRule, UploadSpec
from uploader.ingest.sources import (
    FormUploadSource,
    LocalFileSource,
    UploadedFile,
    UploadSource,
)
from uploader.ingest.orchestrator import UploadOrchestrator

__all__ = [
    # Spec
    "Bounds",
    "FieldRule",
    "ThumbnailRule",
    "UploadSpec",
    # Sources
    "UploadSource",
    "UploadedFile",
    "FormUploadSource",
    "LocalFileSource",
    # Pipeline
    "UploadOrchestrator",
]
