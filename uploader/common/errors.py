"""
Exception hierarchy for upload processing.

Configuration errors surface at construction time. Input, resize and
storage errors abort the processing of a single upload field.
"""

from typing import Dict, Optional


class UploaderError(Exception):
    """
    Base class for all upload manager errors.

    ``stored`` holds the ``{name}_id`` identifiers committed by the failing
    operation before it raised; they stay committed.
    """
    stored: Dict[str, int] = {}


# ========== Configuration ==========

class ConfigurationError(UploaderError):
    """Invalid configuration detected at construction time."""
    pass


class UnsupportedDatabase(ConfigurationError):
    """The database family has no identifier allocation strategy."""

    def __init__(self, dialect: str):
        self.dialect = dialect
        super().__init__(
            f"Unsupported database '{dialect}': no identifier allocation strategy")


class InvalidSpec(ConfigurationError):
    """The upload spec is malformed."""
    pass


# ========== Input ==========

class UploadInputError(UploaderError):
    """The uploaded content or form input cannot be processed."""
    pass


class NoExtensionFound(UploadInputError):
    pass


class NoMimeType(UploadInputError):
    pass


class InvalidIdentifier(UploadInputError):
    """An upload identifier is missing or not all digits."""
    pass


class InvalidBounds(UploadInputError):
    """Neither a maximum width nor a maximum height was given."""
    pass


# ========== Resize backend ==========

class ResizeError(UploaderError):
    pass


class NoResizeBackend(ResizeError):
    """No resize backend is able to handle the source image."""
    pass


class ResizeFailed(ResizeError):
    """The resize backend reported a fatal status."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


# ========== Storage ==========

class StorageError(UploaderError):
    """Exception raised for storage-related errors."""
    pass


class CopyFailed(StorageError):
    pass


class UploadNotFound(UploaderError):
    """No metadata row exists for an identifier."""
    pass


# ========== Batch ==========

class UploadBatchError(UploaderError):
    """
    One or more upload fields failed during a batch store.

    Fields that completed before or after the failing ones stay committed;
    their identifiers are available in ``stored``.
    """

    def __init__(self, errors: Dict[str, UploaderError], stored: Dict[str, int]):
        self.errors = errors
        self.stored = stored
        failed = ", ".join(f"{name}: {err}" for name, err in errors.items())
        super().__init__(f"Failed to store uploads ({failed})")
