"""
Aspect-preserving resizing of uploaded images.

The resize math lives in plain functions; decoding and encoding go through
a ResizeBackend so that the threshold on backend-reported status can be
applied uniformly.
"""

import logging
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from uploader.common.errors import InvalidBounds, NoResizeBackend, ResizeFailed
from uploader.common.metrics import track_thumbnail_time
from uploader.media.tempfiles import TempFileScope

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Backend statuses at or above this value are fatal
DEFAULT_FAILURE_THRESHOLD = 400

STATUS_OK = 0
STATUS_WARNING = 300
STATUS_ERROR = 450


def fit_within(
    orig_width: int,
    orig_height: int,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Compute the target size for a bounding box, preserving aspect ratio.

    A missing bound is derived from the given one, e.g.
    ``height = round(orig_height * max_width / orig_width)``. With both
    bounds the image is scaled to fit inside the box.
    """
    if max_width is None and max_height is None:
        raise InvalidBounds("At least one of max_width or max_height is required")
    if orig_width <= 0 or orig_height <= 0:
        raise InvalidBounds(f"Invalid source size {orig_width}x{orig_height}")

    if max_height is None:
        return max_width, max(1, round(orig_height * max_width / orig_width))
    if max_width is None:
        return max(1, round(orig_width * max_height / orig_height)), max_height

    scale = min(max_width / orig_width, max_height / orig_height)
    return max(1, round(orig_width * scale)), max(1, round(orig_height * scale))


def exceeds(
    width: Optional[int],
    height: Optional[int],
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
) -> bool:
    """True when a known size is larger than a bound in either dimension."""
    if width is None or height is None:
        return False
    if max_width is not None and width > max_width:
        return True
    return max_height is not None and height > max_height


@dataclass
class ResizeOutcome:
    """Status reported by a resize backend."""
    status: int = STATUS_OK
    message: str = ""


class ResizeBackend(ABC):
    """Decodes, resizes and re-encodes images."""

    @abstractmethod
    def dimensions(self, source: Path) -> Tuple[int, int]:
        """
        Natural width and height of an image.

        Raises:
            NoResizeBackend: If the backend cannot decode the source
        """

    @abstractmethod
    def resize(self, source: Path, width: int, height: int, dest: Path) -> ResizeOutcome:
        """
        Write ``source`` resized to exactly ``width`` x ``height`` to ``dest``
        in the same format.

        Raises:
            NoResizeBackend: If the backend cannot decode the source
        """


class PillowResizeBackend(ResizeBackend):
    """Resize backend built on Pillow."""

    resample = Image.Resampling.LANCZOS

    def _open(self, source: Path) -> Image.Image:
        try:
            return Image.open(source)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise NoResizeBackend(f"Pillow cannot decode {source}: {e}") from e

    def dimensions(self, source: Path) -> Tuple[int, int]:
        with self._open(source) as image:
            return image.size

    def resize(self, source: Path, width: int, height: int, dest: Path) -> ResizeOutcome:
        with self._open(source) as image:
            image_format = image.format
            # Pillow reads some formats it cannot write (XPM, PSD, ...)
            Image.init()
            if image_format not in Image.SAVE:
                return ResizeOutcome(
                    status=STATUS_ERROR,
                    message=f"Pillow cannot write {image_format or 'unknown'} images",
                )
            save_kwargs = {}
            if image.info.get("icc_profile"):
                save_kwargs["icc_profile"] = image.info["icc_profile"]

            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                try:
                    resized = image.resize((width, height), self.resample)
                    resized.save(dest, format=image_format, **save_kwargs)
                except (OSError, ValueError, KeyError) as e:
                    return ResizeOutcome(status=STATUS_ERROR, message=str(e))

        if caught:
            return ResizeOutcome(
                status=STATUS_WARNING,
                message="; ".join(str(w.message) for w in caught),
            )
        return ResizeOutcome()


class ThumbnailGenerator:
    """
    Produces resized copies of images as scoped temporary files.

    Args:
        temp_scope: Scope that owns the files written
        backend: Resize backend, None when resizing is unavailable
        failure_threshold: Backend status at or above which resizing fails
        metrics_enabled: Record resize durations in the metrics registry
    """

    def __init__(
        self,
        temp_scope: TempFileScope,
        backend: Optional[ResizeBackend] = None,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        metrics_enabled: bool = True,
    ):
        self.temp_scope = temp_scope
        self.backend = backend
        self.failure_threshold = failure_threshold
        self.metrics_enabled = metrics_enabled

    @track_thumbnail_time
    def resize(
        self,
        source: PathLike,
        max_width: Optional[int] = None,
        max_height: Optional[int] = None,
    ) -> Path:
        """
        Resize an image to fit the given bounds.

        Returns:
            Path of a new temporary file in the source's format

        Raises:
            InvalidBounds: If neither bound is given
            NoResizeBackend: If no backend can handle the source
            ResizeFailed: If the backend reports a fatal status
        """
        if max_width is None and max_height is None:
            raise InvalidBounds("At least one of max_width or max_height is required")
        if self.backend is None:
            raise NoResizeBackend("No resize backend configured")

        source = Path(source)
        orig_width, orig_height = self.backend.dimensions(source)
        width, height = fit_within(orig_width, orig_height, max_width, max_height)

        dest = self.temp_scope.new_path(suffix=source.suffix)
        outcome = self.backend.resize(source, width, height, dest)

        if outcome.status >= self.failure_threshold:
            raise ResizeFailed(
                f"Resizing {source} to {width}x{height} failed: {outcome.message}",
                status=outcome.status,
            )
        if outcome.status:
            logger.warning(
                f"Resize of {source} reported status {outcome.status}: {outcome.message}")

        logger.debug(
            f"Resized {source} from {orig_width}x{orig_height} to {width}x{height}")
        return dest
