"""
Scoped temporary files for one store call.

Every file spooled or reserved through a ``TempFileScope`` is removed when
the scope exits, whether the call succeeded or raised.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, List, Optional

logger = logging.getLogger(__name__)

PREFIX = "upload-"


class TempFileScope:
    """Owns the temporary files created while processing uploads."""

    def __init__(self, directory: Optional[str] = None):
        self.directory = directory
        self._paths: List[Path] = []

    def __enter__(self) -> "TempFileScope":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return False

    @property
    def paths(self) -> List[Path]:
        return list(self._paths)

    def new_path(self, suffix: str = "") -> Path:
        """Reserve an empty temporary file and return its path."""
        fd, name = tempfile.mkstemp(prefix=PREFIX, suffix=suffix, dir=self.directory)
        os.close(fd)
        path = Path(name)
        self._paths.append(path)
        return path

    def copy_stream(self, stream: BinaryIO, suffix: str = "") -> Path:
        """Spool an upload stream to a new temporary file."""
        path = self.new_path(suffix)
        with open(path, "wb") as out:
            shutil.copyfileobj(stream, out)
        return path

    def cleanup(self) -> None:
        while self._paths:
            path = self._paths.pop()
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Failed to remove temporary file {path}: {e}")
