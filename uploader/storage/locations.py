"""
Mapping of upload identifiers to storage locations.

Schemes:
- flat:   {id}{ext}
- hashed: a/b/c/{id}{ext}, where a, b and c are the first three hex
          digits of the MD5 of the identifier's decimal string
"""

import hashlib
from pathlib import Path
from typing import Union

from uploader.common.errors import ConfigurationError

SCHEMES = ("flat", "hashed")


class LocationBuilder:
    """
    Builds paths relative to the storage root.

    ``build`` creates the hashed directories it returns; ``relative`` and
    ``url`` never touch the filesystem.
    """

    def __init__(self, root: Union[str, Path], scheme: str = "flat"):
        if scheme not in SCHEMES:
            raise ConfigurationError(
                f"Unknown location scheme '{scheme}', expected one of {', '.join(SCHEMES)}")
        self.root = Path(root)
        self.scheme = scheme

    def relative(self, identifier: int, extension: str) -> str:
        """
        Relative location of an upload, without touching the filesystem.

        Args:
            identifier: Upload identifier
            extension: File extension including the leading dot

        Returns:
            POSIX-style path relative to the storage root
        """
        filename = f"{identifier}{extension}"
        if self.scheme == "flat":
            return filename

        digest = hashlib.md5(str(identifier).encode()).hexdigest()
        return "/".join(list(digest[:3]) + [filename])

    def build(self, identifier: int, extension: str) -> str:
        """Relative location of an upload; creates its hashed directories."""
        location = self.relative(identifier, extension)
        if self.scheme == "hashed":
            self.root.joinpath(location).parent.mkdir(parents=True, exist_ok=True)
        return location

    def url(self, base_url: str, identifier: int, extension: str) -> str:
        return f"{base_url.rstrip('/')}/{self.relative(identifier, extension)}"
