"""
storage/blobs.py -- Local filesystem blob store for uploaded file contents.

Blobs are written under STORAGE_DIR with a generated name:

    <epoch-milliseconds>-<9 random digits><.ext>

The user-supplied filename never becomes part of the path. Only its extension
survives, and only when it is 1-16 ASCII letters or digits. The generated
name is the "storage location" recorded in the file registry; callers treat
it as opaque.

Every location is resolved against the root before use, so a location that
points outside STORAGE_DIR (e.g. "../db.sqlite") is rejected.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from pathlib import Path, PurePosixPath

from core.errors import NotFound

logger = logging.getLogger("filevault.storage")

_EXT_RE = re.compile(r"^\.[A-Za-z0-9]{1,16}$")


def generate_name(original_name: str) -> str:
    """Return a collision-resistant blob name that keeps original_name's extension."""
    suffix = PurePosixPath(original_name.replace("\\", "/")).suffix
    ext = suffix.lower() if _EXT_RE.match(suffix) else ""
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9):09d}{ext}"


class LocalBlobStore:
    """Byte store rooted at a single directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, location: str) -> Path:
        path = (self.root / location).resolve()
        if path.parent != self.root:
            raise NotFound("Stored file not found.")
        return path

    def write(self, data: bytes, original_name: str) -> str:
        """Persist data under a fresh generated name and return that name.

        Opens with mode "xb" so an (unlikely) name collision fails instead of
        overwriting another blob.
        """
        location = generate_name(original_name)
        with open(self._path_for(location), "xb") as fh:
            fh.write(data)
        logger.debug("Wrote blob %s (%d bytes)", location, len(data))
        return location

    def read(self, location: str) -> bytes:
        """Return the bytes stored at location. Raises NotFound if absent."""
        path = self._path_for(location)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            logger.error("Blob %s is registered but missing on disk", location)
            raise NotFound("Stored file not found.") from None

    def delete(self, location: str) -> None:
        self._path_for(location).unlink(missing_ok=True)

    def exists(self, location: str) -> bool:
        return self._path_for(location).is_file()
