"""
storage/upload.py -- Accept one uploaded payload and register it.

receive_upload() is the whole upload pipeline, independent of the web
framework: the route hands it the authenticated owner id, the client-declared
filename and content type, and a binary stream.

Order of operations:
  1. Read the stream in chunks, failing as soon as max_bytes is exceeded.
     Nothing is written for an oversized payload.
  2. Write the blob.
  3. Register the metadata. If that fails the blob is removed, so the
     registry never points at a missing blob and no orphan is left behind.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import BinaryIO

from core.errors import InternalFailure, PayloadTooLarge, Unauthenticated, ValidationFailed
from storage.blobs import LocalBlobStore
from storage.models import StoredFile
from storage.store import FileStore

logger = logging.getLogger("filevault.storage")

_CHUNK_SIZE = 64 * 1024
_DEFAULT_MIME = "application/octet-stream"

NO_FILE_MESSAGE = "No file uploaded."


def display_name(filename: str | None) -> str:
    """Reduce a client filename to its last path component for display."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name.strip()
    return name[:255] or "upload"


def _read_bounded(stream: BinaryIO, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise PayloadTooLarge(f"File exceeds the {max_bytes} byte upload limit.")
        chunks.append(chunk)
    return b"".join(chunks)


def receive_upload(
    owner_id: int | None,
    filename: str | None,
    content_type: str | None,
    stream: BinaryIO | None,
    *,
    blobs: LocalBlobStore,
    files: FileStore,
    max_bytes: int,
) -> StoredFile:
    """Store one payload for owner_id and return its registered metadata.

    Raises:
        Unauthenticated:  owner_id is None.
        ValidationFailed: no payload was attached.
        PayloadTooLarge:  the payload is larger than max_bytes.
        InternalFailure:  the blob could not be written.
    """
    if owner_id is None:
        raise Unauthenticated()
    if stream is None:
        raise ValidationFailed(NO_FILE_MESSAGE)

    data = _read_bounded(stream, max_bytes)
    name = display_name(filename)

    try:
        location = blobs.write(data, name)
    except OSError:
        logger.exception("Could not write blob for user %d", owner_id)
        raise InternalFailure() from None
    try:
        stored = files.register(
            owner_id=owner_id,
            name=name,
            size=len(data),
            mime_type=content_type or _DEFAULT_MIME,
            storage_location=location,
        )
    except Exception:
        blobs.delete(location)
        raise

    logger.info("User %d uploaded file %d (%d bytes)", owner_id, stored.id, stored.size)
    return stored
