"""
storage/models.py -- Domain dataclass for stored file metadata.

Pure data container. FileStore does the persistence, receive_upload() does the
work. storage_location is the blob store's opaque reference and must never be
copied into an API response model.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StoredFile:
    """Metadata for one uploaded file.

    name and mime_type are whatever the client declared; they are shown back
    to the owner but never used for access decisions. size is the number of
    bytes actually received.

    id and uploaded_at are None / "" before the record is written.
    """

    owner_id: int
    name: str
    size: int
    mime_type: str
    storage_location: str
    id: int | None = None
    uploaded_at: str = ""
