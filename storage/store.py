"""
storage/store.py -- SQLAlchemy Core persistence layer for file metadata.

Pattern: Repository + Data Mapper (same as auth/store.py).
FileStore is the file registry; _row_to_file is the mapper.

Ownership:
  Every read takes an owner_id and filters on it in SQL. There is no method
  that returns files across owners -- a listing can only ever contain the
  caller's own records.

  Rows are append-only. Nothing here updates or deletes a file record.

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import get_settings
from core.db import make_engine, now_iso
from storage.models import StoredFile

logger = logging.getLogger("filevault.storage")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_files = Table(
    "files",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Integer, nullable=False),
    Column("name", Text, nullable=False),
    Column("size", Integer, nullable=False),
    Column("mime_type", String(255), nullable=False),
    Column("storage_location", Text, nullable=False),  # blob reference, internal only
    Column("uploaded_at", String(32), nullable=False),
    Index("ix_files_owner_id", "owner_id"),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class FileStore:
    """Repository for StoredFile records.

    Usage:
        store = FileStore()
        f = store.register(owner_id=1, name="a.pdf", size=10,
                           mime_type="application/pdf", storage_location="123-456.pdf")
        store.list_by_owner(1)
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        _metadata.create_all(self.engine)

    def register(
        self,
        owner_id: int,
        name: str,
        size: int,
        mime_type: str,
        storage_location: str,
    ) -> StoredFile:
        """Insert a metadata record for an already-written blob and return it."""
        uploaded_at = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _files.insert().values(
                    owner_id=owner_id,
                    name=name,
                    size=size,
                    mime_type=mime_type,
                    storage_location=storage_location,
                    uploaded_at=uploaded_at,
                )
            )
            conn.commit()
        return StoredFile(
            id=result.inserted_primary_key[0],
            owner_id=owner_id,
            name=name,
            size=size,
            mime_type=mime_type,
            storage_location=storage_location,
            uploaded_at=uploaded_at,
        )

    def list_by_owner(self, owner_id: int) -> list[StoredFile]:
        """Return every file owned by owner_id, oldest first (insertion order)."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _files.select().where(_files.c.owner_id == owner_id).order_by(_files.c.id)
            ).fetchall()
        return [_row_to_file(r) for r in rows]

    def get_for_owner(self, file_id: int, owner_id: int) -> StoredFile | None:
        """Look up one file by id, scoped to owner_id.

        Both conditions must match. Another owner's file id returns None,
        exactly like an id that does not exist.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                _files.select().where((_files.c.id == file_id) & (_files.c.owner_id == owner_id))
            ).fetchone()
        return _row_to_file(row) if row is not None else None

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("File database ping failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_file(row) -> StoredFile:
    return StoredFile(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        size=row.size,
        mime_type=row.mime_type,
        storage_location=row.storage_location,
        uploaded_at=row.uploaded_at,
    )
