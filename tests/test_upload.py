"""Unit tests for storage/upload.py -- receive_upload() without HTTP.

Covers:
- success: blob written, metadata registered with the caller as owner
- no owner -> Unauthenticated, nothing stored
- no payload -> ValidationFailed("No file uploaded."), nothing stored
- oversized payload -> PayloadTooLarge, nothing stored
- registration failure removes the blob it just wrote
- blob write failure -> InternalFailure, nothing registered
- client filename is reduced to its last path component
"""

import io

import pytest

from core.errors import InternalFailure, PayloadTooLarge, Unauthenticated, ValidationFailed
from storage.blobs import LocalBlobStore
from storage.store import FileStore
from storage.upload import NO_FILE_MESSAGE, display_name, receive_upload


@pytest.fixture
def blobs(tmp_path):
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture
def files(tmp_path):
    s = FileStore(f"sqlite:///{tmp_path / 'files.db'}")
    yield s
    s.close()


def _stored_blobs(blobs: LocalBlobStore) -> list:
    return list(blobs.root.iterdir())


class TestReceiveUpload:
    def test_success_registers_owner_and_size(self, blobs, files) -> None:
        stored = receive_upload(
            5,
            "notes.txt",
            "text/plain",
            io.BytesIO(b"This is a test file"),
            blobs=blobs,
            files=files,
            max_bytes=1024,
        )
        assert stored.owner_id == 5
        assert stored.name == "notes.txt"
        assert stored.size == len(b"This is a test file")
        assert stored.mime_type == "text/plain"
        assert stored.storage_location != "notes.txt"
        assert blobs.read(stored.storage_location) == b"This is a test file"
        assert files.list_by_owner(5) == [stored]

    def test_missing_content_type_defaults(self, blobs, files) -> None:
        stored = receive_upload(5, "x.bin", None, io.BytesIO(b"\x00"), blobs=blobs, files=files, max_bytes=10)
        assert stored.mime_type == "application/octet-stream"

    def test_exactly_max_bytes_is_accepted(self, blobs, files) -> None:
        stored = receive_upload(5, "x.bin", None, io.BytesIO(b"a" * 10), blobs=blobs, files=files, max_bytes=10)
        assert stored.size == 10

    def test_no_owner(self, blobs, files) -> None:
        with pytest.raises(Unauthenticated):
            receive_upload(None, "a.txt", "text/plain", io.BytesIO(b"a"), blobs=blobs, files=files, max_bytes=10)
        assert _stored_blobs(blobs) == []

    def test_no_payload(self, blobs, files) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            receive_upload(5, None, None, None, blobs=blobs, files=files, max_bytes=10)
        assert exc_info.value.message == NO_FILE_MESSAGE
        assert files.list_by_owner(5) == []

    def test_too_large(self, blobs, files) -> None:
        with pytest.raises(PayloadTooLarge):
            receive_upload(5, "big.bin", None, io.BytesIO(b"a" * 11), blobs=blobs, files=files, max_bytes=10)
        assert _stored_blobs(blobs) == []
        assert files.list_by_owner(5) == []

    def test_registration_failure_removes_blob(self, blobs, files, monkeypatch) -> None:
        def broken_register(**kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(files, "register", broken_register)
        with pytest.raises(RuntimeError):
            receive_upload(5, "a.txt", "text/plain", io.BytesIO(b"abc"), blobs=blobs, files=files, max_bytes=10)
        assert _stored_blobs(blobs) == []

    def test_blob_write_failure_is_internal(self, blobs, files, monkeypatch) -> None:
        def broken_write(data, original_name):
            raise OSError("read-only file system")

        monkeypatch.setattr(blobs, "write", broken_write)
        with pytest.raises(InternalFailure):
            receive_upload(5, "a.txt", "text/plain", io.BytesIO(b"abc"), blobs=blobs, files=files, max_bytes=10)
        assert files.list_by_owner(5) == []


class TestDisplayName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("report.pdf", "report.pdf"),
            ("../../etc/passwd", "passwd"),
            ("C:\\Users\\ana\\photo.png", "photo.png"),
            ("", "upload"),
            (None, "upload"),
        ],
    )
    def test_display_name(self, raw, expected) -> None:
        assert display_name(raw) == expected
