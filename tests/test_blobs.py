"""Unit tests for storage/blobs.py -- the local blob store."""

import re

import pytest

from core.errors import NotFound
from storage.blobs import LocalBlobStore, generate_name

_NAME_RE = re.compile(r"^\d+-\d{9}(\.[a-z0-9]+)?$")


class TestGenerateName:
    def test_keeps_extension(self) -> None:
        name = generate_name("report.PDF")
        assert _NAME_RE.match(name)
        assert name.endswith(".pdf")

    def test_drops_user_supplied_stem(self) -> None:
        assert "report" not in generate_name("report.pdf")

    def test_no_extension(self) -> None:
        assert "." not in generate_name("Makefile")

    def test_suspicious_extension_dropped(self) -> None:
        assert "." not in generate_name("evil.p$p")
        assert "/" not in generate_name("../../etc/passwd")

    def test_names_do_not_collide(self) -> None:
        names = {generate_name("a.txt") for _ in range(200)}
        assert len(names) == 200


class TestLocalBlobStore:
    def test_write_then_read_is_byte_identical(self, tmp_path) -> None:
        store = LocalBlobStore(tmp_path)
        payload = bytes(range(256)) * 4
        location = store.write(payload, "data.bin")
        assert store.read(location) == payload
        assert (tmp_path / location).is_file()

    def test_read_missing_raises_not_found(self, tmp_path) -> None:
        store = LocalBlobStore(tmp_path)
        with pytest.raises(NotFound):
            store.read("1-000000000.txt")

    def test_location_outside_root_rejected(self, tmp_path) -> None:
        store = LocalBlobStore(tmp_path / "blobs")
        (tmp_path / "secret.txt").write_text("nope")
        with pytest.raises(NotFound):
            store.read("../secret.txt")

    def test_delete(self, tmp_path) -> None:
        store = LocalBlobStore(tmp_path)
        location = store.write(b"x", "a.txt")
        store.delete(location)
        assert not store.exists(location)
        store.delete(location)  # idempotent
