"""
tests/conftest.py -- Shared test fixtures for FileVault tests.

This module provides:
  - make_test_stores(): isolated named shared-memory SQLite DB + temp blob dir
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - stores: the StoreBundle for one test
  - client: TestClient against the real app using those stores
  - create_user() / login(): helpers for setting up accounts and sessions

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Every test gets a fresh uniquely named DB so no state leaks between
tests.

DEBUG and BCRYPT_ROUNDS must be set before any auth/core import: DEBUG so
get_settings() auto-generates SECRET_KEY instead of raising, BCRYPT_ROUNDS so
hashing in tests takes milliseconds rather than tens of milliseconds.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.passwords import hash_password
from auth.store import UserStore
from storage.blobs import LocalBlobStore
from storage.store import FileStore

DEFAULT_PASSWORD = "password123"


@dataclass
class StoreBundle:
    users: UserStore
    files: FileStore
    blobs: LocalBlobStore

    def close(self) -> None:
        self.files.close()
        self.users.close()


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_test_stores(blob_root: Path) -> StoreBundle:
    """Create stores over a fresh named shared-memory DB and a temp blob dir."""
    db_url = f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    return StoreBundle(users=UserStore(db_url), files=FileStore(db_url), blobs=LocalBlobStore(blob_root))


def _patch_lifespan(stores: StoreBundle):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = stores.users
        app.state.file_store = stores.files
        app.state.blob_store = stores.blobs
        yield

    return test_lifespan


def create_user(
    store: UserStore,
    email: str = "test@example.com",
    username: str = "testuser",
    password: str = DEFAULT_PASSWORD,
) -> User:
    password_hash, salt = hash_password(password)
    return store.create_user(User(username=username, email=email, password_hash=password_hash, salt=salt))


def login(client: TestClient, email: str, password: str = DEFAULT_PASSWORD):
    """Log in through the API, replacing whatever session the client held."""
    client.cookies.clear()
    resp = client.post("/api/v1/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores(tmp_path: Path) -> Generator[StoreBundle, None, None]:
    s = make_test_stores(tmp_path / "blobs")
    yield s
    s.close()


@pytest.fixture
def client(stores: StoreBundle) -> Generator[TestClient, None, None]:
    """TestClient for the real FastAPI app with a patched lifespan.

    Tests hit real route handlers, dependencies and exception handlers, but
    every store is the isolated instance from the `stores` fixture.
    """
    app.router.lifespan_context = _patch_lifespan(stores)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c
