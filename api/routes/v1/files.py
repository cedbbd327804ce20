"""
api/routes/v1/files.py -- Owner-scoped file upload, listing and download.

Routes:
  POST /api/v1/upload               -- multipart field "file"; 201 / 400 / 401 / 413
  GET  /api/v1/files                -- caller's files only
  GET  /api/v1/files/{id}/content   -- download one of the caller's files

Every route depends on get_current_identity, and every store call passes the
identity's user_id as the owner. There is no code path that reads another
user's records.

IDOR guard: GET /files/{id}/content passes user_id to the store; the store
checks ownership, and a foreign id is reported as 404, not 403.
"""

from __future__ import annotations

import logging
from typing import Optional, Union
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import Response

from api.models import FileListResponse, FileResponse
from auth.dependencies import get_current_identity
from auth.models import TokenClaim
from auth.store import UserStore
from core.config import get_settings
from core.errors import NotFound, Unauthenticated
from storage.blobs import LocalBlobStore
from storage.store import FileStore
from storage.upload import receive_upload

logger = logging.getLogger("filevault.api")

# Auth policy: every route here requires auth (get_current_identity).
router = APIRouter()


@router.post("/upload", response_model=FileResponse, status_code=201)
def upload(
    request: Request,
    file: Optional[Union[UploadFile, str]] = File(default=None),
    identity: TokenClaim = Depends(get_current_identity),
) -> FileResponse:
    """Store one uploaded file for the current user.

    The declared filename and content type are kept for display only. The
    account is re-checked so a file is never registered to a user id that no
    longer resolves. A "file" field sent as plain text, or a part with an
    empty filename, counts as no file.
    """
    user_store: UserStore = request.app.state.user_store
    if user_store.get_by_id(identity.user_id) is None:
        raise Unauthenticated()

    if not isinstance(file, UploadFile) or not file.filename:
        file = None

    stored = receive_upload(
        identity.user_id,
        file.filename if file is not None else None,
        file.content_type if file is not None else None,
        file.file if file is not None else None,
        blobs=request.app.state.blob_store,
        files=request.app.state.file_store,
        max_bytes=get_settings().max_upload_bytes,
    )
    return FileResponse.from_stored(stored)


@router.get("/files", response_model=FileListResponse)
def list_files(request: Request, identity: TokenClaim = Depends(get_current_identity)) -> FileListResponse:
    """List the current user's files in upload order."""
    file_store: FileStore = request.app.state.file_store
    files = file_store.list_by_owner(identity.user_id)
    return FileListResponse(files=[FileResponse.from_stored(f) for f in files])


@router.get("/files/{file_id}/content")
def download_file(
    file_id: int,
    request: Request,
    identity: TokenClaim = Depends(get_current_identity),
) -> Response:
    """Return the stored bytes of one of the current user's files as an attachment.

    nosniff plus attachment disposition keep a client-declared content type
    from being rendered inline by the browser.
    """
    file_store: FileStore = request.app.state.file_store
    blob_store: LocalBlobStore = request.app.state.blob_store

    stored = file_store.get_for_owner(file_id, identity.user_id)
    if stored is None:
        raise NotFound("File not found.")

    content = blob_store.read(stored.storage_location)
    return Response(
        content=content,
        media_type=stored.mime_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(stored.name)}",
            "X-Content-Type-Options": "nosniff",
        },
    )
