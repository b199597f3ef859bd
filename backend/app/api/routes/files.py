from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse, StreamingResponse

from app.api import deps
from app.core.auth import require_admin
from app.core.errors import NotFoundError, ServerConfigError, ValidationError
from app.core.uploads import content_type_error, guess_content_type, normalize_content_type
from app.schemas.admin import AdminContext
from app.schemas.files import PresignIn, PresignOut, ViewOut
from app.services.local_uploads import is_local_reference, resolve_local_upload
from app.services.object_storage import ObjectStorage, build_object_key

router = APIRouter(prefix="/api/files", tags=["files"])


def _require_storage(storage: Optional[ObjectStorage]) -> ObjectStorage:
    if storage is None:
        raise ServerConfigError("S3 bucket missing")
    return storage


@router.post("/presign", response_model=PresignOut)
async def presign_upload(payload: PresignIn, storage: ObjectStorage = Depends(deps.get_storage)):
    content_type = normalize_content_type(payload.content_type)
    error = content_type_error(payload.kind, content_type)
    if error:
        raise ValidationError.for_field("contentType", error)
    key = build_object_key(payload.kind, content_type)
    upload_url = await storage.presign_put(key, content_type)
    return PresignOut(key=key, upload_url=upload_url)


@router.get("/view", response_model=ViewOut)
async def view_file(
    key: str = Query(min_length=1),
    storage: Optional[ObjectStorage] = Depends(deps.get_optional_storage),
    admin: AdminContext = Depends(require_admin()),
):
    if is_local_reference(key):
        # Local files have no presigned form; point the browser at the proxy.
        return ViewOut(url=f"/api/files/stream?key={quote(key, safe='')}")
    return ViewOut(url=await _require_storage(storage).presign_get(key))


@router.get("/stream")
async def stream_file(
    key: str = Query(min_length=1),
    storage: Optional[ObjectStorage] = Depends(deps.get_optional_storage),
    admin: AdminContext = Depends(require_admin()),
):
    if is_local_reference(key):
        path = resolve_local_upload(key)
        if path is None:
            raise NotFoundError("File not found")
        return FileResponse(path, media_type=guess_content_type(path.name))

    stored = await _require_storage(storage).open(key)
    headers = {}
    if stored.content_length is not None:
        headers["Content-Length"] = str(stored.content_length)
    media_type = stored.content_type
    if media_type == "application/octet-stream":
        media_type = guess_content_type(key)
    return StreamingResponse(stored.body_iter, media_type=media_type, headers=headers)
