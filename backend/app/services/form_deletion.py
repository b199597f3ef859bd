from __future__ import annotations

import logging

import anyio
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AppError
from app.services.form_repository import FormFileKeys, delete_form_row_by_id, get_form_keys_by_id
from app.services.local_uploads import delete_local_upload
from app.services.object_storage import ObjectStorage

logger = logging.getLogger("svr.forms")


async def _remove_objects(storage: ObjectStorage | None, keys: FormFileKeys, form_id: int) -> None:
    for key in (keys.photo_s3_key, keys.cv_s3_key):
        if not key:
            continue
        if storage is None:
            logger.warning("form_object_cleanup_skipped", extra={"form_id": form_id, "key": key})
            continue
        try:
            await storage.delete(key)
        except AppError as exc:
            logger.warning("form_object_cleanup_failed", extra={"form_id": form_id, "key": key, "error": exc.message})


async def _remove_local_files(keys: FormFileKeys, form_id: int) -> None:
    for path in (keys.photo_path, keys.cv_path):
        if not path:
            continue
        try:
            await anyio.to_thread.run_sync(delete_local_upload, path)
        except OSError as exc:
            logger.warning("form_file_cleanup_failed", extra={"form_id": form_id, "path": path, "error": str(exc)})


async def delete_form(session: AsyncSession, storage: ObjectStorage | None, form_id: int) -> int | None:
    """Delete a form and, best effort, the files it references.

    File cleanup never blocks removal of the row.
    """
    keys = await get_form_keys_by_id(session, form_id)
    if keys is None:
        return None

    await _remove_objects(storage, keys, form_id)
    await _remove_local_files(keys, form_id)

    deleted = await delete_form_row_by_id(session, form_id)
    if deleted is not None:
        logger.info("form_deleted", extra={"form_id": form_id})
    return deleted
