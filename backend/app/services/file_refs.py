from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import anyio
from starlette.datastructures import UploadFile

from app.core.config import settings
from app.core.errors import ValidationError
from app.core.uploads import FileKind, content_type_error
from app.services.local_uploads import save_upload

logger = logging.getLogger("svr.file_refs")

_SLOT_FIELDS: dict[FileKind, str] = {"photo": "photoFile", "cv": "cvFile"}
_SLOT_LABELS: dict[FileKind, str] = {"photo": "Photo", "cv": "CV"}


@dataclass(frozen=True)
class FileRefs:
    photo_path: Optional[str] = None
    cv_path: Optional[str] = None
    photo_s3_key: Optional[str] = None
    cv_s3_key: Optional[str] = None


@dataclass
class _PendingUpload:
    kind: FileKind
    filename: str | None
    content_type: str | None
    data: bytes


def _clean_key(key: str | None) -> str | None:
    if key is None:
        return None
    trimmed = key.strip()
    return trimmed or None


async def _read_slot(
    kind: FileKind,
    upload: UploadFile | None,
    *,
    max_bytes: int,
    errors: dict[str, list[str]],
) -> _PendingUpload | None:
    field = _SLOT_FIELDS[kind]
    label = _SLOT_LABELS[kind]
    if upload is None or not (upload.filename or "").strip():
        errors.setdefault(field, []).append(f"{label} is required")
        return None

    type_error = content_type_error(kind, upload.content_type)
    if type_error:
        errors.setdefault(field, []).append(type_error)
        return None

    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        errors.setdefault(field, []).append(
            f"{label} file too large. Max allowed is {max_bytes // (1024 * 1024)}MB."
        )
        return None
    return _PendingUpload(kind=kind, filename=upload.filename, content_type=upload.content_type, data=data)


async def resolve_file_refs(
    *,
    photo_key: str | None,
    cv_key: str | None,
    photo_file: UploadFile | None = None,
    cv_file: UploadFile | None = None,
    upload_dir: str | None = None,
    max_bytes: int | None = None,
) -> FileRefs:
    """Decide where each of the two documents lives.

    A storage key wins over an upload for the same slot. Both slots are
    checked before anything is written, so a rejected submission leaves no
    file behind from this call.
    """
    limit = settings.max_upload_bytes if max_bytes is None else max_bytes
    keys: dict[FileKind, str | None] = {"photo": _clean_key(photo_key), "cv": _clean_key(cv_key)}
    files: dict[FileKind, UploadFile | None] = {"photo": photo_file, "cv": cv_file}

    errors: dict[str, list[str]] = {}
    pending: list[_PendingUpload] = []
    for kind in ("photo", "cv"):
        if keys[kind]:
            continue
        upload = await _read_slot(kind, files[kind], max_bytes=limit, errors=errors)
        if upload is not None:
            pending.append(upload)

    if errors:
        raise ValidationError(errors)

    paths: dict[FileKind, str] = {}
    for upload in pending:
        paths[upload.kind] = await anyio.to_thread.run_sync(
            lambda u=upload: save_upload(
                u.kind,
                filename=u.filename,
                content_type=u.content_type,
                data=u.data,
                directory=upload_dir,
            )
        )
        logger.info("upload_stored", extra={"kind": upload.kind, "path": paths[upload.kind], "bytes": len(upload.data)})

    return FileRefs(
        photo_path=paths.get("photo"),
        cv_path=paths.get("cv"),
        photo_s3_key=keys["photo"],
        cv_s3_key=keys["cv"],
    )
