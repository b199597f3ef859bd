from __future__ import annotations

import uuid
from pathlib import Path

from app.core.config import settings
from app.core.paths import upload_root
from app.core.uploads import FileKind, extension_for

# Stored references always use this prefix, whatever the directory on disk.
REFERENCE_PREFIX = "uploads"


def _root_dir(directory: str | None = None) -> Path:
    return upload_root(directory or settings.upload_dir)


def save_upload(
    kind: FileKind,
    *,
    filename: str | None,
    content_type: str | None,
    data: bytes,
    directory: str | None = None,
) -> str:
    """Write an accepted upload and return its ``uploads/<name>`` reference."""
    stored_name = f"{kind}-{uuid.uuid4().hex}{extension_for(filename, content_type)}"
    target = _root_dir(directory) / stored_name
    target.write_bytes(data)
    return f"{REFERENCE_PREFIX}/{stored_name}"


def is_local_reference(reference: str | None) -> bool:
    return bool(reference) and reference.replace("\\", "/").startswith(f"{REFERENCE_PREFIX}/")


def resolve_local_upload(reference: str | None, *, directory: str | None = None) -> Path | None:
    """
    Returns the on-disk path of a stored reference if the file exists.
    Only the basename is honoured so a reference can never leave the upload directory.
    """
    if not reference:
        return None
    name = Path(reference.replace("\\", "/")).name
    if not name or name in (".", ".."):
        return None
    path = _root_dir(directory) / name
    if not path.is_file():
        return None
    return path


def delete_local_upload(reference: str | None, *, directory: str | None = None) -> bool:
    path = resolve_local_upload(reference, directory=directory)
    if path is None:
        return False
    path.unlink()
    return True
