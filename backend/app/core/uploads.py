from __future__ import annotations

import mimetypes
import re
from pathlib import Path
from typing import Literal

MAX_FILENAME_LENGTH = 150

FileKind = Literal["photo", "cv"]

PDF_MIME_TYPES = {"application/pdf", "application/x-pdf"}
CV_MIME_TYPES = PDF_MIME_TYPES | {
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
PHOTO_MIME_PREFIX = "image/"

_EXTENSION_BY_MIME = {
    "application/pdf": ".pdf",
    "application/x-pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/heic": ".heic",
}

_SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def normalize_content_type(raw: str | None) -> str:
    content_type = (raw or "").strip().lower()
    if ";" in content_type:
        content_type = content_type.split(";", 1)[0].strip()
    return content_type


def content_type_error(kind: FileKind, content_type: str | None) -> str | None:
    """Return a human readable error when the content type is not allowed for ``kind``."""
    normalized = normalize_content_type(content_type)
    if kind == "photo":
        if not normalized.startswith(PHOTO_MIME_PREFIX):
            return "Photo must be an image/* file."
        return None
    if normalized not in CV_MIME_TYPES:
        return "CV must be a PDF, DOC or DOCX file."
    return None


def sanitize_filename(raw: str | None, *, default: str = "file") -> str:
    name = (raw or "").strip() or default
    name = name.replace("/", "_").replace("\\", "_")
    name = _SAFE_NAME_RE.sub("_", name).strip("._") or default

    if len(name) > MAX_FILENAME_LENGTH:
        base, ext = _split_name_ext(name)
        keep = max(1, MAX_FILENAME_LENGTH - len(ext))
        name = f"{base[:keep]}{ext}"
    return name


def extension_for(filename: str | None, content_type: str | None) -> str:
    ext = Path(sanitize_filename(filename)).suffix.lower() if filename else ""
    if ext and len(ext) <= 10:
        return ext
    normalized = normalize_content_type(content_type)
    return _EXTENSION_BY_MIME.get(normalized) or mimetypes.guess_extension(normalized or "") or ".bin"


def guess_content_type(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


def _split_name_ext(name: str) -> tuple[str, str]:
    ext = Path(name).suffix
    if ext:
        return name[: -len(ext)], ext
    return name, ""
