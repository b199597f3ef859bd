from __future__ import annotations

from pathlib import Path


def repo_root() -> Path:
    # backend/app/core/paths.py -> core -> app -> backend -> repo
    return Path(__file__).resolve().parents[3]


def resolve_repo_path(path_value: str) -> Path:
    """
    Resolves a path that may be relative to the repo root.
    - If absolute: returns as-is.
    - Else tries CWD-relative.
    - Else falls back to repo-root-relative, existing or not.
    """
    p = Path(path_value)
    if p.is_absolute():
        return p
    if p.exists():
        return p.resolve()
    return (repo_root() / path_value).resolve()


def upload_root(path_value: str) -> Path:
    """Return the upload directory, creating it on first use."""
    directory = resolve_repo_path(path_value)
    directory.mkdir(parents=True, exist_ok=True)
    return directory
