"""
documents/uploads.py -- File storage for file-backed documents.

Uploaded files are written flat into one directory, named by the client's
original filename. Two uploads with the same filename share one path, so the
later upload overwrites the earlier file. Documents keep pointing at the path,
not at a content snapshot.

Security: only the final path component of a client-supplied filename is
used, so "../../etc/passwd" is stored as "passwd" inside the uploads
directory.
"""

from __future__ import annotations

import shutil
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import BinaryIO


def safe_filename(filename: str) -> str:
    """Strip directory components (POSIX and Windows separators) from filename."""
    name = PureWindowsPath(PurePosixPath(filename).name).name
    if name in ("", ".", ".."):
        return ""
    return name


def save_upload(uploads_dir: str | Path, filename: str, source: BinaryIO) -> Path:
    """Copy source into uploads_dir/<filename>, replacing any existing file.

    Raises ValueError if filename has no usable basename, OSError on disk failure.
    """
    name = safe_filename(filename)
    if not name:
        raise ValueError(f"unusable upload filename: {filename!r}")
    directory = Path(uploads_dir)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / name
    with target.open("wb") as out:
        shutil.copyfileobj(source, out)
    return target


def resolve_upload(uploads_dir: str | Path, name: str) -> Path | None:
    """Return the stored file path for a document name, or None if it is not on disk."""
    safe = safe_filename(name)
    if not safe:
        return None
    path = Path(uploads_dir) / safe
    return path if path.is_file() else None
