"""
Archive and filesystem writers for materialized ``(path, content)`` pairs.

Zip encoding uses the standard library ``zipfile`` module in memory; disk
writes go through a temp file + rename so a failed write never leaves a
half-written target behind.
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import zipfile
from dataclasses import dataclass

from .deserializer import sanitize_path

logger = logging.getLogger(__name__)

_TMP_SUFFIX = ".ctxbundle_tmp"


@dataclass
class FileWriteResult:
    """Outcome of writing one file."""
    path: str
    ok: bool = True
    error: str = ""


def _strip(path: str, strip_prefix: str | None) -> str:
    if strip_prefix:
        prefix = strip_prefix.rstrip("/") + "/"
        if path.startswith(prefix):
            return path[len(prefix):]
    return path


def build_archive(
    pairs: list[tuple[str, str]],
    strip_prefix: str | None = None,
) -> bytes:
    """Encode *pairs* as a zip archive and return its bytes.

    When *strip_prefix* is given (usually the project root name), it is
    removed from the front of every archived path.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for index, (path, content) in enumerate(pairs):
            name = sanitize_path(_strip(path, strip_prefix), index)
            zf.writestr(name, content)
    logger.info("[Archive] Encoded %d file(s)", len(pairs))
    return buffer.getvalue()


def read_archive(data: bytes) -> list[tuple[str, str]]:
    """Decode a zip archive produced by :func:`build_archive`."""
    pairs: list[tuple[str, str]] = []
    with zipfile.ZipFile(io.BytesIO(data), "r") as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            pairs.append((info.filename, zf.read(info).decode("utf-8", errors="replace")))
    return pairs


def archive_file_name(project_name: str) -> str:
    return f"{project_name or 'RestoredProject'}_Rebuilt.zip"


def safe_write(file_path: str, content: str) -> None:
    """Write content to file atomically via temp file + rename."""
    abs_path = os.path.abspath(file_path)
    os.makedirs(os.path.dirname(abs_path), exist_ok=True)
    tmp_path = abs_path + _TMP_SUFFIX

    try:
        with open(tmp_path, "w", encoding="utf-8", newline="") as f:
            f.write(content)

        # On Windows, os.rename fails if destination exists
        if os.path.exists(abs_path):
            shutil.move(tmp_path, abs_path)
        else:
            os.rename(tmp_path, abs_path)
    except OSError:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def materialize(
    pairs: list[tuple[str, str]],
    dest_dir: str,
    strip_prefix: str | None = None,
) -> list[FileWriteResult]:
    """Write every pair under *dest_dir*.

    A failure writing one file is recorded in its result and does not stop
    the remaining writes.
    """
    results: list[FileWriteResult] = []
    root = os.path.abspath(dest_dir)
    for index, (path, content) in enumerate(pairs):
        rel = sanitize_path(_strip(path, strip_prefix), index)
        target = os.path.join(root, *rel.split("/"))
        try:
            safe_write(target, content)
            results.append(FileWriteResult(path=rel))
        except OSError as exc:
            logger.warning("[Archive] Failed to write %s: %s", rel, exc)
            results.append(FileWriteResult(path=rel, ok=False, error=str(exc)))
    return results
