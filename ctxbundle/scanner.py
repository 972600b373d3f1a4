"""
Project scanner — walks a directory on disk and hands ``(path, accessor)``
pairs to the tree builder.  File contents are read lazily, and only when a
file is actually serialized.
"""

from __future__ import annotations

import functools
import os
from typing import Callable

BINARY_EXTENSIONS = {
    ".png", ".jpg", ".jpeg", ".gif", ".ico", ".woff", ".woff2", ".ttf",
    ".eot", ".zip", ".rar", ".pdf", ".exe", ".dll", ".bin",
}

SKIP_DIRS = {".git"}

_SNIFF_BYTES = 512


def read_file_content(fpath: str, max_file_bytes: int = 1024 * 1024) -> str:
    """Read a text file, or return a bracketed placeholder for content that
    should not go into a context document (binary, oversized, unreadable).
    """
    name = os.path.basename(fpath)
    _, ext = os.path.splitext(name)
    if ext.lower() in BINARY_EXTENSIONS:
        return f"[Binary File: {name} Omitted]"

    try:
        size = os.path.getsize(fpath)
        if size > max_file_bytes:
            return f"[File too large: {name} ({size / 1024:.2f} KB) Omitted for performance]"

        with open(fpath, "rb") as f:
            head = f.read(_SNIFF_BYTES)
            if b"\0" in head:
                return f"[Binary Content Detected: {name} Omitted]"
            data = head + f.read()
    except OSError:
        return f"[Error reading {name}]"

    return data.decode("utf-8", errors="replace")


def collect_files(
    directory: str = ".",
    max_file_bytes: int = 1024 * 1024,
) -> list[tuple[str, Callable[[], str]]]:
    """Walk *directory* and return ``(path, accessor)`` pairs.

    Paths use ``/`` separators and are prefixed with the directory's own
    name, so the tree builder picks it up as the root.  Ignore rules are not
    applied here; pruning is the tree builder's job.
    """
    abs_dir = os.path.abspath(directory)
    root_name = os.path.basename(abs_dir.rstrip(os.sep)) or "Project"
    pairs: list[tuple[str, Callable[[], str]]] = []

    for root, dirs, files in os.walk(abs_dir):
        # Filter in place so os.walk does not descend
        dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS)

        for fname in sorted(files):
            fpath = os.path.join(root, fname)
            rel_path = os.path.relpath(fpath, abs_dir).replace("\\", "/")
            accessor = functools.partial(read_file_content, fpath, max_file_bytes)
            pairs.append((f"{root_name}/{rel_path}", accessor))

    return pairs
