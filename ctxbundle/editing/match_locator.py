"""
Match locator — finds the unique span a SEARCH block refers to inside a
file's content, exactly or by whitespace-insensitive line fingerprints.

Everything here is a pure function of its inputs, so it can be fanned out to
worker threads for many (file, patch) pairs at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

from .patch_parser import PatchRecord

logger = logging.getLogger(__name__)

DEFAULT_FUZZY_MAX_CHARS = 2000

MSG_READY = "Ready"
MSG_AMBIGUOUS = "Ambiguous Match"
MSG_NOT_FOUND = "Match Not Found"
MSG_EMPTY = "Empty search block"
MSG_NO_FILE = "File not found in context"


class MatchStatus(str, Enum):
    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


class MatchMethod(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class MatchResult:
    """Where (and whether) a record's SEARCH text was found.

    ``span`` is a half-open character range into the file content and is
    only set for UNIQUE results.
    """
    record: PatchRecord | None
    status: MatchStatus
    count: int = 0
    span: tuple[int, int] | None = None
    matched_via: MatchMethod | None = None
    file_path: str | None = None
    message: str = ""

    @property
    def is_unique(self) -> bool:
        return self.status is MatchStatus.UNIQUE


def find_all(content: str, search: str) -> list[int]:
    """Start offsets of every (possibly overlapping) occurrence."""
    starts: list[int] = []
    idx = content.find(search)
    while idx != -1:
        starts.append(idx)
        idx = content.find(search, idx + 1)
    return starts


def fuzzy_windows(content: str, search: str) -> list[tuple[int, int]]:
    """Spans of every line window whose trimmed lines equal the search's.

    Blank lines are removed from the search before comparison; the content
    window must match line for line.  A span ends before the newline that
    terminates the window's last line.
    """
    needle = [line.strip() for line in search.split("\n") if line.strip()]
    if not needle:
        return []

    lines = content.split("\n")
    fingerprints = [line.strip() for line in lines]

    line_starts: list[int] = []
    offset = 0
    for line in lines:
        line_starts.append(offset)
        offset += len(line) + 1

    n = len(needle)
    spans: list[tuple[int, int]] = []
    for i in range(len(fingerprints) - n + 1):
        if fingerprints[i] != needle[0]:
            continue
        if fingerprints[i:i + n] != needle:
            continue
        last = lines[i + n - 1]
        end = line_starts[i + n - 1] + len(last)
        if last.endswith("\r"):
            end -= 1
        spans.append((line_starts[i], end))
    return spans


def locate(
    content: str,
    search: str,
    record: PatchRecord | None = None,
    fuzzy_max_chars: int = DEFAULT_FUZZY_MAX_CHARS,
    file_path: str | None = None,
) -> MatchResult:
    """Locate *search* inside *content*.

    Exact matches are counted first; with no exact match and a search no
    larger than *fuzzy_max_chars*, line fingerprints are compared.  Two or
    more candidates (by either strategy) make the result AMBIGUOUS.
    """
    if not search.strip():
        return MatchResult(record, MatchStatus.NOT_FOUND,
                           file_path=file_path, message=MSG_EMPTY)

    starts = find_all(content, search)
    if len(starts) == 1:
        return MatchResult(
            record, MatchStatus.UNIQUE, count=1,
            span=(starts[0], starts[0] + len(search)),
            matched_via=MatchMethod.EXACT, file_path=file_path, message=MSG_READY,
        )
    if len(starts) > 1:
        return MatchResult(
            record, MatchStatus.AMBIGUOUS, count=len(starts),
            matched_via=MatchMethod.EXACT, file_path=file_path, message=MSG_AMBIGUOUS,
        )

    if len(search) > fuzzy_max_chars:
        logger.debug(
            "[Patch] Search block of %d chars exceeds fuzzy limit, skipping fuzzy match",
            len(search),
        )
        return MatchResult(record, MatchStatus.NOT_FOUND,
                           file_path=file_path, message=MSG_NOT_FOUND)

    windows = fuzzy_windows(content, search)
    if len(windows) == 1:
        return MatchResult(
            record, MatchStatus.UNIQUE, count=1, span=windows[0],
            matched_via=MatchMethod.FUZZY, file_path=file_path, message=MSG_READY,
        )
    if len(windows) > 1:
        return MatchResult(
            record, MatchStatus.AMBIGUOUS, count=len(windows),
            matched_via=MatchMethod.FUZZY, file_path=file_path, message=MSG_AMBIGUOUS,
        )
    return MatchResult(record, MatchStatus.NOT_FOUND,
                       file_path=file_path, message=MSG_NOT_FOUND)


def resolve_target_path(target: str, paths: Iterable[str]) -> str | None:
    """Map a proposal's file path onto one of the known *paths*.

    Tries, in order: exact match, a unique path ending with the target, a
    unique path the target ends with (target carries a root prefix), and a
    unique basename match.
    """
    candidates = list(paths)
    clean = target.strip().replace("\\", "/")
    while clean.startswith("./") or clean.startswith("/"):
        clean = clean[2:] if clean.startswith("./") else clean[1:]
    if not clean:
        return None
    if clean in candidates:
        return clean

    for matches in (
        [p for p in candidates if p.endswith("/" + clean)],
        [p for p in candidates if clean.endswith("/" + p)],
        [p for p in candidates if p.rsplit("/", 1)[-1] == clean.rsplit("/", 1)[-1]],
    ):
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            return None
    return None


def locate_all(
    files: Mapping[str, str],
    records: Iterable[PatchRecord],
    fuzzy_max_chars: int = DEFAULT_FUZZY_MAX_CHARS,
) -> list[MatchResult]:
    """Resolve and locate every record against *files*."""
    results: list[MatchResult] = []
    for record in records:
        path = resolve_target_path(record.target_file, files.keys())
        if path is None:
            logger.warning("[Patch] File '%s' not found in context", record.target_file)
            results.append(MatchResult(record, MatchStatus.NOT_FOUND, message=MSG_NO_FILE))
            continue
        results.append(locate(
            files[path], record.search, record=record,
            fuzzy_max_chars=fuzzy_max_chars, file_path=path,
        ))
    return results
