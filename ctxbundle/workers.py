"""
Worker pool — one-shot request/response tasks for the CPU-heavy steps
(match location across all patch records, archive encoding).

Requests carry immutable snapshots of their inputs and responses are
returned by value; nothing is shared or mutated between caller and worker.
Tasks cannot be cancelled once dispatched; callers compare ``request_id``
to drop stale responses.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Mapping

from .context.archive import build_archive
from .editing.match_locator import DEFAULT_FUZZY_MAX_CHARS, MatchResult, locate_all
from .editing.patch_parser import PatchRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocateRequest:
    request_id: int
    files: tuple[tuple[str, str], ...]
    records: tuple[PatchRecord, ...]
    fuzzy_max_chars: int = DEFAULT_FUZZY_MAX_CHARS

    @classmethod
    def create(
        cls,
        request_id: int,
        files: Mapping[str, str],
        records,
        fuzzy_max_chars: int = DEFAULT_FUZZY_MAX_CHARS,
    ) -> "LocateRequest":
        return cls(request_id, tuple(files.items()), tuple(records), fuzzy_max_chars)


@dataclass(frozen=True)
class LocateResponse:
    request_id: int
    results: tuple[MatchResult, ...]


@dataclass(frozen=True)
class ArchiveRequest:
    request_id: int
    pairs: tuple[tuple[str, str], ...]
    strip_prefix: str | None = None


@dataclass(frozen=True)
class ArchiveResponse:
    request_id: int
    data: bytes
    count: int


def run_locate(request: LocateRequest) -> LocateResponse:
    """Worker body: locate every record of *request*."""
    results = locate_all(dict(request.files), request.records, request.fuzzy_max_chars)
    return LocateResponse(request.request_id, tuple(results))


def run_archive(request: ArchiveRequest) -> ArchiveResponse:
    """Worker body: zip-encode the pairs of *request*."""
    data = build_archive(list(request.pairs), request.strip_prefix)
    return ArchiveResponse(request.request_id, data, len(request.pairs))


class WorkerPool:
    """Thread pool dispatching locate and archive requests."""

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix="ctxbundle",
        )

    def submit_locate(self, request: LocateRequest) -> "Future[LocateResponse]":
        logger.debug(
            "[Workers] Locate request %d: %d record(s) over %d file(s)",
            request.request_id, len(request.records), len(request.files),
        )
        return self._executor.submit(run_locate, request)

    def submit_archive(self, request: ArchiveRequest) -> "Future[ArchiveResponse]":
        logger.debug(
            "[Workers] Archive request %d: %d file(s)", request.request_id, len(request.pairs),
        )
        return self._executor.submit(run_archive, request)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()
