"""
Patch applier — rewrites file contents (or a whole context blob) using only
the hunks that are unique and switched on, with atomic writes at the disk
boundary.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Mapping

from ..context.archive import materialize
from ..context.deserializer import ContextBlock, ContextDeserializer
from ..context.format import escape_content
from ..errors import CtxBundleError
from .match_locator import MSG_NO_FILE, MatchResult

logger = logging.getLogger(__name__)


class OverlappingHunksError(CtxBundleError):
    """Raised when two active hunks target overlapping spans of one file."""

    def __init__(self, file_path: str | None, orders: list[int]) -> None:
        self.file_path = file_path
        self.orders = orders
        super().__init__(
            f"Overlapping hunks {orders} in {file_path or '(content)'}"
        )


class PatchApplyIOFailure(CtxBundleError):
    """A patched file could not be written."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")


@dataclass
class Hunk:
    """A reviewable change: a match result plus the user's accept flag."""
    result: MatchResult
    active: bool | None = None

    def __post_init__(self) -> None:
        # Unique matches are accepted unless the caller says otherwise
        if self.active is None:
            self.active = self.result.is_unique

    @classmethod
    def from_result(cls, result: MatchResult) -> "Hunk":
        return cls(result=result, active=result.is_unique)

    @property
    def file_path(self) -> str | None:
        return self.result.file_path

    @property
    def order(self) -> int:
        return self.result.record.order if self.result.record is not None else -1

    @property
    def replace(self) -> str:
        return self.result.record.replace if self.result.record is not None else ""


@dataclass
class HunkReport:
    """What happened to one hunk."""
    order: int
    file_path: str | None
    applied: bool = False
    reason: str = ""


@dataclass
class ApplyResult:
    """Summary of applying a set of hunks."""
    success: bool = False
    files_modified: list[str] = field(default_factory=list)
    hunks_applied: int = 0
    hunks_skipped: int = 0
    reports: list[HunkReport] = field(default_factory=list)
    io_failures: list[PatchApplyIOFailure] = field(default_factory=list)
    error: str = ""

    @classmethod
    def from_reports(cls, reports: list[HunkReport]) -> "ApplyResult":
        applied = [r for r in reports if r.applied]
        files = sorted({r.file_path for r in applied if r.file_path})
        return cls(
            success=bool(applied),
            files_modified=files,
            hunks_applied=len(applied),
            hunks_skipped=len(reports) - len(applied),
            reports=list(reports),
        )


def hunks_from_results(results: list[MatchResult]) -> list[Hunk]:
    """Wrap results as hunks, active by default only when unique."""
    return [Hunk.from_result(r) for r in results]


class PatchApplier:
    """Apply reviewed hunks to content strings, file maps or context blobs."""

    def __init__(self, deserializer: ContextDeserializer | None = None) -> None:
        self._deserializer = deserializer or ContextDeserializer()

    # ------------------------------------------------------------------
    # Single content string
    # ------------------------------------------------------------------

    def apply(self, content: str, hunks: list[Hunk]) -> tuple[str, list[HunkReport]]:
        """Apply participating hunks to *content*.

        Only hunks that are active and UNIQUE participate; spans refer to the
        original *content* and are spliced back to front.

        Raises
        ------
        OverlappingHunksError
            If two participating spans overlap.  Nothing is applied.
        """
        reports: dict[int, HunkReport] = {}
        participating: list[tuple[int, Hunk]] = []

        for idx, hunk in enumerate(hunks):
            reason = self._skip_reason(hunk)
            if reason is None:
                start, end = hunk.result.span
                if not 0 <= start <= end <= len(content):
                    reason = "Span out of range"
            if reason is not None:
                reports[idx] = HunkReport(hunk.order, hunk.file_path, False, reason)
                continue
            participating.append((idx, hunk))

        self._check_overlaps([h for _, h in participating])

        new_content = content
        for idx, hunk in sorted(participating, key=lambda p: p[1].result.span[0], reverse=True):
            start, end = hunk.result.span
            new_content = new_content[:start] + hunk.replace + new_content[end:]
            reports[idx] = HunkReport(hunk.order, hunk.file_path, True, "Applied")
            logger.debug(
                "[Patch] Applied hunk %d at %d-%d (%s)",
                hunk.order, start, end, hunk.result.matched_via,
            )

        return new_content, [reports[i] for i in range(len(hunks))]

    # ------------------------------------------------------------------
    # File maps and context blobs
    # ------------------------------------------------------------------

    def apply_to_files(
        self,
        files: Mapping[str, str],
        hunks: list[Hunk],
    ) -> tuple[dict[str, str], list[HunkReport]]:
        """Apply hunks to a ``{path: content}`` map, once per addressed file."""
        groups, reports = self._group(hunks, files.keys())
        for path, group in groups.items():
            self._check_overlaps([h for h in group if self._skip_reason(h) is None])

        updated = dict(files)
        for path, group in groups.items():
            updated[path], file_reports = self.apply(files[path], group)
            reports.extend(file_reports)
        return updated, self._in_order(reports, hunks)

    def apply_to_blob(self, blob: str, hunks: list[Hunk]) -> tuple[str, list[HunkReport]]:
        """Apply hunks inside a context blob.

        Only the body regions of addressed files are rewritten; headers, the
        tree section and every other file stay byte-for-byte identical.
        """
        blocks: dict[str, ContextBlock] = {}
        for block in self._deserializer.iter_blocks(blob):
            blocks.setdefault(block.path, block)

        groups, reports = self._group(hunks, blocks.keys())
        for path, group in groups.items():
            self._check_overlaps([h for h in group if self._skip_reason(h) is None])

        # Back to front so earlier block offsets stay valid
        for path in sorted(groups, key=lambda p: blocks[p].body_start, reverse=True):
            block = blocks[path]
            new_content, file_reports = self.apply(block.content(blob), groups[path])
            reports.extend(file_reports)
            if any(r.applied for r in file_reports):
                blob = blob[:block.body_start] + escape_content(new_content) + blob[block.body_end:]
        return blob, self._in_order(reports, hunks)

    # ------------------------------------------------------------------
    # Disk boundary
    # ------------------------------------------------------------------

    def write_files(self, root_dir: str, files: Mapping[str, str]) -> ApplyResult:
        """Write patched files under *root_dir*.

        Each failure becomes a :class:`PatchApplyIOFailure` in the result;
        the remaining files are still written.
        """
        result = ApplyResult()
        for write in materialize(list(files.items()), root_dir):
            if write.ok:
                result.files_modified.append(write.path)
            else:
                result.io_failures.append(PatchApplyIOFailure(write.path, write.error))
        result.success = not result.io_failures
        if result.io_failures:
            result.error = f"{len(result.io_failures)} file(s) could not be written"
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _skip_reason(hunk: Hunk) -> str | None:
        if not hunk.active:
            return "Inactive"
        if not hunk.result.is_unique or hunk.result.span is None:
            return hunk.result.message or hunk.result.status.value
        return None

    @staticmethod
    def _check_overlaps(hunks: list[Hunk]) -> None:
        ordered = sorted(hunks, key=lambda h: h.result.span)
        for prev, cur in zip(ordered, ordered[1:]):
            if cur.result.span[0] < prev.result.span[1]:
                raise OverlappingHunksError(cur.file_path, [prev.order, cur.order])

    @staticmethod
    def _group(hunks: list[Hunk], known_paths) -> tuple[dict[str, list[Hunk]], list[HunkReport]]:
        known = set(known_paths)
        groups: dict[str, list[Hunk]] = defaultdict(list)
        reports: list[HunkReport] = []
        for hunk in hunks:
            if hunk.file_path is None or hunk.file_path not in known:
                reason = hunk.result.message if hunk.file_path is None else MSG_NO_FILE
                reports.append(HunkReport(hunk.order, hunk.file_path, False, reason or MSG_NO_FILE))
                continue
            groups[hunk.file_path].append(hunk)
        return dict(groups), reports

    @staticmethod
    def _in_order(reports: list[HunkReport], hunks: list[Hunk]) -> list[HunkReport]:
        rank = {h.order: i for i, h in enumerate(hunks)}
        return sorted(reports, key=lambda r: rank.get(r.order, len(rank)))
