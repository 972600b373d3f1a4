"""
Context session — the explicit state object a front end threads through the
pipeline: upload → tree → selection → context blob → proposal → hunks →
review → apply.

Listeners can subscribe to named events; the core itself only returns plain
values.
"""

from __future__ import annotations

import itertools
import logging
from collections import defaultdict
from concurrent.futures import Future
from typing import Callable, Iterable, Mapping

from .config import Config
from .context.deserializer import ContextDeserializer
from .context.serializer import ContextSerializer
from .context.stats import SelectionStats, selection_stats
from .editing.patch_applier import ApplyResult, Hunk, PatchApplier, hunks_from_results
from .editing.patch_parser import PatchParser
from .tree.builder import FileNode, FlatEntry, TreeBuilder, selected_files, set_selected
from .tree.ignore import IgnoreResolver
from .workers import ArchiveRequest, ArchiveResponse, LocateRequest, LocateResponse, WorkerPool

logger = logging.getLogger(__name__)

EVENT_TREE_LOADED = "tree_loaded"
EVENT_SELECTION_CHANGED = "selection_changed"
EVENT_CONTEXT_BUILT = "context_built"
EVENT_HUNKS_READY = "hunks_ready"
EVENT_HUNKS_APPLIED = "hunks_applied"

Listener = Callable[[object], None]


class ContextSession:
    """Holds the tree, the current blob and the pending hunk set.

    Parameters
    ----------
    config:
        Settings; defaults to ``Config()`` (env vars + built-in defaults).
    pool:
        Worker pool for locate/archive requests.  Created on demand and shut
        down by :meth:`close` when not supplied.
    """

    def __init__(self, config: Config | None = None, pool: WorkerPool | None = None) -> None:
        self.config = config or Config()
        self.resolver = IgnoreResolver(
            extra_rules=self.config.EXTRA_IGNORE_RULES,
            use_defaults=self.config.USE_DEFAULT_IGNORES,
        )
        self.builder = TreeBuilder(self.resolver, self.config.IGNORE_FILE_NAME)
        self.serializer = ContextSerializer(self.config.CONTEXT_PREAMBLE)
        self.deserializer = ContextDeserializer()
        self.parser = PatchParser()
        self.applier = PatchApplier(self.deserializer)

        self._pool = pool
        self._owns_pool = pool is None
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._request_ids = itertools.count(1)
        self._pending_request: int | None = None

        self.root: FileNode | None = None
        self.flat: list[FlatEntry] = []
        self.blob: str | None = None
        self.hunks: list[Hunk] = []

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, event: str, callback: Listener) -> Callable[[], None]:
        """Register *callback* for *event*; returns an unsubscribe function."""
        self._listeners[event].append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners[event]:
                self._listeners[event].remove(callback)

        return _unsubscribe

    def _notify(self, event: str, payload: object = None) -> None:
        for callback in list(self._listeners.get(event, ())):
            callback(payload)

    # ------------------------------------------------------------------
    # Tree and selection
    # ------------------------------------------------------------------

    @property
    def pool(self) -> WorkerPool:
        if self._pool is None:
            self._pool = WorkerPool(self.config.MAX_WORKERS)
        return self._pool

    @property
    def root_name(self) -> str | None:
        return self.root.name if self.root is not None else None

    def load_files(self, files: Iterable[tuple[str, object]]) -> FileNode:
        """Rebuild the tree from scratch for a new upload."""
        self.root = self.builder.build_pruned(files)
        self.flat = self.builder.flatten(self.root)
        self.blob = None
        self.cancel_proposal()
        logger.info("[Session] Loaded %d entries under %s", len(self.flat), self.root.name)
        self._notify(EVENT_TREE_LOADED, self.root)
        return self.root

    def select(self, node_id: str, selected: bool = True) -> bool:
        if self.root is None:
            return False
        changed = set_selected(self.root, node_id, selected)
        if changed:
            self._notify(EVENT_SELECTION_CHANGED, node_id)
        return changed

    def selected_files(self) -> list[FileNode]:
        return selected_files(self.root) if self.root is not None else []

    def selection_stats(self) -> SelectionStats:
        """File count, UTF-8 size and estimated tokens of the selection."""
        return selection_stats(node.read() for node in self.selected_files())

    def tree_text(self) -> str:
        return "\n".join(entry.line for entry in self.flat) + ("\n" if self.flat else "")

    def build_context(self) -> str:
        """Serialize the current selection into the session blob."""
        if self.root is None:
            raise ValueError("No files loaded")
        self.blob = self.serializer.serialize(self.selected_files(), self.flat, self.root.name)
        self._notify(EVENT_CONTEXT_BUILT, self.blob)
        return self.blob

    def files_from_blob(self, blob: str | None = None) -> dict[str, str]:
        """Deserialize a blob (default: the session blob) into a path map."""
        text = self.blob if blob is None else blob
        files: dict[str, str] = {}
        for path, content in self.deserializer.deserialize(text or ""):
            files.setdefault(path, content)
        return files

    # ------------------------------------------------------------------
    # Proposals and hunks
    # ------------------------------------------------------------------

    def request_matches(
        self,
        proposal: str,
        files: Mapping[str, str] | None = None,
    ) -> "Future[LocateResponse]":
        """Parse *proposal* and dispatch match location to the worker pool.

        Targets *files* when given, else the files of the session blob.  Any
        previously outstanding request becomes stale.
        """
        records = self.parser.parse(proposal)
        targets = dict(files) if files is not None else self.files_from_blob()
        request_id = next(self._request_ids)
        self._pending_request = request_id
        request = LocateRequest.create(
            request_id, targets, records, self.config.FUZZY_MAX_CHARS,
        )
        return self.pool.submit_locate(request)

    def accept_matches(self, response: LocateResponse) -> list[Hunk] | None:
        """Install hunks from *response*, or return None if it is stale."""
        if response.request_id != self._pending_request:
            logger.debug("[Session] Dropping stale locate response %d", response.request_id)
            return None
        self._pending_request = None
        self.hunks = hunks_from_results(list(response.results))
        self._notify(EVENT_HUNKS_READY, self.hunks)
        return self.hunks

    def review_proposal(
        self,
        proposal: str,
        files: Mapping[str, str] | None = None,
    ) -> list[Hunk]:
        """Blocking variant of :meth:`request_matches` + :meth:`accept_matches`."""
        response = self.request_matches(proposal, files).result()
        return self.accept_matches(response) or []

    def set_hunk_active(self, index: int, active: bool) -> None:
        self.hunks[index].active = active

    def cancel_proposal(self) -> None:
        self.hunks = []
        self._pending_request = None

    def apply_to_blob(self) -> ApplyResult:
        """Apply the reviewed hunks to the session blob."""
        if self.blob is None:
            raise ValueError("No context blob to patch")
        self.blob, reports = self.applier.apply_to_blob(self.blob, self.hunks)
        return self._finish(reports)

    def apply_to_files(self, files: Mapping[str, str]) -> tuple[dict[str, str], ApplyResult]:
        """Apply the reviewed hunks to a ``{path: content}`` map."""
        updated, reports = self.applier.apply_to_files(files, self.hunks)
        return updated, self._finish(reports)

    def _finish(self, reports) -> ApplyResult:
        result = ApplyResult.from_reports(reports)
        self.hunks = []
        logger.info(
            "[Session] Applied %d hunk(s), skipped %d",
            result.hunks_applied, result.hunks_skipped,
        )
        self._notify(EVENT_HUNKS_APPLIED, result)
        return result

    # ------------------------------------------------------------------
    # Materialization
    # ------------------------------------------------------------------

    def request_archive(
        self,
        blob: str | None = None,
        strip_root: bool = True,
    ) -> "Future[ArchiveResponse]":
        """Deserialize *blob* and zip-encode its files on the worker pool."""
        files = self.files_from_blob(blob)
        strip_prefix = None
        if strip_root:
            strip_prefix = self.root_name or common_root(files)
        request = ArchiveRequest(next(self._request_ids), tuple(files.items()), strip_prefix)
        return self.pool.submit_archive(request)

    def close(self) -> None:
        if self._owns_pool and self._pool is not None:
            self._pool.shutdown()
            self._pool = None

    def __enter__(self) -> "ContextSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def common_root(files: Mapping[str, str]) -> str | None:
    """Leading path segment shared by every file, if any."""
    roots = {path.split("/", 1)[0] for path in files if "/" in path}
    if len(roots) == 1 and all("/" in path for path in files):
        return roots.pop()
    return None
