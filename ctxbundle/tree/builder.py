"""
Tree builder — turns a flat list of ``(path, content_accessor)`` pairs into a
nested file tree, prunes it with scoped ignore rules and flattens it into the
canonical display / serialization order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Union

from ..errors import CtxBundleError
from .ignore import IgnoreResolver, ScopeFrame, push_scope

logger = logging.getLogger(__name__)

ContentAccessor = Callable[[], str]

DEFAULT_ROOT_NAME = "Project"

CONNECTOR_MID = "├── "
CONNECTOR_LAST = "└── "
PAD_MID = "│   "
PAD_LAST = "    "


class TreeBuildEmptyInput(CtxBundleError):
    """Raised when a tree is requested for zero files."""


class NodeKind(str, Enum):
    FILE = "file"
    DIR = "dir"


@dataclass
class FileNode:
    """A file or directory in the project tree."""
    id: str
    name: str
    kind: NodeKind
    content: ContentAccessor | None = None
    selected: bool = True
    children: dict[str, "FileNode"] = field(default_factory=dict)

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIR

    def read(self) -> str:
        """Return the file content through the lazy accessor."""
        if self.content is None:
            return ""
        return self.content()

    def sorted_children(self) -> list["FileNode"]:
        return sorted(self.children.values(), key=sort_key)


@dataclass
class FlatEntry:
    """A node plus the prefix/connector needed to draw it in an ASCII tree."""
    node: FileNode
    prefix: str
    connector: str
    depth: int

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def line(self) -> str:
        suffix = "/" if self.node.is_dir else ""
        return f"{self.prefix}{self.connector}{self.node.name}{suffix}"


def sort_key(node: FileNode) -> tuple[int, str]:
    """Directories first, then lexicographic by name."""
    return (0 if node.is_dir else 1, node.name)


def _as_accessor(content: Union[ContentAccessor, str, None]) -> ContentAccessor | None:
    if content is None or callable(content):
        return content
    text = str(content)
    return lambda: text


class TreeBuilder:
    """Build, prune and flatten project trees.

    Parameters
    ----------
    resolver:
        The :class:`IgnoreResolver` used for ignore decisions.
    ignore_file_name:
        Name of the per-directory ignore file (``.gitignore`` by default).
    """

    def __init__(
        self,
        resolver: IgnoreResolver | None = None,
        ignore_file_name: str = ".gitignore",
    ) -> None:
        self._resolver = resolver or IgnoreResolver()
        self._ignore_file_name = ignore_file_name

    @property
    def resolver(self) -> IgnoreResolver:
        return self._resolver

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self, files: Iterable[tuple[str, Union[ContentAccessor, str]]]) -> FileNode:
        """Insert every file into a fresh tree and return its root.

        Every node is created with ``selected = True``.  Pruning is a
        separate step (see :meth:`build_pruned`).
        """
        items = [(path.replace("\\", "/"), content) for path, content in files]
        if not items:
            raise TreeBuildEmptyInput("No files supplied")

        first_parts = [p for p in items[0][0].split("/") if p]
        root_name = first_parts[0] if len(first_parts) > 1 else DEFAULT_ROOT_NAME

        root = FileNode(id=root_name, name=root_name, kind=NodeKind.DIR)
        for path, content in items:
            parts = [p for p in path.split("/") if p and p != "."]
            if len(parts) > 1 and parts[0] == root_name:
                parts = parts[1:]
            if not parts:
                logger.debug("[Tree] Skipping empty path %r", path)
                continue
            self._insert(root, parts, _as_accessor(content))

        logger.debug("[Tree] Built tree %r from %d path(s)", root_name, len(items))
        return root

    @staticmethod
    def _insert(root: FileNode, parts: list[str], accessor: ContentAccessor | None) -> None:
        current = root
        for index, part in enumerate(parts):
            is_file = index == len(parts) - 1
            child = current.children.get(part)
            if child is None:
                child = FileNode(
                    id=f"{current.id}/{part}",
                    name=part,
                    kind=NodeKind.FILE if is_file else NodeKind.DIR,
                    content=accessor if is_file else None,
                )
                current.children[part] = child
            elif is_file and not child.is_dir:
                logger.debug("[Tree] Duplicate path %s, keeping first", child.id)
                return
            elif is_file or not child.is_dir:
                logger.warning(
                    "[Tree] Path collision at %s, skipping %s",
                    child.id, "/".join(parts),
                )
                return
            current = child

    def build_pruned(self, files: Iterable[tuple[str, Union[ContentAccessor, str]]]) -> FileNode:
        """Build a tree and prune it with the default frame plus ignore files."""
        root = self.build(files)
        self.prune(root, root.id, (self._resolver.default_frame(root.id),))
        return root

    # ------------------------------------------------------------------
    # Prune
    # ------------------------------------------------------------------

    def prune(
        self,
        node: FileNode,
        base_path: str,
        inherited_scopes: tuple[ScopeFrame, ...] = (),
    ) -> None:
        """Remove ignored descendants of *node* in place.

        The directory's own ignore file is parsed before any child is
        tested, so its rules apply to its siblings too.
        """
        active = tuple(inherited_scopes)
        ignore_node = node.children.get(self._ignore_file_name)
        if ignore_node is not None and not ignore_node.is_dir:
            try:
                text = ignore_node.read()
            except OSError as exc:
                logger.warning("[Tree] Cannot read %s: %s", ignore_node.id, exc)
                text = ""
            frame = self._resolver.frame_from_text(base_path, text)
            if frame.rules:
                active = push_scope(active, frame)
                logger.debug(
                    "[Tree] %d rule(s) from %s", len(frame.rules), ignore_node.id,
                )

        for name in list(node.children):
            child = node.children[name]
            if self._resolver.is_ignored(child.id, active):
                del node.children[name]
                continue
            if child.is_dir:
                self.prune(child, child.id, active)

    # ------------------------------------------------------------------
    # Flatten
    # ------------------------------------------------------------------

    @staticmethod
    def flatten(root: FileNode) -> list[FlatEntry]:
        """Pre-order listing of the tree with ASCII-tree prefixes."""
        flat: list[FlatEntry] = [FlatEntry(node=root, prefix="", connector="", depth=0)]

        def _walk(node: FileNode, prefix: str, depth: int) -> None:
            children = node.sorted_children()
            for index, child in enumerate(children):
                is_last = index == len(children) - 1
                flat.append(FlatEntry(
                    node=child,
                    prefix=prefix,
                    connector=CONNECTOR_LAST if is_last else CONNECTOR_MID,
                    depth=depth,
                ))
                if child.is_dir:
                    _walk(child, prefix + (PAD_LAST if is_last else PAD_MID), depth + 1)

        _walk(root, "", 1)
        return flat


# ----------------------------------------------------------------------
# Selection helpers
# ----------------------------------------------------------------------

def find_node(root: FileNode, node_id: str) -> FileNode | None:
    """Locate a node by its full id."""
    if node_id == root.id:
        return root
    if not node_id.startswith(root.id + "/"):
        return None
    current = root
    for part in node_id[len(root.id) + 1:].split("/"):
        current = current.children.get(part)
        if current is None:
            return None
    return current


def set_selected(root: FileNode, node_id: str, selected: bool) -> bool:
    """Select or deselect a node and all of its descendants.

    Returns False when *node_id* is not in the tree.
    """
    node = find_node(root, node_id)
    if node is None:
        return False
    stack = [node]
    while stack:
        current = stack.pop()
        current.selected = selected
        stack.extend(current.children.values())
    return True


def selected_files(root: FileNode) -> list[FileNode]:
    """Selected file nodes in canonical (flatten) order."""
    return [
        entry.node for entry in TreeBuilder.flatten(root)
        if not entry.node.is_dir and entry.node.selected
    ]
