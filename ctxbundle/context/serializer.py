"""
Context serializer — renders the selected part of a file tree into the
delimited context document.
"""

from __future__ import annotations

import logging
from typing import Iterable, Union

from ..language import fence_language
from ..tree.builder import (
    CONNECTOR_LAST, CONNECTOR_MID, PAD_LAST, PAD_MID, FileNode, FlatEntry,
)
from .format import (
    EMPTY_TREE, FENCE, SEPARATOR, TREE_TITLE, escape_content, format_header,
)

logger = logging.getLogger(__name__)

DEFAULT_PREAMBLE = "# Project Context\n\n"
READ_ERROR_TEXT = "[Error reading file]"


class _TreeDir:
    """Scratch directory node used while drawing the selected tree."""

    def __init__(self) -> None:
        self.dirs: dict[str, "_TreeDir"] = {}
        self.files: set[str] = set()


class ContextSerializer:
    """Serialize selected files into a context blob.

    Parameters
    ----------
    preamble:
        Free text emitted before the tree section.
    """

    def __init__(self, preamble: str = DEFAULT_PREAMBLE) -> None:
        self._preamble = preamble

    def serialize(
        self,
        selected: Iterable[Union[FileNode, str]],
        flat_order: list[FlatEntry],
        root_name: str,
    ) -> str:
        """Render the tree section, separator and one block per file.

        Blocks follow *flat_order*; only file nodes in *selected* are
        emitted.
        """
        selected_ids = {
            item.id if isinstance(item, FileNode) else str(item)
            for item in selected
        }
        files = [
            entry.node for entry in flat_order
            if not entry.node.is_dir and entry.node.id in selected_ids
        ]

        tree = self.render_tree([node.id for node in files], root_name)
        blocks = [self.render_block(node.id, self._read(node)) for node in files]

        logger.info("[Context] Serialized %d file(s) from %s", len(files), root_name)
        return f"{self._preamble}{tree}\n{SEPARATOR}\n\n" + "\n".join(blocks)

    @staticmethod
    def render_block(path: str, content: str) -> str:
        """One ``=== File: ... ===`` block with a fenced, escaped body."""
        lang = fence_language(path)
        return (
            f"{format_header(path)}\n"
            f"{FENCE}{lang}\n"
            f"{escape_content(content)}\n"
            f"{FENCE}\n"
        )

    @staticmethod
    def render_tree(file_ids: list[str], root_name: str) -> str:
        """ASCII tree of *file_ids* and the directories leading to them."""
        if not file_ids:
            return f"{TREE_TITLE}\n{EMPTY_TREE}\n"

        top = _TreeDir()
        prefix = root_name + "/"
        for file_id in file_ids:
            rel = file_id[len(prefix):] if file_id.startswith(prefix) else file_id
            parts = [p for p in rel.split("/") if p]
            if not parts:
                continue
            current = top
            for part in parts[:-1]:
                current = current.dirs.setdefault(part, _TreeDir())
            current.files.add(parts[-1])

        lines = [TREE_TITLE, f"{root_name}/"]

        def _walk(node: _TreeDir, pad: str) -> None:
            entries = [(name, True) for name in sorted(node.dirs)]
            entries += [(name, False) for name in sorted(node.files)]
            for index, (name, is_dir) in enumerate(entries):
                is_last = index == len(entries) - 1
                connector = CONNECTOR_LAST if is_last else CONNECTOR_MID
                lines.append(f"{pad}{connector}{name}{'/' if is_dir else ''}")
                if is_dir:
                    _walk(node.dirs[name], pad + (PAD_LAST if is_last else PAD_MID))

        _walk(top, "")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _read(node: FileNode) -> str:
        try:
            return node.read()
        except OSError as exc:
            logger.warning("[Context] Failed to read %s: %s", node.id, exc)
            return READ_ERROR_TEXT
