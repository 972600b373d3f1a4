"""
Context deserializer — parses any context document back into
``(path, content)`` pairs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import CtxBundleError
from .format import FENCE, HEADER_RE, unescape_content

logger = logging.getLogger(__name__)


class DeserializeNoBlocksFound(CtxBundleError):
    """Raised when a document contains no ``=== File: ... ===`` header."""


@dataclass(frozen=True)
class ContextBlock:
    """Geometry of one file block inside a context document.

    ``text[body_start:body_end]`` is the escaped file content, without the
    single newline that precedes the closing fence.
    """
    path: str
    raw_path: str
    header_start: int
    header_end: int
    body_start: int
    body_end: int

    def content(self, text: str) -> str:
        return unescape_content(text[self.body_start:self.body_end])


def sanitize_path(raw: str, index: int = 0) -> str:
    """Make a header path safe to materialize on disk."""
    path = raw.strip().replace("\\", "/")
    while path.startswith("./") or path.startswith("/"):
        path = path[2:] if path.startswith("./") else path[1:]
    parts = [p for p in path.split("/") if p not in ("", ".", "..")]
    path = "/".join(parts)
    return path or f"root_file_{index}.txt"


class ContextDeserializer:
    """Locate file blocks in a context document and extract their content."""

    def iter_blocks(self, text: str) -> list[ContextBlock]:
        """Return every well-formed block, in document order.

        Blocks whose opening or closing fence cannot be located are skipped.
        """
        headers = list(HEADER_RE.finditer(text))
        blocks: list[ContextBlock] = []

        for i, match in enumerate(headers):
            bound = headers[i + 1].start() if i + 1 < len(headers) else len(text)
            raw_path = match.group(1).strip()

            fence_open = text.find(FENCE, match.end(), bound)
            if fence_open == -1:
                logger.warning("[Context] No opening fence for %s, skipping", raw_path)
                continue
            line_end = text.find("\n", fence_open, bound)
            if line_end == -1:
                logger.warning("[Context] Unterminated fence line for %s, skipping", raw_path)
                continue
            body_start = line_end + 1

            fence_close = text.rfind(FENCE, body_start, bound)
            if fence_close == -1:
                logger.warning("[Context] No closing fence for %s, skipping", raw_path)
                continue

            # The newline before the closing fence follows the document's
            # line endings, taken from the opening fence line
            crlf = text[line_end - 1] == "\r"
            body_end = fence_close
            if crlf and body_end - 2 >= body_start and text[body_end - 2:body_end] == "\r\n":
                body_end -= 2
            elif body_end > body_start and text[body_end - 1] == "\n":
                body_end -= 1

            blocks.append(ContextBlock(
                path=sanitize_path(raw_path, len(blocks)),
                raw_path=raw_path,
                header_start=match.start(),
                header_end=match.end(),
                body_start=body_start,
                body_end=body_end,
            ))
        return blocks

    def deserialize(self, text: str) -> list[tuple[str, str]]:
        """Parse *text* into ``(path, content)`` pairs.

        Raises
        ------
        DeserializeNoBlocksFound
            If the document contains no file header at all.
        """
        if not HEADER_RE.search(text):
            raise DeserializeNoBlocksFound(
                "No file markers found (=== File: ... ===)"
            )
        pairs = [(block.path, block.content(text)) for block in self.iter_blocks(text)]
        logger.info("[Context] Deserialized %d file(s)", len(pairs))
        return pairs
