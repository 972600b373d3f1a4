"""
Selection statistics shown alongside a context document: file count, size
and a rough token estimate.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# CJK ideographs, CJK punctuation and full-width forms count one token each
_CJK_RE = re.compile(r"[\u4e00-\u9fa5\u3000-\u303f\uff00-\uffef]")
_PIECE_RE = re.compile(r"\w+|[^\s\w]", re.ASCII)
_WORD_RE = re.compile(r"\w+", re.ASCII)


def estimate_tokens(text: str) -> int:
    """Rough token count.

    Each CJK character is one token, each word is one token per ~4
    characters, and every other non-space character is one token.
    """
    if not text:
        return 0
    cjk = len(_CJK_RE.findall(text))
    tokens = cjk
    for piece in _PIECE_RE.findall(_CJK_RE.sub(" ", text)):
        if _WORD_RE.fullmatch(piece):
            tokens += max(1, -(-len(piece) // 4))
        else:
            tokens += 1
    return tokens


@dataclass(frozen=True)
class SelectionStats:
    files: int = 0
    bytes: int = 0
    tokens: int = 0

    def summary(self) -> str:
        return f"{self.files} file(s), {self.bytes / 1024:.1f} KB, ~{self.tokens:,} tokens"


def selection_stats(contents) -> SelectionStats:
    """Aggregate stats over an iterable of file contents."""
    files = size = tokens = 0
    for text in contents:
        files += 1
        size += len(text.encode("utf-8"))
        tokens += estimate_tokens(text)
    return SelectionStats(files=files, bytes=size, tokens=tokens)
