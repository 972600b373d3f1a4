"""
Patch parser — extracts SEARCH/REPLACE blocks from a model-authored edit
proposal into ordered :class:`PatchRecord` objects.

Several marker dialects exist in the wild; the dialect is detected per input
from the first search-start marker found, never configured globally.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkerSyntax:
    """One SEARCH/REPLACE marker dialect (patterns match trimmed lines)."""
    name: str
    search_start: re.Pattern
    separator: re.Pattern
    end: re.Pattern


# <<<<<<< SEARCH / ======= / >>>>>>> REPLACE
LONG_SYNTAX = MarkerSyntax(
    name="long",
    search_start=re.compile(r"<{7}\s*SEARCH"),
    separator=re.compile(r"={7}"),
    end=re.compile(r">{7}(?:\s*REPLACE)?"),
)

# <<<< SEARCH / ==== REPLACE / >>>>
COMPACT_SYNTAX = MarkerSyntax(
    name="compact",
    search_start=re.compile(r"<{4}\s*SEARCH"),
    separator=re.compile(r"={4}\s*REPLACE"),
    end=re.compile(r">{4}(?:\s*REPLACE)?"),
)

# <<<<<< SEARCH / ====== / >>>>>> REPLACE  (START/END accepted as aliases)
SHORT_SYNTAX = MarkerSyntax(
    name="short",
    search_start=re.compile(r"<{6}\s*(?:SEARCH|START)"),
    separator=re.compile(r"={6}"),
    end=re.compile(r">{6}\s*(?:REPLACE|END)"),
)

SYNTAXES = (LONG_SYNTAX, COMPACT_SYNTAX, SHORT_SYNTAX)

# "File: src/app.py", "**File:** `src/app.py`", "### FILE: src/app.py"
_FILE_LINE = re.compile(r"^[#>*\s]*file:\**\s*(.+?)\s*$", re.IGNORECASE)
# "=== File: src/app.py ===" (optionally escaped)
_HEADER_LINE = re.compile(r"^\\*=== File:\s*(.*?)\s*===$")

_PATH_STRIP = "`*\"' "


class ParserState(str, Enum):
    IDLE = "idle"
    SEARCH = "search"
    REPLACE = "replace"


@dataclass(frozen=True)
class PatchRecord:
    """One proposed change: replace *search* with *replace* in *target_file*."""
    target_file: str
    search: str
    replace: str
    order: int = 0


def _clean_path(raw: str) -> str:
    path = raw.strip().strip(_PATH_STRIP).replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def match_file_header(line: str) -> str | None:
    """Return the target path if *line* (trimmed) names a file, else None."""
    m = _HEADER_LINE.match(line) or _FILE_LINE.match(line)
    if not m:
        return None
    path = _clean_path(m.group(1))
    return path or None


def _trim_one_blank(lines: list[str]) -> str:
    """Drop exactly one leading and one trailing blank line."""
    lines = list(lines)
    if lines and not lines[0].strip():
        lines.pop(0)
    if lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines)


def detect_syntax(text: str) -> MarkerSyntax | None:
    """Pick the dialect of the first search-start marker in *text*."""
    for line in re.split(r"\r?\n", text):
        trimmed = line.strip()
        for syntax in SYNTAXES:
            if syntax.search_start.fullmatch(trimmed):
                return syntax
    return None


class PatchParser:
    """Parse SEARCH/REPLACE proposals.

    Parameters
    ----------
    syntax:
        Force a marker dialect.  By default it is detected per input.
    """

    def __init__(self, syntax: MarkerSyntax | None = None) -> None:
        self._syntax = syntax

    def parse(self, text: str) -> list[PatchRecord]:
        """Parse *text* into records, in order of appearance.

        Returns an empty list when no complete block is found; deciding
        whether that is an error is left to the caller.
        """
        syntax = self._syntax or detect_syntax(text)
        if syntax is None:
            logger.info("[Patch] No SEARCH/REPLACE markers found")
            return []

        records: list[PatchRecord] = []
        state = ParserState.IDLE
        current_file: str | None = None
        search_buf: list[str] = []
        replace_buf: list[str] = []

        for line in re.split(r"\r?\n", text):
            trimmed = line.strip()

            if state is ParserState.IDLE:
                path = match_file_header(trimmed)
                if path:
                    current_file = path
                elif syntax.search_start.fullmatch(trimmed):
                    state = ParserState.SEARCH
                    search_buf = []

            elif state is ParserState.SEARCH:
                if syntax.separator.fullmatch(trimmed):
                    state = ParserState.REPLACE
                    replace_buf = []
                else:
                    search_buf.append(line)

            elif state is ParserState.REPLACE:
                if syntax.end.fullmatch(trimmed):
                    if current_file:
                        records.append(PatchRecord(
                            target_file=current_file,
                            search=_trim_one_blank(search_buf),
                            replace=_trim_one_blank(replace_buf),
                            order=len(records),
                        ))
                    else:
                        logger.warning(
                            "[Patch] SEARCH/REPLACE block without a file header, skipping"
                        )
                    state = ParserState.IDLE
                else:
                    replace_buf.append(line)

        if state is not ParserState.IDLE:
            logger.warning("[Patch] Unterminated block at end of input discarded")

        logger.info(
            "[Patch] Parsed %d block(s) using %s markers", len(records), syntax.name,
        )
        return records
