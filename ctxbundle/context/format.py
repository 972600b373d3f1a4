"""
Context document tokens and the escaping rules shared by the serializer and
the deserializer.
"""

from __future__ import annotations

import re

HEADER_TOKEN = "=== File:"
ESCAPED_TOKEN = "\\=== File:"
FENCE = "```"
SEPARATOR = "=" * 48
TREE_TITLE = "Project Tree:"
EMPTY_TREE = "(No files selected)"

# A header must occupy a whole line; escaped tokens start with "\" and never match.
HEADER_RE = re.compile(r"^=== File:[ \t]*(.*?)[ \t]*===[ \t\r]*$", re.MULTILINE)

_ESCAPE_RE = re.compile(r"(\\*)=== File:")
_UNESCAPE_RE = re.compile(r"\\(\\*)=== File:")


def format_header(path: str) -> str:
    return f"{HEADER_TOKEN} {path} ==="


def escape_content(text: str) -> str:
    """Neutralise every header token inside file content.

    Backslashes already sitting in front of the token gain one more, which
    keeps :func:`unescape_content` an exact inverse.
    """
    return _ESCAPE_RE.sub(lambda m: "\\" + m.group(1) + HEADER_TOKEN, text)


def unescape_content(text: str) -> str:
    return _UNESCAPE_RE.sub(lambda m: m.group(1) + HEADER_TOKEN, text)
