"""Tests for ContextSerializer and the shared escaping helpers."""

import pytest

from ctxbundle.context.deserializer import ContextDeserializer
from ctxbundle.context.format import SEPARATOR, escape_content, unescape_content
from ctxbundle.context.serializer import READ_ERROR_TEXT, ContextSerializer
from ctxbundle.tree.builder import TreeBuilder, selected_files, set_selected
from ctxbundle.tree.ignore import IgnoreResolver


def _tree(files):
    builder = TreeBuilder(IgnoreResolver(use_defaults=False))
    root = builder.build(files)
    return root, TreeBuilder.flatten(root)


def _serialize(root, flat, preamble=""):
    return ContextSerializer(preamble).serialize(selected_files(root), flat, root.name)


class TestSerialize:
    def test_exact_document(self):
        root, flat = _tree([("proj/src/a.js", "console.log(1);"), ("proj/b.txt", "hi")])
        blob = _serialize(root, flat, preamble="# Project Context\n\n")
        assert blob == (
            "# Project Context\n\n"
            "Project Tree:\n"
            "proj/\n"
            "├── src/\n"
            "│   └── a.js\n"
            "└── b.txt\n"
            "\n"
            + "=" * 48 + "\n\n"
            "=== File: proj/src/a.js ===\n"
            "```javascript\n"
            "console.log(1);\n"
            "```\n"
            "\n"
            "=== File: proj/b.txt ===\n"
            "```text\n"
            "hi\n"
            "```\n"
        )

    def test_only_selected_files(self):
        root, flat = _tree([("proj/a.py", "a"), ("proj/b.py", "b")])
        set_selected(root, "proj/b.py", False)
        blob = _serialize(root, flat)
        tree_section, body = blob.split(SEPARATOR, 1)
        assert "a.py" in tree_section
        assert "b.py" not in tree_section
        assert body.count("=== File:") == 1
        assert "=== File: proj/a.py ===" in body

    def test_directories_needed_for_selection_only(self):
        root, flat = _tree([("proj/x/a.py", ""), ("proj/y/b.py", "")])
        set_selected(root, "proj/y", False)
        tree = _serialize(root, flat).split(SEPARATOR, 1)[0]
        assert "x/" in tree
        assert "y/" not in tree

    def test_empty_selection(self):
        root, flat = _tree([("proj/a.py", "")])
        set_selected(root, "proj", False)
        blob = _serialize(root, flat)
        assert "(No files selected)" in blob
        assert "=== File:" not in blob

    def test_unknown_extension_has_empty_tag(self):
        block = ContextSerializer.render_block("proj/LICENSE", "MIT")
        assert block == "=== File: proj/LICENSE ===\n```\nMIT\n```\n"

    def test_dockerfile_by_name(self):
        block = ContextSerializer.render_block("proj/Dockerfile", "FROM x")
        assert block.splitlines()[1] == "```dockerfile"

    def test_unreadable_file_becomes_error_text(self):
        def broken():
            raise OSError("gone")

        root, flat = _tree([("proj/a.txt", broken)])
        assert READ_ERROR_TEXT in _serialize(root, flat)

    def test_content_with_header_token_is_escaped(self):
        root, flat = _tree([("proj/a.md", "=== File: fake ===\ntext")])
        blob = _serialize(root, flat)
        assert "\\=== File: fake ===" in blob
        assert blob.count("\n=== File:") == 1


class TestEscaping:
    @pytest.mark.parametrize("text", [
        "=== File: x ===",
        "\\=== File: x ===",
        "\\\\=== File: x",
        "a=== File:b=== File:c",
        "no token here",
    ])
    def test_unescape_inverts_escape(self, text):
        assert unescape_content(escape_content(text)) == text

    def test_escaped_token_not_at_line_start(self):
        assert escape_content("=== File: a ===").startswith("\\")


class TestRoundTrip:
    def test_round_trip_preserves_pairs(self):
        files = [
            ("proj/src/main.py", "def main():\n    return 0\n"),
            ("proj/src/empty.py", ""),
            ("proj/README.md", "# Title\n\n```python\nprint(1)\n```\n"),
            ("proj/notes.txt", "trailing blank lines\n\n\n"),
            ("proj/crlf.txt", "a\r\nb\r\n"),
        ]
        root, flat = _tree(files)
        pairs = ContextDeserializer().deserialize(_serialize(root, flat))
        assert sorted(pairs) == sorted(files)

    def test_round_trip_with_delimiter_in_content(self):
        evil = (
            "=== File: proj/other.txt ===\n"
            "```\n"
            "\\=== File: escaped already\n"
            "```\n"
        )
        files = [("proj/evil.md", evil), ("proj/other.txt", "real")]
        root, flat = _tree(files)
        pairs = ContextDeserializer().deserialize(_serialize(root, flat))
        assert sorted(pairs) == sorted(files)
