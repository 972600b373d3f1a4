"""Tests for MatchLocator (exact and fuzzy location, path resolution)."""

from ctxbundle.editing.match_locator import (
    MSG_AMBIGUOUS, MSG_NO_FILE, MSG_NOT_FOUND, MatchMethod, MatchStatus,
    find_all, fuzzy_windows, locate, locate_all, resolve_target_path,
)
from ctxbundle.editing.patch_parser import PatchRecord


class TestExact:
    def test_unique_exact(self):
        result = locate("x();\nfoo();\n", "foo();")
        assert result.status is MatchStatus.UNIQUE
        assert result.matched_via is MatchMethod.EXACT
        assert result.span == (5, 11)
        assert result.count == 1

    def test_two_occurrences_are_ambiguous(self):
        result = locate("a()\nfoo()\nb()\nfoo()\n", "foo()")
        assert result.status is MatchStatus.AMBIGUOUS
        assert result.count == 2
        assert result.span is None
        assert result.message == MSG_AMBIGUOUS

    def test_ambiguity_not_rescued_by_fuzzy(self):
        content = "foo()\n  x\nfoo()\n"
        result = locate(content, "foo()", fuzzy_max_chars=10_000)
        assert result.status is MatchStatus.AMBIGUOUS
        assert result.count == 2

    def test_overlapping_occurrences_count(self):
        assert find_all("aaaa", "aa") == [0, 1, 2]
        assert locate("aaaa", "aa").status is MatchStatus.AMBIGUOUS

    def test_empty_search_not_found(self):
        assert locate("anything", "  \n").status is MatchStatus.NOT_FOUND


class TestFuzzy:
    def test_whitespace_drift(self):
        content = "def f():\n    return 1\n"
        result = locate(content, "def f():\n  return 1")
        assert result.status is MatchStatus.UNIQUE
        assert result.matched_via is MatchMethod.FUZZY
        assert content[slice(*result.span)] == "def f():\n    return 1"

    def test_blank_lines_in_search_ignored(self):
        content = "a = 1\nb = 2\n"
        result = locate(content, "a = 1\n\n\nb = 2  ")
        assert result.status is MatchStatus.UNIQUE
        assert result.span == (0, 11)

    def test_crlf_content(self):
        content = "one\r\ntwo\r\nthree\r\n"
        result = locate(content, "one\ntwo")
        assert result.matched_via is MatchMethod.FUZZY
        assert content[slice(*result.span)] == "one\r\ntwo"

    def test_fuzzy_windows_counted_for_ambiguity(self):
        content = "if x:\n    go()\nelse:\n  if x:\n      go()\n"
        result = locate(content, "if x:\ngo()")
        assert result.status is MatchStatus.AMBIGUOUS
        assert result.matched_via is MatchMethod.FUZZY
        assert result.count == 2

    def test_oversized_search_skips_fuzzy(self):
        content = "alpha\n    beta\n"
        assert locate(content, "alpha\nbeta", fuzzy_max_chars=5).status is MatchStatus.NOT_FOUND
        assert locate(content, "alpha\nbeta", fuzzy_max_chars=50).status is MatchStatus.UNIQUE

    def test_fuzzy_windows_helper(self):
        assert fuzzy_windows("a\nb\na\nb", "a\nb") == [(0, 3), (4, 7)]
        assert fuzzy_windows("a\nb", "\n\n") == []


class TestNotFound:
    def test_absent_text(self):
        result = locate("x = 1\n", "y = 2")
        assert result.status is MatchStatus.NOT_FOUND
        assert result.message == MSG_NOT_FOUND

    def test_locating_again_after_apply_finds_nothing(self):
        content = "x();\nfoo();\n"
        result = locate(content, "foo();")
        start, end = result.span
        patched = content[:start] + "bar();" + content[end:]
        assert locate(patched, "foo();").status is MatchStatus.NOT_FOUND


class TestResolveTargetPath:
    PATHS = ["proj/src/a.js", "proj/src/util/b.js", "proj/lib/b.js", "proj/README.md"]

    def test_exact(self):
        assert resolve_target_path("proj/src/a.js", self.PATHS) == "proj/src/a.js"

    def test_suffix(self):
        assert resolve_target_path("src/a.js", self.PATHS) == "proj/src/a.js"
        assert resolve_target_path("./src/util/b.js", self.PATHS) == "proj/src/util/b.js"

    def test_target_with_extra_prefix(self):
        assert resolve_target_path("/home/me/proj/README.md", ["README.md"]) == "README.md"

    def test_basename(self):
        assert resolve_target_path("a.js", self.PATHS) == "proj/src/a.js"

    def test_ambiguous_basename(self):
        assert resolve_target_path("b.js", self.PATHS) is None

    def test_unknown(self):
        assert resolve_target_path("nope.py", self.PATHS) is None


class TestLocateAll:
    def test_results_in_record_order(self):
        files = {"proj/a.js": "foo();\n", "proj/b.js": "bar();\nbar();\n"}
        records = [
            PatchRecord("a.js", "foo();", "baz();", 0),
            PatchRecord("b.js", "bar();", "qux();", 1),
            PatchRecord("c.js", "x", "y", 2),
        ]
        results = locate_all(files, records)
        assert [r.status for r in results] == [
            MatchStatus.UNIQUE, MatchStatus.AMBIGUOUS, MatchStatus.NOT_FOUND,
        ]
        assert results[0].file_path == "proj/a.js"
        assert results[2].message == MSG_NO_FILE
        assert results[2].file_path is None
