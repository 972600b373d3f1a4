"""Tests for hunk diff rendering and review approval."""

from ctxbundle import review
from ctxbundle.editing.match_locator import locate
from ctxbundle.editing.patch_applier import Hunk
from ctxbundle.editing.patch_parser import PatchRecord
from ctxbundle.review import format_colored_diff, hunk_diff, hunk_label, review_hunks


def _hunk(content, search, replace, order=0):
    record = PatchRecord("src/a.py", search, replace, order)
    return Hunk.from_result(locate(content, search, record=record, file_path="proj/src/a.py"))


class TestHunkDiff:
    def test_unified_diff_of_search_and_replace(self):
        diff = hunk_diff(_hunk("x = 1\ny = 2\n", "x = 1\ny = 2", "x = 1\ny = 3"))
        lines = diff.splitlines()
        assert lines[0] == "--- a/proj/src/a.py"
        assert lines[1] == "+++ b/proj/src/a.py"
        assert "-y = 2" in lines
        assert "+y = 3" in lines
        assert " x = 1" in lines

    def test_colored(self):
        colored = format_colored_diff("--- a\n+++ b\n@@ -1 +1 @@\n-old\n+new\n same")
        assert "\033[31m-old\033[0m" in colored
        assert "\033[32m+new\033[0m" in colored
        assert "\033[36m@@ -1 +1 @@\033[0m" in colored
        assert colored.endswith(" same")

    def test_label(self):
        assert hunk_label(_hunk("a\n", "a", "b")) == "#1 proj/src/a.py: Ready (exact)"
        assert hunk_label(_hunk("a\na\n", "a", "b", 1)) == "#2 proj/src/a.py: Ambiguous Match (exact)"


class TestReviewHunks:
    def test_nothing_to_review(self):
        assert review_hunks([]) is True

    def test_auto_keeps_defaults(self):
        hunks = [_hunk("a\n", "a", "b"), _hunk("c\nc\n", "c", "d")]
        assert review_hunks(hunks, auto=True) is True
        assert [h.active for h in hunks] == [True, False]

    def test_rejection_restores_flags(self, monkeypatch):
        hunks = [_hunk("a\n", "a", "b")]

        def fake_review(items):
            items[0].active = False
            return False

        monkeypatch.setattr(review, "_textual_hunk_review", fake_review)
        assert review_hunks(hunks) is False
        assert hunks[0].active is True

    def test_approval_keeps_user_choices(self, monkeypatch):
        hunks = [_hunk("a\n", "a", "b"), _hunk("x\n", "x", "y", 1)]

        def fake_review(items):
            items[1].active = False
            return True

        monkeypatch.setattr(review, "_textual_hunk_review", fake_review)
        assert review_hunks(hunks) is True
        assert [h.active for h in hunks] == [True, False]
