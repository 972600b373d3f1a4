"""Tests for the IgnoreResolver (rule compilation and scoped evaluation)."""

import pytest

from ctxbundle.tree.ignore import IgnoreResolver, IgnoreRule, ScopeFrame, push_scope


@pytest.fixture
def resolver():
    return IgnoreResolver(use_defaults=False)


def _frame(resolver, text, base=""):
    return resolver.frame_from_text(base, text)


class TestCompile:
    def test_cached_by_pattern(self, resolver):
        assert resolver.compile("*.log") is resolver.compile("*.log")

    def test_trailing_slash_stripped(self, resolver):
        matcher = resolver.compile("logs/")
        assert matcher.matches("logs")
        assert matcher.matches("a/logs/today.txt")

    def test_empty_pattern_returns_none(self, resolver):
        assert resolver.compile("/") is None
        assert resolver.compile("") is None

    def test_unbalanced_class_returns_none(self, resolver):
        assert resolver.compile("[abc") is None

    def test_single_star_stays_in_segment(self, resolver):
        matcher = resolver.compile("src/*.js")
        assert matcher.matches("src/app.js")
        assert not matcher.matches("src/lib/app.js")

    def test_double_star_crosses_segments(self, resolver):
        matcher = resolver.compile("docs/**/*.md")
        assert matcher.matches("docs/a.md")
        assert matcher.matches("docs/x/y/a.md")
        assert not matcher.matches("other/a.md")

    def test_question_mark_single_char(self, resolver):
        matcher = resolver.compile("a?.txt")
        assert matcher.matches("ab.txt")
        assert not matcher.matches("abc.txt")

    def test_regex_metacharacters_escaped(self, resolver):
        matcher = resolver.compile("a+b.txt")
        assert matcher.matches("a+b.txt")
        assert not matcher.matches("aab.txt")

    def test_character_class_negation(self, resolver):
        matcher = resolver.compile("file[!0-9].txt")
        assert matcher.matches("filea.txt")
        assert not matcher.matches("file1.txt")


class TestParseRules:
    def test_skips_blank_lines_and_comments(self, resolver):
        rules = resolver.parse_rules("\n# comment\n*.log\n\n")
        assert rules == [IgnoreRule("*.log")]

    def test_negation(self, resolver):
        rules = resolver.parse_rules("!keep.txt")
        assert rules == [IgnoreRule("keep.txt", negated=True)]

    def test_escaped_bang_and_hash(self, resolver):
        rules = resolver.parse_rules("\\!important\n\\#notes")
        assert rules == [IgnoreRule("!important"), IgnoreRule("#notes")]

    def test_malformed_lines_dropped(self, resolver):
        rules = resolver.parse_rules("[broken\n*.tmp")
        assert rules == [IgnoreRule("*.tmp")]

    def test_none_text(self, resolver):
        assert resolver.parse_rules(None) == []


class TestIsIgnored:
    def test_glob_scenario(self, resolver):
        scopes = (_frame(resolver, "*.log"),)
        paths = ["debug.log", "src/app.log", "src/app.txt"]
        assert [resolver.is_ignored(p, scopes) for p in paths] == [True, True, False]

    def test_last_match_wins(self, resolver):
        scopes = (_frame(resolver, "build\n!build/keep.txt"),)
        assert resolver.is_ignored("build/keep.txt", scopes) is False
        assert resolver.is_ignored("build/tmp.o", scopes) is True

    def test_later_rule_can_reignore(self, resolver):
        scopes = (_frame(resolver, "*.txt\n!a.txt\na.txt"),)
        assert resolver.is_ignored("a.txt", scopes) is True

    def test_rooted_rule_only_at_base(self, resolver):
        scopes = (_frame(resolver, "/dist"),)
        assert resolver.is_ignored("dist", scopes) is True
        assert resolver.is_ignored("dist/bundle.js", scopes) is True
        assert resolver.is_ignored("src/dist", scopes) is False

    def test_bare_rule_at_any_depth(self, resolver):
        scopes = (_frame(resolver, "dist"),)
        assert resolver.is_ignored("dist", scopes) is True
        assert resolver.is_ignored("src/dist", scopes) is True
        assert resolver.is_ignored("src/distribution", scopes) is False

    def test_no_match_is_not_ignored(self, resolver):
        assert resolver.is_ignored("anything.py", ()) is False

    def test_frame_applies_only_below_its_base(self, resolver):
        scopes = (_frame(resolver, "/gen", base="proj/src"),)
        assert resolver.is_ignored("proj/src/gen/out.js", scopes) is True
        assert resolver.is_ignored("proj/gen/out.js", scopes) is False

    def test_deeper_frame_overrides_shallower(self, resolver):
        root = _frame(resolver, "*.tmp", base="proj")
        nested = _frame(resolver, "!keep.tmp", base="proj/src")
        scopes = push_scope((root,), nested)
        assert resolver.is_ignored("proj/src/keep.tmp", scopes) is False
        assert resolver.is_ignored("proj/src/other.tmp", scopes) is True
        assert resolver.is_ignored("proj/keep.tmp", scopes) is True

    def test_windows_and_dot_slash_paths_normalized(self, resolver):
        scopes = (_frame(resolver, "/out"),)
        assert resolver.is_ignored(".\\out\\a.txt", scopes) is True
        assert resolver.is_ignored("./out/a.txt", scopes) is True


class TestScopes:
    def test_push_scope_returns_new_tuple(self, resolver):
        base = (ScopeFrame("a"),)
        pushed = push_scope(base, ScopeFrame("a/b"))
        assert len(base) == 1
        assert len(pushed) == 2

    def test_default_frame_excludes_common_noise(self):
        resolver = IgnoreResolver()
        scopes = (resolver.default_frame("proj"),)
        assert resolver.is_ignored("proj/node_modules", scopes)
        assert resolver.is_ignored("proj/.git", scopes)
        assert resolver.is_ignored("proj/package-lock.json", scopes)
        assert resolver.is_ignored("proj/public/build", scopes)
        assert not resolver.is_ignored("proj/src/index.js", scopes)

    def test_defaults_can_be_disabled(self):
        resolver = IgnoreResolver(use_defaults=False)
        assert resolver.default_frame().rules == ()

    def test_extra_rules_merged_into_default_frame(self):
        resolver = IgnoreResolver(extra_rules=["*.secret"], use_defaults=False)
        scopes = (resolver.default_frame(),)
        assert resolver.is_ignored("config/db.secret", scopes)
