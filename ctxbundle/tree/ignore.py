"""
Ignore resolver — gitignore-compatible rule compilation and scoped
"last match wins" evaluation.

Rules are grouped into :class:`ScopeFrame` objects, one per directory that
defines its own ignore file, plus an outermost default frame carrying the
built-in exclusions.  Frames are immutable; a scope stack is a plain tuple
so that sibling subtrees can share their parent's stack safely.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_CONTENT = """
# --- Version Control & IDEs ---
.git
.svn
.hg
.idea
.vscode
.vs
.history
*.swp

# --- Operating System Files ---
.DS_Store
Thumbs.db
desktop.ini

# --- Dependencies & Packages ---
node_modules
bower_components
jspm_packages
web_modules
venv
.venv
__pycache__
.mvn
vendor
.bundle

# --- Build Outputs & Dist ---
dist
build
out
target
coverage
.nuxt
.next
.svelte-kit
.output
.cache
.parcel-cache
.turbo
public/build
storybook-static
*.egg-info
.tox
.mypy_cache
.pytest_cache
.gradle
.terraform

# --- Logs & Debug ---
*.log
npm-debug.log*
yarn-error.log*
yarn-debug.log*

# --- Environment & Secrets ---
.env
.env.local
.env.*.local
*.pem
*.key
id_rsa
id_rsa.pub

# --- Binary / Media Assets ---
*.png
*.jpg
*.jpeg
*.gif
*.webp
*.ico
*.bmp
*.tiff
*.psd
*.mp4
*.mov
*.avi
*.mkv
*.webm
*.mp3
*.wav
*.flac
*.ogg

# --- Binary / Documents & Fonts ---
*.pdf
*.doc
*.docx
*.xls
*.xlsx
*.ppt
*.pptx
*.zip
*.tar
*.gz
*.rar
*.7z
*.exe
*.dll
*.so
*.dylib
*.bin
*.woff
*.woff2
*.ttf
*.eot
*.otf
*.wasm
*.pyc

# --- Lock Files ---
package-lock.json
yarn.lock
pnpm-lock.yaml
bun.lockb
poetry.lock
Gemfile.lock
composer.lock
Cargo.lock
uv.lock

# --- Minified & Source Maps ---
*.min.js
*.min.css
*.map
"""


@dataclass(frozen=True)
class IgnoreRule:
    """A single rule line: glob pattern plus negation flag."""
    pattern: str
    negated: bool = False


@dataclass(frozen=True)
class ScopeFrame:
    """Rules defined by one ignore file, anchored at *base_path*."""
    base_path: str
    rules: tuple[IgnoreRule, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Matcher:
    """Compiled form of a rule pattern."""
    pattern: str
    rooted: bool
    regex: re.Pattern
    literal: str | None = None

    def matches(self, rel_path: str) -> bool:
        """Check *rel_path* (relative to the owning scope) against the rule."""
        if self.rooted:
            return self.regex.fullmatch(rel_path) is not None
        segments = rel_path.split("/")
        if self.literal is not None:
            return self.literal in segments
        return any(self.regex.fullmatch(seg) for seg in segments)


def push_scope(
    scopes: tuple[ScopeFrame, ...],
    frame: ScopeFrame,
) -> tuple[ScopeFrame, ...]:
    """Return a new scope stack with *frame* as the deepest entry."""
    return scopes + (frame,)


def _glob_to_regex(pattern: str) -> str:
    """Translate a gitignore glob into a regex source string."""
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**", i):
                j = i + 2
                at_segment_start = i == 0 or pattern[i - 1] == "/"
                if at_segment_start and j < n and pattern[j] == "/":
                    # "**/" may also match zero directories
                    out.append("(?:.*/)?")
                    i = j + 1
                    continue
                out.append(".*")
                i = j
                continue
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            j = pattern.find("]", i + 1)
            if j == -1:
                raise ValueError(f"unbalanced character class in {pattern!r}")
            body = pattern[i + 1:j]
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append("[" + body.replace("\\", "\\\\") + "]")
            i = j + 1
        elif c == "\\" and i + 1 < n:
            out.append(re.escape(pattern[i + 1]))
            i += 2
        else:
            out.append(re.escape(c))
            i += 1
    return "".join(out)


class IgnoreResolver:
    """Compile ignore rules and decide ignore/keep for paths.

    Parameters
    ----------
    extra_rules:
        Additional rule lines merged into the outermost default frame
        (typically ``Config.EXTRA_IGNORE_RULES``).
    use_defaults:
        When False the built-in exclusion list is not loaded.
    """

    def __init__(
        self,
        extra_rules: list[str] | None = None,
        use_defaults: bool = True,
    ) -> None:
        self._cache: dict[str, Matcher | None] = {}
        defaults: list[IgnoreRule] = []
        if use_defaults:
            defaults.extend(self.parse_rules(DEFAULT_IGNORE_CONTENT))
        if extra_rules:
            defaults.extend(self.parse_rules("\n".join(extra_rules)))
        self._default_rules = tuple(defaults)

    # ------------------------------------------------------------------
    # Rule parsing / compilation
    # ------------------------------------------------------------------

    def parse_rules(self, text: str | None) -> list[IgnoreRule]:
        """Parse ignore-file text into rules, dropping malformed lines."""
        if not text:
            return []
        rules: list[IgnoreRule] = []
        for raw in text.splitlines():
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            negated = False
            if line.startswith("!"):
                negated = True
                line = line[1:]
            elif line.startswith("\\!") or line.startswith("\\#"):
                line = line[1:]
            if self.compile(line) is None:
                logger.debug("[Ignore] Dropping malformed rule: %r", raw)
                continue
            rules.append(IgnoreRule(pattern=line, negated=negated))
        return rules

    def compile(self, pattern: str) -> Matcher | None:
        """Compile *pattern* into a :class:`Matcher` (cached by pattern).

        Returns None when the pattern is empty or cannot be compiled.
        """
        if pattern in self._cache:
            return self._cache[pattern]

        matcher = self._compile_uncached(pattern)
        self._cache[pattern] = matcher
        return matcher

    @staticmethod
    def _compile_uncached(pattern: str) -> Matcher | None:
        clean = pattern.rstrip("/")
        rooted = clean.startswith("/") or "/" in clean
        if clean.startswith("/"):
            clean = clean[1:]
        if not clean:
            return None

        try:
            src = _glob_to_regex(clean)
            if rooted:
                regex = re.compile(f"{src}(?:/.*)?", re.DOTALL)
            else:
                regex = re.compile(src, re.DOTALL)
        except (ValueError, re.error) as exc:
            logger.debug("[Ignore] Cannot compile %r: %s", pattern, exc)
            return None

        literal = None
        if not rooted and not any(ch in clean for ch in "*?[\\"):
            literal = clean
        return Matcher(pattern=pattern, rooted=rooted, regex=regex, literal=literal)

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def default_frame(self, base_path: str = "") -> ScopeFrame:
        """Return the built-in exclusion frame, optionally anchored."""
        return ScopeFrame(base_path=base_path, rules=self._default_rules)

    def frame_from_text(self, base_path: str, text: str | None) -> ScopeFrame:
        """Build a frame from the content of an ignore file."""
        return ScopeFrame(base_path=base_path, rules=tuple(self.parse_rules(text)))

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def is_ignored(self, path: str, scopes) -> bool:
        """Return True if *path* is ignored under the scope stack.

        Frames are evaluated root to leaf and rules in declaration order;
        the last matching rule decides.
        """
        norm = path.replace("\\", "/")
        while norm.startswith("./"):
            norm = norm[2:]
        norm = norm.strip("/")

        ignored = False
        for frame in scopes:
            base = frame.base_path.replace("\\", "/").strip("/")
            if base:
                if not norm.startswith(base + "/"):
                    continue
                rel = norm[len(base) + 1:]
            else:
                rel = norm
            if not rel:
                continue

            for rule in frame.rules:
                matcher = self.compile(rule.pattern)
                if matcher is not None and matcher.matches(rel):
                    ignored = not rule.negated
        return ignored
