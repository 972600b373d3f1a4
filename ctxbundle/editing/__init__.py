"""SEARCH/REPLACE proposal parsing, match location and hunk application."""

from .patch_parser import (
    PatchParser, PatchRecord, MarkerSyntax, LONG_SYNTAX, COMPACT_SYNTAX,
    SHORT_SYNTAX, detect_syntax,
)
from .match_locator import (
    MatchResult, MatchStatus, MatchMethod, locate, locate_all,
    resolve_target_path,
)
from .patch_applier import (
    PatchApplier, Hunk, HunkReport, ApplyResult, OverlappingHunksError,
    PatchApplyIOFailure, hunks_from_results,
)

__all__ = [
    "PatchParser", "PatchRecord", "MarkerSyntax", "LONG_SYNTAX", "COMPACT_SYNTAX",
    "SHORT_SYNTAX", "detect_syntax",
    "MatchResult", "MatchStatus", "MatchMethod", "locate", "locate_all",
    "resolve_target_path",
    "PatchApplier", "Hunk", "HunkReport", "ApplyResult", "OverlappingHunksError",
    "PatchApplyIOFailure", "hunks_from_results",
]
