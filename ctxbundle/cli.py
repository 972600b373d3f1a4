"""
`ctxbundle` command line.

Commands
--------
ctxbundle tree DIR                                  -- print the filtered project tree
ctxbundle pack DIR [-o FILE] [--exclude GLOB]...    -- build a context document
ctxbundle unpack BLOB -o DIR                        -- write the files of a document
ctxbundle unpack BLOB --zip FILE [--strip-root]     -- zip the files of a document
ctxbundle patch PROPOSAL --blob FILE [-o FILE]      -- apply SEARCH/REPLACE blocks to a document
ctxbundle patch PROPOSAL --dir DIR [--review]       -- apply SEARCH/REPLACE blocks to files on disk
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from tqdm import tqdm

from .config import Config
from .context.archive import archive_file_name, materialize, safe_write
from .editing.patch_applier import ApplyResult, OverlappingHunksError
from .errors import CtxBundleError
from .review import format_colored_diff, hunk_diff, hunk_label, review_hunks
from .scanner import collect_files
from .session import ContextSession, common_root

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
        return f.read()


def _open_session(args: argparse.Namespace) -> ContextSession:
    config = Config.load(args.config)
    excludes = getattr(args, "exclude", None) or []
    if excludes:
        config.EXTRA_IGNORE_RULES = list(config.EXTRA_IGNORE_RULES) + list(excludes)
    return ContextSession(config)


def _load_directory(session: ContextSession, directory: str) -> None:
    if not os.path.isdir(directory):
        raise CtxBundleError(f"Not a directory: {directory}")
    session.load_files(collect_files(directory, session.config.MAX_FILE_BYTES))


def _strip_root(path: str, root: str | None) -> str:
    if root and path.startswith(root + "/"):
        return path[len(root) + 1:]
    return path


def _print_report(result: ApplyResult) -> None:
    print(f"\nApplied {result.hunks_applied} hunk(s), skipped {result.hunks_skipped}")
    for report in result.reports:
        mark = "✔" if report.applied else "✕"
        line = f"  {mark} #{report.order + 1} {report.file_path or '?'}"
        if not report.applied:
            line += f"  ({report.reason})"
        print(line)


# ---------------------------------------------------------------------------
# Sub-command handlers
# ---------------------------------------------------------------------------

def _cmd_tree(args: argparse.Namespace) -> int:
    """Print the pruned project tree."""
    with _open_session(args) as session:
        _load_directory(session, args.directory)
        print(session.tree_text(), end="")
    return 0


def _cmd_pack(args: argparse.Namespace) -> int:
    """Scan a directory and serialize every surviving file."""
    with _open_session(args) as session:
        _load_directory(session, args.directory)

        # Read up front so the progress bar tracks the slow part
        for node in tqdm(session.selected_files(), unit="file", desc="Reading",
                         disable=args.output is None):
            text = node.read()
            node.content = lambda text=text: text

        blob = session.build_context()
        stats = session.selection_stats()

    print(stats.summary(), file=sys.stderr)
    if args.output:
        safe_write(args.output, blob)
        print(f"Wrote {len(session.selected_files())} file(s) to {args.output}")
    else:
        sys.stdout.write(blob)
    return 0


def _cmd_unpack(args: argparse.Namespace) -> int:
    """Materialize the files of a context document."""
    blob = _read_text(args.blob)
    with _open_session(args) as session:
        files = session.files_from_blob(blob)
        strip_prefix = common_root(files) if args.strip_root else None

        if args.zip:
            response = session.request_archive(blob, strip_root=args.strip_root).result()
            target = args.zip
            if os.path.isdir(target):
                target = os.path.join(target, archive_file_name(common_root(files) or ""))
            with open(target, "wb") as f:
                f.write(response.data)
            print(f"Archived {response.count} file(s) to {target}")
            return 0

        results = materialize(list(files.items()), args.output, strip_prefix)

    failed = [r for r in results if not r.ok]
    print(f"Wrote {len(results) - len(failed)} file(s) to {args.output}")
    for result in failed:
        print(f"  ✕ {result.path}: {result.error}", file=sys.stderr)
    return 1 if failed else 0


def _cmd_patch(args: argparse.Namespace) -> int:
    """Parse a proposal, review its hunks and apply them."""
    proposal = _read_text(args.proposal)

    with _open_session(args) as session:
        files = None
        if args.blob:
            session.blob = _read_text(args.blob)
            hunks = session.review_proposal(proposal)
        else:
            _load_directory(session, args.dir)
            files = {node.id: node.read() for node in session.selected_files()}
            hunks = session.review_proposal(proposal, files)

        if not hunks:
            print("No SEARCH/REPLACE blocks found in proposal", file=sys.stderr)
            return 1

        print(f"Found {len(hunks)} hunk(s):")
        for hunk in hunks:
            print(f"  {'●' if hunk.active else '○'} {hunk_label(hunk)}")

        if not review_hunks(hunks, auto=not args.review):
            session.cancel_proposal()
            print("Patch cancelled")
            return 1

        if args.dry_run:
            for hunk in hunks:
                if hunk.active:
                    print(f"\n{'─' * 60}")
                    print(format_colored_diff(hunk_diff(hunk)))
            return 0

        try:
            if files is None:
                result = session.apply_to_blob()
                safe_write(args.output or args.blob, session.blob)
            else:
                updated, result = session.apply_to_files(files)
                changed = {
                    _strip_root(path, session.root_name): content
                    for path, content in updated.items()
                    if content != files[path]
                }
                written = session.applier.write_files(args.output or args.dir, changed)
                for failure in written.io_failures:
                    print(f"  ✕ {failure}", file=sys.stderr)
                if written.io_failures:
                    result.success = False
        except OverlappingHunksError as exc:
            print(f"Patch rejected: {exc}", file=sys.stderr)
            return 1

    _print_report(result)
    return 0 if result.success else 1


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Build and return the `ctxbundle` argument parser."""
    parser = argparse.ArgumentParser(
        prog="ctxbundle",
        description="Bundle project files into a context document and apply edits back",
    )
    parser.add_argument(
        "--config", default=None, metavar="FILE",
        help="Path to a .ctxbundle.yaml config file",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="cmd", metavar="COMMAND")
    subparsers.required = True

    # --- tree ---
    tree_p = subparsers.add_parser("tree", help="Print the filtered project tree")
    tree_p.add_argument("directory", help="Project directory")
    tree_p.add_argument(
        "--exclude", action="append", default=[], metavar="GLOB",
        help="Extra ignore rule (repeatable)",
    )
    tree_p.set_defaults(func=_cmd_tree)

    # --- pack ---
    pack_p = subparsers.add_parser("pack", help="Serialize a project into a context document")
    pack_p.add_argument("directory", help="Project directory")
    pack_p.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")
    pack_p.add_argument(
        "--exclude", action="append", default=[], metavar="GLOB",
        help="Extra ignore rule (repeatable)",
    )
    pack_p.set_defaults(func=_cmd_pack)

    # --- unpack ---
    unpack_p = subparsers.add_parser("unpack", help="Write out the files of a context document")
    unpack_p.add_argument("blob", help="Context document")
    target = unpack_p.add_mutually_exclusive_group(required=True)
    target.add_argument("-o", "--output", help="Destination directory")
    target.add_argument("--zip", help="Destination zip file (or directory)")
    unpack_p.add_argument(
        "--strip-root", action="store_true",
        help="Drop the project root folder from written paths",
    )
    unpack_p.set_defaults(func=_cmd_unpack)

    # --- patch ---
    patch_p = subparsers.add_parser("patch", help="Apply SEARCH/REPLACE blocks")
    patch_p.add_argument("proposal", help="File holding the edit proposal")
    source = patch_p.add_mutually_exclusive_group(required=True)
    source.add_argument("--blob", help="Context document to patch")
    source.add_argument("--dir", help="Project directory to patch")
    patch_p.add_argument(
        "-o", "--output", default=None,
        help="Write the result here instead of in place",
    )
    patch_p.add_argument(
        "--review", action="store_true",
        help="Review hunks interactively before applying",
    )
    patch_p.add_argument(
        "--dry-run", dest="dry_run", action="store_true",
        help="Show the diffs of active hunks without writing anything",
    )
    patch_p.set_defaults(func=_cmd_patch)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the `ctxbundle` console script.

    Parameters
    ----------
    argv:
        Argument list without the program name.  Defaults to sys.argv.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Configure logging if not already configured
    if not logging.root.handlers:
        level = "DEBUG" if args.verbose else Config.load(args.config).LOG_LEVEL
        logging.basicConfig(
            level=getattr(logging, level, logging.WARNING),
            format="%(levelname)s  %(name)s  %(message)s",
        )

    try:
        return args.func(args)
    except CtxBundleError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
