"""
Hunk review — show each located hunk as a unified diff of its SEARCH and
REPLACE text and let the user switch hunks on or off before anything is
applied.

Includes a Textual-based interactive reviewer that pauses the CLI until the
user approves or rejects the hunk set.
"""

from __future__ import annotations

import difflib
import logging

from .editing.patch_applier import Hunk

logger = logging.getLogger(__name__)


def hunk_diff(hunk: Hunk) -> str:
    """Unified diff of the hunk's search text against its replacement."""
    record = hunk.result.record
    if record is None:
        return ""
    path = hunk.file_path or record.target_file
    diff = difflib.unified_diff(
        record.search.splitlines(),
        record.replace.splitlines(),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
        lineterm="",
    )
    return "\n".join(diff)


def format_colored_diff(diff_text: str) -> str:
    """Add ANSI colors to a unified diff string.

    Green for additions (+), red for deletions (-), cyan for @@ hunks.
    """
    colored: list[str] = []
    for line in diff_text.splitlines():
        if line.startswith("+++") or line.startswith("---"):
            colored.append(f"\033[1m{line}\033[0m")  # bold
        elif line.startswith("@@"):
            colored.append(f"\033[36m{line}\033[0m")  # cyan
        elif line.startswith("+"):
            colored.append(f"\033[32m{line}\033[0m")  # green
        elif line.startswith("-"):
            colored.append(f"\033[31m{line}\033[0m")  # red
        else:
            colored.append(line)
    return "\n".join(colored)


def _format_rich_diff(diff_text: str) -> str:
    """Convert unified diff text to Rich markup for Textual display."""
    markup_lines: list[str] = []
    for line in diff_text.splitlines():
        escaped = line.replace("[", "\\[")
        if line.startswith("+++") or line.startswith("---"):
            markup_lines.append(f"[bold white]{escaped}[/bold white]")
        elif line.startswith("@@"):
            markup_lines.append(f"[cyan]{escaped}[/cyan]")
        elif line.startswith("+"):
            markup_lines.append(f"[green]{escaped}[/green]")
        elif line.startswith("-"):
            markup_lines.append(f"[red]{escaped}[/red]")
        else:
            markup_lines.append(escaped)
    return "\n".join(markup_lines)


def hunk_label(hunk: Hunk) -> str:
    """One-line summary: order, target file and match status."""
    result = hunk.result
    via = f" ({result.matched_via.value})" if result.matched_via else ""
    target = hunk.file_path or (result.record.target_file if result.record else "?")
    return f"#{hunk.order + 1} {target}: {result.message or result.status.value}{via}"


def review_hunks(hunks: list[Hunk], auto: bool = False) -> bool:
    """Let the user review *hunks* and toggle their ``active`` flags.

    Returns ``True`` if the user approves (or in auto mode, where the
    default flags are kept and the diffs are only logged).  On rejection
    the original flags are restored and ``False`` is returned.
    """
    if not hunks:
        return True

    if auto:
        for hunk in hunks:
            logger.info("[Review] %s\n%s", hunk_label(hunk), hunk_diff(hunk))
        return True

    original = [h.active for h in hunks]
    approved = _textual_hunk_review(hunks)
    if not approved:
        for hunk, active in zip(hunks, original):
            hunk.active = active
    return approved


def _textual_hunk_review(hunks: list[Hunk]) -> bool:
    """Launch a Textual app listing hunks with their diffs."""
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Horizontal, VerticalScroll
    from textual.widgets import Button, Checkbox, Footer, Static

    class HunkReviewApp(App):
        """Interactive hunk reviewer with per-hunk toggles."""

        CSS = """
        Screen {
            background: $surface;
        }
        #title-bar {
            dock: top;
            height: 3;
            background: #1a1a2e;
            color: #e94560;
            text-align: center;
            padding: 1;
            text-style: bold;
        }
        #hunk-scroll {
            height: 1fr;
            margin: 1 2;
            border: round #444;
            padding: 1;
        }
        .diff-content {
            margin: 0 0 1 4;
        }
        #action-buttons {
            dock: bottom;
            height: 3;
            align: center middle;
            padding: 0 2;
        }
        #action-buttons Button {
            margin: 0 2;
            min-width: 20;
        }
        """

        BINDINGS = [
            Binding("a", "approve", "Apply"),
            Binding("ctrl+s", "approve", "Apply"),
            Binding("t", "toggle_all", "Toggle all"),
            Binding("escape", "reject", "Cancel"),
            Binding("r", "reject", "Cancel"),
        ]

        def __init__(self, hunks: list[Hunk]) -> None:
            super().__init__()
            self._hunks = hunks
            self._approved = False

        def compose(self) -> ComposeResult:
            ready = sum(1 for h in self._hunks if h.result.is_unique)
            yield Static(
                f" ━━  Hunk Review — {ready}/{len(self._hunks)} ready  ━━ ",
                id="title-bar",
            )
            with VerticalScroll(id="hunk-scroll"):
                for index, hunk in enumerate(self._hunks):
                    yield Checkbox(
                        hunk_label(hunk),
                        value=hunk.active,
                        id=f"hunk-{index}",
                        disabled=not hunk.result.is_unique,
                    )
                    yield Static(_format_rich_diff(hunk_diff(hunk)), classes="diff-content")
            with Horizontal(id="action-buttons"):
                yield Button("✔ Apply", id="approve-btn", variant="success")
                yield Button("✕ Cancel", id="reject-btn", variant="error")
            yield Footer()

        def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
            index = int(event.checkbox.id.split("-", 1)[1])
            self._hunks[index].active = event.value

        def on_button_pressed(self, event: Button.Pressed) -> None:
            self._approved = event.button.id == "approve-btn"
            self.exit()

        def action_toggle_all(self) -> None:
            enable = not all(h.active for h in self._hunks if h.result.is_unique)
            for index, hunk in enumerate(self._hunks):
                if hunk.result.is_unique:
                    self.query_one(f"#hunk-{index}", Checkbox).value = enable

        def action_approve(self) -> None:
            self._approved = True
            self.exit()

        def action_reject(self) -> None:
            self._approved = False
            self.exit()

    app = HunkReviewApp(hunks)
    app.run()
    return app._approved
