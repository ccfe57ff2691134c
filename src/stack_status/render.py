"""Rendering of stack snapshots as rich text or JSON."""

from __future__ import annotations

import json

from rich.console import Console
from rich.text import Text

from .models import BranchStatus, StackStatus

HEADER_WIDTH = 57

HELP_TEXT = "[bold]\\[q][/bold] quit  [bold]\\[r][/bold] refresh  [bold]\\[d][/bold] details"
COMPLETE_MESSAGE = "All checks complete. Exiting watch mode."


def format_duration(secs: int) -> str:
    """Format seconds as 42s, 3m5s or 1h2m."""
    if secs < 60:
        return f"{secs}s"
    if secs < 3600:
        return f"{secs // 60}m{secs % 60}s"
    return f"{secs // 3600}h{(secs % 3600) // 60}m"


def to_json(status: StackStatus) -> str:
    return json.dumps(status.to_dict(), indent=2)


def _branch_indicator(branch: BranchStatus) -> Text:
    if branch.is_trunk:
        return Text("●", style="bright_black")
    if branch.is_current:
        return Text("◉", style="blue")
    return Text("◯", style="dim")


def render_branch(branch: BranchStatus, details: bool = False) -> Text:
    """Render one branch: name line, summary line and optional check rows."""
    text = Text()
    text.append_text(_branch_indicator(branch))
    text.append(" ")
    text.append(branch.branch, style="bold" if branch.is_current else "")
    if branch.pr is not None:
        text.append(f" (#{branch.pr})", style="dim")

    if branch.summary is not None:
        overall = branch.summary.overall
        text.append("\n  ")
        text.append(f"{overall.icon} {branch.summary.text}", style=overall.style)
    elif not branch.is_trunk:
        text.append("\n  ")
        text.append("no PR", style="dim")

    if details and not branch.is_trunk and branch.checks:
        for check in branch.checks:
            duration = f" ({format_duration(check.duration_secs)})" if check.duration_secs is not None else ""
            text.append("\n    ")
            text.append("├─", style="dim")
            text.append(" ")
            text.append(f"{check.status.icon} {check.name}{duration}", style=check.status.style)

    return text


def render_stack(status: StackStatus, details: bool = False) -> Text:
    """Render a full snapshot with header and branch connectors."""
    title = "Stack Status"
    updated = f"Updated: {status.timestamp}"
    gap = max(1, HEADER_WIDTH - 4 - len(title) - len(updated))

    text = Text()
    text.append("╭" + "─" * HEADER_WIDTH + "╮\n", style="dim")
    text.append("│  ", style="dim")
    text.append(title, style="bold")
    text.append(" " * gap + "Updated: ")
    text.append(status.timestamp, style="cyan")
    text.append("  │\n", style="dim")
    text.append("╰" + "─" * HEADER_WIDTH + "╯\n\n", style="dim")

    for i, branch in enumerate(status.branches):
        text.append_text(render_branch(branch, details))
        text.append("\n")
        if i < len(status.branches) - 1:
            text.append("│\n", style="dim")

    return text


class ConsoleSink:
    """Watch-mode output to a plain console, without key input.

    Used for JSON output and when stdout is not a terminal.
    """

    def __init__(self, console: Console | None = None, as_json: bool = False) -> None:
        self.console = console or Console()
        self.as_json = as_json
        self.restored = 0

    def clear(self) -> None:
        if not self.as_json and self.console.is_terminal:
            self.console.clear()

    def render(self, status: StackStatus, details: bool) -> None:
        if self.as_json:
            self.console.print_json(to_json(status))
        else:
            self.console.print(render_stack(status, details))

    def render_help(self) -> None:
        if not self.as_json:
            self.console.rule(style="dim")
            self.console.print("Press Ctrl+C to stop", style="dim")

    def render_complete(self) -> None:
        if not self.as_json:
            self.console.print()
            self.console.print(COMPLETE_MESSAGE, style="green")

    def poll_key(self) -> str | None:
        return None

    def restore(self) -> None:
        self.restored += 1
        self.console.show_cursor(True)
