"""Watch-mode TUI application."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Static

from .exceptions import StackStatusError
from .render import COMPLETE_MESSAGE, HELP_TEXT
from .watch import LoopState, RefreshLoop
from .widgets.stack_view import StackView

if TYPE_CHECKING:
    from .models import StackStatus

logger = logging.getLogger(__name__)

HELP_SCREEN_TEXT = """
[bold]Stack Status - Keyboard Shortcuts[/bold]

[cyan]Actions[/cyan]
  r             Refresh now
  d             Toggle check details
  q             Quit
  ?             Show this help

[cyan]Branches[/cyan]
  [blue]◉[/blue]             Current branch
  ◯             Other branch in the stack
  [bright_black]●[/bright_black]             Trunk (no PR)

[cyan]Checks[/cyan]
  [green]✓[/green] passed  [red]✗[/red] failed  [yellow]◐[/yellow] running  ○ queued/skipped  ⊘ cancelled

[dim]Watch mode exits by itself once no check is running or queued.[/dim]
[dim]Press any key to close[/dim]
"""


class HelpScreen(ModalScreen[None]):
    """Modal screen showing help."""

    def compose(self) -> ComposeResult:
        yield Static(HELP_SCREEN_TEXT, id="help-content")

    def on_key(self, event: events.Key) -> None:
        """Dismiss on any key."""
        event.stop()
        self.dismiss()


class StatusBar(Static):
    """Status bar showing refresh time and branch counts."""

    def __init__(self) -> None:
        super().__init__("Loading...")
        self.add_class("status-bar")

    def update_stats(self, status: StackStatus, message: str = "") -> None:
        """Update status bar with the latest snapshot."""
        with_pr = sum(1 for b in status.branches if b.pr is not None)
        stats = f"Updated: {status.timestamp} | Branches: {len(status.branches)} | PRs: {with_pr}"
        self.update(f"{message} | {stats}" if message else stats)


class TuiSink:
    """Presents RefreshLoop output inside a StackStatusApp."""

    def __init__(self, app: StackStatusApp) -> None:
        self.app = app

    def clear(self) -> None:
        self.app.query_one(StatusBar).update("Refreshing...")

    def render(self, status: StackStatus, details: bool) -> None:
        self.app.query_one("#stack-view", StackView).show(status, details)
        self.app.query_one(StatusBar).update_stats(status, "Watching")

    def render_help(self) -> None:
        self.app.query_one("#help-bar", Static).update(HELP_TEXT)

    def render_complete(self) -> None:
        status = self.app.refresh_loop.status
        if status is not None:
            self.app.query_one(StatusBar).update_stats(status, COMPLETE_MESSAGE)
        self.app.notify(COMPLETE_MESSAGE, title="Checks complete")

    def poll_key(self) -> str | None:
        keys = self.app.pending_keys
        return keys.popleft() if keys else None

    def restore(self) -> None:
        self.app.leave()


class StackStatusApp(App[None]):
    """Live stack status dashboard driven by a RefreshLoop."""

    ENABLE_COMMAND_PALETTE = False
    TITLE = "Stack Status"

    # Seconds the completion notice stays on screen before exiting
    COMPLETE_GRACE = 1.5

    CSS = """
    #main-container {
        height: 1fr;
    }

    #stack-pane {
        border: solid $primary;
        height: 100%;
        padding: 0 1;
    }

    .status-bar {
        dock: bottom;
        height: 1;
        background: $surface;
        color: $text-muted;
        padding: 0 1;
    }

    #help-bar {
        height: 1;
        color: $text-muted;
    }

    HelpScreen {
        align: center middle;
    }

    #help-content {
        width: 60;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: solid $primary;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("d", "toggle_details", "Details"),
        Binding("question_mark", "help", "Help"),
    ]

    def __init__(
        self,
        fetch: Callable[[], Awaitable[StackStatus]],
        *,
        interval: float,
        details: bool = False,
    ) -> None:
        super().__init__()
        self.refresh_loop = RefreshLoop(fetch, TuiSink(self), interval=interval, details=details)
        self.pending_keys: deque[str] = deque()
        self.failure: StackStatusError | None = None
        self.outcome: LoopState | None = None
        self.restore_count = 0

    def compose(self) -> ComposeResult:
        """Create the UI layout."""
        yield Header(show_clock=True)

        with Vertical(id="main-container"), VerticalScroll(id="stack-pane"):
            yield StackView(id="stack-view")

        yield Static("", id="help-bar")
        yield StatusBar()
        yield Footer()

    async def on_mount(self) -> None:
        """Start the refresh loop when the app starts."""
        self.run_worker(self._watch(), name="refresh-loop", exclusive=True)

    async def _watch(self) -> None:
        try:
            self.outcome = await self.refresh_loop.run()
        except StackStatusError as e:
            logger.debug("Watch loop aborted: %s", e.message)
            self.failure = e

    def leave(self) -> None:
        """Exit the TUI, which hands the terminal back in its normal mode."""
        self.restore_count += 1
        delay = self.COMPLETE_GRACE if self.refresh_loop.state is LoopState.ALL_COMPLETE else 0
        # set_timer does not accept a zero delay
        if delay > 0:
            self.set_timer(delay, self._finish)
        else:
            self.call_later(self._finish)

    def _finish(self) -> None:
        if self.failure is not None:
            self.exit(return_code=1, message=self.failure.message)
        else:
            self.exit()

    # Actions

    async def action_quit(self) -> None:
        """Stop the refresh loop; the app exits once the loop has wound down."""
        if self.refresh_loop.state.is_terminal or self.restore_count:
            self.exit()
            return
        self.refresh_loop.request_stop()

    async def action_refresh(self) -> None:
        """Refresh now instead of waiting for the next tick."""
        if self.refresh_loop.state is LoopState.COMPOSING:
            # Picked up by the key poll once this snapshot is rendered
            self.pending_keys.append("r")
        else:
            self.refresh_loop.request_refresh()

    async def action_toggle_details(self) -> None:
        details = self.refresh_loop.toggle_details()
        self.query_one("#stack-view", StackView).set_details(details)

    async def action_help(self) -> None:
        """Show help modal."""
        await self.push_screen(HelpScreen())
