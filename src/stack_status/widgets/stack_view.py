"""Stack view widget."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.text import Text
from textual.widgets import Static

from ..render import render_stack

if TYPE_CHECKING:
    from ..models import StackStatus


class StackView(Static):
    """The stack tree with per-branch check summaries."""

    def __init__(self, **kwargs) -> None:
        super().__init__(Text.from_markup("[dim]Loading stack...[/dim]"), **kwargs)
        self.status: StackStatus | None = None
        self.details = False

    def show(self, status: StackStatus, details: bool) -> None:
        """Replace the displayed snapshot."""
        self.status = status
        self.details = details
        self.update(render_stack(status, details))

    def set_details(self, details: bool) -> None:
        """Re-render the current snapshot with or without check rows."""
        self.details = details
        if self.status is not None:
            self.update(render_stack(self.status, details))
