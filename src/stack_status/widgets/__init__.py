"""TUI widgets for stack status."""

from .stack_view import StackView

__all__ = ["StackView"]
