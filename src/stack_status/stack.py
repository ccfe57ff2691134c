"""Parsing of `gt log short` tree output into an ordered branch list."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import BranchDescriptor

logger = logging.getLogger(__name__)

TRUNK_NAMES = frozenset({"main", "master", "develop", "trunk"})

CURRENT_GLYPH = "◉"
OTHER_GLYPHS = ("◯", "●")

# Connectors and corners gt draws around branch names
TREE_CHARS = "│─┌┐└┘├┤┬┴┼╭╮╯╰║═"


def _strip_tree(text: str) -> str:
    """Strip whitespace (including Unicode spaces) and connectors from both ends."""
    while True:
        stripped = text.strip().strip(TREE_CHARS)
        if stripped == text:
            return text
        text = stripped


def _find_glyph(line: str) -> tuple[int, bool] | None:
    """Return (index, is_current) of the first branch glyph on a line."""
    current = line.find(CURRENT_GLYPH)
    others = [i for i in (line.find(g) for g in OTHER_GLYPHS) if i >= 0]
    other = min(others) if others else -1

    if current < 0 and other < 0:
        return None
    if other < 0 or (current >= 0 and current <= other):
        return current, True
    return other, False


def parse_stack(
    raw_text: str,
    trunk_names: Iterable[str] = TRUNK_NAMES,
) -> list[BranchDescriptor]:
    """Parse a Graphite stack listing, e.g.::

        ◉ feature-c
        │
        ◯ feature-b
        │
        ◯ main

    Lines without a branch glyph and pure connector lines are skipped, so this
    never raises. Order of the listing is kept.
    """
    trunks = frozenset(trunk_names)
    branches: list[BranchDescriptor] = []

    for lineno, line in enumerate(raw_text.splitlines(), start=1):
        if not line.strip():
            continue

        found = _find_glyph(line)
        if found is None:
            logger.debug("Skipping stack line %d without branch glyph: %r", lineno, line)
            continue

        index, is_current = found
        name = _strip_tree(line[index + 1:])
        if not name:
            continue

        branches.append(
            BranchDescriptor(name=name, is_current=is_current, is_trunk=name in trunks)
        )

    return branches


def mark_current(branches: list[BranchDescriptor], name: str) -> list[BranchDescriptor]:
    """Return a copy of the stack where only ``name`` is marked current."""
    return [
        BranchDescriptor(name=b.name, is_current=b.name == name, is_trunk=b.is_trunk)
        for b in branches
    ]


def fallback_stack(current_branch: str) -> list[BranchDescriptor]:
    """Single-branch stack used when no topology is available."""
    return [BranchDescriptor(name=current_branch, is_current=True, is_trunk=False)]
