"""Composition of stack topology and PR/check data into one snapshot."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Protocol

from .checks import summarize_checks
from .config import Config
from .data import GitHubClient, GraphiteClient
from .models import BranchDescriptor, BranchStatus, Check, StackStatus
from .stack import TRUNK_NAMES, fallback_stack, mark_current, parse_stack

logger = logging.getLogger(__name__)


class PullRequestSource(Protocol):
    """What the composer needs from a GitHub client."""

    async def get_pr_for_branch(self, branch: str) -> int | None: ...

    async def get_checks(self, branch: str) -> list[Check]: ...


class StackSource(Protocol):
    """What stack loading needs from a Graphite client."""

    async def get_current_branch(self) -> str: ...

    async def get_stack_text(self) -> str | None: ...


def local_time() -> str:
    return datetime.now().strftime("%H:%M:%S")


async def load_stack(
    graphite: StackSource,
    branch: str | None = None,
    trunk_names: Iterable[str] = TRUNK_NAMES,
) -> list[BranchDescriptor]:
    """Resolve the stack for the current (or given) branch.

    Without gt, or when its output holds no branches, falls back to a single
    non-trunk branch. Failing to resolve the current branch is fatal.
    """
    text = await graphite.get_stack_text()
    branches = parse_stack(text, trunk_names) if text is not None else []

    if not branches:
        if branch is None:
            branch = await graphite.get_current_branch()
        logger.debug("No stack topology available, using %s only", branch)
        return fallback_stack(branch)

    if branch is not None:
        return mark_current(branches, branch)
    return branches


async def compose_status(
    branches: Sequence[BranchDescriptor],
    github: PullRequestSource | None,
    *,
    max_concurrency: int = 4,
    clock: Callable[[], str] = local_time,
) -> StackStatus:
    """Build a StackStatus from the stack and per-branch PR/check lookups.

    Trunk branches never get PR data. Branches without a PR get no checks.
    A failure fetching checks propagates and no snapshot is produced.
    """
    semaphore = asyncio.Semaphore(max_concurrency)

    async def branch_status(descriptor: BranchDescriptor) -> BranchStatus:
        if descriptor.is_trunk or github is None:
            return BranchStatus(
                branch=descriptor.name,
                is_current=descriptor.is_current,
                is_trunk=descriptor.is_trunk,
            )

        async with semaphore:
            pr = await github.get_pr_for_branch(descriptor.name)
            checks = await github.get_checks(descriptor.name) if pr is not None else None

        return BranchStatus(
            branch=descriptor.name,
            is_current=descriptor.is_current,
            is_trunk=False,
            pr=pr,
            checks=tuple(checks) if checks is not None else None,
            summary=summarize_checks(checks) if checks is not None else None,
        )

    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(branch_status(b)) for b in branches]
    except ExceptionGroup as e:
        # Siblings are already cancelled; surface the first lookup failure
        raise e.exceptions[0] from None

    return StackStatus(branches=tuple(t.result() for t in tasks), timestamp=clock())


async def fetch_stack_status(config: Config, branch: str | None = None) -> StackStatus:
    """Probe the CLIs, load the stack and compose a snapshot."""
    graphite = GraphiteClient(config)
    github = GitHubClient(config)
    has_gt, has_gh = await asyncio.gather(graphite.is_installed(), github.is_installed())

    branches = await load_stack(
        graphite if has_gt else _GitOnly(graphite),
        branch,
        config.get_trunk_names(),
    )
    return await compose_status(
        branches,
        github if has_gh else None,
        max_concurrency=config.get_max_concurrency(),
    )


class _GitOnly:
    """Stack source without gt: only the current branch is known."""

    def __init__(self, graphite: GraphiteClient) -> None:
        self._graphite = graphite

    async def get_current_branch(self) -> str:
        return await self._graphite.get_current_branch()

    async def get_stack_text(self) -> str | None:
        return None
