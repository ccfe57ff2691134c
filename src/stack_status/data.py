"""Data fetching clients for Graphite, git and GitHub (via CLIs)."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass

from .checks import normalize_checks
from .config import Config
from .exceptions import CommandError, CurrentBranchError
from .models import Check

logger = logging.getLogger(__name__)

# `gh pr checks` exits 1 when a check failed and 8 when checks are pending
GH_CHECKS_OK_CODES = {0, 1, 8}
GH_CHECK_FIELDS = "name,state,conclusion,startedAt,completedAt,detailsUrl,bucket"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of an external command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_command(*cmd: str) -> CommandResult:
    """Run a command and capture its output.

    Raises CommandError when the executable is missing or cannot be run.
    """
    logger.debug("Running %s", " ".join(cmd))
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CommandError(list(cmd), None) from e

    stdout, stderr = await proc.communicate()
    result = CommandResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )
    logger.debug("%s exited with %d", cmd[0], result.returncode)
    return result


async def is_installed(command: str) -> bool:
    """Check whether a CLI is available by running `<command> --version`."""
    try:
        result = await run_command(command, "--version")
    except CommandError:
        return False
    return result.ok


class GraphiteClient:
    """Stack topology via the Graphite CLI (gt) and git."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.gt = config.get_gt_command()

    async def is_installed(self) -> bool:
        return await is_installed(self.gt)

    async def get_current_branch(self) -> str:
        """Get the checked-out git branch."""
        try:
            result = await run_command("git", "rev-parse", "--abbrev-ref", "HEAD")
        except CommandError as e:
            raise CurrentBranchError(e.message) from e

        branch = result.stdout.strip()
        if not result.ok:
            raise CurrentBranchError(result.stderr.strip() or f"git exited with {result.returncode}")
        if not branch:
            raise CurrentBranchError("git returned an empty branch name")
        return branch

    async def get_stack_text(self) -> str | None:
        """Get the raw `gt log short` listing, or None when gt fails."""
        try:
            result = await run_command(self.gt, "log", "short")
        except CommandError:
            return None

        if not result.ok:
            logger.debug("gt log short failed: %s", result.stderr.strip())
            return None
        return result.stdout


class GitHubClient:
    """PR and check lookups using gh CLI."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.gh = config.get_gh_command()

    async def is_installed(self) -> bool:
        return await is_installed(self.gh)

    async def _pr_field(self, branch: str, field: str) -> str | None:
        try:
            result = await run_command(
                self.gh, "pr", "view", branch, "--json", field, "--jq", f".{field}"
            )
        except CommandError:
            return None

        if not result.ok:
            return None
        value = result.stdout.strip()
        return value or None

    async def get_pr_for_branch(self, branch: str) -> int | None:
        """Get PR number for a branch; None when the branch has no PR."""
        value = await self._pr_field(branch, "number")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    async def get_pr_url(self, branch: str) -> str | None:
        return await self._pr_field(branch, "url")

    async def get_checks(self, branch: str) -> list[Check]:
        """Get normalized CI checks for a branch's PR.

        An empty list means the PR has no checks. A gh failure raises
        CommandError instead of pretending there are none.
        """
        cmd = [self.gh, "pr", "checks", branch, "--json", GH_CHECK_FIELDS]
        result = await run_command(*cmd)

        if result.returncode not in GH_CHECKS_OK_CODES:
            raise CommandError(cmd, result.returncode, result.stderr)

        if not result.stdout.strip():
            if "no checks reported" in result.stderr:
                return []
            raise CommandError(cmd, result.returncode, result.stderr)

        try:
            records = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise CommandError(cmd, result.returncode, f"invalid JSON from gh: {e}") from e

        if not isinstance(records, list):
            raise CommandError(cmd, result.returncode, "expected a JSON list of checks")

        return normalize_checks(records)
