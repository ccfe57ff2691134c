"""MCP server exposing stack status to agents (stdio transport)."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from .checks import summarize_checks
from .compose import fetch_stack_status
from .config import Config
from .data import GitHubClient, GraphiteClient
from .exceptions import StackStatusError

logger = logging.getLogger(__name__)

SERVER_NAME = "stack-status"

_SERVER_INSTRUCTIONS = (
    "Get Graphite stack status and CI check progress. "
    "Use get_stack_status for the full stack view, "
    "get_pr_checks for details on one branch and "
    "get_branch_info for the checked-out branch."
)

GH_MISSING = {"error": "GitHub CLI (gh) not installed"}


async def stack_status_payload(config: Config) -> dict[str, Any]:
    status = await fetch_stack_status(config)
    return status.to_dict()


async def pr_checks_payload(github: GitHubClient, branch: str) -> dict[str, Any]:
    if not await github.is_installed():
        return dict(GH_MISSING)

    pr = await github.get_pr_for_branch(branch)
    pr_url = await github.get_pr_url(branch)
    checks = await github.get_checks(branch) if pr is not None else []
    return {
        "branch": branch,
        "pr": pr,
        "pr_url": pr_url,
        "checks": [c.to_dict() for c in checks],
        "summary": summarize_checks(checks).to_dict(),
    }


async def branch_info_payload(graphite: GraphiteClient, github: GitHubClient) -> dict[str, Any]:
    current = await graphite.get_current_branch()
    has_gt = await graphite.is_installed()
    has_gh = await github.is_installed()

    pr = await github.get_pr_for_branch(current) if has_gh else None
    pr_url = await github.get_pr_url(current) if has_gh else None
    return {
        "branch": current,
        "pr": pr,
        "pr_url": pr_url,
        "graphite_installed": has_gt,
        "github_cli_installed": has_gh,
    }


def build_server(config: Config) -> FastMCP:
    """Build the FastMCP server with its three read-only tools."""
    mcp = FastMCP(name=SERVER_NAME, instructions=_SERVER_INSTRUCTIONS)

    @mcp.tool(
        name="get_stack_status",
        description=(
            "Get the current Graphite stack status including CI check progress "
            "for all PRs in the stack."
        ),
    )
    async def get_stack_status() -> dict[str, Any]:
        try:
            return await stack_status_payload(config)
        except StackStatusError as e:
            logger.warning("get_stack_status failed: %s", e.message)
            raise ToolError(e.message) from e

    @mcp.tool(
        name="get_pr_checks",
        description="Get detailed CI check status for a specific branch or PR.",
    )
    async def get_pr_checks(
        branch: Annotated[str, Field(description="The branch name to get checks for.")],
    ) -> dict[str, Any]:
        try:
            return await pr_checks_payload(GitHubClient(config), branch)
        except StackStatusError as e:
            logger.warning("get_pr_checks failed for %s: %s", branch, e.message)
            raise ToolError(e.message) from e

    @mcp.tool(
        name="get_branch_info",
        description="Get information about the current git branch including PR status.",
    )
    async def get_branch_info() -> dict[str, Any]:
        try:
            return await branch_info_payload(GraphiteClient(config), GitHubClient(config))
        except StackStatusError as e:
            logger.warning("get_branch_info failed: %s", e.message)
            raise ToolError(e.message) from e

    return mcp


def run_server(config: Config) -> None:
    """Serve the tools over stdio until the client disconnects."""
    build_server(config).run()
