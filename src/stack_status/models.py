"""Data models for stack status."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class CheckStatus(Enum):
    """Normalized state of a single CI check."""

    PASSED = "passed"
    FAILED = "failed"
    RUNNING = "running"
    QUEUED = "queued"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @property
    def icon(self) -> str:
        return _ICONS[self]

    @property
    def style(self) -> str:
        """Rich style used when rendering this status."""
        return _STYLES[self]


_ICONS = {
    CheckStatus.PASSED: "✓",
    CheckStatus.FAILED: "✗",
    CheckStatus.RUNNING: "◐",
    CheckStatus.QUEUED: "○",
    CheckStatus.SKIPPED: "○",
    CheckStatus.CANCELLED: "⊘",
    CheckStatus.UNKNOWN: "?",
}

_STYLES = {
    CheckStatus.PASSED: "green",
    CheckStatus.FAILED: "red",
    CheckStatus.RUNNING: "yellow",
    CheckStatus.QUEUED: "bright_black",
    CheckStatus.SKIPPED: "bright_black",
    CheckStatus.CANCELLED: "bright_black",
    CheckStatus.UNKNOWN: "bright_black",
}


@dataclass(frozen=True)
class RawCheck:
    """Check record as reported by `gh pr checks --json`."""

    name: str
    state: str | None = None
    conclusion: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    details_url: str | None = None
    bucket: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> RawCheck:
        """Build from the camelCase JSON object gh emits."""
        return cls(
            name=_text(data.get("name")) or "",
            state=_text(data.get("state")),
            conclusion=_text(data.get("conclusion")),
            started_at=_text(data.get("startedAt")),
            completed_at=_text(data.get("completedAt")),
            details_url=_text(data.get("detailsUrl")),
            bucket=_text(data.get("bucket")),
        )


def _text(value: Any) -> str | None:
    """Non-empty strings pass through; anything else is treated as absent."""
    if isinstance(value, str) and value:
        return value
    return None


@dataclass(frozen=True)
class Check:
    """Normalized CI check."""

    name: str
    status: CheckStatus
    conclusion: str | None = None
    duration_secs: int | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "conclusion": self.conclusion,
            "duration_secs": self.duration_secs,
            "url": self.url,
        }


@dataclass(frozen=True)
class CheckSummary:
    """Per-branch check counts plus one overall status."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    running: int = 0
    queued: int = 0
    skipped: int = 0
    cancelled: int = 0
    overall: CheckStatus = CheckStatus.UNKNOWN

    @property
    def outstanding(self) -> bool:
        """True while any check is still running or waiting to run."""
        return self.running > 0 or self.queued > 0

    @property
    def text(self) -> str:
        """Short human readable summary, e.g. ``3/5 running``."""
        if self.failed > 0:
            return f"{self.failed} failed"
        if self.outstanding:
            return f"{self.passed}/{self.total} running"
        if self.passed > 0:
            return f"{self.passed}/{self.total} passed"
        return "no checks"

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "running": self.running,
            "queued": self.queued,
            "skipped": self.skipped,
            "cancelled": self.cancelled,
            "overall": self.overall.value,
        }


@dataclass(frozen=True)
class BranchDescriptor:
    """One branch of a stack as listed by Graphite."""

    name: str
    is_current: bool = False
    is_trunk: bool = False


@dataclass(frozen=True)
class BranchStatus:
    """Branch plus its PR and check data."""

    branch: str
    is_current: bool = False
    is_trunk: bool = False
    pr: int | None = None
    checks: tuple[Check, ...] | None = None
    summary: CheckSummary | None = None

    @property
    def is_complete(self) -> bool:
        """Nothing outstanding: trunk, no PR/summary, or no running/queued checks."""
        if self.is_trunk or self.summary is None:
            return True
        return not self.summary.outstanding

    def to_dict(self) -> dict[str, Any]:
        return {
            "branch": self.branch,
            "is_current": self.is_current,
            "is_trunk": self.is_trunk,
            "pr": self.pr,
            "checks": [c.to_dict() for c in self.checks] if self.checks is not None else None,
            "summary": self.summary.to_dict() if self.summary is not None else None,
        }


@dataclass(frozen=True)
class StackStatus:
    """One consistent snapshot of a stack and its checks."""

    branches: tuple[BranchStatus, ...]
    timestamp: str

    def all_complete(self) -> bool:
        """True when no branch has running or queued checks."""
        return all(branch.is_complete for branch in self.branches)

    def current(self) -> BranchStatus | None:
        """Status of the checked-out branch, if it is part of the stack."""
        for branch in self.branches:
            if branch.is_current:
                return branch
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "branches": [b.to_dict() for b in self.branches],
            "timestamp": self.timestamp,
        }
