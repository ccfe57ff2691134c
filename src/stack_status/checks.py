"""Normalization and aggregation of CI checks."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from .models import Check, CheckStatus, CheckSummary, RawCheck

_BUCKETS = {
    "pass": CheckStatus.PASSED,
    "fail": CheckStatus.FAILED,
    "skipping": CheckStatus.SKIPPED,
    "cancel": CheckStatus.CANCELLED,
}


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp; naive or invalid values give None."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def check_status(bucket: str | None, state: str | None) -> CheckStatus:
    """Map gh's bucket (and state for pending checks) onto CheckStatus."""
    if bucket == "pending":
        return CheckStatus.RUNNING if state == "IN_PROGRESS" else CheckStatus.QUEUED
    return _BUCKETS.get(bucket or "", CheckStatus.UNKNOWN)


def check_duration(started_at: str | None, completed_at: str | None) -> int | None:
    start = parse_timestamp(started_at)
    end = parse_timestamp(completed_at)
    if start is None or end is None:
        return None
    return max(0, int((end - start).total_seconds()))


def normalize_check(raw: RawCheck) -> Check:
    return Check(
        name=raw.name,
        status=check_status(raw.bucket, raw.state),
        conclusion=raw.conclusion,
        duration_secs=check_duration(raw.started_at, raw.completed_at),
        url=raw.details_url,
    )


def normalize_checks(records: Iterable[Any]) -> list[Check]:
    """Normalize decoded `gh pr checks` JSON, ignoring non-object entries."""
    return [
        normalize_check(RawCheck.from_json(record))
        for record in records
        if isinstance(record, dict)
    ]


def summarize_checks(checks: Sequence[Check]) -> CheckSummary:
    """Count checks per status and pick the overall status.

    Any failure wins, then outstanding work (running or queued), then passes.
    """
    counts = dict.fromkeys(CheckStatus, 0)
    for check in checks:
        counts[check.status] += 1

    failed = counts[CheckStatus.FAILED]
    running = counts[CheckStatus.RUNNING]
    queued = counts[CheckStatus.QUEUED]
    passed = counts[CheckStatus.PASSED]

    if failed > 0:
        overall = CheckStatus.FAILED
    elif running > 0 or queued > 0:
        overall = CheckStatus.RUNNING
    elif passed > 0:
        overall = CheckStatus.PASSED
    else:
        overall = CheckStatus.UNKNOWN

    return CheckSummary(
        total=len(checks),
        passed=passed,
        failed=failed,
        running=running,
        queued=queued,
        skipped=counts[CheckStatus.SKIPPED],
        cancelled=counts[CheckStatus.CANCELLED],
        overall=overall,
    )
