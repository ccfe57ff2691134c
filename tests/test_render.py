"""Tests for text and JSON rendering."""

import io
import json

from rich.console import Console

from stack_status.checks import summarize_checks
from stack_status.models import BranchStatus, Check, CheckStatus, StackStatus
from stack_status.render import COMPLETE_MESSAGE, ConsoleSink, format_duration, render_stack, to_json


def sample_status() -> StackStatus:
    checks = (
        Check(name="build", status=CheckStatus.PASSED, duration_secs=95),
        Check(name="test", status=CheckStatus.RUNNING),
    )
    return StackStatus(
        branches=(
            BranchStatus(branch="feature-c", is_current=True, pr=12, checks=checks, summary=summarize_checks(checks)),
            BranchStatus(branch="feature-b"),
            BranchStatus(branch="main", is_trunk=True),
        ),
        timestamp="10:11:12",
    )


def test_format_duration():
    assert format_duration(0) == "0s"
    assert format_duration(59) == "59s"
    assert format_duration(95) == "1m35s"
    assert format_duration(3600) == "1h0m"
    assert format_duration(7384) == "2h3m"


def test_render_stack_plain_text():
    """Test the layout of the rendered stack."""
    text = render_stack(sample_status()).plain

    assert "Stack Status" in text
    assert "Updated: 10:11:12" in text
    assert "◉ feature-c (#12)" in text
    assert "◐ 1/2 running" in text
    assert "◯ feature-b\n  no PR" in text
    assert "● main" in text
    assert "├─" not in text
    assert text.index("feature-c") < text.index("feature-b") < text.index("main")


def test_render_stack_details():
    """Test that details add one row per check with durations."""
    text = render_stack(sample_status(), details=True).plain

    assert "├─ ✓ build (1m35s)" in text
    assert "├─ ◐ test" in text
    assert "test (" not in text


def test_trunk_has_no_pr_line():
    text = render_stack(StackStatus(branches=(BranchStatus(branch="main", is_trunk=True),), timestamp="t")).plain
    assert "no PR" not in text


def test_to_json_round_trips_snapshot_dict():
    status = sample_status()
    assert json.loads(to_json(status)) == status.to_dict()


def test_console_sink_text_output():
    """Test the plain console sink used without a TTY."""
    buffer = io.StringIO()
    sink = ConsoleSink(Console(file=buffer, width=100, color_system=None))

    sink.clear()
    sink.render(sample_status(), details=False)
    sink.render_help()
    sink.render_complete()
    sink.restore()

    output = buffer.getvalue()
    assert "feature-c" in output
    assert COMPLETE_MESSAGE in output
    assert sink.poll_key() is None
    assert sink.restored == 1


def test_console_sink_json_output():
    buffer = io.StringIO()
    sink = ConsoleSink(Console(file=buffer, width=200, color_system=None), as_json=True)

    sink.render(sample_status(), details=False)
    sink.render_complete()

    data = json.loads(buffer.getvalue())
    assert data["timestamp"] == "10:11:12"
