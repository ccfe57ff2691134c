"""Tests for the watch-mode refresh loop."""

import asyncio

import pytest
from fakes import FakeSink

from stack_status.exceptions import CommandError
from stack_status.models import BranchStatus, CheckSummary, StackStatus
from stack_status.watch import LoopState, RefreshLoop


def snapshot(running: int = 0, queued: int = 0, stamp: str = "t") -> StackStatus:
    summary = CheckSummary(total=running + queued + 1, passed=1, running=running, queued=queued)
    return StackStatus(
        branches=(BranchStatus(branch="feature", pr=1, checks=(), summary=summary),),
        timestamp=stamp,
    )


class Scripted:
    """Compose callable returning snapshots in order (last one repeats)."""

    def __init__(self, *snapshots):
        self.snapshots = list(snapshots)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if len(self.snapshots) > 1:
            return self.snapshots.pop(0)
        return self.snapshots[0]


@pytest.mark.asyncio
async def test_exits_when_all_complete():
    """Test that a settled stack ends the loop after one render."""
    sink = FakeSink()
    loop = RefreshLoop(Scripted(snapshot()), sink, interval=0.01)

    result = await loop.run()

    assert result is LoopState.ALL_COMPLETE
    assert sink.events == ["clear", "render", "help", "poll", "complete"]
    assert sink.restored == 1


@pytest.mark.asyncio
async def test_keeps_refreshing_until_complete():
    """Test that running checks cause further ticks."""
    compose = Scripted(snapshot(running=1), snapshot(queued=1), snapshot())
    sink = FakeSink()
    loop = RefreshLoop(compose, sink, interval=0.01)

    assert await loop.run() is LoopState.ALL_COMPLETE
    assert compose.calls == 3
    assert len(sink.rendered) == 3
    assert sink.events.count("complete") == 1
    assert loop.status is sink.rendered[-1][0]


@pytest.mark.asyncio
async def test_quit_key_stops_loop():
    sink = FakeSink(keys=["q"])
    loop = RefreshLoop(Scripted(snapshot(running=1)), sink, interval=0.01)

    assert await loop.run() is LoopState.USER_QUIT
    assert "complete" not in sink.events
    assert sink.restored == 1


@pytest.mark.asyncio
async def test_refresh_key_skips_wait():
    """Test that 'r' triggers the next tick without waiting out the interval."""
    compose = Scripted(snapshot(running=1), snapshot())
    sink = FakeSink(keys=["r"])
    loop = RefreshLoop(compose, sink, interval=60)

    result = await asyncio.wait_for(loop.run(), timeout=2)

    assert result is LoopState.ALL_COMPLETE
    assert compose.calls == 2


@pytest.mark.asyncio
async def test_refresh_key_defers_completion_check():
    """Test that 'r' moves on to a fresh snapshot before deciding completion."""
    compose = Scripted(snapshot(stamp="first"), snapshot(stamp="second"))
    sink = FakeSink(keys=["r"])
    loop = RefreshLoop(compose, sink, interval=60)

    await asyncio.wait_for(loop.run(), timeout=2)

    assert [s.timestamp for s, _ in sink.rendered] == ["first", "second"]


@pytest.mark.asyncio
async def test_details_key_toggles_flag():
    compose = Scripted(snapshot(running=1), snapshot())
    sink = FakeSink(keys=["d"])
    loop = RefreshLoop(compose, sink, interval=0.01)

    await loop.run()

    assert [details for _, details in sink.rendered] == [False, True]


@pytest.mark.asyncio
async def test_other_keys_are_ignored():
    sink = FakeSink(keys=["x"])
    loop = RefreshLoop(Scripted(snapshot()), sink, interval=0.01)

    assert await loop.run() is LoopState.ALL_COMPLETE


@pytest.mark.asyncio
async def test_compose_failure_propagates_and_restores():
    """Test that a failed snapshot ends the loop with the error."""

    async def failing():
        raise CommandError(["gh", "pr", "checks"], 1, "boom")

    sink = FakeSink()
    loop = RefreshLoop(failing, sink, interval=0.01)

    with pytest.raises(CommandError):
        await loop.run()

    assert sink.rendered == []
    assert sink.restored == 1


@pytest.mark.asyncio
async def test_stop_request_interrupts_wait():
    """Test that request_stop ends a long wait promptly."""
    sink = FakeSink()
    loop = RefreshLoop(Scripted(snapshot(running=1)), sink, interval=60)

    task = asyncio.create_task(loop.run())
    await asyncio.sleep(0.05)
    assert loop.state is LoopState.RUNNING

    loop.request_stop()
    result = await asyncio.wait_for(task, timeout=2)

    assert result is LoopState.USER_QUIT
    assert len(sink.rendered) == 1
    assert sink.restored == 1


@pytest.mark.asyncio
async def test_stop_during_compose_skips_render():
    """Test that a stop requested mid-composition is honoured at the boundary."""
    sink = FakeSink()
    loop = None

    async def compose():
        loop.request_stop()
        return snapshot(running=1)

    loop = RefreshLoop(compose, sink, interval=60)

    assert await loop.run() is LoopState.USER_QUIT
    assert sink.rendered == []


@pytest.mark.asyncio
async def test_request_refresh_cuts_wait_short():
    compose = Scripted(snapshot(running=1), snapshot())
    sink = FakeSink()
    loop = RefreshLoop(compose, sink, interval=60)

    task = asyncio.create_task(loop.run())
    await asyncio.sleep(0.05)
    loop.request_refresh()

    assert await asyncio.wait_for(task, timeout=2) is LoopState.ALL_COMPLETE
    assert compose.calls == 2


@pytest.mark.asyncio
async def test_cancellation_restores_once():
    """Test that cancelling the task still runs restore exactly once."""
    sink = FakeSink()
    loop = RefreshLoop(Scripted(snapshot(running=1)), sink, interval=60)

    task = asyncio.create_task(loop.run())
    await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert sink.restored == 1


@pytest.mark.asyncio
async def test_compositions_never_overlap():
    """Test that the loop is single flight."""
    in_flight = 0
    peak = 0
    calls = 0

    async def compose():
        nonlocal in_flight, peak, calls
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        calls += 1
        return snapshot(running=1) if calls < 4 else snapshot()

    loop = RefreshLoop(compose, FakeSink(), interval=0)
    await loop.run()

    assert peak == 1
    assert loop.cycles == 4


def test_ticks_use_interval_from_tick_start():
    """Test that compose time is deducted from the wait."""
    now = [100.0]
    waits = []

    async def compose():
        now[0] += 3
        return snapshot(running=1) if not waits else snapshot()

    loop = RefreshLoop(compose, FakeSink(), interval=10, clock=lambda: now[0])

    async def record_wait(timeout):
        waits.append(timeout)

    loop._wait = record_wait
    asyncio.run(loop.run())

    assert waits == [7.0]
