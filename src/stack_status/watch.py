"""Watch mode: periodic snapshot refresh until quit or all checks finish."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Protocol

from .models import StackStatus

logger = logging.getLogger(__name__)

QUIT_KEYS = frozenset({"q", "Q"})
REFRESH_KEYS = frozenset({"r", "R"})
DETAILS_KEYS = frozenset({"d", "D"})


class LoopState(Enum):
    RUNNING = "running"
    COMPOSING = "composing"
    RENDERED = "rendered"
    USER_QUIT = "user_quit"
    ALL_COMPLETE = "all_complete"

    @property
    def is_terminal(self) -> bool:
        return self in (LoopState.USER_QUIT, LoopState.ALL_COMPLETE)


class Sink(Protocol):
    """Where snapshots are presented and keys come from."""

    def clear(self) -> None: ...

    def render(self, status: StackStatus, details: bool) -> None: ...

    def render_help(self) -> None: ...

    def render_complete(self) -> None: ...

    def poll_key(self) -> str | None: ...

    def restore(self) -> None: ...


class RefreshLoop:
    """Single-flight refresh loop.

    Each cycle composes a snapshot, renders it, polls one buffered key without
    blocking and then either exits or waits for the next tick. Only one
    composition is ever in flight. ``sink.restore()`` runs exactly once when
    ``run`` returns or raises.
    """

    def __init__(
        self,
        compose: Callable[[], Awaitable[StackStatus]],
        sink: Sink,
        *,
        interval: float,
        details: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.compose = compose
        self.sink = sink
        self.interval = interval
        self.details = details
        self.clock = clock
        self.state = LoopState.RUNNING
        self.status: StackStatus | None = None
        self.cycles = 0
        self._stop = asyncio.Event()
        self._wake = asyncio.Event()
        self._restored = False

    def request_stop(self) -> None:
        """Interrupt the loop; observed at the next state boundary."""
        self._stop.set()
        self._wake.set()

    def request_refresh(self) -> None:
        """End the current wait early so the next tick fires now."""
        self._wake.set()

    def toggle_details(self) -> bool:
        self.details = not self.details
        return self.details

    def _enter(self, state: LoopState) -> None:
        logger.debug("Watch loop: %s -> %s", self.state.value, state.value)
        self.state = state

    def _restore(self) -> None:
        if self._restored:
            return
        self._restored = True
        self.sink.restore()

    async def run(self) -> LoopState:
        """Run until quit or completion and return the terminal state."""
        try:
            return await self._run()
        finally:
            self._restore()

    async def _run(self) -> LoopState:
        while True:
            if self._stop.is_set():
                self._enter(LoopState.USER_QUIT)
                return self.state

            tick = self.clock()
            self._enter(LoopState.COMPOSING)
            status = await self.compose()
            self.status = status
            self.cycles += 1

            if self._stop.is_set():
                self._enter(LoopState.USER_QUIT)
                return self.state

            self._enter(LoopState.RENDERED)
            self.sink.clear()
            self.sink.render(status, self.details)
            self.sink.render_help()

            key = self.sink.poll_key()
            if key in QUIT_KEYS:
                self._enter(LoopState.USER_QUIT)
                return self.state
            if key in REFRESH_KEYS:
                self._enter(LoopState.RUNNING)
                self._wake.clear()
                continue
            if key in DETAILS_KEYS:
                self.toggle_details()

            if status.all_complete():
                self._enter(LoopState.ALL_COMPLETE)
                self.sink.render_complete()
                return self.state

            self._enter(LoopState.RUNNING)
            await self._wait(tick + self.interval - self.clock())

    async def _wait(self, timeout: float) -> None:
        if timeout > 0 and not self._wake.is_set():
            try:
                await asyncio.wait_for(self._wake.wait(), timeout)
            except TimeoutError:
                pass
        self._wake.clear()
