"""Basic smoke tests for the app."""

from unittest.mock import AsyncMock

from stack_status.app import StackStatusApp, TuiSink
from stack_status.watch import LoopState


def test_app_can_instantiate():
    """Test that the app can be created without errors."""
    app = StackStatusApp(AsyncMock(), interval=10)
    assert app is not None
    assert app.refresh_loop.interval == 10
    assert app.refresh_loop.state is LoopState.RUNNING
    assert isinstance(app.refresh_loop.sink, TuiSink)


def test_app_passes_details_flag():
    """Test that the details flag reaches the refresh loop."""
    app = StackStatusApp(AsyncMock(), interval=5, details=True)
    assert app.refresh_loop.details is True


def test_app_has_no_pending_keys_initially():
    app = StackStatusApp(AsyncMock(), interval=5)

    assert len(app.pending_keys) == 0
    assert app.refresh_loop.sink.poll_key() is None
    assert app.failure is None
    assert app.outcome is None
