"""Shared fixtures."""

import pytest

from stack_status.config import Config


@pytest.fixture
def config(tmp_path):
    """Config backed by a throwaway file instead of the home directory."""
    return Config(str(tmp_path / "stack-status.json"))
