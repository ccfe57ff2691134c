"""Errors raised while gathering stack status."""

from __future__ import annotations

from typing import Any


class StackStatusError(Exception):
    """Base error; aborts the snapshot being composed."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class CommandError(StackStatusError):
    """An external command (git, gh, gt) failed or could not be run."""

    def __init__(self, command: list[str], returncode: int | None, stderr: str = "") -> None:
        cmd = " ".join(command)
        if returncode is None:
            message = f"Command not found: {command[0]}"
        else:
            reason = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
            message = f"`{cmd}` failed with exit code {returncode}: {reason}"
        super().__init__(
            message,
            details={"command": command, "returncode": returncode, "stderr": stderr},
        )
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class CurrentBranchError(StackStatusError):
    """The checked-out branch could not be determined."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Could not determine current branch: {reason}", details={"reason": reason})
